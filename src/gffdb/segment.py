# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

"""
Coordinate frames on reference sequences and the arithmetic to move
positions between them.
"""

__name__ = "gffdb"
__author__ = "The gffdb contributors"
__all__ = [
    "Strand",
    "invert_strand",
    "Segment",
    "translate",
    "resolve_landmark",
]

import copy
import numbers
from enum import Enum, auto
import numpy as np
from .error import AmbiguousLandmarkError, InvalidRangeError, UnknownLandmarkError


class Strand(Enum):
    """
    This enum type describes the strand of a feature or the
    orientation of a coordinate frame.
    Unstranded features use ``None`` instead.
    """

    FORWARD = auto()
    REVERSE = auto()

    @staticmethod
    def from_symbol(symbol):
        """
        Get the strand corresponding to a GFF strand symbol.

        Parameters
        ----------
        symbol : str or Strand or None
            ``'+'``, ``'-'``, ``'.'`` or ``None``.
            A :class:`Strand` is returned unchanged.

        Returns
        -------
        strand : Strand or None
            The strand, ``None`` for unstranded symbols.
        """
        if symbol is None or isinstance(symbol, Strand):
            return symbol
        if symbol == "+":
            return Strand.FORWARD
        elif symbol == "-":
            return Strand.REVERSE
        elif symbol in (".", "", "0"):
            return None
        else:
            raise ValueError(f"'{symbol}' is not a valid strand symbol")

    @property
    def symbol(self):
        return "+" if self == Strand.FORWARD else "-"


def invert_strand(strand):
    """
    Get the opposite strand.
    ``None`` (unstranded) stays ``None``.
    """
    if strand is None:
        return None
    return Strand.REVERSE if strand == Strand.FORWARD else Strand.FORWARD


class Segment:
    """
    A :class:`Segment` is a stretch of a reference sequence, that can
    also serve as coordinate frame for other segments.

    The position of a segment is stored in absolute coordinates on its
    reference sequence (:attr:`abs_start`, :attr:`abs_stop`,
    :attr:`abs_strand`).
    The positions reported by :attr:`start`, :attr:`stop` and
    :attr:`strand` are relative to the :attr:`reference` segment:
    Position 1 is the first base of the reference segment, in the
    orientation of the reference segment.
    If the reference segment lies on the reverse strand, positions are
    reflected and the strand is inverted.
    Without a reference segment, relative and absolute coordinates are
    identical.

    Objects of this class are immutable.
    Use :meth:`relative_to()` to obtain the same segment in another
    coordinate frame.

    Parameters
    ----------
    ref : str
        The ID of the reference sequence.
    start, stop : int
        The absolute, inclusive bounds of the segment.
        If `start` is greater than `stop`, the bounds are swapped.
    strand : Strand or None, optional
        The orientation of the segment on the reference sequence.
    ref_class : str, optional
        The class of the reference sequence.
    name : str, optional
        The name of the landmark the segment was created from.
        By default the reference sequence ID.
    seq_class : str, optional
        The class of the landmark.
    reference : Segment, optional
        The segment establishing the coordinate frame.
    database : GFFDatabase, optional
        The database the segment was obtained from.
        Required for feature queries on the segment.
    """

    def __init__(self, ref, start, stop, strand=None, ref_class=None,
                 name=None, seq_class=None, reference=None, database=None):
        if start > stop:
            start, stop = stop, start
        if reference is not None and reference.ref != ref:
            raise InvalidRangeError(
                f"Cannot use a segment on '{reference.ref}' as reference "
                f"for a segment on '{ref}'"
            )
        self._ref = ref
        self._ref_class = ref_class
        self._abs_start = int(start)
        self._abs_stop = int(stop)
        self._abs_strand = Strand.from_symbol(strand)
        self._name = name if name is not None else ref
        self._seq_class = seq_class if seq_class is not None else ref_class
        self._reference = reference
        self._database = database

    @property
    def ref(self):
        return self._ref

    @property
    def ref_class(self):
        return self._ref_class

    @property
    def name(self):
        return self._name

    @property
    def seq_class(self):
        return self._seq_class

    @property
    def abs_start(self):
        return self._abs_start

    @property
    def abs_stop(self):
        return self._abs_stop

    @property
    def abs_strand(self):
        return self._abs_strand

    @property
    def reference(self):
        return self._reference

    @property
    def database(self):
        return self._database

    @property
    def start(self):
        return _to_relative(
            self._abs_start, self._abs_stop, self._abs_strand, self._reference
        )[0]

    @property
    def stop(self):
        return _to_relative(
            self._abs_start, self._abs_stop, self._abs_strand, self._reference
        )[1]

    @property
    def strand(self):
        return _to_relative(
            self._abs_start, self._abs_stop, self._abs_strand, self._reference
        )[2]

    @property
    def length(self):
        return self._abs_stop - self._abs_start + 1

    def __len__(self):
        return self.length

    def relative_to(self, reference):
        """
        Express this segment in the coordinate frame of another
        segment.

        Parameters
        ----------
        reference : Segment or None
            The new reference segment.
            ``None`` gives absolute coordinates.

        Returns
        -------
        segment : Segment
            A copy of this segment with the new reference.

        Raises
        ------
        InvalidRangeError
            If the reference segment is on another reference sequence.
        """
        if reference is not None and reference.ref != self._ref:
            raise InvalidRangeError(
                f"Cannot use a segment on '{reference.ref}' as reference "
                f"for a segment on '{self._ref}'"
            )
        clone = copy.copy(self)
        clone._reference = reference
        return clone

    def absolute(self):
        """
        Express this segment in absolute coordinates.

        Returns
        -------
        segment : Segment
            A copy of this segment without reference.
        """
        return self.relative_to(None)

    def subsegment(self, start=None, stop=None, offset=None, length=None):
        """
        Create a segment positioned relative to this segment.

        The new segment is either given by 1-based `start` and `stop`
        positions or by a 0-based `offset` and a `length`.
        Position 1 is the first base of this segment in the
        orientation of its reference frame.
        The new segment keeps the reference frame of this segment.

        Parameters
        ----------
        start, stop : int, optional
            The bounds of the new segment.
            By default the bounds of this segment.
            If `start` is greater than `stop`, the new segment has the
            opposite orientation.
        offset : int, optional
            Alternative to `start`: The 0-based offset of the new
            segment.
        length : int, optional
            Alternative to `stop`: The length of the new segment.

        Returns
        -------
        segment : Segment
            The new segment.
        """
        if offset is not None or length is not None:
            if start is not None or stop is not None:
                raise InvalidRangeError(
                    "Either 'start'/'stop' or 'offset'/'length' can be given"
                )
            offset = 0 if offset is None else offset
            start = offset + 1
            stop = offset + length if length is not None else self.length
        else:
            start = 1 if start is None else start
            stop = self.length if stop is None else stop
        _check_position(start, "start")
        _check_position(stop, "stop")

        strand = self._abs_strand
        if start > stop:
            start, stop = stop, start
            strand = invert_strand(
                strand if strand is not None else Strand.FORWARD
            )
        if _is_reversed(self._reference):
            abs_start = self._abs_stop - stop + 1
            abs_stop = self._abs_stop - start + 1
        else:
            abs_start = self._abs_start + start - 1
            abs_stop = self._abs_start + stop - 1
        return Segment(
            self._ref, abs_start, abs_stop, strand, self._ref_class,
            self._name, self._seq_class, self._reference, self._database
        )

    def overlaps(self, segment):
        """
        Check whether this segment overlaps with another segment on the
        same reference sequence.
        """
        return (
            self._ref == segment.ref
            and self._abs_start <= segment.abs_stop
            and self._abs_stop >= segment.abs_start
        )

    def contains(self, segment):
        """
        Check whether another segment lies completely within this
        segment.
        """
        return (
            self._ref == segment.ref
            and self._abs_start <= segment.abs_start
            and self._abs_stop >= segment.abs_stop
        )

    ## Queries delegated to the database ##

    def features(self, types=None, merge=None, iterator=False):
        """
        Get the features overlapping this segment.

        The coordinates of the returned features are given in the
        reference frame of this segment.

        Parameters
        ----------
        types : str or iterable object of str, optional
            The requested types in ``"method:source"`` notation.
        merge : bool, optional
            Whether to aggregate features.
            By default the database setting is used.
        iterator : bool, optional
            If true, a :class:`FeatureIterator` is returned.

        Returns
        -------
        features : list of Feature or FeatureIterator
            The features.
        """
        return self.overlapping_features(types, merge, iterator)

    def overlapping_features(self, types=None, merge=None, iterator=False):
        return self._query("overlaps", types, merge, iterator)

    def contained_features(self, types=None, merge=None, iterator=False):
        """
        Get the features, that are completely contained in this
        segment.
        """
        return self._query("contains", types, merge, iterator)

    def contained_in(self, types=None, merge=None, iterator=False):
        """
        Get the features, that completely contain this segment.
        """
        return self._query("contained_in", types, merge, iterator)

    def types(self, count=False, types=None):
        """
        Get the feature types occurring in this segment.

        Parameters
        ----------
        count : bool, optional
            If true, a dictionary mapping each type to the number of
            occurrences is returned.
        types : str or iterable object of str, optional
            Only report types matching these patterns.

        Returns
        -------
        types : list of Typename or dict
            The types in this segment.
        """
        return self._get_database().types(
            self._ref, self._ref_class, self._abs_start, self._abs_stop,
            count=count, types=types
        )

    def dna(self):
        """
        Get the DNA sequence of this segment.

        Segments on the reverse strand give the reverse complement.

        Returns
        -------
        dna : str
            The sequence.
        """
        if self._abs_strand == Strand.REVERSE:
            return self._get_database().dna(
                self._ref, self._abs_stop, self._abs_start, self._ref_class
            )
        return self._get_database().dna(
            self._ref, self._abs_start, self._abs_stop, self._ref_class
        )

    def _query(self, range_type, types, merge, iterator):
        return self._get_database().retrieve(
            range_type, self._ref, self._ref_class,
            self._abs_start, self._abs_stop, types,
            parent=self, merge=merge, iterator=iterator
        )

    def _get_database(self):
        if self._database is None:
            raise ValueError("The segment is not attached to a database")
        return self._database

    def __eq__(self, item):
        if not isinstance(item, Segment):
            return False
        return (
            self._ref == item._ref
            and self._abs_start == item._abs_start
            and self._abs_stop == item._abs_stop
            and self._abs_strand == item._abs_strand
        )

    def __hash__(self):
        return hash((self._ref, self._abs_start, self._abs_stop, self._abs_strand))

    def __str__(self):
        return f"{self._name}:{self.start}..{self.stop}"

    def __repr__(self):
        """Represent Segment as a string for debugging."""
        return (
            f"Segment({self._ref!r}, {self._abs_start}, {self._abs_stop}, "
            f"strand={self._abs_strand}, name={self._name!r})"
        )


def translate(start, stop, strand, from_frame, to_frame):
    """
    Convert relative coordinates from one coordinate frame into
    another one.

    If the orientation of the frames differ, the positions are
    reflected and the strand is inverted.
    The returned `start` is never greater than the returned `stop`.

    Parameters
    ----------
    start, stop : int
        The bounds in the `from_frame`.
    strand : Strand or None
        The strand in the `from_frame`.
    from_frame, to_frame : Segment or None
        The source and target coordinate frame.
        ``None`` represents absolute coordinates.

    Returns
    -------
    start, stop : int
        The bounds in the `to_frame`.
    strand : Strand or None
        The strand in the `to_frame`.

    Raises
    ------
    InvalidRangeError
        If the frames lie on different reference sequences.
    """
    if (
        from_frame is not None
        and to_frame is not None
        and from_frame.ref != to_frame.ref
    ):
        raise InvalidRangeError(
            f"Cannot translate coordinates from '{from_frame.ref}' "
            f"to '{to_frame.ref}'"
        )
    abs_start, abs_stop, abs_strand = _to_absolute(start, stop, strand, from_frame)
    return _to_relative(abs_start, abs_stop, abs_strand, to_frame)


def resolve_landmark(adaptor, name, seq_class, refseq=None):
    """
    Find the absolute position of a landmark.

    If the landmark occurs at multiple positions of the same reference
    sequence, the span from the minimum start to the maximum stop is
    returned.

    Parameters
    ----------
    adaptor : Adaptor
        The storage adaptor to look the landmark up in.
    name : str
        The name of the landmark.
    seq_class : str
        The class of the landmark.
    refseq : str, optional
        If given, only occurrences on this reference sequence are
        considered.

    Returns
    -------
    ref : str
        The ID of the reference sequence.
    ref_class : str
        The class of the reference sequence.
    start, stop : int
        The absolute bounds of the landmark.
    strand : Strand
        The orientation of the landmark on the reference sequence.

    Raises
    ------
    UnknownLandmarkError
        If the landmark does not exist.
    AmbiguousLandmarkError
        If the landmark occurs on different reference sequences.
    """
    occurrences = adaptor.lookup_absolute_coordinates(name, seq_class, refseq)
    if len(occurrences) == 0:
        location = f" on '{refseq}'" if refseq is not None else ""
        raise UnknownLandmarkError(
            f"No landmark '{name}' of class '{seq_class}'{location}"
        )
    refs = sorted(set(occ[0] for occ in occurrences))
    if len(refs) > 1:
        raise AmbiguousLandmarkError(
            f"Landmark '{seq_class}:{name}' occurs on multiple reference "
            f"sequences: {', '.join(refs)}"
        )
    ref = refs[0]
    ref_class = occurrences[0][1]
    bounds = np.array([(occ[2], occ[3]) for occ in occurrences])
    start = int(np.min(bounds))
    stop = int(np.max(bounds))
    strands = set(Strand.from_symbol(occ[4]) for occ in occurrences)
    if len(strands) == 1 and None not in strands:
        strand = strands.pop()
    else:
        strand = Strand.FORWARD
    return ref, ref_class, start, stop, strand


def _is_reversed(frame):
    return frame is not None and frame.abs_strand == Strand.REVERSE


def _to_relative(abs_start, abs_stop, strand, frame):
    if frame is None:
        return abs_start, abs_stop, strand
    if _is_reversed(frame):
        return (
            frame.abs_stop - abs_stop + 1,
            frame.abs_stop - abs_start + 1,
            invert_strand(strand),
        )
    return (
        abs_start - frame.abs_start + 1,
        abs_stop - frame.abs_start + 1,
        strand,
    )


def _to_absolute(start, stop, strand, frame):
    if start > stop:
        start, stop = stop, start
    if frame is None:
        return start, stop, strand
    if _is_reversed(frame):
        return (
            frame.abs_stop - stop + 1,
            frame.abs_stop - start + 1,
            invert_strand(strand),
        )
    return (
        start + frame.abs_start - 1,
        stop + frame.abs_start - 1,
        strand,
    )


def _check_position(position, name):
    if not isinstance(position, numbers.Integral):
        raise InvalidRangeError(
            f"'{name}' must be an integer, not {type(position).__name__}"
        )
