# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

"""
The retrieval engine on top of a storage adaptor.
"""

__name__ = "gffdb"
__author__ = "The gffdb contributors"
__all__ = ["GFFDatabase", "FeatureIterator", "RangeType"]

import glob
import logging
import numbers
import os
from os.path import isdir, join
from .adaptor.base import RangeType
from .aggregator import AggregatorPipeline, get_default_aggregators
from .error import InvalidRangeError
from .feature import Feature
from .file import is_open_compatible, is_text
from .group import GroupCache, materialize_group
from .io.gff.convert import get_records
from .io.gff.fetch import fetch
from .io.gff.file import GFFFile
from .segment import Segment, Strand, resolve_landmark
from .typename import compile_types, parse_types

_log = logging.getLogger(__name__)

_URL_PREFIXES = ("http://", "https://", "ftp://")
_GFF_PATTERNS = ("*.gff", "*.gff.gz", "*.gff.bz2")


class GFFDatabase:
    """
    A queryable collection of GFF annotations.

    The database resolves landmark names to coordinates, retrieves
    features from its storage :class:`Adaptor` and reassembles
    composite features, e.g. transcripts, with its aggregators.

    If features are merged, requesting ``"transcript"`` gives assembled
    transcripts, while requesting no type at all gives the stored
    features together with all composite features the aggregators
    build from them.

    Parameters
    ----------
    adaptor : Adaptor
        The storage backend.
    aggregators : iterable object of (Aggregator or str), optional
        The aggregators in registration order.
        By default the aggregators given by
        :func:`get_default_aggregators()` are used.
    automerge : bool, optional
        Whether queries aggregate features by default.
    default_class : str, optional
        The landmark class used, if no class is given.

    Examples
    --------

    >>> from gffdb.adaptor import MemoryAdaptor
    >>> from gffdb.io.gff import GFFFile
    >>> gff_file = GFFFile.from_text(
    ...     "Chr1\\tcurated\\texon\\t1\\t100\\t.\\t+\\t.\\tTranscript T1\\n"
    ...     "Chr1\\tcurated\\tintron\\t101\\t149\\t.\\t+\\t.\\tTranscript T1\\n"
    ...     "Chr1\\tcurated\\texon\\t150\\t300\\t.\\t+\\t.\\tTranscript T1\\n"
    ... )
    >>> database = GFFDatabase(MemoryAdaptor())
    >>> database.load(gff_file)
    3
    >>> transcript = database.features("transcript")[0]
    >>> print(transcript.type, transcript.start, transcript.stop)
    transcript:curated 1 300
    >>> print(len(database.features("exon")))
    2
    """

    def __init__(self, adaptor, aggregators=None, automerge=True,
                 default_class="Sequence"):
        self._adaptor = adaptor
        if aggregators is None:
            aggregators = get_default_aggregators()
        self._pipeline = AggregatorPipeline(aggregators)
        self._automerge = automerge
        self._default_class = default_class

    @property
    def adaptor(self):
        return self._adaptor

    @property
    def aggregators(self):
        return self._pipeline.aggregators

    @property
    def automerge(self):
        return self._automerge

    @automerge.setter
    def automerge(self, value):
        self._automerge = bool(value)

    @property
    def default_class(self):
        return self._default_class

    @default_class.setter
    def default_class(self, value):
        self._default_class = value

    def add_aggregator(self, aggregator):
        """
        Append an aggregator to the list of aggregators.

        Parameters
        ----------
        aggregator : Aggregator or str
            The aggregator or its registered name.
        """
        self._pipeline.add(aggregator)

    ## Retrieval ##

    def retrieve(self, range_type="overlaps", ref=None, ref_class=None,
                 start=None, stop=None, types=None, parent=None, merge=None,
                 iterator=False):
        """
        Retrieve features from the database.

        This is the routine all other feature queries are based on.

        Parameters
        ----------
        range_type : RangeType or str, optional
            How features are compared with the window:
            ``"overlaps"``, ``"contains"`` (features within the window)
            or ``"contained_in"`` (features spanning the window).
        ref : str, optional
            The reference sequence of the window.
            By default the whole database is queried.
        ref_class : str, optional
            The class of the reference sequence.
        start, stop : int, optional
            The absolute bounds of the window.
            By default the entire reference sequence.
            If `start` is greater than `stop`, the bounds are swapped.
        types : str or iterable object of str, optional
            The requested types in ``"method:source"`` notation.
            By default all types are requested.
        parent : Segment, optional
            The coordinates of the returned features are expressed in
            the reference frame of this segment.
            By default absolute coordinates are used.
        merge : bool, optional
            Whether to aggregate features.
            By default the :attr:`automerge` setting is used.
        iterator : bool, optional
            If true, the features are streamed from the adaptor.
            In streaming mode, only adjacent features of the same group
            are aggregated and no group cache is used.

        Returns
        -------
        features : list of Feature or FeatureIterator
            The features.

        Raises
        ------
        InvalidRangeError
            If the range type or the window is invalid.
        """
        range_type = _to_range_type(range_type)
        start, stop = _check_window(ref, start, stop)
        merge = self._automerge if merge is None else merge
        requested = parse_types(types)
        match = compile_types(requested)
        if merge:
            primitive_types, active = self._pipeline.disaggregate(requested)
            if len(requested) == 0:
                # Everything is requested, so every aggregator takes part
                active = self._pipeline.aggregators
        else:
            primitive_types, active = requested, ()
        _log.debug(
            "Retrieving %s %s:%s..%s, requested types [%s], "
            "fetched types [%s], aggregators [%s]",
            range_type.value, ref, start, stop,
            ", ".join(str(t) for t in requested),
            ", ".join(str(t) for t in primitive_types),
            ", ".join(a.method for a in active),
        )
        if len(requested) > 0 and len(primitive_types) == 0:
            _log.debug("No types remain after disaggregation")
            return FeatureIterator(iter(())) if iterator else []

        reference = parent.reference if parent is not None else None
        if iterator:
            return self._stream(
                range_type, ref, ref_class, start, stop, primitive_types,
                reference, match, active
            )

        records = self._adaptor.fetch_by_range(
            range_type, ref, ref_class, start, stop, primitive_types
        )
        cache = GroupCache()
        features = [self._make_feature(record, reference, cache) for record in records]
        _log.debug(
            "Fetched %d records in %d groups", len(features), len(cache)
        )
        if len(active) > 0:
            features = self._pipeline.aggregate(features, active)
            _log.debug("Aggregation gave %d features", len(features))
        features = [feature for feature in features if match(feature)]
        _log.debug("Filtering kept %d features", len(features))
        return features

    def features(self, types=None, merge=None, iterator=False):
        """
        Get features from the whole database.

        Parameters
        ----------
        types : str or iterable object of str, optional
            The requested types in ``"method:source"`` notation.
        merge : bool, optional
            Whether to aggregate features.
        iterator : bool, optional
            If true, a :class:`FeatureIterator` is returned.

        Returns
        -------
        features : list of Feature or FeatureIterator
            The features.
        """
        return self.retrieve(
            RangeType.OVERLAPS, types=types, merge=merge, iterator=iterator
        )

    def all_features(self, merge=None, iterator=False):
        """
        Get all features of the database.
        """
        return self.features(None, merge, iterator)

    def get_seq_stream(self, *types, merge=None):
        """
        Stream the features of the given types from the whole
        database.

        Returns
        -------
        features : FeatureIterator
            The features.
        """
        return self.features(list(types), merge, iterator=True)

    def features_in_range(self, range_type, ref, start=None, stop=None,
                          types=None, merge=None, iterator=False,
                          ref_class=None, parent=None):
        return self.retrieve(
            range_type, ref, ref_class, start, stop, types, parent,
            merge, iterator
        )

    def overlapping_features(self, ref, start=None, stop=None, types=None,
                             merge=None, iterator=False, ref_class=None):
        """
        Get the features overlapping a window.
        """
        return self.retrieve(
            RangeType.OVERLAPS, ref, ref_class, start, stop, types,
            merge=merge, iterator=iterator
        )

    def contained_features(self, ref, start=None, stop=None, types=None,
                           merge=None, iterator=False, ref_class=None):
        """
        Get the features lying completely within a window.
        """
        return self.retrieve(
            RangeType.CONTAINED_IN_RANGE, ref, ref_class, start, stop, types,
            merge=merge, iterator=iterator
        )

    def contained_in(self, ref, start=None, stop=None, types=None,
                     merge=None, iterator=False, ref_class=None):
        """
        Get the features completely spanning a window.
        """
        return self.retrieve(
            RangeType.CONTAINS_RANGE, ref, ref_class, start, stop, types,
            merge=merge, iterator=iterator
        )

    def fetch_group(self, name, group_class=None):
        """
        Get the features of a group.

        The features are not aggregated.

        Parameters
        ----------
        name : str
            The name of the group.
        group_class : str, optional
            The class of the group.
            By default the :attr:`default_class`.

        Returns
        -------
        features : list of Feature
            The features of the group in absolute coordinates.
        """
        if group_class is None:
            group_class = self._default_class
        cache = GroupCache()
        return [
            self._make_feature(record, None, cache)
            for record in self._adaptor.fetch_by_group(group_class, name)
        ]

    segments = fetch_group

    ## Segments ##

    def segment(self, name, start=None, stop=None, seq_class=None,
                offset=None, length=None, refseq=None, ref_class=None):
        """
        Create a segment from a landmark.

        By default the landmark is its own reference frame, hence the
        segment starts at position 1.

        Parameters
        ----------
        name : str
            The name of the landmark.
        start, stop : int, optional
            The bounds of the segment relative to the landmark.
            By default the bounds of the landmark.
        seq_class : str, optional
            The class of the landmark.
            By default the :attr:`default_class`.
        offset, length : int, optional
            Alternative to `start` and `stop`: The 0-based position
            and the length of the segment relative to the landmark.
        refseq : str, optional
            The name of another landmark, that serves as reference
            frame for the segment.
        ref_class : str, optional
            The class of the `refseq` landmark.

        Returns
        -------
        segment : Segment
            The segment.

        Raises
        ------
        UnknownLandmarkError
            If the landmark does not exist.
        AmbiguousLandmarkError
            If the landmark occurs on different reference sequences.
        """
        if seq_class is None:
            seq_class = self._default_class
        frame = None
        if refseq is not None:
            if ref_class is None:
                ref_class = self._adaptor.refclass(refseq)
            frame = self.segment(refseq, seq_class=ref_class)
        ref, landmark_ref_class, abs_start, abs_stop, strand = resolve_landmark(
            self._adaptor, name, seq_class,
            frame.ref if frame is not None else None
        )
        landmark = Segment(
            ref, abs_start, abs_stop, strand, landmark_ref_class, name,
            seq_class, database=self
        )
        segment = landmark.relative_to(landmark)
        if not (start is None and stop is None
                and offset is None and length is None):
            segment = segment.subsegment(start, stop, offset, length)
        if frame is not None:
            segment = segment.relative_to(frame)
        return segment

    def abs_segment(self, ref, start=None, stop=None, ref_class=None):
        """
        Create a segment in absolute coordinates of a reference
        sequence.

        Parameters
        ----------
        ref : str
            The reference sequence.
        start, stop : int, optional
            The absolute bounds.
            By default the entire reference sequence.
        ref_class : str, optional
            The class of the reference sequence.

        Returns
        -------
        segment : Segment
            The segment.
        """
        if ref_class is None:
            ref_class = self._adaptor.refclass(ref)
        if start is None or stop is None:
            _, _, ref_start, ref_stop, _ = resolve_landmark(
                self._adaptor, ref, ref_class, ref
            )
            start = ref_start if start is None else start
            stop = ref_stop if stop is None else stop
        strand = Strand.REVERSE if start > stop else Strand.FORWARD
        return Segment(ref, start, stop, strand, ref_class, database=self)

    def abscoords(self, name, seq_class=None, refseq=None):
        """
        Get the absolute position of a landmark.

        Returns
        -------
        ref : str
            The reference sequence.
        ref_class : str
            The class of the reference sequence.
        start, stop : int
            The absolute bounds.
        strand : Strand
            The orientation of the landmark.
        """
        if seq_class is None:
            seq_class = self._default_class
        return resolve_landmark(self._adaptor, name, seq_class, refseq)

    def get_stream_by_id(self, ids):
        """
        Create a segment for each of the given landmarks.

        Parameters
        ----------
        ids : iterable object of (str or tuple(str, str))
            The landmark names, optionally as ``(class, name)`` tuples.

        Yields
        ------
        segment : Segment
            The segment of each landmark.
        """
        for landmark in ids:
            if isinstance(landmark, tuple):
                seq_class, name = landmark
            else:
                seq_class, name = None, landmark
            yield self.segment(name, seq_class=seq_class)

    ## Pass-through to the adaptor ##

    def types(self, ref=None, ref_class=None, start=None, stop=None,
              count=False, types=None):
        """
        Get the feature types in the database or a window of it.

        Parameters
        ----------
        ref : str, optional
            The reference sequence of the window.
        ref_class : str, optional
            The class of the reference sequence.
        start, stop : int, optional
            The bounds of the window.
        count : bool, optional
            If true, the number of occurrences of each type is given.
        types : str or iterable object of str, optional
            Only report types matching these patterns.

        Returns
        -------
        types : list of Typename or dict
            The types, or if `count` is true, a dictionary mapping each
            type to its number of occurrences.
        """
        start, stop = _check_window(ref, start, stop)
        result = self._adaptor.enumerate_types(ref, ref_class, start, stop, count)
        match = compile_types(types)
        if match.matches_all:
            return result
        if count:
            return {
                typename: n for typename, n in result.items()
                if match.match_type(typename.method, typename.source)
            }
        return [
            typename for typename in result
            if match.match_type(typename.method, typename.source)
        ]

    def dna(self, ref, start=None, stop=None, seq_class=None):
        """
        Get the DNA of a region of a reference sequence.

        If `start` is greater than `stop`, the reverse complement is
        returned.
        """
        return self._adaptor.get_dna(ref, start, stop, seq_class)

    def notes(self, db_id):
        """
        Get the notes attached to a stored feature, i.e. the free text
        remarks from the group column of the GFF file.

        Parameters
        ----------
        db_id : object
            The ID of the feature, see :attr:`Feature.db_id`.

        Returns
        -------
        notes : list of str
            The notes.
        """
        return self._adaptor.get_notes(db_id)

    def initialize(self, erase=False):
        self._adaptor.initialize(erase)

    def load(self, source):
        """
        Load GFF data into the database.

        Parameters
        ----------
        source : GFFFile or str or PathLike or file-like object or list
            A :class:`GFFFile`, a file path, a directory (all
            ``*.gff``, ``*.gff.gz`` and ``*.gff.bz2`` files in it), an
            URL, an open text file or a list of these.

        Returns
        -------
        count : int
            The number of loaded records.
        """
        gff_files = list(_collect_files(source))
        self._adaptor.setup_load()
        for gff_file in gff_files:
            for record in get_records(gff_file):
                self._adaptor.load_record(record)
            for ref, sequence in gff_file.sequences().items():
                self._adaptor.load_sequence(ref, sequence)
        count = self._adaptor.finish_load()
        _log.info("Loaded %d records from %d files", count, len(gff_files))
        return count

    ## Internals ##

    def _stream(self, range_type, ref, ref_class, start, stop, types,
                reference, match, active):
        cursor = self._adaptor.iterate_by_range(
            range_type, ref, ref_class, start, stop, types
        )
        features = (
            self._make_feature(record, reference, None) for record in cursor
        )
        if len(active) > 0:
            features = self._pipeline.aggregate_stream(features, active)
        return FeatureIterator(
            (feature for feature in features if match(feature)), cursor
        )

    def _make_feature(self, record, reference, cache):
        group = materialize_group(
            record.group_class, record.group_name,
            record.target_start, record.target_stop, cache
        )
        return Feature(
            record.ref, record.start, record.stop, record.method,
            record.source, record.score, record.strand, record.phase,
            group, record.db_id, record.target_start, record.target_stop,
            ref_class=self._adaptor.refclass(record.ref),
            reference=reference,
            database=self,
        )


class FeatureIterator:
    """
    A single pass iterator over the features of a streaming query.

    The iterator holds the cursor of the adaptor until it is exhausted,
    closed or fails with an exception, e.g. raised by an aggregator.
    It can be used as context manager to close it reliably.

    Parameters
    ----------
    features : iterator of Feature
        The features.
    cursor : object, optional
        The adaptor cursor, that is closed together with this
        iterator.
    """

    def __init__(self, features, cursor=None):
        self._features = features
        self._cursor = cursor

    def __iter__(self):
        return self

    def __next__(self):
        try:
            return next(self._features)
        except Exception:
            # Exhaustion and errors, e.g. in an aggregator, end the stream
            self.close()
            raise

    def next_feature(self):
        """
        Get the next feature.

        Returns
        -------
        feature : Feature or None
            The next feature, ``None`` if the iterator is exhausted.
        """
        return next(self, None)

    def close(self):
        close = getattr(self._features, "close", None)
        if close is not None:
            close()
        if self._cursor is not None:
            close = getattr(self._cursor, "close", None)
            if close is not None:
                close()
            self._cursor = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


def _to_range_type(range_type):
    if isinstance(range_type, RangeType):
        return range_type
    try:
        return RangeType(range_type)
    except ValueError:
        raise InvalidRangeError(
            f"'{range_type}' is not a valid range type, "
            f"expected one of {', '.join(repr(r.value) for r in RangeType)}"
        )


def _check_window(ref, start, stop):
    for name, value in (("start", start), ("stop", stop)):
        if value is not None and (
            not isinstance(value, numbers.Integral) or isinstance(value, bool)
        ):
            raise InvalidRangeError(
                f"'{name}' must be an integer, not '{value!r}'"
            )
    if start is None and stop is None:
        return None, None
    if ref is None:
        raise InvalidRangeError(
            "A window requires a reference sequence"
        )
    if start is None or stop is None:
        raise InvalidRangeError(
            f"The window on '{ref}' requires both 'start' and 'stop'"
        )
    if start > stop:
        start, stop = stop, start
    return int(start), int(stop)


def _collect_files(source):
    if isinstance(source, GFFFile):
        yield source
    elif isinstance(source, (list, tuple)):
        for item in source:
            yield from _collect_files(item)
    elif is_open_compatible(source):
        path = os.fspath(source)
        if isinstance(path, bytes):
            path = path.decode()
        if path.startswith(_URL_PREFIXES):
            yield GFFFile.read(fetch(path))
        elif isdir(path):
            paths = []
            for pattern in _GFF_PATTERNS:
                paths.extend(glob.glob(join(path, pattern)))
            for file_path in sorted(paths):
                yield GFFFile.read(file_path)
        else:
            yield GFFFile.read(path)
    elif is_text(source):
        yield GFFFile.read(source)
    else:
        raise TypeError(
            f"Cannot load GFF data from '{type(source).__name__}'"
        )
