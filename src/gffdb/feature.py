# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

"""
Annotation features, both as stored and as composite objects.
"""

__name__ = "gffdb"
__author__ = "The gffdb contributors"
__all__ = ["Feature"]

import numpy as np
from .error import InvalidRangeError
from .segment import Segment
from .typename import Typename, compile_types


class Feature(Segment):
    """
    A :class:`Feature` is an annotated stretch of a reference sequence.

    A feature has a type, given by its *method* (e.g. ``exon``) and
    its *source* (e.g. ``curated``), optional *score* and *phase*
    values and a *group*, that links it to the composite object it is
    part of.
    Composite features, e.g. a transcript assembled from exons and
    introns, additionally contain their parts as *subfeatures*.
    They are created with :meth:`compound()`.

    As for each :class:`Segment`, the absolute start is never greater
    than the absolute stop, independent of the strand.
    The target coordinates are kept in the given order, as
    ``target_start > target_stop`` indicates a hit on the reverse
    strand of the target.

    Objects of this class are immutable.

    Parameters
    ----------
    ref : str
        The ID of the reference sequence.
    start, stop : int
        The absolute bounds of the feature.
    method : str
        The feature method.
    source : str, optional
        The feature source.
    score : float, optional
        The score of the feature.
    strand : Strand or str or None, optional
        The strand of the feature on the reference sequence.
    phase : int, optional
        The phase of a coding feature (0-2).
    group : Featname, optional
        The composite object this feature belongs to.
    db_id : object, optional
        The backend specific ID of the underlying record.
    target_start, target_stop : int, optional
        The aligned region on the target, for alignment features.
    ref_class : str, optional
        The class of the reference sequence.
    reference : Segment, optional
        The segment establishing the coordinate frame of the feature.
    database : GFFDatabase, optional
        The database the feature was obtained from.
    subfeatures : iterable object of Feature, optional
        The parts of a composite feature.

    Examples
    --------

    >>> exon = Feature("Chr1", 300, 150, "exon", "curated", strand="-")
    >>> print(exon.abs_start, exon.abs_stop, exon.abs_strand)
    150 300 Strand.REVERSE
    >>> print(exon.type)
    exon:curated
    """

    def __init__(self, ref, start, stop, method, source=None, score=None,
                 strand=None, phase=None, group=None, db_id=None,
                 target_start=None, target_stop=None, ref_class=None,
                 reference=None, database=None, subfeatures=()):
        if group is not None:
            name, seq_class = group.name, group.group_class
        else:
            name, seq_class = None, None
        super().__init__(
            ref, start, stop, strand, ref_class, name, seq_class,
            reference, database
        )
        self._method = method
        self._source = source if source else None
        self._score = score
        self._phase = phase
        self._group = group
        self._db_id = db_id
        self._target_start = target_start
        self._target_stop = target_stop
        self._subfeatures = tuple(subfeatures)

    @staticmethod
    def compound(method, source, parts, base=None):
        """
        Create a composite feature from its parts.

        The composite feature spans all its parts.
        If a `base` feature is given, the composite takes its
        span, strand, score and group over, otherwise the group and
        the coordinate frame are taken from the first part.

        Parameters
        ----------
        method, source : str
            The type of the composite feature.
        parts : iterable object of Feature
            The parts of the composite feature.
            The parts are sorted by their absolute start.
        base : Feature, optional
            The feature, that provides the body of the composite
            feature.

        Returns
        -------
        compound : Feature
            The composite feature.
        """
        parts = sorted(parts, key=lambda part: (part.abs_start, part.abs_stop))
        anchor = base if base is not None else (parts[0] if parts else None)
        if anchor is None:
            raise ValueError("A composite feature requires at least one part")
        members = parts + ([base] if base is not None else [])
        refs = set(member.ref for member in members)
        if len(refs) > 1:
            raise InvalidRangeError(
                f"Composite feature '{anchor.group}' spans multiple reference "
                f"sequences: {', '.join(sorted(refs))}"
            )

        bounds = np.array([(member.abs_start, member.abs_stop) for member in members])
        if base is not None:
            strand = base.abs_strand
            score = base.score
        else:
            strands = set(part.abs_strand for part in parts)
            strand = strands.pop() if len(strands) == 1 else None
            score = None
        return Feature(
            anchor.ref, int(np.min(bounds)), int(np.max(bounds)),
            method, source, score, strand,
            group=anchor.group,
            db_id=anchor.db_id,
            target_start=anchor.target_start,
            target_stop=anchor.target_stop,
            ref_class=anchor.ref_class,
            reference=anchor.reference,
            database=anchor.database,
            subfeatures=parts,
        )

    @property
    def method(self):
        return self._method

    @property
    def source(self):
        return self._source

    @property
    def type(self):
        return Typename(self._method, self._source)

    @property
    def score(self):
        return self._score

    @property
    def phase(self):
        return self._phase

    @property
    def group(self):
        return self._group

    @property
    def db_id(self):
        return self._db_id

    @property
    def target_start(self):
        return self._target_start

    @property
    def target_stop(self):
        return self._target_stop

    @property
    def subfeatures(self):
        return self._subfeatures

    @property
    def is_compound(self):
        return len(self._subfeatures) > 0

    def notes(self):
        """
        Get the notes attached to this feature in the database.

        Returns
        -------
        notes : list of str
            The notes.
            Composite features give the notes of the feature, whose
            ID they carry.
        """
        return self._get_database().notes(self._db_id)

    def get_subfeatures(self, types=None):
        """
        Get the parts of this composite feature.

        Parameters
        ----------
        types : str or iterable object of str, optional
            If given, only parts of these types are returned.

        Returns
        -------
        subfeatures : list of Feature
            The parts, sorted by position.
        """
        match = compile_types(types)
        return [sub for sub in self._subfeatures if match(sub)]

    def relative_to(self, reference):
        clone = super().relative_to(reference)
        clone._subfeatures = tuple(
            sub.relative_to(reference) for sub in self._subfeatures
        )
        return clone

    def _key(self):
        return (
            self.ref, self.abs_start, self.abs_stop, self.abs_strand,
            self._method, self._source, self._score, self._phase,
            self._group, self._subfeatures,
        )

    def __eq__(self, item):
        if not isinstance(item, Feature):
            return False
        return self._key() == item._key()

    def __hash__(self):
        return hash(self._key())

    def __str__(self):
        owner = self._group if self._group is not None else self.ref
        return f"{self.type}({owner}):{self.start}..{self.stop}"

    def __repr__(self):
        """Represent Feature as a string for debugging."""
        strand = self.abs_strand.symbol if self.abs_strand is not None else "."
        return (
            f"Feature({self.ref!r}, {self.abs_start}, {self.abs_stop}, "
            f"{self._method!r}, {self._source!r}, strand={strand!r}, "
            f"group={self._group!r})"
        )
