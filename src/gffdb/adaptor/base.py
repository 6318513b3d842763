# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

__name__ = "gffdb.adaptor"
__author__ = "The gffdb contributors"
__all__ = ["Adaptor", "RawRecord", "RangeType"]

import abc
from collections import namedtuple
from enum import Enum


class RangeType(Enum):
    """
    This enum type describes how stored features are compared with the
    window of a range query.

    - **OVERLAPS** - The feature overlaps the window.
    - **CONTAINED_IN_RANGE** - The feature lies completely within the
      window.
    - **CONTAINS_RANGE** - The feature spans the complete window.
    """

    OVERLAPS = "overlaps"
    CONTAINED_IN_RANGE = "contains"
    CONTAINS_RANGE = "contained_in"


RawRecord = namedtuple(
    "RawRecord",
    [
        "ref", "start", "stop", "source", "method", "score", "strand",
        "phase", "group_class", "group_name", "target_start", "target_stop",
        "db_id", "notes",
    ],
    defaults=[None] * 10,
)
RawRecord.__doc__ = """
A stored annotation record, as delivered by an :class:`Adaptor`.

Only the reference sequence, the bounds and the source and method are
mandatory, all other fields default to ``None``.
`notes` holds the free text remarks from the group column.
"""


class Adaptor(metaclass=abc.ABCMeta):
    """
    The interface between the retrieval engine and a storage backend.

    An adaptor delivers :class:`RawRecord` objects for range and group
    queries.
    Records belonging to the same group must be delivered
    consecutively.
    The loading protocol (:meth:`setup_load()`, :meth:`load_record()`,
    :meth:`load_sequence()`, :meth:`finish_load()`) is optional, as
    well as streaming retrieval and DNA storage.
    """

    @abc.abstractmethod
    def lookup_absolute_coordinates(self, name, seq_class, refseq=None):
        """
        Find all occurrences of a landmark.

        Parameters
        ----------
        name : str
            The name of the landmark.
        seq_class : str
            The class of the landmark.
        refseq : str, optional
            Restrict the search to this reference sequence.

        Returns
        -------
        occurrences : list of tuple(str, str, int, int, Strand)
            For each occurrence the reference sequence, its class, the
            absolute start and stop and the strand.
            An empty list if the landmark is unknown.
        """
        pass

    @abc.abstractmethod
    def fetch_by_range(self, range_type, ref, ref_class, start, stop, types):
        """
        Get the records within a window of a reference sequence.

        Parameters
        ----------
        range_type : RangeType
            How records are compared with the window.
        ref : str or None
            The reference sequence.
            ``None`` means the whole database.
        ref_class : str or None
            The class of the reference sequence.
        start, stop : int or None
            The window, ``None`` means the entire reference sequence.
        types : list of Typename
            The requested types.
            An empty list requests all types.

        Returns
        -------
        records : list of RawRecord
            The records in group-contiguous order.
        """
        pass

    @abc.abstractmethod
    def fetch_by_group(self, group_class, name):
        """
        Get the records of one group.

        Parameters
        ----------
        group_class : str or None
            The class of the group, ``None`` matches all classes.
        name : str
            The name of the group.

        Returns
        -------
        records : list of RawRecord
            The records of the group.
        """
        pass

    @abc.abstractmethod
    def enumerate_types(self, ref=None, ref_class=None, start=None, stop=None,
                        count=False):
        """
        Get the feature types in the database or a window of it.

        Returns
        -------
        types : list of Typename or dict
            The types, or if `count` is true, a dictionary mapping each
            type to its number of occurrences.
        """
        pass

    def iterate_by_range(self, range_type, ref, ref_class, start, stop, types):
        """
        Like :meth:`fetch_by_range()`, but return a lazy iterator over
        the records.
        The returned object may have a ``close()`` method to release
        the underlying cursor early.
        """
        raise NotImplementedError(
            f"'{type(self).__name__}' does not support streaming retrieval"
        )

    def get_dna(self, ref, start, stop, seq_class=None):
        """
        Get the DNA of a region.
        If `start` is greater than `stop`, the reverse complement is
        returned.
        """
        raise NotImplementedError(
            f"'{type(self).__name__}' does not store sequences"
        )

    def refclass(self, ref):
        """
        Get the class of a reference sequence.
        """
        return "Sequence"

    def get_notes(self, db_id):
        """
        Get the notes attached to a stored record.

        Parameters
        ----------
        db_id : object
            The ID of the record.

        Returns
        -------
        notes : list of str
            The notes, empty if the record has none.
        """
        raise NotImplementedError(
            f"'{type(self).__name__}' does not store notes"
        )

    def setup_load(self):
        raise NotImplementedError(
            f"'{type(self).__name__}' does not support loading"
        )

    def load_record(self, record):
        raise NotImplementedError(
            f"'{type(self).__name__}' does not support loading"
        )

    def load_sequence(self, ref, sequence):
        raise NotImplementedError(
            f"'{type(self).__name__}' does not store sequences"
        )

    def finish_load(self):
        raise NotImplementedError(
            f"'{type(self).__name__}' does not support loading"
        )

    def initialize(self, erase=False):
        raise NotImplementedError(
            f"'{type(self).__name__}' cannot be initialized"
        )
