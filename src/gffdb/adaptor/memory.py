# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

__name__ = "gffdb.adaptor"
__author__ = "The gffdb contributors"
__all__ = ["MemoryAdaptor"]

import numpy as np
from ..error import StreamSynchronizationError, UnknownLandmarkError
from ..segment import Strand
from ..typename import Typename, compile_types
from .base import Adaptor, RangeType, RawRecord

_COMPLEMENT = str.maketrans("ACGTUNacgtun", "TGCAANtgcaan")


class MemoryAdaptor(Adaptor):
    """
    An adaptor, that keeps all records in memory.

    The records are indexed with *NumPy* arrays, that are built lazily
    on the first query after loading.
    Range and type queries are answered by boolean masks over these
    arrays.
    Records are delivered ordered by group, reference sequence and
    start, hence in group-contiguous order.

    Parameters
    ----------
    fast_queries : bool, optional
        If true, streaming queries hold the only connection to the
        adaptor, like a server side cursor.
        Issuing another query while a stream is open raises a
        :class:`StreamSynchronizationError`.
    refclass : str, optional
        The class of all reference sequences.

    Examples
    --------

    >>> adaptor = MemoryAdaptor()
    >>> adaptor.setup_load()
    >>> adaptor.load_record(RawRecord(
    ...     "Chr1", 1, 100, "curated", "exon", group_class="Transcript",
    ...     group_name="T1"
    ... ))
    >>> adaptor.finish_load()
    1
    >>> adaptor.lookup_absolute_coordinates("T1", "Transcript")
    [('Chr1', 'Sequence', 1, 100, None)]
    """

    def __init__(self, fast_queries=False, refclass="Sequence"):
        self._fast_queries = fast_queries
        self._refclass = refclass
        self._records = []
        self._sequences = {}
        # Maps record IDs to positions in the record list
        self._positions = {}
        self._index = None
        self._loaded = 0
        self._cursor = None

    @property
    def fast_queries(self):
        return self._fast_queries

    def __len__(self):
        return len(self._records)

    def refclass(self, ref):
        return self._refclass

    ## Load protocol ##

    def setup_load(self):
        self._check_connection()
        self._loaded = 0

    def load_record(self, record):
        """
        Store a record.

        Parameters
        ----------
        record : RawRecord
            The record.
            A missing `db_id` is replaced by the position of the record
            in the adaptor.
        """
        if record.db_id is None:
            record = record._replace(db_id=len(self._records))
        if record.start > record.stop:
            record = record._replace(start=record.stop, stop=record.start)
        self._positions[record.db_id] = len(self._records)
        self._records.append(record)
        self._index = None
        self._loaded += 1

    def load_sequence(self, ref, sequence):
        """
        Store (a part of) the DNA of a reference sequence.
        Sequences loaded for the same reference sequence are
        concatenated.
        """
        self._sequences[ref] = self._sequences.get(ref, "") + sequence

    def finish_load(self):
        """
        Finish loading.

        Returns
        -------
        count : int
            The number of records loaded since :meth:`setup_load()`.
        """
        self._index = None
        return self._loaded

    def initialize(self, erase=False):
        self._check_connection()
        if erase:
            self._records = []
            self._sequences = {}
            self._positions = {}
            self._index = None

    ## Queries ##

    def lookup_absolute_coordinates(self, name, seq_class, refseq=None):
        self._check_connection()
        index = self._get_index()
        occurrences = []
        gid = index.group_ids.get((seq_class, name))
        if gid is not None:
            mask = index.gid == gid
            if refseq is not None:
                mask &= index.ref == index.ref_ids.get(refseq, -1)
            for i in np.where(mask)[0]:
                record = self._records[i]
                occurrences.append((
                    record.ref, self.refclass(record.ref),
                    record.start, record.stop, Strand.from_symbol(record.strand)
                ))
        if len(occurrences) > 0 or seq_class != self._refclass:
            return occurrences
        # A reference sequence without describing record
        if refseq is not None and refseq != name:
            return occurrences
        if name in self._sequences:
            length = len(self._sequences[name])
        elif name in index.ref_ids:
            length = int(np.max(index.stop[index.ref == index.ref_ids[name]]))
        else:
            return occurrences
        return [(name, self._refclass, 1, length, Strand.FORWARD)]

    def fetch_by_range(self, range_type, ref, ref_class, start, stop, types):
        self._check_connection()
        return self._fetch(range_type, ref, start, stop, types)

    def iterate_by_range(self, range_type, ref, ref_class, start, stop, types):
        """
        Get a cursor over the records within a window of a reference
        sequence.

        If the adaptor uses `fast_queries`, the cursor holds the
        connection until it is exhausted or closed.
        """
        self._check_connection()
        cursor = _Cursor(self, self._fetch(range_type, ref, start, stop, types))
        if self._fast_queries:
            self._cursor = cursor
        return cursor

    def fetch_by_group(self, group_class, name):
        self._check_connection()
        index = self._get_index()
        if group_class is None:
            gids = [
                gid for (cls, group_name), gid in index.group_ids.items()
                if group_name == name
            ]
        else:
            gid = index.group_ids.get((group_class, name))
            gids = [gid] if gid is not None else []
        mask = np.isin(index.gid, gids)
        order = index.order[mask[index.order]]
        return [self._records[i] for i in order]

    def enumerate_types(self, ref=None, ref_class=None, start=None, stop=None,
                        count=False):
        self._check_connection()
        index = self._get_index()
        mask = self._range_mask(index, RangeType.OVERLAPS, ref, start, stop)
        counts = np.bincount(index.type_id[mask], minlength=len(index.types))
        if count:
            return {
                typename: int(n) for typename, n in zip(index.types, counts)
                if n > 0
            }
        return sorted(
            typename for typename, n in zip(index.types, counts) if n > 0
        )

    def get_notes(self, db_id):
        self._check_connection()
        if db_id not in self._positions:
            raise KeyError(f"No record with ID {db_id!r}")
        notes = self._records[self._positions[db_id]].notes
        return list(notes) if notes else []

    def get_dna(self, ref, start, stop, seq_class=None):
        self._check_connection()
        if ref not in self._sequences:
            raise UnknownLandmarkError(f"No sequence stored for '{ref}'")
        sequence = self._sequences[ref]
        start = 1 if start is None else start
        stop = len(sequence) if stop is None else stop
        if start > stop:
            return sequence[stop - 1 : start][::-1].translate(_COMPLEMENT)
        return sequence[start - 1 : stop]

    ## Internals ##

    def _release(self, cursor):
        if self._cursor is cursor:
            self._cursor = None

    def _check_connection(self):
        if self._cursor is not None:
            raise StreamSynchronizationError(
                "A query was issued while a feature stream still holds the "
                "connection (command synch error); exhaust or close the "
                "stream first"
            )

    def _fetch(self, range_type, ref, start, stop, types):
        index = self._get_index()
        mask = self._range_mask(index, RangeType(range_type), ref, start, stop)
        match = compile_types(types)
        if not match.matches_all:
            type_mask = np.array(
                [match.match_type(t.method, t.source) for t in index.types],
                dtype=bool
            )
            mask &= type_mask[index.type_id]
        order = index.order[mask[index.order]]
        return [self._records[i] for i in order]

    def _range_mask(self, index, range_type, ref, start, stop):
        mask = np.ones(len(self._records), dtype=bool)
        if ref is None:
            return mask
        mask &= index.ref == index.ref_ids.get(ref, -1)
        if start is None or stop is None:
            return mask
        if range_type == RangeType.OVERLAPS:
            mask &= (index.stop >= start) & (index.start <= stop)
        elif range_type == RangeType.CONTAINED_IN_RANGE:
            mask &= (index.start >= start) & (index.stop <= stop)
        elif range_type == RangeType.CONTAINS_RANGE:
            mask &= (index.start <= start) & (index.stop >= stop)
        return mask

    def _get_index(self):
        if self._index is None:
            self._index = _RecordIndex(self._records)
        return self._index


class _RecordIndex:
    """
    Column arrays over the stored records.
    """

    def __init__(self, records):
        n = len(records)
        self.ref_ids = {}
        self.group_ids = {}
        type_ids = {}
        self.types = []
        self.ref = np.zeros(n, dtype=np.int64)
        self.start = np.zeros(n, dtype=np.int64)
        self.stop = np.zeros(n, dtype=np.int64)
        self.gid = np.zeros(n, dtype=np.int64)
        self.type_id = np.zeros(n, dtype=np.int64)
        ungrouped = []
        for i, record in enumerate(records):
            self.ref[i] = self.ref_ids.setdefault(record.ref, len(self.ref_ids))
            self.start[i] = record.start
            self.stop[i] = record.stop
            if record.group_class and record.group_name:
                key = (record.group_class, record.group_name)
                self.gid[i] = self.group_ids.setdefault(key, len(self.group_ids))
            else:
                ungrouped.append(i)
            type_key = (
                record.method.lower() if record.method else "",
                record.source.lower() if record.source else "",
            )
            if type_key not in type_ids:
                type_ids[type_key] = len(type_ids)
                self.types.append(Typename(record.method, record.source))
            self.type_id[i] = type_ids[type_key]
        # Each ungrouped record forms a group of its own
        self.gid[ungrouped] = np.arange(
            len(self.group_ids), len(self.group_ids) + len(ungrouped)
        )
        # 'np.lexsort()' sorts by the last key first
        self.order = np.lexsort((self.start, self.ref, self.gid))


class _Cursor:
    """
    A single pass iterator over fetched records.
    """

    def __init__(self, adaptor, records):
        self._adaptor = adaptor
        self._records = iter(records)
        self._closed = False

    def __iter__(self):
        return self

    def __next__(self):
        if self._closed:
            raise StopIteration
        try:
            return next(self._records)
        except StopIteration:
            self.close()
            raise

    def close(self):
        self._closed = True
        self._adaptor._release(self)
