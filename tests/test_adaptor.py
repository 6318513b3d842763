# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

import pytest
import gffdb
from gffdb import RangeType, Strand, Typename
from gffdb.adaptor import Adaptor, MemoryAdaptor, RawRecord


@pytest.fixture
def adaptor(transcript_records):
    adaptor = MemoryAdaptor()
    adaptor.setup_load()
    for record in transcript_records:
        adaptor.load_record(record)
    adaptor.load_record(RawRecord("Chr1", 500, 400, "curated", "repeat"))
    adaptor.load_record(RawRecord(
        "Chr1", 200, 210, "BLASTX", "similarity", strand="-",
        group_class="Protein", group_name="P1", target_start=30, target_stop=20
    ))
    adaptor.load_sequence("Chr1", "AAAACCCC")
    adaptor.load_sequence("Chr1", "GGGGTTTT")
    adaptor.finish_load()
    return adaptor


class MinimalAdaptor(Adaptor):
    def lookup_absolute_coordinates(self, name, seq_class, refseq=None):
        return []

    def fetch_by_range(self, range_type, ref, ref_class, start, stop, types):
        return []

    def fetch_by_group(self, group_class, name):
        return []

    def enumerate_types(self, ref=None, ref_class=None, start=None, stop=None,
                        count=False):
        return {} if count else []


def test_abstract_adaptor():
    with pytest.raises(TypeError):
        Adaptor()


@pytest.mark.parametrize("method, args", [
    ("iterate_by_range", (RangeType.OVERLAPS, "Chr1", None, 1, 10, [])),
    ("get_dna", ("Chr1", 1, 10)),
    ("setup_load", ()),
    ("load_record", (RawRecord("Chr1", 1, 10, None, "exon"),)),
    ("load_sequence", ("Chr1", "ACGT")),
    ("finish_load", ()),
    ("initialize", ()),
    ("get_notes", (0,)),
])
def test_optional_capabilities(method, args):
    adaptor = MinimalAdaptor()
    with pytest.raises(NotImplementedError):
        getattr(adaptor, method)(*args)


def test_minimal_adaptor_in_database():
    database = gffdb.GFFDatabase(MinimalAdaptor())
    assert database.features("transcript") == []
    assert database.adaptor.refclass("Chr1") == "Sequence"


def test_load(adaptor):
    assert len(adaptor) == 5
    # Records get their position as ID and ordered bounds
    repeat = adaptor.fetch_by_range(
        RangeType.OVERLAPS, "Chr1", None, None, None, [Typename("repeat")]
    )[0]
    assert repeat.db_id == 3
    assert (repeat.start, repeat.stop) == (400, 500)


def test_group_contiguous_order(adaptor):
    records = adaptor.fetch_by_range(
        RangeType.OVERLAPS, "Chr1", None, None, None, []
    )
    groups = [record.group_name for record in records]
    assert groups == ["T1", "T1", "T1", "P1", None]
    assert [record.start for record in records[:3]] == [1, 100, 150]


def test_lookup(adaptor):
    assert adaptor.lookup_absolute_coordinates("P1", "Protein") \
        == [("Chr1", "Sequence", 200, 210, Strand.REVERSE)]
    assert adaptor.lookup_absolute_coordinates("P1", "Protein", "Chr2") == []
    assert adaptor.lookup_absolute_coordinates("P1", "Transcript") == []


def test_reference_lookup(adaptor):
    """
    Reference sequences without describing record span their sequence.
    """
    assert adaptor.lookup_absolute_coordinates("Chr1", "Sequence") \
        == [("Chr1", "Sequence", 1, 16, Strand.FORWARD)]
    assert adaptor.lookup_absolute_coordinates("Chr1", "Contig") == []


def test_reference_lookup_without_sequence(transcript_records):
    adaptor = MemoryAdaptor(refclass="Chromosome")
    adaptor.setup_load()
    for record in transcript_records:
        adaptor.load_record(record)
    adaptor.finish_load()
    assert adaptor.refclass("Chr1") == "Chromosome"
    assert adaptor.lookup_absolute_coordinates("Chr1", "Chromosome") \
        == [("Chr1", "Chromosome", 1, 300, Strand.FORWARD)]


def test_fetch_by_group(adaptor):
    assert len(adaptor.fetch_by_group("Transcript", "T1")) == 3
    assert len(adaptor.fetch_by_group(None, "P1")) == 1
    assert adaptor.fetch_by_group("Protein", "T1") == []


def test_type_query(adaptor):
    records = adaptor.fetch_by_range(
        RangeType.OVERLAPS, "Chr1", None, 1, 120,
        [Typename("exon"), Typename("intron", "curated")]
    )
    assert [record.method for record in records] == ["exon", "intron"]


def test_enumerate_types(adaptor):
    assert adaptor.enumerate_types(count=True) == {
        Typename("exon", "curated"): 2,
        Typename("intron", "curated"): 1,
        Typename("repeat", "curated"): 1,
        Typename("similarity", "BLASTX"): 1,
    }
    assert adaptor.enumerate_types("Chr1", None, 120, 210) == [
        Typename("exon", "curated"),
        Typename("intron", "curated"),
        Typename("similarity", "BLASTX"),
    ]


def test_get_dna(adaptor):
    assert adaptor.get_dna("Chr1", 3, 6) == "AACC"
    assert adaptor.get_dna("Chr1", 6, 3) == "GGTT"
    assert adaptor.get_dna("Chr1", None, None) == "AAAACCCCGGGGTTTT"
    with pytest.raises(gffdb.UnknownLandmarkError):
        adaptor.get_dna("Chr2", 1, 4)


def test_cursor(adaptor):
    cursor = adaptor.iterate_by_range(
        RangeType.OVERLAPS, "Chr1", None, None, None, []
    )
    assert len(list(cursor)) == 5
    # An exhausted cursor stays exhausted
    assert list(cursor) == []


def test_fast_queries(transcript_records):
    adaptor = MemoryAdaptor(fast_queries=True)
    adaptor.setup_load()
    for record in transcript_records:
        adaptor.load_record(record)
    adaptor.finish_load()
    cursor = adaptor.iterate_by_range(
        RangeType.OVERLAPS, "Chr1", None, None, None, []
    )
    with pytest.raises(gffdb.StreamSynchronizationError):
        adaptor.fetch_by_group("Transcript", "T1")
    cursor.close()
    assert len(adaptor.fetch_by_group("Transcript", "T1")) == 3


def test_initialize(adaptor):
    adaptor.initialize()
    assert len(adaptor) == 5
    adaptor.initialize(erase=True)
    assert len(adaptor) == 0
    assert adaptor.enumerate_types() == []


def test_get_notes(adaptor):
    adaptor.setup_load()
    adaptor.load_record(RawRecord(
        "Chr1", 20, 30, "curated", "exon", db_id="exon-20",
        notes=("Predicted", "Not confirmed")
    ))
    adaptor.finish_load()
    assert adaptor.get_notes("exon-20") == ["Predicted", "Not confirmed"]
    # Records without notes
    assert adaptor.get_notes(0) == []
    with pytest.raises(KeyError):
        adaptor.get_notes("unknown")
    adaptor.initialize(erase=True)
    with pytest.raises(KeyError):
        adaptor.get_notes("exon-20")
