# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

import pytest
import gffdb
from gffdb import Feature, Featname, Segment, Strand, Typename


@pytest.fixture
def exons():
    group = Featname("Transcript", "T1")
    return [
        Feature("Chr1", 150, 300, "exon", "curated", strand="+", group=group,
                db_id=1),
        Feature("Chr1", 1, 100, "exon", "curated", strand="+", group=group,
                db_id=0),
    ]


def test_attributes():
    group = gffdb.materialize_group("Protein", "P1", 1, 14)
    feature = Feature(
        "Chr1", 10, 50, "similarity", "BLASTX", score=30.5, strand="+",
        group=group, target_start=1, target_stop=14
    )
    assert feature.type == Typename("similarity", "BLASTX")
    assert feature.score == 30.5
    assert feature.strand == Strand.FORWARD
    assert feature.name == "P1"
    assert feature.seq_class == "Protein"
    assert (feature.target_start, feature.target_stop) == (1, 14)
    assert not feature.is_compound


def test_empty_source():
    feature = Feature("Chr1", 360, 370, "repeat", "")
    assert feature.source is None
    assert str(feature.type) == "repeat"
    assert feature.name == "Chr1"


def test_compound(exons):
    transcript = Feature.compound("transcript", "curated", exons)
    assert (transcript.abs_start, transcript.abs_stop) == (1, 300)
    assert transcript.abs_strand == Strand.FORWARD
    assert transcript.group == Featname("Transcript", "T1")
    assert transcript.is_compound
    # Parts are sorted by position
    assert [sub.abs_start for sub in transcript.subfeatures] == [1, 150]


def test_compound_with_base(exons):
    base = Feature(
        "Chr1", 1, 320, "transcript", "curated", score=1.0, strand="+",
        group=Featname("Transcript", "T1")
    )
    transcript = Feature.compound("transcript", "curated", exons, base)
    assert (transcript.abs_start, transcript.abs_stop) == (1, 320)
    assert transcript.score == 1.0
    assert len(transcript.subfeatures) == 2


def test_compound_mixed_strands(exons):
    reverse = Feature("Chr1", 400, 420, "exon", "curated", strand="-",
                      group=exons[0].group)
    assert Feature.compound("transcript", None, exons + [reverse]).strand is None


def test_compound_multiple_references(exons):
    other = Feature("Chr2", 1, 10, "exon", "curated", group=exons[0].group)
    with pytest.raises(gffdb.InvalidRangeError):
        Feature.compound("transcript", "curated", exons + [other])


def test_compound_without_parts():
    with pytest.raises(ValueError):
        Feature.compound("transcript", "curated", [])


def test_get_subfeatures(exons):
    intron = Feature("Chr1", 100, 150, "intron", "curated", strand="+",
                     group=exons[0].group)
    transcript = Feature.compound("transcript", "curated", exons + [intron])
    assert len(transcript.get_subfeatures()) == 3
    assert len(transcript.get_subfeatures("exon")) == 2
    assert transcript.get_subfeatures("intron") == [intron]


def test_relative_subfeatures(exons):
    frame = Segment("Chr1", 1, 300, Strand.REVERSE)
    transcript = Feature.compound("transcript", "curated", exons)
    relative = transcript.relative_to(frame)
    assert (relative.start, relative.stop, relative.strand) \
        == (1, 300, Strand.REVERSE)
    assert [(sub.start, sub.stop) for sub in relative.subfeatures] \
        == [(201, 300), (1, 151)]
    # The original feature is unaffected
    assert transcript.subfeatures[0].reference is None


def test_equality(exons):
    copy = Feature("Chr1", 300, 150, "exon", "curated", strand="+",
                   group=Featname("Transcript", "T1"), db_id=1)
    assert copy == exons[0]
    assert hash(copy) == hash(exons[0])
    assert copy != exons[1]


def test_str(exons):
    assert str(exons[1]) == "exon:curated(Transcript:T1):1..100"
