# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

import pytest
import gffdb


@pytest.mark.parametrize("type_string, method, source", [
    ("exon:curated", "exon", "curated"),
    ("exon", "exon", None),
    (":curated", None, "curated"),
    ("similarity:BLAST:X", "similarity", "BLAST:X"),
])
def test_parse(type_string, method, source):
    """
    Type strings are split at the first colon, empty fields become
    wildcards.
    """
    typename = gffdb.Typename.parse(type_string)
    assert typename.method == method
    assert typename.source == source


def test_case_insensitive_equality():
    assert gffdb.Typename("Exon", "Curated") == gffdb.Typename("exon", "curated")
    assert hash(gffdb.Typename("Exon", "Curated")) \
        == hash(gffdb.Typename("exon", "curated"))
    assert gffdb.Typename("exon", "curated") != gffdb.Typename("exon")


def test_parse_types():
    assert gffdb.parse_types(None) == []
    assert gffdb.parse_types([]) == []
    assert gffdb.parse_types("exon") == [gffdb.Typename("exon")]
    assert gffdb.parse_types(["exon:curated", gffdb.Typename("intron")]) == [
        gffdb.Typename("exon", "curated"), gffdb.Typename("intron")
    ]
    with pytest.raises(TypeError):
        gffdb.parse_types([42])


@pytest.mark.parametrize("types, method, source, expected", [
    ("exon", "exon", "curated", True),
    ("exon", "exon", "predicted", True),
    ("exon", "intron", "curated", False),
    ("EXON", "exon", "curated", True),
    ("exon:curated", "exon", "predicted", False),
    ("similarity:BLAST.*", "similarity", "BLASTX", True),
    ("similarity:BLAST.*", "similarity", "Genefinder", False),
    (":curated", "intron", "curated", True),
    (["exon", "intron"], "intron", "curated", True),
    # Patterns must match the complete field
    ("exo", "exon", "curated", False),
    (None, "anything", "at_all", True),
    ([], "anything", None, True),
])
def test_match_type(types, method, source, expected):
    matcher = gffdb.compile_types(types)
    assert matcher.match_type(method, source) == expected


def test_match_feature():
    exon = gffdb.Feature("Chr1", 1, 100, "exon", "curated")
    assert gffdb.compile_types("exon")(exon)
    assert not gffdb.compile_types("intron")(exon)
    assert not gffdb.compile_types("exon")(None)


def test_matcher_cache():
    """
    Compiling the same set of types again gives the same matcher.
    """
    assert gffdb.compile_types(["exon"]) is gffdb.compile_types("exon")
    assert gffdb.compile_types("exon:.*") is gffdb.compile_types("exon")
    assert gffdb.compile_types("exon") is not gffdb.compile_types("intron")


def test_empty_matcher():
    matcher = gffdb.compile_types(None)
    assert matcher.matches_all
    assert not gffdb.compile_types("exon").matches_all


def test_invalid_pattern():
    with pytest.raises(gffdb.MatcherCompileError, match="exon\\["):
        gffdb.compile_types("exon[")
