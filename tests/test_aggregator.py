# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

import warnings
import pytest
import gffdb
import gffdb.aggregator as aggregator_module
from gffdb import (
    Aggregator, AggregatorPipeline, Feature, Typename, materialize_group
)


@pytest.fixture
def transcript_run():
    group = materialize_group("Transcript", "T1")
    return [
        Feature("Chr1", 1, 100, "exon", "curated", strand="+", group=group),
        Feature("Chr1", 150, 300, "exon", "curated", strand="+", group=group),
        Feature("Chr1", 100, 150, "intron", "curated", strand="+", group=group),
    ]


@pytest.fixture
def alignment_run():
    return [
        Feature(
            "Chr1", 10, 50, "similarity", "BLASTX", strand="+",
            group=materialize_group("Protein", "P1", 1, 14),
            target_start=1, target_stop=14
        ),
        Feature(
            "Chr1", 60, 90, "similarity", "BLASTX", strand="+",
            group=materialize_group("Protein", "P1", 20, 30),
            target_start=20, target_stop=30
        ),
    ]


@pytest.fixture
def gene_aggregator():
    return Aggregator("gene", sub_parts=["transcript"])


def _of_method(features, method):
    return [feature for feature in features if feature.method == method]


def test_components():
    aggregator = gffdb.get_aggregator("match")
    assert aggregator.components() == [
        Typename("match"), Typename("similarity"), Typename("HSP")
    ]


def test_missing_method():
    with pytest.raises(ValueError):
        Aggregator(sub_parts=["exon"])


def test_disaggregate_without_components():
    assert Aggregator("empty").disaggregate(["empty", "exon"]) \
        == [Typename("exon")]


def test_disaggregate_inherits_source():
    aggregator = gffdb.get_aggregator("clone")
    assert aggregator.disaggregate(["clone:curated"]) == [
        Typename("Clone_left_end", "curated"),
        Typename("Clone_right_end", "curated"),
        Typename("region", "Genbank"),
    ]


def test_pipeline_disaggregate():
    pipeline = AggregatorPipeline(["transcript", "alignment"])
    types, active = pipeline.disaggregate(["transcript:curated", "repeat"])
    assert len(types) == 9
    assert types[0] == Typename("transcript", "curated")
    assert types[-1] == Typename("repeat")
    assert [aggregator.method for aggregator in active] == ["transcript"]


def test_pipeline_disaggregate_duplicates():
    pipeline = AggregatorPipeline(["transcript", "coding"])
    types, active = pipeline.disaggregate(["transcript", "coding"])
    assert len(types) == len(set(types)) == 8
    assert len(active) == 2


def test_pipeline_disaggregate_nothing():
    pipeline = AggregatorPipeline(["transcript"])
    types, active = pipeline.disaggregate([])
    assert types == []
    assert active == ()


def test_aggregate_transcript(transcript_run):
    pipeline = AggregatorPipeline(["transcript"])
    features = pipeline.aggregate(transcript_run)
    transcripts = _of_method(features, "transcript")
    assert len(transcripts) == 1
    transcript = transcripts[0]
    assert (transcript.abs_start, transcript.abs_stop) == (1, 300)
    assert transcript.source == "curated"
    assert len(transcript.subfeatures) == 3
    # The parts are kept for the filtering step
    assert len(features) == 4


def test_aggregate_with_main_feature(transcript_run):
    main = Feature(
        "Chr1", 1, 320, "transcript", "curated", score=0.5, strand="+",
        group=transcript_run[0].group
    )
    pipeline = AggregatorPipeline(["transcript"])
    features = pipeline.aggregate([main] + transcript_run)
    transcripts = _of_method(features, "transcript")
    assert len(transcripts) == 1
    assert transcripts[0].is_compound
    assert transcripts[0].abs_stop == 320
    assert transcripts[0].score == 0.5


def test_whole_object(transcript_run):
    aggregator = Aggregator(
        "transcript", sub_parts=["exon"], main_method="transcript",
        whole_object=True
    )
    assert aggregator.aggregate(transcript_run) == []


def test_idempotence(transcript_run, alignment_run):
    pipeline = AggregatorPipeline(["transcript", "alignment"])
    aggregated = pipeline.aggregate(transcript_run + alignment_run)
    assert pipeline.aggregate(aggregated) == aggregated


def test_gapped_alignment(alignment_run):
    """
    Hits on different parts of the same target form one alignment.
    """
    pipeline = AggregatorPipeline(["alignment"])
    alignments = _of_method(pipeline.aggregate(alignment_run), "alignment")
    assert len(alignments) == 1
    assert (alignments[0].abs_start, alignments[0].abs_stop) == (10, 90)
    assert alignments[0].source == "BLASTX"


def test_multi_level(transcript_run, gene_aggregator):
    pipeline = AggregatorPipeline([gene_aggregator, "transcript"])
    features = pipeline.aggregate(transcript_run)
    genes = _of_method(features, "gene")
    assert len(genes) == 1
    # The transcript only lives on inside the gene
    assert _of_method(features, "transcript") == []
    transcript = genes[0].subfeatures[0]
    assert transcript.method == "transcript"
    assert len(transcript.subfeatures) == 3


def test_conflict(alignment_run):
    """
    Features can only be claimed by one aggregator, the first claimant
    in aggregation order wins.
    """
    pipeline = AggregatorPipeline(["alignment", "match"])
    with pytest.warns(gffdb.AggregatorConflictWarning):
        features = pipeline.aggregate(alignment_run)
    assert len(_of_method(features, "match")) == 1
    assert _of_method(features, "alignment") == []


def test_multiple_composites(transcript_run):
    class SplittingAggregator(Aggregator):
        METHOD = "split"
        SUB_PARTS = ("exon",)

        def aggregate(self, run):
            return [
                Feature.compound(self.method, None, [feature])
                for feature in run if feature.method == "exon"
            ]

    pipeline = AggregatorPipeline([SplittingAggregator()])
    with pytest.warns(gffdb.AggregatorConflictWarning):
        features = pipeline.aggregate(transcript_run)
    assert len(_of_method(features, "split")) == 1


def test_no_conflict_without_overlap(transcript_run):
    pipeline = AggregatorPipeline(["transcript", "coding", "clone"])
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        pipeline.aggregate(transcript_run)


def test_ungrouped_features():
    repeat = Feature("Chr1", 360, 370, "repeat", "curated")
    pipeline = AggregatorPipeline(["transcript"])
    assert pipeline.aggregate([repeat]) == [repeat]
    assert list(pipeline.aggregate_stream([repeat])) == [repeat]


def test_stream_versus_batch(transcript_run):
    """
    The stream aggregation only merges adjacent features of a group.
    """
    repeat = Feature("Chr1", 360, 370, "repeat", "curated")
    features = [transcript_run[0], repeat, transcript_run[1]]
    pipeline = AggregatorPipeline(["transcript"])
    streamed = list(pipeline.aggregate_stream(features))
    batched = pipeline.aggregate(features)
    assert len(_of_method(streamed, "transcript")) == 2
    assert len(_of_method(batched, "transcript")) == 1
    assert repeat in streamed


def test_stream_equals_batch_for_contiguous_input(transcript_run, alignment_run):
    pipeline = AggregatorPipeline(["transcript", "alignment"])
    features = transcript_run + alignment_run
    assert list(pipeline.aggregate_stream(features)) \
        == pipeline.aggregate(features)


def test_different_references():
    group = materialize_group("Transcript", "T1")
    features = [
        Feature("Chr1", 1, 100, "exon", "curated", group=group),
        Feature("Chr2", 1, 100, "exon", "curated", group=group),
    ]
    pipeline = AggregatorPipeline(["transcript"])
    assert len(_of_method(pipeline.aggregate(features), "transcript")) == 2


def test_add():
    pipeline = AggregatorPipeline()
    pipeline.add("transcript")
    pipeline.add(gffdb.CloneAggregator())
    assert len(pipeline) == 2
    assert [aggregator.method for aggregator in pipeline.aggregators] \
        == ["transcript", "clone"]
    with pytest.raises(TypeError):
        pipeline.add(42)


def test_get_aggregator():
    assert isinstance(
        gffdb.get_aggregator("Transcript"), gffdb.TranscriptAggregator
    )
    with pytest.raises(ValueError, match="Unknown aggregator"):
        gffdb.get_aggregator("unknown")


def test_register_aggregator(monkeypatch):
    class GeneAggregator(Aggregator):
        METHOD = "gene"
        SUB_PARTS = ("transcript",)

    monkeypatch.setattr(
        aggregator_module, "_registry", dict(aggregator_module._registry)
    )
    gffdb.register_aggregator("gene", GeneAggregator)
    assert "gene" in gffdb.registered_aggregators()
    assert isinstance(gffdb.get_aggregator("gene"), GeneAggregator)
    with pytest.raises(TypeError):
        gffdb.register_aggregator("broken", object)


def test_default_aggregators(monkeypatch):
    monkeypatch.setattr(
        aggregator_module, "_default_aggregators",
        list(aggregator_module._default_aggregators)
    )
    assert gffdb.get_default_aggregators() == ["transcript", "clone", "alignment"]
    gffdb.set_default_aggregators(["match"])
    assert gffdb.get_default_aggregators() == ["match"]
    with pytest.raises(ValueError):
        gffdb.set_default_aggregators(["unknown"])
    assert gffdb.get_default_aggregators() == ["match"]
