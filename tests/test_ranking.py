"""Unit tests for two-condition enrichment/depletion ranking."""

import polars as pl
import pytest

from rbtnseq_pipeline.config.schema import AnalysisThresholds, Comparison
from rbtnseq_pipeline.fitness import (
    ComparisonResult,
    classify_essentiality,
    combine_conditions,
    exclude_essential,
    rank_comparison,
    rank_genes,
    select_by_threshold,
    select_ranked,
    select_top_n,
    summarize_gene_fitness,
)
from rbtnseq_pipeline.inputs import read_annotation, read_fitness_table


@pytest.fixture
def summary(screen_data_dir):
    """Annotated gene fitness summary of the synthetic screen."""
    fitness = read_fitness_table(screen_data_dir / "fitness_gene.tsv")
    annotation = read_annotation(screen_data_dir / "annotation.csv")
    return summarize_gene_fitness(fitness, annotation)


@pytest.fixture
def essentiality(screen_data_dir):
    """Steady-state essentiality flags at 8 generations."""
    fitness = read_fitness_table(screen_data_dir / "fitness_8gen.tsv")
    return classify_essentiality(fitness, timepoint="8gen")


@pytest.fixture
def combined():
    """Hand-built combined scores with a tie."""
    return pl.DataFrame({
        "locus_tag": ["g1", "g2", "g3", "g4", "g5"],
        "combined_score": [-1.0, 3.0, -1.0, 0.5, -4.0],
    })


@pytest.fixture
def comparison():
    return Comparison(
        name="fructose_formate_F3",
        condition_a="fructose_NH4Cl",
        condition_b="formate_NH4Cl",
        fraction="F3",
        substrates=["fructose"],
    )


def test_combine_conditions_sums_means(summary):
    """Combined score is the sum of the two condition means."""
    result = combine_conditions(summary, "fructose_NH4Cl", "formate_NH4Cl", fraction="F3")

    a0001 = result.filter(pl.col("locus_tag") == "H16_A0001").row(0, named=True)
    assert a0001["value_a"] == pytest.approx(-1.5)
    assert a0001["value_b"] == pytest.approx(-2.0)
    assert a0001["combined_score"] == pytest.approx(-3.5)
    assert a0001["gene_name"] == "phaC1"


def test_combine_conditions_drops_single_condition_gene(summary):
    """A gene measured under only one condition gets no combined score."""
    result = combine_conditions(summary, "fructose_NH4Cl", "formate_NH4Cl", fraction="F3")

    assert "H16_A0006" not in result["locus_tag"].to_list()
    assert result["locus_tag"].to_list() == [
        "H16_A0001", "H16_A0002", "H16_A0003", "H16_A0004", "H16_A0005",
    ]


def test_combine_conditions_fraction_filter(summary):
    """Only the requested fraction contributes."""
    result = combine_conditions(summary, "fructose_NH4Cl", "formate_NH4Cl", fraction="F1")

    assert result["combined_score"].to_list() == pytest.approx([0.2] * 5)


def test_combine_conditions_skips_nan_values():
    """NaN summary values are treated like missing ones."""
    summary = pl.DataFrame({
        "locus_tag": ["g1", "g1", "g2", "g2"],
        "condition": ["a", "b", "a", "b"],
        "mean_fitness": [1.0, float("nan"), 1.0, 2.0],
    })

    result = combine_conditions(summary, "a", "b")

    assert result["locus_tag"].to_list() == ["g2"]
    assert result["combined_score"][0] == pytest.approx(3.0)


def test_combine_conditions_pairs_each_fraction():
    """Without a fraction filter every fraction is paired on its own."""
    summary = pl.DataFrame({
        "locus_tag": ["g1", "g1", "g1", "g1"],
        "condition": ["a", "b", "a", "b"],
        "fraction": ["F1", "F1", "F3", "F3"],
        "mean_fitness": [-1.0, -1.0, -5.0, -5.0],
    })

    result = combine_conditions(summary, "a", "b")

    assert result.height == 2
    assert result["fraction"].to_list() == ["F1", "F3"]
    assert result["combined_score"].to_list() == pytest.approx([-2.0, -10.0])

    f3_only = combine_conditions(summary, "a", "b", fraction="F3")
    assert "fraction" not in f3_only.columns
    assert f3_only["combined_score"].to_list() == pytest.approx([-10.0])


def test_combine_conditions_rejects_duplicate_genes():
    """Several rows per gene in one condition cannot be paired."""
    summary = pl.DataFrame({
        "locus_tag": ["g1", "g1", "g1"],
        "condition": ["a", "a", "b"],
        "mean_fitness": [-1.0, -5.0, -1.0],
    })

    with pytest.raises(ValueError, match="several rows"):
        combine_conditions(summary, "a", "b")


def test_combine_conditions_value_column(summary):
    """A different summary column can be combined."""
    result = combine_conditions(
        summary, "fructose_NH4Cl", "formate_NH4Cl", fraction="F3", value_column="mean_log2fc"
    )

    a0004 = result.filter(pl.col("locus_tag") == "H16_A0004")
    assert a0004["combined_score"][0] == pytest.approx(3.5)


def test_rank_depletion_most_negative_first(combined):
    """Depletion ranks the most negative score first; ties break on locus_tag."""
    ranked = rank_genes(combined, "depletion")

    assert ranked.columns[0] == "rank"
    assert ranked["rank"].to_list() == [1, 2, 3, 4, 5]
    assert ranked["locus_tag"].to_list() == ["g5", "g1", "g3", "g4", "g2"]


def test_rank_enrichment_most_positive_first(combined):
    """Enrichment ranks the most positive score first."""
    ranked = rank_genes(combined, "enrichment")

    assert ranked["locus_tag"].to_list() == ["g2", "g4", "g1", "g3", "g5"]


def test_rank_invalid_direction(combined):
    """Unknown directions raise ValueError."""
    with pytest.raises(ValueError):
        rank_genes(combined, "sideways")
    with pytest.raises(ValueError):
        select_by_threshold(combined, 0.0, "sideways")


def test_select_top_n(combined):
    """top_n keeps the first n ranked rows, or all rows if fewer."""
    ranked = rank_genes(combined, "depletion")

    assert select_top_n(ranked, 2)["locus_tag"].to_list() == ["g5", "g1"]
    assert select_top_n(ranked, 50).height == 5


def test_select_by_threshold(combined):
    """Thresholds are inclusive in the ranking direction."""
    depleted = select_by_threshold(rank_genes(combined, "depletion"), -1.0, "depletion")
    enriched = select_by_threshold(rank_genes(combined, "enrichment"), 0.5, "enrichment")

    assert depleted["locus_tag"].to_list() == ["g5", "g1", "g3"]
    assert enriched["locus_tag"].to_list() == ["g2", "g4"]


def test_select_ranked_threshold_overrides_top_n(combined):
    """A threshold takes precedence over top_n."""
    result = select_ranked(combined, "depletion", top_n=1, threshold=-1.0)

    assert result.height == 3


def test_exclude_essential_by_substrate(summary, essentiality):
    """Only genes essential on the checked substrates are removed."""
    result = combine_conditions(summary, "fructose_NH4Cl", "formate_NH4Cl", fraction="F3")

    fructose_only = exclude_essential(result, essentiality, ["fructose"])
    every_substrate = exclude_essential(result, essentiality)

    assert "H16_A0002" not in fructose_only["locus_tag"].to_list()
    assert "H16_A0004" in fructose_only["locus_tag"].to_list()
    assert "H16_A0004" not in every_substrate["locus_tag"].to_list()


def test_rank_comparison(summary, essentiality, comparison):
    """Depletion and enrichment tables for a configured comparison."""
    result = rank_comparison(
        summary,
        comparison,
        AnalysisThresholds(top_n=2),
        essentiality,
    )

    assert isinstance(result, ComparisonResult)
    assert result.excluded_essential == ["H16_A0002"]
    assert result.combined.height == 4
    assert result.depleted["locus_tag"].to_list() == ["H16_A0001", "H16_A0005"]
    assert result.depleted["combined_score"].to_list() == pytest.approx([-3.5, -0.5])
    assert result.enriched["locus_tag"].to_list() == ["H16_A0004", "H16_A0003"]
    assert result.enriched["rank"].to_list() == [1, 2]


def test_rank_comparison_empty_substrates_checks_every_substrate(summary, essentiality, comparison):
    """A comparison without substrates excludes genes essential anywhere."""
    comparison.substrates = []

    result = rank_comparison(
        summary,
        comparison,
        AnalysisThresholds(top_n=2),
        essentiality,
    )

    assert result.excluded_essential == ["H16_A0002", "H16_A0004"]
    assert "H16_A0004" not in result.enriched["locus_tag"].to_list()
    assert "every substrate" in Comparison.model_fields["substrates"].description


def test_rank_comparison_keeps_essential_when_disabled(summary, essentiality, comparison):
    """With exclusion switched off, essential genes are ranked."""
    result = rank_comparison(
        summary,
        comparison,
        AnalysisThresholds(top_n=1, exclude_essential=False),
        essentiality,
    )

    assert result.excluded_essential == []
    assert result.depleted["locus_tag"].to_list() == ["H16_A0002"]


def test_rank_comparison_thresholds(summary, essentiality, comparison):
    """Configured thresholds replace top-N selection."""
    result = rank_comparison(
        summary,
        comparison,
        AnalysisThresholds(depletion_threshold=-1.0, enrichment_threshold=2.0),
        essentiality,
    )

    assert result.depleted["locus_tag"].to_list() == ["H16_A0001"]
    assert result.enriched["locus_tag"].to_list() == ["H16_A0004"]
