"""End-to-end tests of the fitness and barcode analyses on the synthetic screen."""

import polars as pl
import pytest
from polars.testing import assert_frame_equal

from rbtnseq_pipeline.analysis import run_barcode_analysis, run_fitness_analysis


def test_fitness_analysis_ranks_comparison(screen_config):
    """The configured comparison yields the expected top genes."""
    result = run_fitness_analysis(screen_config)

    assert len(result.comparisons) == 1
    ranked = result.comparisons[0]
    assert ranked.excluded_essential == ["H16_A0002"]
    assert ranked.depleted["locus_tag"].to_list() == ["H16_A0001", "H16_A0005"]
    assert ranked.depleted["gene_name"].to_list() == ["phaC1", "H16_A0005"]
    assert ranked.enriched["locus_tag"].to_list() == ["H16_A0004", "H16_A0003"]


def test_fitness_analysis_essentiality(screen_config):
    """Essentiality uses the configured timepoint and cutoff."""
    result = run_fitness_analysis(screen_config)

    essential = result.essentiality.filter(pl.col("is_essential"))
    assert sorted(zip(essential["locus_tag"], essential["substrate"])) == [
        ("H16_A0002", "fructose"),
        ("H16_A0004", "formate"),
    ]


def test_fitness_analysis_without_essentiality(screen_config):
    """Without a steady-state table nothing is excluded."""
    screen_config.inputs.essentiality = None

    result = run_fitness_analysis(screen_config)

    assert result.essentiality is None
    assert result.comparisons[0].excluded_essential == []
    assert result.comparisons[0].depleted["locus_tag"][0] == "H16_A0002"


def test_fitness_analysis_is_idempotent(screen_config):
    """Two runs over unchanged inputs give identical tables."""
    first = run_fitness_analysis(screen_config)
    second = run_fitness_analysis(screen_config)

    assert_frame_equal(first.summary, second.summary)
    assert_frame_equal(first.essentiality, second.essentiality)
    assert_frame_equal(first.comparisons[0].depleted, second.comparisons[0].depleted)
    assert_frame_equal(first.comparisons[0].enriched, second.comparisons[0].enriched)


def test_barcode_analysis(screen_config):
    """Codes, poolcount and colsum inputs all produce tables."""
    result = run_barcode_analysis(screen_config)

    assert result.mapped_codes.height == 6
    assert result.mapping_report.mapped_barcodes == 5
    assert result.mapping_report.top_unmapped == ["NNNN"]

    s1 = result.diversity.filter(pl.col("sample") == "S1").row(0, named=True)
    assert s1["fraction_mapped_reads"] == pytest.approx(0.9)

    assert result.gene_counts["read_count"].to_list() == [55, 20, 30, 0]
    assert result.colsum["fraction_mapped"][0] == pytest.approx(0.5)


def test_barcode_analysis_optional_inputs(screen_config):
    """Unconfigured optional inputs leave their results empty."""
    screen_config.inputs.codes_dir = None
    screen_config.inputs.colsum = None

    result = run_barcode_analysis(screen_config)

    assert result.mapped_codes is None
    assert result.mapping_report is None
    assert result.diversity is None
    assert result.colsum is None
    assert result.gene_counts is not None
