"""End-to-end analysis: load -> join -> aggregate -> rank.

Each run reads the configured source files fresh and holds every table in
memory; nothing is cached between runs, so unchanged inputs give identical
tables.
"""

from dataclasses import dataclass, field

import polars as pl
import structlog

from rbtnseq_pipeline.barcodes import (
    MappingReport,
    compute_barcode_diversity,
    counts_by_gene,
    map_barcodes,
    summarize_colsum,
    summarize_mapping,
)
from rbtnseq_pipeline.config.schema import PipelineConfig
from rbtnseq_pipeline.fitness import (
    ComparisonResult,
    classify_essentiality,
    rank_comparison,
    summarize_gene_fitness,
)
from rbtnseq_pipeline.inputs import (
    read_annotation,
    read_codes,
    read_colsum,
    read_fitness_table,
    read_poolcount,
    read_poolfile,
)

logger = structlog.get_logger()


@dataclass
class FitnessAnalysisResult:
    """Tables produced by run_fitness_analysis."""

    summary: pl.DataFrame
    essentiality: pl.DataFrame | None
    comparisons: list[ComparisonResult] = field(default_factory=list)


@dataclass
class BarcodeAnalysisResult:
    """Tables produced by run_barcode_analysis; absent inputs leave fields None."""

    mapped_codes: pl.DataFrame | None = None
    mapping_report: MappingReport | None = None
    diversity: pl.DataFrame | None = None
    gene_counts: pl.DataFrame | None = None
    colsum: pl.DataFrame | None = None


def run_fitness_analysis(config: PipelineConfig) -> FitnessAnalysisResult:
    """Summarize gene fitness, call essential genes and rank every comparison.

    Args:
        config: Pipeline configuration (inputs, thresholds, comparisons)

    Returns:
        FitnessAnalysisResult; essentiality is None when no essentiality
        table is configured
    """
    logger.info("fitness_analysis_start", comparisons=len(config.comparisons))

    fitness = read_fitness_table(config.resolve(config.inputs.fitness))
    annotation = read_annotation(config.resolve(config.inputs.annotation))
    summary = summarize_gene_fitness(fitness, annotation)

    essentiality = None
    if config.inputs.essentiality is not None:
        steady_state = read_fitness_table(config.resolve(config.inputs.essentiality))
        essentiality = classify_essentiality(
            steady_state,
            cutoff=config.thresholds.essential_cutoff,
            timepoint=config.thresholds.essential_timepoint,
        )

    comparisons = [
        rank_comparison(summary, comparison, config.thresholds, essentiality)
        for comparison in config.comparisons
    ]

    logger.info(
        "fitness_analysis_complete",
        summary_rows=summary.height,
        comparisons=len(comparisons),
    )
    return FitnessAnalysisResult(
        summary=summary,
        essentiality=essentiality,
        comparisons=comparisons,
    )


def run_barcode_analysis(config: PipelineConfig) -> BarcodeAnalysisResult:
    """Map barcodes to the pool and compute diversity diagnostics.

    Uses whichever of codes_dir, poolcount and colsum are configured.
    """
    result = BarcodeAnalysisResult()
    pool = read_poolfile(config.resolve(config.inputs.poolfile))

    if config.inputs.codes_dir is not None:
        codes = read_codes(config.resolve(config.inputs.codes_dir))
        result.mapped_codes = map_barcodes(codes, pool)
        result.mapping_report = summarize_mapping(result.mapped_codes)
        result.diversity = compute_barcode_diversity(result.mapped_codes)

    if config.inputs.poolcount is not None:
        poolcount = read_poolcount(config.resolve(config.inputs.poolcount))
        result.gene_counts = counts_by_gene(map_barcodes(poolcount, pool))

    if config.inputs.colsum is not None:
        result.colsum = summarize_colsum(read_colsum(config.resolve(config.inputs.colsum)))

    logger.info(
        "barcode_analysis_complete",
        has_codes=result.mapped_codes is not None,
        has_poolcount=result.gene_counts is not None,
        has_colsum=result.colsum is not None,
    )
    return result
