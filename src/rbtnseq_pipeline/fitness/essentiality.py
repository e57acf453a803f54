"""Threshold-based essentiality calls from steady-state fitness."""

from typing import Iterable

import polars as pl
import structlog

from rbtnseq_pipeline.inputs.models import InputFormatError

logger = structlog.get_logger()

# Cutoff used for the 8-generation steady-state screens
DEFAULT_ESSENTIAL_CUTOFF = -2.5


def classify_essentiality(
    fitness: pl.DataFrame,
    cutoff: float = DEFAULT_ESSENTIAL_CUTOFF,
    timepoint: str | None = None,
    substrate_column: str = "carbon_source",
) -> pl.DataFrame:
    """Flag genes essential on a substrate by a fixed fitness cutoff.

    A gene is essential when its mean normalized fitness is strictly below
    ``cutoff`` (-2.6 < -2.5 is essential, -2.5 is not). This is a threshold
    predicate, not a hypothesis test. Missing values are skipped; a gene
    with no fitness value on a substrate is never essential.

    Args:
        fitness: Fitness table (locus_tag, norm_gene_fitness, substrate column)
        cutoff: Fitness cutoff; -2.5 and -3.0 are both in use
        timepoint: If set, only rows whose fraction column equals it are used
        substrate_column: Column naming the substrate; falls back to
                          "condition" when absent

    Returns:
        DataFrame with locus_tag, substrate, mean_norm_fitness, is_essential
        sorted by substrate, locus_tag

    Raises:
        InputFormatError: If timepoint is set but there is no fraction column
    """
    if substrate_column not in fitness.columns:
        substrate_column = "condition"

    df = fitness
    if timepoint is not None:
        if "fraction" not in df.columns:
            raise InputFormatError(
                f"timepoint {timepoint!r} requested but fitness table has no 'fraction' column"
            )
        df = df.filter(pl.col("fraction") == timepoint)

    logger.info(
        "classify_essentiality_start",
        rows=df.height,
        cutoff=cutoff,
        timepoint=timepoint,
    )

    result = (
        df.with_columns(pl.col("norm_gene_fitness").cast(pl.Float64).fill_nan(None))
        .group_by(["locus_tag", pl.col(substrate_column).alias("substrate")])
        .agg(pl.col("norm_gene_fitness").mean().alias("mean_norm_fitness"))
        .with_columns(
            (pl.col("mean_norm_fitness") < cutoff)
            .fill_null(False)
            .alias("is_essential")
        )
        .sort(["substrate", "locus_tag"])
    )

    logger.info(
        "classify_essentiality_complete",
        genes=result.select(pl.col("locus_tag").n_unique()).item(),
        essential=result.filter(pl.col("is_essential")).height,
    )
    return result


def essential_genes(flags: pl.DataFrame, substrates: Iterable[str] | None = None) -> list[str]:
    """Locus tags flagged essential on any of ``substrates`` (all if None), sorted."""
    essential = flags.filter(pl.col("is_essential"))
    if substrates is not None:
        essential = essential.filter(pl.col("substrate").is_in(list(substrates)))
    return sorted(essential["locus_tag"].unique().to_list())
