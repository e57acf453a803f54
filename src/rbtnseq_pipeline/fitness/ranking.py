"""Two-condition enrichment/depletion ranking of gene fitness."""

from dataclasses import dataclass

import polars as pl
import structlog

from rbtnseq_pipeline.config.schema import AnalysisThresholds, Comparison
from rbtnseq_pipeline.fitness.essentiality import essential_genes

logger = structlog.get_logger()

DIRECTIONS = ("depletion", "enrichment")

# Per-gene columns carried from the summary into combined tables
CARRIED_COLUMNS = ["gene_name", "eggnog_name", "cog_process", "pathway"]


@dataclass
class ComparisonResult:
    """Ranked tables for one configured comparison."""

    comparison: Comparison
    combined: pl.DataFrame
    depleted: pl.DataFrame
    enriched: pl.DataFrame
    excluded_essential: list[str]


def combine_conditions(
    summary: pl.DataFrame,
    condition_a: str,
    condition_b: str,
    fraction: str | None = None,
    value_column: str = "mean_fitness",
) -> pl.DataFrame:
    """Pair each gene's fitness under two conditions and sum them.

    Inner-join semantics: a gene missing a value for either condition cannot
    get a combined score and is dropped. Annotation columns present in the
    summary are carried over from condition_a.

    Args:
        summary: Output of aggregate_gene_fitness/annotate_genes
        condition_a: First condition (e.g. "fructose_NH4Cl")
        condition_b: Second condition
        fraction: Density fraction to compare at. None pairs every fraction
                  separately (one row per gene and fraction) when the summary
                  has a fraction column.
        value_column: Summary column to combine

    Returns:
        DataFrame with locus_tag (and fraction when pairing across fractions),
        annotation columns, value_a, value_b, combined_score sorted by the
        join keys

    Raises:
        ValueError: If a condition has more than one row per join key
    """
    df = summary
    join_keys = ["locus_tag"]
    if fraction is not None:
        df = df.filter(pl.col("fraction") == fraction)
    elif "fraction" in df.columns:
        join_keys.append("fraction")

    carried = [c for c in CARRIED_COLUMNS if c in df.columns]

    def _side(condition: str, name: str, extra: list[str]) -> pl.DataFrame:
        side = (
            df.filter(pl.col("condition") == condition)
            .select([*join_keys, *extra, pl.col(value_column).cast(pl.Float64).fill_nan(None).alias(name)])
            .drop_nulls(name)
        )
        if side.select(join_keys).is_duplicated().any():
            raise ValueError(
                f"condition {condition!r} has several rows per {join_keys}; "
                "aggregate replicates first or pass a fraction"
            )
        return side

    side_a = _side(condition_a, "value_a", carried)
    side_b = _side(condition_b, "value_b", [])

    if side_a.height == 0 or side_b.height == 0:
        logger.warning(
            "combine_conditions_empty_side",
            condition_a=condition_a,
            genes_a=side_a.height,
            condition_b=condition_b,
            genes_b=side_b.height,
            fraction=fraction,
        )

    result = (
        side_a.join(side_b, on=join_keys, how="inner")
        .with_columns((pl.col("value_a") + pl.col("value_b")).alias("combined_score"))
        .sort(join_keys)
    )

    logger.info(
        "combine_conditions_complete",
        condition_a=condition_a,
        condition_b=condition_b,
        fraction=fraction,
        genes=result.height,
        dropped_a_only=side_a.height - result.height,
        dropped_b_only=side_b.height - result.height,
    )
    return result


def _check_direction(direction: str) -> None:
    if direction not in DIRECTIONS:
        raise ValueError(f"direction must be one of {DIRECTIONS}, got {direction!r}")


def rank_genes(combined: pl.DataFrame, direction: str = "depletion") -> pl.DataFrame:
    """Order genes by combined score and number them.

    Depletion ranks the most negative score first, enrichment the most
    positive. Ties are broken by locus_tag so the ranking is deterministic.

    Returns:
        combined sorted with a 1-based ``rank`` column first

    Raises:
        ValueError: If direction is not "depletion" or "enrichment"
    """
    _check_direction(direction)
    descending = direction == "enrichment"
    return (
        combined.sort(["combined_score", "locus_tag"], descending=[descending, False])
        .with_row_index("rank", offset=1)
        .with_columns(pl.col("rank").cast(pl.Int64))
    )


def select_top_n(ranked: pl.DataFrame, n: int) -> pl.DataFrame:
    """First n rows of a ranked table."""
    return ranked.head(n)


def select_by_threshold(ranked: pl.DataFrame, threshold: float, direction: str) -> pl.DataFrame:
    """Keep genes at or beyond a combined-score threshold.

    Depletion keeps combined_score <= threshold, enrichment >= threshold.

    Raises:
        ValueError: If direction is not "depletion" or "enrichment"
    """
    _check_direction(direction)
    if direction == "depletion":
        return ranked.filter(pl.col("combined_score") <= threshold)
    return ranked.filter(pl.col("combined_score") >= threshold)


def exclude_essential(
    combined: pl.DataFrame,
    essentiality: pl.DataFrame,
    substrates: list[str] | None = None,
) -> pl.DataFrame:
    """Drop genes flagged essential on any of the tested substrates.

    Such genes may score low because the mutant cannot grow at all, not
    because of a PHB-specific effect.

    Args:
        combined: Any per-gene DataFrame with locus_tag
        essentiality: Output of classify_essentiality
        substrates: Substrates to check; None checks every substrate

    Returns:
        combined without the essential genes
    """
    flagged = essential_genes(essentiality, substrates)
    result = combined.filter(~pl.col("locus_tag").is_in(flagged))
    logger.info(
        "exclude_essential_complete",
        substrates=substrates,
        removed=combined.height - result.height,
        remaining=result.height,
    )
    return result


def select_ranked(
    combined: pl.DataFrame,
    direction: str,
    top_n: int,
    threshold: float | None = None,
) -> pl.DataFrame:
    """Rank and select by threshold when given, otherwise the top_n genes."""
    ranked = rank_genes(combined, direction)
    if threshold is not None:
        return select_by_threshold(ranked, threshold, direction)
    return select_top_n(ranked, top_n)


def rank_comparison(
    summary: pl.DataFrame,
    comparison: Comparison,
    thresholds: AnalysisThresholds,
    essentiality: pl.DataFrame | None = None,
) -> ComparisonResult:
    """Produce the depletion and enrichment tables for one comparison.

    Composes: combine_conditions -> exclude_essential (optional) ->
              rank_genes -> select by threshold or top-N

    Args:
        summary: Annotated gene fitness summary
        comparison: Conditions, fraction and value column to compare
        thresholds: top_n, depletion/enrichment thresholds and the
                    exclude_essential switch
        essentiality: Essentiality flags; exclusion is skipped when None

    Returns:
        ComparisonResult with the full combined table and both selections
    """
    combined = combine_conditions(
        summary,
        comparison.condition_a,
        comparison.condition_b,
        fraction=comparison.fraction,
        value_column=comparison.value_column,
    )

    excluded: list[str] = []
    if thresholds.exclude_essential and essentiality is not None:
        substrates = comparison.substrates or None
        flagged = set(essential_genes(essentiality, substrates))
        excluded = sorted(flagged & set(combined["locus_tag"].to_list()))
        combined = exclude_essential(combined, essentiality, substrates)

    depleted = select_ranked(
        combined, "depletion", thresholds.top_n, thresholds.depletion_threshold
    )
    enriched = select_ranked(
        combined, "enrichment", thresholds.top_n, thresholds.enrichment_threshold
    )

    logger.info(
        "rank_comparison_complete",
        comparison=comparison.name,
        combined=combined.height,
        depleted=depleted.height,
        enriched=enriched.height,
        excluded_essential=len(excluded),
    )
    return ComparisonResult(
        comparison=comparison,
        combined=combined,
        depleted=depleted,
        enriched=enriched,
        excluded_essential=excluded,
    )
