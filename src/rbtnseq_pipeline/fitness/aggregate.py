"""Replicate-level fitness aggregation and annotation."""

from typing import Sequence

import polars as pl
import structlog

from rbtnseq_pipeline.inputs.models import ANNOTATION_COLUMN_VARIANTS

logger = structlog.get_logger()

DEFAULT_GROUP_KEYS = ("locus_tag", "condition", "fraction")

# Source column -> (summary column, reducer)
SUMMARY_STATISTICS = [
    ("norm_gene_fitness", "mean_fitness", "mean"),
    ("norm_gene_fitness", "median_fitness", "median"),
    ("log2fc", "mean_log2fc", "mean"),
    ("log2fc", "median_log2fc", "median"),
    ("t_stat", "mean_t_stat", "mean"),
]


def aggregate_gene_fitness(
    fitness: pl.DataFrame,
    group_keys: Sequence[str] = DEFAULT_GROUP_KEYS,
) -> pl.DataFrame:
    """Reduce replicate fitness values to per-gene summary statistics.

    NaN and null are both treated as missing and skipped, so a replicate that
    dropped out does not void the gene's summary: [1.0, NaN, 3.0] has mean
    and median 2.0.

    Args:
        fitness: DataFrame from read_fitness_table
        group_keys: Grouping columns; keys absent from the frame are ignored
                    (e.g. no fraction column)

    Returns:
        DataFrame with the group keys plus mean_fitness, median_fitness,
        mean_log2fc, median_log2fc, mean_t_stat (null when the source column
        is absent or all values are missing) and n_replicates (non-missing
        fitness values), sorted by group keys
    """
    keys = [k for k in group_keys if k in fitness.columns]
    if "locus_tag" not in keys:
        raise ValueError("group_keys must include locus_tag")

    logger.info("aggregate_gene_fitness_start", rows=fitness.height, group_keys=keys)

    sources = {source for source, _, _ in SUMMARY_STATISTICS if source in fitness.columns}
    clean = fitness.with_columns(
        [pl.col(c).cast(pl.Float64).fill_nan(None) for c in sorted(sources)]
    )

    aggregations = []
    for source, name, reducer in SUMMARY_STATISTICS:
        if source in sources:
            expr = pl.col(source).mean() if reducer == "mean" else pl.col(source).median()
        else:
            expr = pl.lit(None, dtype=pl.Float64)
        aggregations.append(expr.alias(name))
    aggregations.append(pl.col("norm_gene_fitness").count().alias("n_replicates"))

    result = clean.group_by(keys).agg(aggregations).sort(keys, nulls_last=True)

    logger.info(
        "aggregate_gene_fitness_complete",
        groups=result.height,
        genes=result.select(pl.col("locus_tag").n_unique()).item(),
        without_fitness=result.filter(pl.col("mean_fitness").is_null()).height,
    )
    return result


def deduplicate_annotation(annotation: pl.DataFrame) -> pl.DataFrame:
    """Keep one annotation row per locus_tag (first occurrence)."""
    deduped = annotation.filter(pl.col("locus_tag").is_not_null()).unique(
        subset=["locus_tag"], keep="first", maintain_order=True
    )
    dropped = annotation.height - deduped.height
    if dropped:
        logger.info("annotation_duplicates_removed", dropped=dropped)
    return deduped


def annotate_genes(summary: pl.DataFrame, annotation: pl.DataFrame) -> pl.DataFrame:
    """Left-join genome annotation onto a per-gene table.

    Genes without an annotation row (or with an empty gene name) use their
    locus_tag as gene_name. Row count and order of ``summary`` are preserved.

    Args:
        summary: Any DataFrame with a locus_tag column
        annotation: DataFrame from read_annotation

    Returns:
        summary with gene_name, eggnog_name, cog_process, pathway appended
    """
    annotation_columns = [c for c in ANNOTATION_COLUMN_VARIANTS if c in annotation.columns]
    deduped = deduplicate_annotation(annotation).select(annotation_columns)
    replaced = [c for c in annotation_columns if c != "locus_tag" and c in summary.columns]

    result = (
        summary.drop(replaced)
        .with_row_index("_row")
        .join(deduped, on="locus_tag", how="left")
        .sort("_row")
        .drop("_row")
    )
    if "gene_name" not in result.columns:
        result = result.with_columns(pl.lit(None, dtype=pl.String).alias("gene_name"))

    result = result.with_columns(
        pl.coalesce(
            pl.when(pl.col("gene_name").str.strip_chars() != "").then(pl.col("gene_name")),
            pl.col("locus_tag"),
        ).alias("gene_name")
    )

    logger.info(
        "annotate_genes_complete",
        rows=result.height,
        annotated=result.filter(pl.col("gene_name") != pl.col("locus_tag")).height,
    )
    return result


def summarize_gene_fitness(
    fitness: pl.DataFrame,
    annotation: pl.DataFrame,
    group_keys: Sequence[str] = DEFAULT_GROUP_KEYS,
) -> pl.DataFrame:
    """Aggregate replicate fitness and attach annotation.

    Composes: aggregate_gene_fitness -> annotate_genes
    """
    return annotate_genes(aggregate_gene_fitness(fitness, group_keys), annotation)
