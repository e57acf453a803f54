"""Per-sample barcode diversity diagnostics."""

import polars as pl
import structlog

logger = structlog.get_logger()


def compute_barcode_diversity(mapped_codes: pl.DataFrame) -> pl.DataFrame:
    """Summarize barcode complexity and pool mapping per sample.

    Every observed barcode counts towards the denominators, mapped or not,
    so contaminant barcodes lower the mapped fractions instead of vanishing.

    Args:
        mapped_codes: Output of map_barcodes over *.codes observations
                      (barcode, sample, read_count, mapped)

    Returns:
        DataFrame with one row per sample:
        - n_barcodes, n_mapped: observed and mapped barcode rows
        - total_reads, mapped_reads
        - fraction_mapped_barcodes, fraction_mapped_reads (null if denominator is 0)
        - shannon_diversity: Shannon entropy (natural log) of read proportions
          (null when the sample has no reads)
    """
    logger.info("barcode_diversity_start", rows=mapped_codes.height)

    result = (
        mapped_codes.group_by("sample")
        .agg(
            pl.len().alias("n_barcodes"),
            pl.col("mapped").sum().alias("n_mapped"),
            pl.col("read_count").sum().alias("total_reads"),
            pl.col("read_count").filter(pl.col("mapped")).sum().alias("mapped_reads"),
            pl.col("read_count")
            .filter(pl.col("read_count") > 0)
            .cast(pl.Float64)
            .entropy(normalize=True)
            .alias("shannon_diversity"),
        )
        .with_columns(
            pl.when(pl.col("n_barcodes") > 0)
            .then(pl.col("n_mapped") / pl.col("n_barcodes"))
            .otherwise(None)
            .alias("fraction_mapped_barcodes"),
            pl.when(pl.col("total_reads") > 0)
            .then(pl.col("mapped_reads") / pl.col("total_reads"))
            .otherwise(None)
            .alias("fraction_mapped_reads"),
            pl.when(pl.col("total_reads") > 0)
            .then(pl.col("shannon_diversity"))
            .otherwise(None)
            .alias("shannon_diversity"),
        )
        .sort("sample")
        .select([
            "sample",
            "n_barcodes",
            "n_mapped",
            "total_reads",
            "mapped_reads",
            "fraction_mapped_barcodes",
            "fraction_mapped_reads",
            "shannon_diversity",
        ])
    )

    logger.info(
        "barcode_diversity_complete",
        samples=result.height,
        median_fraction_mapped=result["fraction_mapped_reads"].median(),
    )
    return result


def summarize_colsum(colsum: pl.DataFrame) -> pl.DataFrame:
    """Add the fraction of reads with a recognized barcode to result.colsum.

    Returns:
        colsum sorted by sample with fraction_mapped = mapped_reads / raw_reads
        (null when raw_reads is 0)
    """
    return colsum.with_columns(
        pl.when(pl.col("raw_reads") > 0)
        .then(pl.col("mapped_reads") / pl.col("raw_reads"))
        .otherwise(None)
        .alias("fraction_mapped")
    ).sort("sample")
