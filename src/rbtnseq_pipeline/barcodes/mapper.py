"""Barcode-to-insertion-site mapping against the reference pool.

Joins observed barcodes onto the pool file by exact sequence match. Barcodes
absent from the pool (contaminants, mis-synthesized tags) are labeled unmapped
and kept, since diversity diagnostics need every observed barcode.
"""

import logging
from dataclasses import dataclass, field

import polars as pl

logger = logging.getLogger(__name__)

POOL_JOIN_COLUMNS = ["barcode", "scaffold", "strand", "pos", "locus_tag"]


@dataclass
class MappingReport:
    """Summary of a barcode mapping run.

    Attributes:
        total_barcodes: Number of observation rows
        mapped_barcodes: Rows whose barcode is in the pool
        genic_barcodes: Mapped rows inside an annotated gene
        total_reads: Sum of read_count over all rows
        mapped_reads: Sum of read_count over mapped rows
        top_unmapped: Most abundant unmapped barcodes (at most 10)
        fraction_mapped_barcodes: mapped_barcodes / total_barcodes (0-1)
        fraction_mapped_reads: mapped_reads / total_reads (0-1)
    """
    total_barcodes: int
    mapped_barcodes: int
    genic_barcodes: int
    total_reads: int
    mapped_reads: int
    top_unmapped: list[str] = field(default_factory=list)
    fraction_mapped_barcodes: float = 0.0
    fraction_mapped_reads: float = 0.0

    def __post_init__(self):
        """Calculate mapped fractions after initialization."""
        if self.total_barcodes > 0:
            self.fraction_mapped_barcodes = self.mapped_barcodes / self.total_barcodes
        if self.total_reads > 0:
            self.fraction_mapped_reads = self.mapped_reads / self.total_reads


def deduplicate_pool(pool: pl.DataFrame) -> pl.DataFrame:
    """Keep the first pool entry per barcode.

    A barcode listed twice would duplicate observation rows in the join, so
    the pool is keyed by barcode before any mapping.
    """
    deduped = pool.unique(subset=["barcode"], keep="first", maintain_order=True)
    dropped = pool.height - deduped.height
    if dropped:
        logger.warning(f"Dropped {dropped} duplicate barcode entries from pool")
    return deduped


def map_barcodes(observations: pl.DataFrame, pool: pl.DataFrame) -> pl.DataFrame:
    """Label each observed barcode as mapped or unmapped against the pool.

    Left outer join on exact barcode match; no fuzzy matching. Output row
    count always equals input row count and input order is preserved.

    Args:
        observations: DataFrame with a barcode column and any count columns
                      (e.g. sample, read_count). Location columns already
                      present are replaced by the pool's.
        pool: Pool DataFrame from read_poolfile

    Returns:
        observations with added columns:
        - mapped (bool): barcode present in the pool
        - scaffold, strand, pos, locus_tag: pool location (null when unmapped;
          locus_tag also null for intergenic insertions)
    """
    pool_keyed = (
        deduplicate_pool(pool)
        .select([c for c in POOL_JOIN_COLUMNS if c in pool.columns])
        .with_columns(pl.lit(True).alias("mapped"))
    )

    replaced = [c for c in pool_keyed.columns if c != "barcode" and c in observations.columns]
    obs = observations.drop(replaced).with_row_index("_row")

    result = (
        obs.join(pool_keyed, on="barcode", how="left")
        .sort("_row")
        .drop("_row")
        .with_columns(pl.col("mapped").fill_null(False))
    )

    logger.info(
        f"Mapped {result.filter(pl.col('mapped')).height}/{result.height} "
        f"barcode observations to the pool"
    )
    return result


def summarize_mapping(mapped: pl.DataFrame) -> MappingReport:
    """Compute mapping totals for the output of map_barcodes.

    Args:
        mapped: DataFrame with mapped, locus_tag and (optionally) read_count

    Returns:
        MappingReport; read totals are 0 when there is no read_count column
    """
    has_counts = "read_count" in mapped.columns
    mapped_rows = mapped.filter(pl.col("mapped"))
    unmapped_rows = mapped.filter(~pl.col("mapped"))

    def _reads(df: pl.DataFrame) -> int:
        if not has_counts or df.height == 0:
            return 0
        return int(df["read_count"].sum())

    top_unmapped: list[str] = []
    if unmapped_rows.height > 0:
        ranked = unmapped_rows.group_by("barcode").agg(
            pl.col("read_count").sum() if has_counts else pl.len().alias("read_count")
        )
        top_unmapped = (
            ranked.sort(["read_count", "barcode"], descending=[True, False])
            .head(10)["barcode"]
            .to_list()
        )

    report = MappingReport(
        total_barcodes=mapped.height,
        mapped_barcodes=mapped_rows.height,
        genic_barcodes=mapped_rows.filter(pl.col("locus_tag").is_not_null()).height,
        total_reads=_reads(mapped),
        mapped_reads=_reads(mapped_rows),
        top_unmapped=top_unmapped,
    )

    logger.info(
        f"Mapping summary: {report.mapped_barcodes}/{report.total_barcodes} barcodes "
        f"({report.fraction_mapped_barcodes:.1%}), "
        f"{report.mapped_reads}/{report.total_reads} reads "
        f"({report.fraction_mapped_reads:.1%})"
    )
    return report


def counts_by_gene(mapped: pl.DataFrame) -> pl.DataFrame:
    """Sum read counts per gene and sample over mapped, genic barcodes.

    Unmapped and intergenic barcodes are excluded from gene-level totals.

    Returns:
        DataFrame with locus_tag, sample, read_count, n_barcodes sorted by
        locus_tag, sample
    """
    return (
        mapped.filter(pl.col("mapped") & pl.col("locus_tag").is_not_null())
        .group_by(["locus_tag", "sample"])
        .agg(
            pl.col("read_count").sum().alias("read_count"),
            pl.col("barcode").n_unique().alias("n_barcodes"),
        )
        .sort(["locus_tag", "sample"])
    )
