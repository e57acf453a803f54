"""Parse upstream RB-TnSeq tables into standardized polars DataFrames."""

from pathlib import Path

import polars as pl
import structlog

from rbtnseq_pipeline.inputs.models import (
    ANNOTATION_COLUMN_VARIANTS,
    ANNOTATION_REQUIRED,
    COLSUM_COLUMN_VARIANTS,
    COLSUM_REQUIRED,
    FITNESS_COLUMN_VARIANTS,
    FITNESS_REQUIRED,
    NULL_VALUES,
    POOL_COLUMN_VARIANTS,
    POOL_REQUIRED,
    POOLCOUNT_KEY_COLUMNS,
    InputFormatError,
)

logger = structlog.get_logger()

FITNESS_FLOAT_COLUMNS = ["norm_gene_fitness", "log2fc", "t_stat", "counts"]


def standardize_columns(
    lf: pl.LazyFrame,
    variants: dict[str, list[str]],
    required: list[str],
    source: Path | str,
) -> pl.LazyFrame:
    """Rename known column variants to standardized names and drop the rest.

    Each source column is used at most once, so a column listed as a variant
    for two fields (e.g. "gene" for gene_name) goes to the first field in
    ``variants`` order.

    Args:
        lf: LazyFrame read with header
        variants: Mapping of standardized name -> candidate source names
        required: Standardized names that must be present
        source: File path, used in error messages

    Returns:
        LazyFrame with only standardized columns

    Raises:
        InputFormatError: If a required column has no matching source column
    """
    actual_columns = lf.collect_schema().names()
    used: set[str] = set()
    column_mapping: dict[str, str] = {}

    for our_name, candidates in variants.items():
        for candidate in candidates:
            if candidate in actual_columns and candidate not in used:
                column_mapping[candidate] = our_name
                used.add(candidate)
                break

    missing = [name for name in required if name not in column_mapping.values()]
    if missing:
        raise InputFormatError(
            f"{source}: missing required column(s) {missing}; "
            f"found {actual_columns[:12]}"
        )

    logger.debug("column_mapping", source=str(source), mapping=column_mapping)

    return lf.select([pl.col(old).alias(new) for old, new in column_mapping.items()])


def _scan_table(path: Path, separator: str = "\t") -> pl.LazyFrame:
    """Scan a delimited table with every column read as a string."""
    return pl.scan_csv(
        path,
        separator=separator,
        null_values=NULL_VALUES,
        has_header=True,
        infer_schema_length=0,
    )


def read_poolfile(path: Path | str) -> pl.DataFrame:
    """Read the barcode -> insertion site reference pool.

    Args:
        path: Pool file (TSV with barcode, scaffold, strand, pos and an optional
              locus column)

    Returns:
        DataFrame with columns barcode, rcbarcode (if present), scaffold,
        strand, pos (Int64), locus_tag (null for intergenic insertions)
    """
    path = Path(path)
    logger.info("poolfile_parse_start", path=str(path))

    lf = standardize_columns(_scan_table(path), POOL_COLUMN_VARIANTS, POOL_REQUIRED, path)
    if "locus_tag" not in lf.collect_schema().names():
        lf = lf.with_columns(pl.lit(None, dtype=pl.String).alias("locus_tag"))

    df = lf.with_columns(pl.col("pos").cast(pl.Int64, strict=False)).collect()

    logger.info(
        "poolfile_parse_complete",
        barcodes=df.height,
        genic=df.filter(pl.col("locus_tag").is_not_null()).height,
    )
    return df


def read_poolcount(path: Path | str) -> pl.DataFrame:
    """Read result.poolcount and reshape it to one row per barcode and sample.

    The wide table holds the fixed insertion columns followed by one read
    count column per sample.

    Args:
        path: result.poolcount TSV

    Returns:
        Long DataFrame with columns barcode, rcbarcode, scaffold, strand, pos,
        sample, read_count (Int64, nulls read as 0)

    Raises:
        InputFormatError: If the barcode column is missing or no sample columns exist
    """
    path = Path(path)
    logger.info("poolcount_parse_start", path=str(path))

    lf = _scan_table(path)
    columns = lf.collect_schema().names()
    if "barcode" not in columns:
        raise InputFormatError(f"{path}: missing required column(s) ['barcode']")

    key_columns = [c for c in POOLCOUNT_KEY_COLUMNS if c in columns]
    sample_columns = [c for c in columns if c not in POOLCOUNT_KEY_COLUMNS]
    if not sample_columns:
        raise InputFormatError(f"{path}: no sample columns found")

    id_columns = [c for c in ["barcode", "rcbarcode", "scaffold", "strand", "pos"] if c in key_columns]

    df = (
        lf.collect()
        .unpivot(
            index=id_columns,
            on=sample_columns,
            variable_name="sample",
            value_name="read_count",
        )
        .with_columns(
            pl.col("read_count").cast(pl.Int64, strict=False).fill_null(0),
        )
    )
    if "pos" in df.columns:
        df = df.with_columns(pl.col("pos").cast(pl.Int64, strict=False))

    logger.info(
        "poolcount_parse_complete",
        barcodes=df.select(pl.col("barcode").n_unique()).item(),
        samples=len(sample_columns),
        rows=df.height,
    )
    return df


def read_colsum(path: Path | str) -> pl.DataFrame:
    """Read result.colsum per-sample read totals.

    Returns:
        DataFrame with columns sample, raw_reads (Int64), mapped_reads (Int64)
    """
    path = Path(path)
    lf = standardize_columns(_scan_table(path), COLSUM_COLUMN_VARIANTS, COLSUM_REQUIRED, path)
    df = lf.with_columns(
        pl.col("raw_reads").cast(pl.Int64, strict=False),
        pl.col("mapped_reads").cast(pl.Int64, strict=False),
    ).collect()

    logger.info("colsum_parse_complete", path=str(path), samples=df.height)
    return df


def _read_codes_file(path: Path) -> pl.DataFrame:
    df = pl.read_csv(
        path,
        separator="\t",
        null_values=NULL_VALUES,
        has_header=True,
        infer_schema_length=0,
    )
    if "barcode" not in df.columns:
        raise InputFormatError(f"{path}: missing required column(s) ['barcode']")

    sample_columns = [c for c in df.columns if c != "barcode"]
    if not sample_columns:
        raise InputFormatError(f"{path}: no count column found")

    return df.unpivot(
        index="barcode",
        on=sample_columns,
        variable_name="sample",
        value_name="read_count",
    ).with_columns(pl.col("read_count").cast(pl.Int64, strict=False).fill_null(0))


def read_codes(path: Path | str) -> pl.DataFrame:
    """Read raw barcode counts from one *.codes file or a directory of them.

    Each file has a ``barcode`` column followed by one count column per
    sample index; the count column header is used as the sample name.

    Args:
        path: A *.codes file or a directory containing *.codes files

    Returns:
        DataFrame with columns barcode, sample, read_count

    Raises:
        FileNotFoundError: If the directory holds no *.codes files
    """
    path = Path(path)
    files = sorted(path.glob("*.codes")) if path.is_dir() else [path]
    if not files:
        raise FileNotFoundError(f"No *.codes files in {path}")

    df = pl.concat([_read_codes_file(f) for f in files], how="vertical")

    logger.info(
        "codes_parse_complete",
        files=len(files),
        samples=df.select(pl.col("sample").n_unique()).item(),
        rows=df.height,
    )
    return df


def read_fitness_table(path: Path | str) -> pl.DataFrame:
    """Read a per-gene fitness table produced by the upstream scoring pipeline.

    Derives ``condition`` as "{carbon_source}_{nitrogen_source}" when the
    table has substrate columns but no condition column, or from
    carbon_source alone when there is no nitrogen column.

    Args:
        path: Tab-separated fitness table

    Returns:
        DataFrame with standardized FitnessRecord columns; numeric columns are
        Float64 with missing values as null
    """
    path = Path(path)
    logger.info("fitness_parse_start", path=str(path))

    lf = standardize_columns(_scan_table(path), FITNESS_COLUMN_VARIANTS, FITNESS_REQUIRED, path)
    columns = lf.collect_schema().names()

    lf = lf.with_columns(
        [pl.col(c).cast(pl.Float64, strict=False) for c in FITNESS_FLOAT_COLUMNS if c in columns]
    )
    if "strains_per_gene" in columns:
        lf = lf.with_columns(pl.col("strains_per_gene").cast(pl.Int64, strict=False))

    if "condition" not in columns:
        if "carbon_source" in columns and "nitrogen_source" in columns:
            lf = lf.with_columns(
                pl.concat_str(
                    [pl.col("carbon_source"), pl.col("nitrogen_source")],
                    separator="_",
                ).alias("condition")
            )
        elif "carbon_source" in columns:
            lf = lf.with_columns(pl.col("carbon_source").alias("condition"))

    df = lf.collect()

    logger.info(
        "fitness_parse_complete",
        rows=df.height,
        genes=df.select(pl.col("locus_tag").n_unique()).item(),
    )
    return df


def read_annotation(path: Path | str) -> pl.DataFrame:
    """Read the genome annotation CSV.

    Returns:
        DataFrame with locus_tag, gene_name, eggnog_name, cog_process, pathway
        (absent annotation columns are filled with null). Duplicates are kept;
        see fitness.aggregate.deduplicate_annotation.
    """
    path = Path(path)
    lf = standardize_columns(
        _scan_table(path, separator=","),
        ANNOTATION_COLUMN_VARIANTS,
        ANNOTATION_REQUIRED,
        path,
    )
    present = lf.collect_schema().names()
    lf = lf.with_columns(
        [
            pl.lit(None, dtype=pl.String).alias(name)
            for name in ANNOTATION_COLUMN_VARIANTS
            if name not in present
        ]
    ).select(list(ANNOTATION_COLUMN_VARIANTS))

    df = lf.collect()
    logger.info("annotation_parse_complete", path=str(path), rows=df.height)
    return df
