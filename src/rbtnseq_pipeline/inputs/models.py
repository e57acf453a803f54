"""Data models and column conventions for the upstream RB-TnSeq tables."""

from pydantic import BaseModel

# Null tokens written by the upstream R/perl tooling
NULL_VALUES = ["NA", "", ".", "NaN"]

# Fixed (non-sample) columns of result.poolcount; every other column is a sample
POOLCOUNT_KEY_COLUMNS = ["barcode", "rcbarcode", "scaffold", "strand", "pos", "locusId", "f"]

# Column name mapping for the variants emitted by different upstream versions.
# Keys are standardized names, values are candidates in order of preference.
POOL_COLUMN_VARIANTS = {
    "barcode": ["barcode", "Barcode"],
    "rcbarcode": ["rcbarcode", "rcBarcode"],
    "scaffold": ["scaffold", "scaffoldId"],
    "strand": ["strand"],
    "pos": ["pos", "position"],
    "locus_tag": ["locus_tag", "locusId", "sysName"],
}

COLSUM_COLUMN_VARIANTS = {
    "sample": ["sample", "Index", "SetName", "name"],
    "raw_reads": ["raw_reads", "nReads", "reads"],
    "mapped_reads": ["mapped_reads", "nUsed", "nMapped", "mapped"],
}

FITNESS_COLUMN_VARIANTS = {
    "locus_tag": ["locus_tag", "locusId", "locus", "gene_id"],
    "condition": ["condition", "Condition"],
    "carbon_source": ["carbon_source", "carbon", "substrate", "Carbon"],
    "nitrogen_source": ["nitrogen_source", "nitrogen", "Nitrogen"],
    "fraction": ["fraction", "time", "Fraction", "timepoint"],
    "replicate": ["replicate", "rep", "Replicate"],
    "norm_gene_fitness": ["norm_gene_fitness", "norm_fg", "fitness", "fg"],
    "log2fc": ["log2fc", "log2FoldChange", "log2FC"],
    "t_stat": ["t_stat", "t", "tstat"],
    "strains_per_gene": ["strains_per_gene", "n_strains", "nStrains"],
    "counts": ["counts", "n_reads", "count"],
}

ANNOTATION_COLUMN_VARIANTS = {
    "locus_tag": ["locus_tag", "locusId", "Locus_tag"],
    "gene_name": ["gene_name", "gene", "Gene"],
    "eggnog_name": ["eggnog_name", "eggNOG_name", "Preferred_name"],
    "cog_process": ["cog_process", "COG_Process", "COG_category"],
    "pathway": ["pathway", "Pathway", "KEGG_Pathway"],
}

POOL_REQUIRED = ["barcode", "scaffold", "strand", "pos"]
COLSUM_REQUIRED = ["sample", "raw_reads", "mapped_reads"]
FITNESS_REQUIRED = ["locus_tag", "norm_gene_fitness"]
ANNOTATION_REQUIRED = ["locus_tag"]


class InputFormatError(ValueError):
    """Raised when an input table lacks a required column."""


class ReadCountRecord(BaseModel):
    """Read count of one barcode in one sample (long form of result.poolcount)."""

    barcode: str
    rcbarcode: str | None = None
    scaffold: str | None = None
    strand: str | None = None
    pos: int | None = None
    sample: str
    read_count: int


class PoolEntry(BaseModel):
    """Reference mapping of a barcode to its insertion site.

    locus_tag is None for intergenic insertions.
    """

    barcode: str
    scaffold: str
    strand: str
    pos: int
    locus_tag: str | None = None


class FitnessRecord(BaseModel):
    """Fitness statistics for one gene, condition, fraction and replicate.

    condition is "{carbon_source}_{nitrogen_source}" when both substrates are given.
    NULL values represent replicate dropout and are skipped by aggregation.
    """

    locus_tag: str
    condition: str | None = None
    carbon_source: str | None = None
    nitrogen_source: str | None = None
    fraction: str | None = None
    replicate: str | None = None
    norm_gene_fitness: float | None = None
    log2fc: float | None = None
    t_stat: float | None = None
    strains_per_gene: int | None = None
    counts: float | None = None


class AnnotationRecord(BaseModel):
    """Genome annotation for one locus_tag."""

    locus_tag: str
    gene_name: str | None = None
    eggnog_name: str | None = None
    cog_process: str | None = None
    pathway: str | None = None


class EssentialityFlag(BaseModel):
    """Essentiality call for one gene on one substrate."""

    locus_tag: str
    substrate: str
    mean_norm_fitness: float | None = None
    is_essential: bool = False


class CodesRecord(BaseModel):
    """Raw barcode count from a *.codes file."""

    barcode: str
    sample: str
    read_count: int


class ColsumRecord(BaseModel):
    """Per-sample read totals from result.colsum."""

    sample: str
    raw_reads: int
    mapped_reads: int
