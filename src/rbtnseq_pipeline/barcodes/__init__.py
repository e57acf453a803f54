"""Barcode mapping and diversity diagnostics.

Maps observed barcodes onto the reference pool (mapped/unmapped labeling with
row preservation) and summarizes per-sample barcode complexity.
"""

from rbtnseq_pipeline.barcodes.mapper import (
    MappingReport,
    counts_by_gene,
    deduplicate_pool,
    map_barcodes,
    summarize_mapping,
)
from rbtnseq_pipeline.barcodes.diversity import (
    compute_barcode_diversity,
    summarize_colsum,
)

__all__ = [
    "MappingReport",
    "counts_by_gene",
    "deduplicate_pool",
    "map_barcodes",
    "summarize_mapping",
    "compute_barcode_diversity",
    "summarize_colsum",
]
