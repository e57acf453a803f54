"""Gene fitness summaries, essentiality calls and condition rankings.

Follows aggregate -> annotate -> classify -> rank: replicate fitness is reduced
to NaN-skipping per-gene statistics, annotated, and compared across two
conditions with optional exclusion of essential genes.
"""

from rbtnseq_pipeline.fitness.aggregate import (
    DEFAULT_GROUP_KEYS,
    aggregate_gene_fitness,
    annotate_genes,
    deduplicate_annotation,
    summarize_gene_fitness,
)
from rbtnseq_pipeline.fitness.essentiality import (
    DEFAULT_ESSENTIAL_CUTOFF,
    classify_essentiality,
    essential_genes,
)
from rbtnseq_pipeline.fitness.ranking import (
    ComparisonResult,
    combine_conditions,
    exclude_essential,
    rank_comparison,
    rank_genes,
    select_by_threshold,
    select_ranked,
    select_top_n,
)

__all__ = [
    "DEFAULT_GROUP_KEYS",
    "aggregate_gene_fitness",
    "annotate_genes",
    "deduplicate_annotation",
    "summarize_gene_fitness",
    "DEFAULT_ESSENTIAL_CUTOFF",
    "classify_essentiality",
    "essential_genes",
    "ComparisonResult",
    "combine_conditions",
    "exclude_essential",
    "rank_comparison",
    "rank_genes",
    "select_by_threshold",
    "select_ranked",
    "select_top_n",
]
