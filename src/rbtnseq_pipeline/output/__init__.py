"""Output generation: table writing and diagnostic plots."""

from rbtnseq_pipeline.output.visualizations import (
    generate_all_plots,
    plot_barcode_diversity,
    plot_fitness_scatter,
    plot_fraction_distribution,
    sample_for_plot,
)
from rbtnseq_pipeline.output.writers import write_table

__all__ = [
    "write_table",
    "generate_all_plots",
    "plot_barcode_diversity",
    "plot_fitness_scatter",
    "plot_fraction_distribution",
    "sample_for_plot",
]
