"""Diagnostic and interpretive plots for barcode and fitness tables."""

import logging
from pathlib import Path

import matplotlib
import polars as pl

# Use Agg backend (non-interactive, safe for headless/CLI use)
matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import seaborn as sns  # noqa: E402

from rbtnseq_pipeline.fitness.ranking import ComparisonResult  # noqa: E402

logger = logging.getLogger(__name__)

DEPLETED_COLOR = "#c0392b"
ENRICHED_COLOR = "#2980b9"
BACKGROUND_COLOR = "#bdc3c7"


def sample_for_plot(df: pl.DataFrame, n: int, seed: int) -> pl.DataFrame:
    """
    Subsample rows to declutter a plot.

    The only random step in the package; always seeded so repeated runs draw
    the same points. Frames with at most n rows are returned unchanged.
    """
    if df.height <= n:
        return df
    return df.sample(n=n, seed=seed)


def _save(fig, output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=300, bbox_inches="tight")
    # Close figure to prevent memory leak across many plots
    plt.close(fig)
    return output_path


def plot_barcode_diversity(diversity: pl.DataFrame, output_path: Path) -> Path:
    """
    Create bar chart of mapped and unmapped reads per sample.

    Args:
        diversity: Output of compute_barcode_diversity
        output_path: Path where PNG will be saved

    Returns:
        Path to the saved PNG file
    """
    pdf = (
        diversity.with_columns(
            (pl.col("total_reads") - pl.col("mapped_reads")).alias("unmapped_reads")
        )
        .unpivot(
            index="sample",
            on=["mapped_reads", "unmapped_reads"],
            variable_name="status",
            value_name="reads",
        )
        .with_columns(pl.col("status").str.replace("_reads", ""))
        .to_pandas()
    )

    sns.set_theme(style="whitegrid", context="paper")
    fig, ax = plt.subplots(figsize=(max(6, 0.5 * diversity.height), 5))

    sns.barplot(
        data=pdf,
        x="sample",
        y="reads",
        hue="status",
        hue_order=["mapped", "unmapped"],
        palette={"mapped": ENRICHED_COLOR, "unmapped": BACKGROUND_COLOR},
        ax=ax,
    )
    plt.setp(ax.get_xticklabels(), rotation=45, ha="right")

    ax.set_xlabel("Sample")
    ax.set_ylabel("Reads")
    ax.set_title("Barcode Reads Mapped to Pool")

    _save(fig, output_path)
    logger.info(f"Saved barcode diversity plot to {output_path}")
    return output_path


def plot_fitness_scatter(
    result: ComparisonResult,
    output_path: Path,
    sample_size: int = 2000,
    seed: int = 42,
) -> Path:
    """
    Scatter one condition's fitness against the other's, highlighting ranked genes.

    Args:
        result: ComparisonResult from rank_comparison
        output_path: Path where PNG will be saved
        sample_size: Maximum number of background genes drawn
        seed: Seed for the background sample

    Returns:
        Path to the saved PNG file

    Notes:
        - Selected depleted (red) and enriched (blue) genes are always drawn
          and labeled with gene_name
    """
    comparison = result.comparison
    highlighted = set(result.depleted["locus_tag"].to_list()) | set(
        result.enriched["locus_tag"].to_list()
    )
    background = sample_for_plot(
        result.combined.filter(~pl.col("locus_tag").is_in(list(highlighted))),
        sample_size,
        seed,
    )

    sns.set_theme(style="whitegrid", context="paper")
    fig, ax = plt.subplots(figsize=(7, 7))

    ax.scatter(
        background["value_a"].to_list(),
        background["value_b"].to_list(),
        s=6,
        color=BACKGROUND_COLOR,
        alpha=0.6,
        label="other genes",
    )

    label_column = "gene_name" if "gene_name" in result.combined.columns else "locus_tag"
    for selection, color, label in (
        (result.depleted, DEPLETED_COLOR, "depleted"),
        (result.enriched, ENRICHED_COLOR, "enriched"),
    ):
        if selection.height == 0:
            continue
        ax.scatter(
            selection["value_a"].to_list(),
            selection["value_b"].to_list(),
            s=18,
            color=color,
            label=label,
        )
        for row in selection.iter_rows(named=True):
            ax.annotate(
                row[label_column],
                (row["value_a"], row["value_b"]),
                fontsize=6,
                xytext=(3, 3),
                textcoords="offset points",
            )

    ax.axhline(0, color="black", linewidth=0.5)
    ax.axvline(0, color="black", linewidth=0.5)
    ax.set_xlabel(f"{comparison.condition_a} {comparison.value_column}")
    ax.set_ylabel(f"{comparison.condition_b} {comparison.value_column}")
    ax.set_title(f"{comparison.name} ({comparison.fraction})")
    ax.legend(loc="best", fontsize=7)

    _save(fig, output_path)
    logger.info(f"Saved fitness scatter plot to {output_path}")
    return output_path


def plot_fraction_distribution(summary: pl.DataFrame, output_path: Path) -> Path:
    """
    Create box plot of per-gene mean fitness by density fraction and condition.

    Args:
        summary: Gene fitness summary with fraction, condition, mean_fitness
        output_path: Path where PNG will be saved

    Returns:
        Path to the saved PNG file
    """
    pdf = (
        summary.filter(pl.col("mean_fitness").is_not_null())
        .select(["fraction", "condition", "mean_fitness"])
        .sort(["fraction", "condition"])
        .to_pandas()
    )

    sns.set_theme(style="whitegrid", context="paper")
    fig, ax = plt.subplots(figsize=(10, 6))

    sns.boxplot(
        data=pdf,
        x="fraction",
        y="mean_fitness",
        hue="condition",
        fliersize=1,
        ax=ax,
    )

    ax.set_xlabel("Fraction")
    ax.set_ylabel("Mean Gene Fitness")
    ax.set_title("Gene Fitness by Density Fraction")

    _save(fig, output_path)
    logger.info(f"Saved fraction distribution plot to {output_path}")
    return output_path


def generate_all_plots(
    summary: pl.DataFrame,
    comparisons: list[ComparisonResult],
    output_dir: Path,
    sample_size: int = 2000,
    seed: int = 42,
    diversity: pl.DataFrame | None = None,
) -> dict[str, Path]:
    """
    Generate all fitness (and optionally barcode) plots.

    Args:
        summary: Annotated gene fitness summary
        comparisons: Ranked comparison results, one scatter each
        output_dir: Directory where plots will be saved
        sample_size: Background sample size for scatter plots
        seed: Seed for background samples
        diversity: Barcode diversity table; plot skipped when None

    Returns:
        Dictionary mapping plot name to file path

    Notes:
        - Wraps each plot in try/except to continue on individual failures
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    plots = {}

    try:
        plots["fraction_distribution"] = plot_fraction_distribution(
            summary,
            output_dir / "fraction_distribution.png",
        )
    except Exception as e:
        logger.warning(f"Failed to create fraction distribution plot: {e}")

    for result in comparisons:
        name = f"scatter_{result.comparison.name}"
        try:
            plots[name] = plot_fitness_scatter(
                result,
                output_dir / f"{name}.png",
                sample_size=sample_size,
                seed=seed,
            )
        except Exception as e:
            logger.warning(f"Failed to create scatter plot for {result.comparison.name}: {e}")

    if diversity is not None:
        try:
            plots["barcode_diversity"] = plot_barcode_diversity(
                diversity,
                output_dir / "barcode_diversity.png",
            )
        except Exception as e:
            logger.warning(f"Failed to create barcode diversity plot: {e}")

    logger.info(f"Generated {len(plots)} plots in {output_dir}")
    return plots
