"""Fitness command: summarize gene fitness, call essential genes, rank comparisons."""

import logging
import sys
from pathlib import Path

import click
import polars as pl

from rbtnseq_pipeline.analysis import run_fitness_analysis
from rbtnseq_pipeline.config.loader import load_config_with_overrides
from rbtnseq_pipeline.output import generate_all_plots, write_table
from rbtnseq_pipeline.persistence import ProvenanceTracker

logger = logging.getLogger(__name__)

DISPLAY_COLUMNS = ["rank", "locus_tag", "gene_name", "value_a", "value_b", "combined_score"]


@click.command('fitness')
@click.option(
    '--cutoff',
    type=float,
    default=None,
    help='Essentiality cutoff override (e.g. -3.0); genes strictly below are essential'
)
@click.option(
    '--top-n',
    type=int,
    default=None,
    help='Number of genes per ranked table (overrides config)'
)
@click.option(
    '--include-essential',
    is_flag=True,
    help='Keep essential genes in ranked tables'
)
@click.option(
    '--output-dir',
    type=click.Path(path_type=Path),
    default=None,
    help='Output directory (default: <output_dir>/fitness from config)'
)
@click.option(
    '--skip-viz',
    is_flag=True,
    help='Skip plot generation'
)
@click.pass_context
def fitness(ctx, cutoff, top_n, include_essential, output_dir, skip_viz):
    """Summarize gene fitness and rank depleted/enriched genes per comparison.

    Aggregates replicate fitness per gene, condition and fraction (missing
    replicates skipped), annotates genes, flags essential genes from the
    steady-state table and ranks each configured comparison.

    Examples:

        # Default thresholds from config
        rbtnseq-pipeline fitness

        # Stricter essentiality cutoff, top 50 genes
        rbtnseq-pipeline fitness --cutoff -3.0 --top-n 50
    """
    config_path = ctx.obj['config_path']

    click.echo(click.style("=== Gene Fitness Analysis ===", bold=True))
    click.echo()

    try:
        click.echo("Loading configuration...")
        overrides = {
            "thresholds.essential_cutoff": cutoff,
            "thresholds.top_n": top_n,
        }
        if include_essential:
            overrides["thresholds.exclude_essential"] = False
        config = load_config_with_overrides(config_path, overrides)
        provenance = ProvenanceTracker.from_config(config)
        click.echo(click.style(f"  Config loaded: {config_path}", fg='green'))
        click.echo(f"  Essential cutoff: {config.thresholds.essential_cutoff}")
        click.echo(f"  Top N: {config.thresholds.top_n}")
        click.echo()
    except Exception as e:
        click.echo(click.style(f"Error loading config: {e}", fg='red'), err=True)
        sys.exit(1)

    out_dir = output_dir or Path(config.output_dir) / "fitness"

    click.echo(click.style("Step 1: Aggregating and ranking...", bold=True))
    try:
        result = run_fitness_analysis(config)
    except Exception as e:
        click.echo(click.style(f"  Error during analysis: {e}", fg='red'), err=True)
        logger.exception("Fitness analysis failed")
        sys.exit(1)

    summary = result.summary
    click.echo(click.style(
        f"  Summarized {summary.select(pl.col('locus_tag').n_unique()).item()} genes "
        f"across {summary.height} gene/condition/fraction groups",
        fg='green'
    ))
    provenance.record_step('summarize_gene_fitness', {
        'rows': summary.height,
    })

    if result.essentiality is not None:
        essential_count = result.essentiality.filter(pl.col('is_essential')).height
        click.echo(click.style(
            f"  Essential gene/substrate calls: {essential_count}",
            fg='green'
        ))
        provenance.record_step('classify_essentiality', {
            'cutoff': config.thresholds.essential_cutoff,
            'essential_calls': essential_count,
        })
    else:
        click.echo(click.style("  No essentiality table configured", fg='yellow'))
    click.echo()

    click.echo(click.style("Step 2: Writing tables...", bold=True))
    try:
        write_table(
            summary,
            out_dir,
            "gene_fitness_summary",
            sort_by=[c for c in ("locus_tag", "condition", "fraction") if c in summary.columns],
        )
        if result.essentiality is not None:
            write_table(result.essentiality, out_dir, "essentiality")

        for comparison_result in result.comparisons:
            name = comparison_result.comparison.name
            metadata = comparison_result.comparison.model_dump()
            write_table(comparison_result.depleted, out_dir, f"{name}_depleted", metadata=metadata)
            write_table(comparison_result.enriched, out_dir, f"{name}_enriched", metadata=metadata)

            provenance.record_step(f'rank_{name}', {
                'combined_genes': comparison_result.combined.height,
                'depleted': comparison_result.depleted.height,
                'enriched': comparison_result.enriched.height,
                'excluded_essential': comparison_result.excluded_essential,
            })

            click.echo()
            click.echo(click.style(f"{name}: top depleted", bold=True))
            click.echo(comparison_result.depleted.select(
                [c for c in DISPLAY_COLUMNS if c in comparison_result.depleted.columns]
            ))
            click.echo(click.style(f"{name}: top enriched", bold=True))
            click.echo(comparison_result.enriched.select(
                [c for c in DISPLAY_COLUMNS if c in comparison_result.enriched.columns]
            ))
    except Exception as e:
        click.echo(click.style(f"  Error writing tables: {e}", fg='red'), err=True)
        logger.exception("Failed to write fitness tables")
        sys.exit(1)
    click.echo()

    if not skip_viz:
        click.echo(click.style("Step 3: Generating plots...", bold=True))
        plots = generate_all_plots(
            summary,
            result.comparisons,
            out_dir / "plots",
            sample_size=config.thresholds.plot_sample_size,
            seed=config.thresholds.random_seed,
        )
        click.echo(click.style(f"  Generated {len(plots)} plots", fg='green'))
        provenance.record_step('generate_plots', {'plots': sorted(plots)})
        click.echo()

    sidecar = provenance.save_sidecar(out_dir)
    click.echo(f"Output directory: {out_dir}")
    click.echo(f"Provenance: {sidecar}")
    click.echo(click.style("Fitness analysis complete", fg='green'))
