"""Main CLI entry point for rbtnseq-pipeline.

Provides command group with global options and subcommands for each analysis step.
"""

import logging
from pathlib import Path

import click

from rbtnseq_pipeline import __version__
from rbtnseq_pipeline.config.loader import load_config
from rbtnseq_pipeline.cli.barcodes_cmd import barcodes
from rbtnseq_pipeline.cli.fitness_cmd import fitness
from rbtnseq_pipeline.cli.network_cmd import network


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@click.group()
@click.option(
    '--config',
    type=click.Path(exists=True, path_type=Path),
    default='config/default.yaml',
    help='Path to analysis configuration YAML file'
)
@click.option(
    '--verbose',
    is_flag=True,
    help='Enable verbose logging (DEBUG level)'
)
@click.pass_context
def cli(ctx, config, verbose):
    """rbtnseq-pipeline: RB-TnSeq fitness analysis for density-sorted C. necator screens.

    Maps barcodes to the transposon pool, summarizes gene fitness per
    condition and fraction, calls essential genes and ranks genes depleted
    or enriched across two conditions.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Verbose logging enabled")


@cli.command()
@click.pass_context
def info(ctx):
    """Display package information and configuration summary."""
    config_path = ctx.obj['config_path']

    click.echo(f"rbtnseq-pipeline v{__version__}")
    click.echo(f"Config: {config_path}")
    click.echo()

    try:
        config = load_config(config_path)

        config_hash = config.config_hash()
        click.echo(f"Config Hash: {config_hash[:16]}...")
        click.echo()

        click.echo(click.style("Inputs:", bold=True))
        click.echo(f"  Data Directory: {config.data_dir}")
        for name, path in config.inputs.model_dump().items():
            click.echo(f"  {name}: {path if path is not None else '-'}")
        click.echo()

        thresholds = config.thresholds
        click.echo(click.style("Thresholds:", bold=True))
        click.echo(f"  Essential cutoff: {thresholds.essential_cutoff}")
        click.echo(f"  Essential timepoint: {thresholds.essential_timepoint or 'all'}")
        click.echo(f"  Top N: {thresholds.top_n}")
        click.echo(f"  Exclude essential: {thresholds.exclude_essential}")
        click.echo()

        click.echo(click.style("Comparisons:", bold=True))
        for comparison in config.comparisons:
            click.echo(
                f"  {comparison.name}: {comparison.condition_a} + "
                f"{comparison.condition_b} @ {comparison.fraction}"
            )
        click.echo()

        click.echo(click.style("STRING:", bold=True))
        click.echo(f"  Species: {config.string_db.species}")
        click.echo(f"  Required score: {config.string_db.required_score}")

    except Exception as e:
        click.echo(click.style(f"Error loading config: {e}", fg='red'), err=True)
        ctx.exit(1)


# Register commands
cli.add_command(barcodes)
cli.add_command(fitness)
cli.add_command(network)


if __name__ == '__main__':
    cli()
