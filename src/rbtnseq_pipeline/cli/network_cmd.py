"""Network command: STRING interactions among a comparison's ranked genes."""

import logging
import sys
from pathlib import Path

import click

from rbtnseq_pipeline.analysis import run_fitness_analysis
from rbtnseq_pipeline.config.loader import load_config_with_overrides
from rbtnseq_pipeline.interactions import fetch_string_network_from_config
from rbtnseq_pipeline.output import write_table
from rbtnseq_pipeline.persistence import ProvenanceTracker

logger = logging.getLogger(__name__)


@click.command('network')
@click.argument('comparison')
@click.option(
    '--direction',
    type=click.Choice(['depletion', 'enrichment']),
    default='depletion',
    help='Which ranked table to query'
)
@click.option(
    '--top-n',
    type=int,
    default=None,
    help='Number of ranked genes to query (overrides config)'
)
@click.option(
    '--required-score',
    type=int,
    default=None,
    help='Minimum STRING combined score, 0-1000 (overrides config)'
)
@click.option(
    '--output-dir',
    type=click.Path(path_type=Path),
    default=None,
    help='Output directory (default: <output_dir>/network from config)'
)
@click.pass_context
def network(ctx, comparison, direction, top_n, required_score, output_dir):
    """Query STRING for interactions among the top ranked genes of COMPARISON.

    COMPARISON is the name of a comparison in the config file. A failed
    STRING request fails only this command; other outputs are untouched.

    Examples:

        rbtnseq-pipeline network fructose_formate_F3

        rbtnseq-pipeline network fructose_formate_F3 --direction enrichment --top-n 50
    """
    config_path = ctx.obj['config_path']

    click.echo(click.style("=== STRING Interaction Network ===", bold=True))
    click.echo()

    try:
        config = load_config_with_overrides(config_path, {
            "thresholds.top_n": top_n,
            "string_db.required_score": required_score,
        })
        selected = config.get_comparison(comparison)
        provenance = ProvenanceTracker.from_config(config)
    except Exception as e:
        click.echo(click.style(f"Error loading config: {e}", fg='red'), err=True)
        sys.exit(1)

    out_dir = output_dir or Path(config.output_dir) / "network"

    click.echo(click.style("Step 1: Ranking genes...", bold=True))
    try:
        config.comparisons = [selected]
        result = run_fitness_analysis(config).comparisons[0]
    except Exception as e:
        click.echo(click.style(f"  Error ranking genes: {e}", fg='red'), err=True)
        logger.exception("Ranking failed")
        sys.exit(1)

    ranked = result.depleted if direction == 'depletion' else result.enriched
    identifiers = ranked["locus_tag"].to_list()
    click.echo(click.style(f"  {len(identifiers)} {direction} genes selected", fg='green'))
    click.echo()

    click.echo(click.style("Step 2: Querying STRING...", bold=True))
    click.echo(f"  Species: {config.string_db.species}")
    click.echo(f"  Required score: {config.string_db.required_score}")
    try:
        edges = fetch_string_network_from_config(identifiers, config.string_db)
    except Exception as e:
        click.echo(click.style(f"  Error querying STRING: {e}", fg='red'), err=True)
        logger.exception("STRING query failed")
        sys.exit(1)

    click.echo(click.style(f"  Retrieved {edges.height} interactions", fg='green'))
    provenance.record_step('fetch_string_network', {
        'comparison': comparison,
        'direction': direction,
        'identifiers': len(identifiers),
        'edges': edges.height,
    })
    click.echo()

    filename_base = f"{comparison}_{direction}_string"
    write_table(edges, out_dir, filename_base, metadata={
        'comparison': comparison,
        'direction': direction,
        'species': config.string_db.species,
        'required_score': config.string_db.required_score,
    })
    click.echo(edges)

    sidecar = provenance.save_sidecar(out_dir / filename_base)
    click.echo(f"Output directory: {out_dir}")
    click.echo(f"Provenance: {sidecar}")
    click.echo(click.style("Network query complete", fg='green'))
