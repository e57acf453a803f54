"""Barcodes command: pool mapping and barcode diversity diagnostics."""

import logging
import sys
from pathlib import Path

import click

from rbtnseq_pipeline.analysis import run_barcode_analysis
from rbtnseq_pipeline.config.loader import load_config
from rbtnseq_pipeline.output import plot_barcode_diversity, write_table
from rbtnseq_pipeline.persistence import ProvenanceTracker

logger = logging.getLogger(__name__)


@click.command('barcodes')
@click.option(
    '--output-dir',
    type=click.Path(path_type=Path),
    default=None,
    help='Output directory (default: <output_dir>/barcodes from config)'
)
@click.option(
    '--skip-viz',
    is_flag=True,
    help='Skip plot generation'
)
@click.pass_context
def barcodes(ctx, output_dir, skip_viz):
    """Map observed barcodes to the pool and report per-sample diversity.

    Uses *.codes files for diversity diagnostics (unmapped barcodes kept in
    the denominators), result.poolcount for per-gene read totals and
    result.colsum for per-sample mapping rates, whichever are configured.

    Examples:

        rbtnseq-pipeline barcodes

        rbtnseq-pipeline --config config/run2.yaml barcodes --skip-viz
    """
    config_path = ctx.obj['config_path']

    click.echo(click.style("=== Barcode Mapping Diagnostics ===", bold=True))
    click.echo()

    try:
        config = load_config(config_path)
        provenance = ProvenanceTracker.from_config(config)
        click.echo(click.style(f"  Config loaded: {config_path}", fg='green'))
        click.echo()
    except Exception as e:
        click.echo(click.style(f"Error loading config: {e}", fg='red'), err=True)
        sys.exit(1)

    out_dir = output_dir or Path(config.output_dir) / "barcodes"

    click.echo(click.style("Step 1: Mapping barcodes to pool...", bold=True))
    try:
        result = run_barcode_analysis(config)
    except Exception as e:
        click.echo(click.style(f"  Error mapping barcodes: {e}", fg='red'), err=True)
        logger.exception("Barcode analysis failed")
        sys.exit(1)

    report = result.mapping_report
    if report is not None:
        click.echo(click.style(
            f"  {report.mapped_barcodes}/{report.total_barcodes} barcodes mapped "
            f"({report.fraction_mapped_barcodes:.1%})",
            fg='green'
        ))
        click.echo(
            f"  {report.mapped_reads}/{report.total_reads} reads mapped "
            f"({report.fraction_mapped_reads:.1%})"
        )
        if report.top_unmapped:
            click.echo(f"  Most abundant unmapped: {', '.join(report.top_unmapped[:5])}")
        provenance.record_step('map_codes', {
            'total_barcodes': report.total_barcodes,
            'mapped_barcodes': report.mapped_barcodes,
            'genic_barcodes': report.genic_barcodes,
            'total_reads': report.total_reads,
            'mapped_reads': report.mapped_reads,
        })
    else:
        click.echo(click.style("  No codes_dir configured; skipping diversity", fg='yellow'))
    click.echo()

    click.echo(click.style("Step 2: Writing tables...", bold=True))
    try:
        if result.diversity is not None:
            write_table(result.diversity, out_dir, "barcode_diversity")
            click.echo(result.diversity)
        if result.gene_counts is not None:
            write_table(result.gene_counts, out_dir, "gene_read_counts")
            provenance.record_step('counts_by_gene', {'rows': result.gene_counts.height})
        if result.colsum is not None:
            write_table(result.colsum, out_dir, "colsum_summary")
            click.echo(result.colsum)
    except Exception as e:
        click.echo(click.style(f"  Error writing tables: {e}", fg='red'), err=True)
        logger.exception("Failed to write barcode tables")
        sys.exit(1)
    click.echo()

    if not skip_viz and result.diversity is not None:
        click.echo(click.style("Step 3: Generating plots...", bold=True))
        try:
            plot_barcode_diversity(result.diversity, out_dir / "plots" / "barcode_diversity.png")
            click.echo(click.style("  Saved barcode diversity plot", fg='green'))
        except Exception as e:
            logger.warning(f"Failed to create barcode diversity plot: {e}")
        click.echo()

    sidecar = provenance.save_sidecar(out_dir)
    click.echo(f"Output directory: {out_dir}")
    click.echo(f"Provenance: {sidecar}")
    click.echo(click.style("Barcode diagnostics complete", fg='green'))
