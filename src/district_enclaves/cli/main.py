"""Main CLI entry point for district-enclaves"""

import click
import json
import logging
from pathlib import Path
from datetime import datetime
from typing import Optional, Tuple

from ..data import FileBoundarySource, GeographicDataGenerator, combine_frames
from ..models.geography import VARIANTS
from ..pipeline import DistrictPipeline
from ..publishing import write_redirects
from ..reporting import REPORT_FORMATS
from ..algorithms import MatchPolicy
from ..utils.config import PipelineConfig, load_config, regions_from_codes


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger('district-enclaves-cli')


@click.group()
@click.option('--config', '-c', type=click.Path(exists=True), help='Configuration file path (YAML/JSON)')
@click.option('--debug/--no-debug', default=False, help='Enable debug mode')
@click.pass_context
def cli(ctx, config: Optional[str], debug: bool):
    """School district enclave analysis"""
    ctx.ensure_object(dict)

    ctx.obj['config'] = load_config(config) if config else {}

    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
        ctx.obj['debug'] = True


@cli.command()
@click.option('--region', '-r', 'regions', multiple=True, help='Region (state) code; repeatable')
@click.option('--variant', '-v', 'variants', multiple=True, type=click.Choice(list(VARIANTS)),
              help='Dataset variant; repeatable')
@click.option('--year', '-y', type=int, help='TIGER/Line vintage year')
@click.option('--source-file', '-s', type=click.Path(exists=True),
              help='Read districts from a local file instead of downloading')
@click.option('--output-dir', '-o', type=click.Path(), help='Output directory')
@click.option('--format', '-f', 'report_format', type=click.Choice(list(REPORT_FORMATS)), help='Report format')
@click.option('--top-n', '-n', type=int, help='Number of districts in the table')
@click.option('--policy', type=click.Choice([p.value for p in MatchPolicy]),
              help='Which enclosing district to keep for multiply-contained parts')
@click.option('--cache-dir', type=click.Path(), help='Snapshot cache directory')
@click.option('--no-plots', is_flag=True, default=False, help='Skip thumbnails and choropleth')
@click.pass_context
def run(ctx, regions: Tuple[str, ...], variants: Tuple[str, ...], year: Optional[int],
        source_file: Optional[str], output_dir: Optional[str], report_format: Optional[str],
        top_n: Optional[int], policy: Optional[str], cache_dir: Optional[str], no_plots: bool):
    """Run the full analysis and write the report"""
    settings = dict(ctx.obj.get('config', {}))

    overrides = {
        'regions': list(regions) or None,
        'variants': list(variants) or None,
        'year': year,
        'output_dir': output_dir,
        'report_format': report_format,
        'top_n': top_n,
        'match_policy': policy,
        'cache_dir': cache_dir,
    }
    settings.update({k: v for k, v in overrides.items() if v is not None})

    config = PipelineConfig.from_dict(settings)
    source = FileBoundarySource(source_file) if source_file else None

    logger.info(f"Analyzing {len(config.regions)} regions, variants {config.variants}")

    pipeline = DistrictPipeline(config, source=source)
    result = pipeline.execute({
        'pipeline_id': f"run_{datetime.now():%Y%m%d_%H%M%S}",
        'plots': not no_plots
    })

    for step_name, step_result in result.step_results.items():
        click.echo(f"{step_name:20s} {step_result.status.value:10s} {step_result.duration_seconds:.1f}s")

    if result.status == "failed":
        for error in result.error_summary:
            click.echo(f"Error: {error}", err=True)
        ctx.exit(1)

    report = result.final_output['report']
    click.echo(f"\nDistricts analyzed: {len(report.full_table)}")
    click.echo(f"Districts missing metrics: {report.unavailable_count}")
    for path in result.final_output['files_generated']:
        if not path.endswith('.png'):
            click.echo(f"Report: {path}")


@cli.command()
@click.option('--output', '-o', type=click.Path(), required=True, help='Output GeoJSON file')
@click.option('--region', '-r', 'regions', multiple=True, default=('VT', 'NH'), help='Region codes')
@click.option('--elementary', '-e', 'elementary', multiple=True, default=('VT',),
              help='Regions that also get elementary districts')
@click.option('--grid', default=4, type=int, help='Districts per grid side')
@click.option('--enclave-rate', default=0.3, type=float, help='Share of districts hosting an enclave')
@click.option('--seed', default=42, type=int, help='Random seed')
@click.pass_context
def generate(ctx, output: str, regions: Tuple[str, ...], elementary: Tuple[str, ...],
             grid: int, enclave_rate: float, seed: int):
    """Generate synthetic district boundaries"""
    logger.info("Generating synthetic districts")

    codes = [r.code for r in regions_from_codes(list(regions))]
    generator = GeographicDataGenerator(seed=seed)
    frames = generator.generate_complete_geographic_data(
        codes,
        elementary_codes=[r.code for r in regions_from_codes(list(elementary))],
        n_cols=grid,
        n_rows=grid,
        enclave_rate=enclave_rate
    )
    districts = combine_frames(frames)

    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    districts.to_file(output_path, driver='GeoJSON')

    metadata = {
        'generated_at': datetime.now().isoformat(),
        'num_districts': len(districts),
        'regions': codes,
        'seed': seed
    }
    with open(output_path.with_suffix('.meta.json'), 'w') as f:
        json.dump(metadata, f, indent=2)

    logger.info(f"Generated {len(districts)} districts")
    logger.info(f"Data saved to {output_path}")


@cli.command()
@click.option('--posts-dir', '-p', type=click.Path(exists=True, file_okay=False), required=True,
              help='Directory holding one folder per post')
@click.option('--output', '-o', type=click.Path(), default='_redirects', help='Redirect file to write')
@click.option('--prefix', default='/posts', help='URL prefix of post pages')
def redirects(posts_dir: str, output: str, prefix: str):
    """Write redirects from dated post folders to canonical slugs"""
    written = write_redirects(posts_dir, output, prefix=prefix)
    click.echo(f"Wrote {len(written)} redirects to {output}")


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == '__main__':
    main()
