"""
chartatlas CLI - Command-line interface for packing mesh charts into atlases
"""

import click
import json
import logging
import sys
from pathlib import Path
from pydantic import ValidationError
from chartatlas import AtlasPacker, __version__
from chartatlas.mesh.loader import build_mesh, build_texture_object, load_document
from chartatlas.packing import extract_outlines
from chartatlas.packing.exceptions import PackingAttemptsExceeded, PackingError
from chartatlas.packing.params import AlgoParameters, PackingParameters


def _setup_logging(verbose):
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


@click.group()
@click.version_option(version=__version__)
def cli():
    """
    chartatlas - Pack UV charts into texture atlases.

    Examples:
        chartatlas pack mesh.json -o packed.json
        chartatlas outline mesh.json -o outlines.json
    """
    pass


@cli.command()
@click.argument('input_path')
@click.option('-o', '--output', required=True, help='Output file path (.json)')
@click.option('--resolution-scaling', default=1.0, type=float, help='Output texel density relative to the input textures')
@click.option('--gutter', default=4, type=int, help='Gutter width around each chart, in grid units')
@click.option('--no-shift', is_flag=True, help='Skip the integer-shift alignment of anchored charts')
@click.option('--verbose', '-v', is_flag=True, help='Show packing progress')
def pack(input_path, output, resolution_scaling, gutter, no_shift, verbose):
    """
    Pack the charts of a mesh document into atlases.

    Examples:
        chartatlas pack mesh.json -o packed.json
        chartatlas pack mesh.json -o packed.json --resolution-scaling 2 --gutter 2
    """
    _setup_logging(verbose)
    try:
        params = AlgoParameters(resolution_scaling=resolution_scaling, integer_shift=not no_shift)
        packing_params = PackingParameters(gutter_width=gutter)
        packer = AtlasPacker(params=params, packing_params=packing_params)

        if verbose:
            click.echo(f"Packing: {input_path}")

        result = packer.pack_file(input_path)
        result.save(output)

        if verbose:
            click.echo("\nPacking Statistics:")
            click.echo(f"  Charts resolved: {result.total_packed} of {len(result.charts)}")
            click.echo(f"  Packing scale: {result.packing_scale:.4f}")
            for i, size in enumerate(result.texture_sizes):
                click.echo(f"  Atlas {i}: {size.w}x{size.h}")
            if result.shifts:
                click.echo(f"  Integer-shifted charts: {len(result.shifts)}")

        click.secho(f"✓ Success! Packed mesh saved to {output}", fg='green')

    except FileNotFoundError as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)
    except ValidationError as e:
        click.secho(f"Invalid input: {e}", fg='red', err=True)
        sys.exit(1)
    except PackingAttemptsExceeded as e:
        click.secho(f"Packing failed: {e}", fg='red', err=True)
        click.secho("Try a smaller --resolution-scaling or --gutter.", fg='yellow', err=True)
        sys.exit(1)
    except PackingError as e:
        click.secho(f"Packing error: {e}", fg='red', err=True)
        sys.exit(1)
    except ValueError as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)
    except Exception as e:
        click.secho(f"Unexpected error: {e}", fg='red', err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


@cli.command()
@click.argument('input_path')
@click.option('-o', '--output', default=None, help='Output file path (.json); prints to stdout when omitted')
@click.option('--verbose', '-v', is_flag=True, help='Show extraction details')
def outline(input_path, output, verbose):
    """
    Extract chart outlines in texel units.

    Examples:
        chartatlas outline mesh.json
        chartatlas outline mesh.json -o outlines.json
    """
    _setup_logging(verbose)
    try:
        doc = load_document(input_path)
        texture_object = build_texture_object(doc, Path(input_path).parent)
        _, charts = build_mesh(doc, texture_object)
        outlines = extract_outlines(charts)

        data = {str(chart.id): o.tolist() for chart, o in zip(charts, outlines)}
        text = json.dumps(data, indent=2)
        if output:
            Path(output).write_text(text)
            click.secho(f"✓ Success! {len(outlines)} outlines saved to {output}", fg='green')
        else:
            click.echo(text)

    except FileNotFoundError as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)
    except ValidationError as e:
        click.secho(f"Invalid input: {e}", fg='red', err=True)
        sys.exit(1)
    except ValueError as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)


def main():
    """Entry point for the CLI"""
    cli()


if __name__ == '__main__':
    main()
