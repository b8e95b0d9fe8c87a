"""
invex CLI commands

Command-line interface for extracting invoices from local files.
"""

import asyncio
import json
import logging
import mimetypes
from pathlib import Path

import click

from invex.config.invex_config import InvexConfig
from invex.processors.invoice.pipeline import InvoicePipeline

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _configure(config_path, log_level) -> InvexConfig:
    """Load configuration and set up logging from it"""
    config = InvexConfig.from_file(config_path) if config_path else InvexConfig()

    logging_config = config.get_logging_config()
    level = log_level or logging_config.get('level', 'INFO')
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=logging_config.get('format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    )
    return config


def _read_document(path, mime_type):
    file_path = Path(path)
    declared = mime_type or mimetypes.guess_type(file_path.name)[0]
    return file_path.read_bytes(), declared


@click.group()
def cli():
    """invex command-line interface"""
    pass


@cli.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--mime-type', help='Declared MIME type (guessed from the file name if omitted)')
@click.option('--prior', type=click.Path(exists=True, dir_okay=False),
              help='JSON file with a partial result from an earlier attempt')
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Path to configuration file')
@click.option('--log-level', type=click.Choice(LOG_LEVELS), help='Logging level')
def extract(path, mime_type, prior, config_path, log_level):
    """Extract an invoice and print the result as JSON"""
    config = _configure(config_path, log_level)
    content, declared = _read_document(path, mime_type)

    prior_data = None
    if prior:
        with open(prior, 'r') as f:
            prior_data = json.load(f)

    pipeline = InvoicePipeline({'processing_config': config.get_processing_config()})
    try:
        outcome = asyncio.run(pipeline.extract(content, declared, prior=prior_data))
    except ValueError as e:
        click.echo(f'Error: {str(e)}', err=True)
        raise click.Abort()

    click.echo(json.dumps(outcome.to_dict(), indent=2))


@cli.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--mime-type', help='Declared MIME type (guessed from the file name if omitted)')
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Path to configuration file')
@click.option('--log-level', type=click.Choice(LOG_LEVELS), help='Logging level')
@click.pass_context
def check(ctx, path, mime_type, config_path, log_level):
    """Screen a document before full processing

    Exits with status 1 when the document looks like a statement or receipt.
    """
    config = _configure(config_path, log_level)
    content, declared = _read_document(path, mime_type)

    pipeline = InvoicePipeline({'processing_config': config.get_processing_config()})
    try:
        plausible = asyncio.run(pipeline.preliminary_check(content, declared))
    except ValueError as e:
        click.echo(f'Error: {str(e)}', err=True)
        raise click.Abort()

    if plausible:
        click.echo('Document looks like an invoice')
    else:
        click.echo('Document does not look like an invoice')
        ctx.exit(1)


if __name__ == '__main__':
    cli()
