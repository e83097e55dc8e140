from pathlib import Path

import click
from pydantic import ValidationError

from .config import VALID_ENVIRONMENTS, get_logger
from .sync.config import IndexerConfig, load_site_config
from .sync.error_tracker import ConfigurationError
from .sync.document_builder import DocumentBuilder
from .sync.orchestrator import run_sync
from .sync.source import SiteDirectorySource

logger = get_logger(__name__)

DEFAULT_CONFIG_NAME = '_config.yml'


def read_site_config(site_dir, config_path):
    """Explicit --config must exist; a missing default _config.yml means an empty config."""
    if config_path:
        return load_site_config(config_path)
    default_path = Path(site_dir) / DEFAULT_CONFIG_NAME
    if not default_path.exists():
        logger.info(f"No {DEFAULT_CONFIG_NAME} in {site_dir}, using environment settings only")
        return {}
    return load_site_config(default_path)


site_dir_argument = click.argument('site_dir', type=click.Path(exists=True, file_okay=False))
config_option = click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False),
                             help='Site config file (default: SITE_DIR/_config.yml)')


@click.group()
def cli():
    """Keep a Meilisearch index in step with a site's collections."""
    pass

@cli.command(name='sync')
@site_dir_argument
@config_option
@click.option('--environment', type=click.Choice(VALID_ENVIRONMENTS), default=None, help='Build environment (default: $MEILISYNC_ENV or development)')
@click.option('--changed', 'changed_paths', multiple=True, help='Path changed since the last build, relative to SITE_DIR; repeatable')
def sync(site_dir, config_path, environment, changed_paths):
    """Sync the site's collections to the index."""
    site_config = read_site_config(site_dir, config_path)
    source = SiteDirectorySource(site_dir, changed_paths=list(changed_paths) if changed_paths else None)
    summary = run_sync(site_config, source, environment=environment)

    click.echo(f"Sync {summary.status}: {summary.documents_built} documents built, {summary.documents_deleted} deleted")
    if summary.upsert:
        click.echo(f"Upsert batches: {summary.upsert.chunks_accepted} accepted, {summary.upsert.chunks_failed} failed")
    for error in summary.errors.get('errors', []):
        click.echo(f"{error['severity']}: {error['message']}", err=True)

@cli.command(name='plan')
@site_dir_argument
@config_option
def plan(site_dir, config_path):
    """Show what a sync would delete and upsert, without writing."""
    site_config = read_site_config(site_dir, config_path)
    summary = run_sync(site_config, SiteDirectorySource(site_dir), environment='production', dry_run=True)

    if summary.status != 'planned':
        click.echo(f"No plan: run {summary.status}", err=True)
        for error in summary.errors.get('errors', []):
            click.echo(f"{error['severity']}: {error['message']}", err=True)
        return
    if summary.plan is None:
        click.echo("Remote documents could not be fetched; a sync would wipe and reindex everything.")
        return

    click.echo(f"{len(summary.plan.to_upsert)} documents to upsert")
    click.echo(f"{len(summary.plan.to_delete)} documents to delete")
    for doc_id in sorted(summary.plan.to_delete):
        click.echo(f"  - {doc_id}")

@cli.command(name='ids')
@site_dir_argument
@config_option
def ids(site_dir, config_path):
    """Print the id and url of every document the site would index."""
    site_config = read_site_config(site_dir, config_path)
    try:
        config = IndexerConfig.from_site_config(site_config)
    except (ValidationError, ConfigurationError) as e:
        click.echo(f"Error: invalid meilisearch configuration: {e}", err=True)
        return
    documents = DocumentBuilder().build(config.collections, SiteDirectorySource(site_dir))
    for document in documents:
        click.echo(f"{document.id}\t{document.url}")

def main():
    cli()

if __name__ == '__main__':
    main()
