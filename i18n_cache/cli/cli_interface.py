"""
i18n-cache - Command Line Interface
"""
import sys
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..backends.simple_backend import SimpleBackend
from ..cache.version_manager import VersionManager
from ..core.exceptions import MissingTranslationData, TranslationSystemError
from ..core.factory import create_cached_backend, create_store
from ..utils.config_manager import ConfigManager
from ..utils.logger import setup_logging_from_config


console = Console()


@click.group()
@click.version_option(version=__version__)
@click.option('--config', '-c', 'config_path', type=click.Path(path_type=Path),
              default=Path("i18n_cache.yaml"), show_default=True,
              help='Config file (YAML or JSON)')
@click.option('--verbose', '-v', is_flag=True, help='Log cache activity to the console')
@click.pass_context
def cli(ctx, config_path, verbose):
    """i18n-cache - Versioned read-through cache for translation lookups."""
    try:
        manager = ConfigManager(config_path)
    except TranslationSystemError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if verbose:
        manager.config.logging.console_level = "DEBUG"
        setup_logging_from_config(manager.config.logging)

    ctx.obj = manager.config


def _open_store(config):
    try:
        store = create_store(config.cache)
    except TranslationSystemError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if store is None:
        console.print("[yellow]Caching is disabled in the configuration[/yellow]")
        sys.exit(1)

    return store


@cli.command()
@click.pass_obj
def version(config):
    """Show the current cache epoch."""
    store = _open_store(config)
    try:
        with store:
            epoch = VersionManager(store).current_epoch()
    except TranslationSystemError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    console.print(f"Cache epoch: [bold cyan]{epoch}[/bold cyan] ({store.name} store)")


@cli.command()
@click.pass_obj
def invalidate(config):
    """
    Invalidate every cached translation.

    Other processes pick up the new epoch within the configured fetch
    interval. With the memory store this only affects this process, so use
    the sqlite store to share the cache.
    """
    store = _open_store(config)
    try:
        with store:
            manager = VersionManager(store)
            manager.ensure_initialized()
            epoch = manager.invalidate()
    except TranslationSystemError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    console.print(f"[green]✓ Cache invalidated[/green] (epoch {epoch})")


@cli.command()
@click.pass_obj
def stats(config):
    """Show cache store statistics."""
    store = _open_store(config)
    try:
        with store:
            store_stats = store.get_stats()
    except TranslationSystemError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    table = Table(title="Cache Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    for metric, value in store_stats.items():
        table.add_row(metric, str(value))

    console.print(table)


@cli.command()
@click.argument('locale')
@click.argument('key')
@click.option('--translations', '-t', 'translations_file', required=True,
              type=click.Path(exists=True, path_type=Path),
              help='YAML file of translations keyed by locale')
@click.option('--scope', '-s', default=None, help='Key scope (dotted)')
@click.option('--count', type=int, default=None, help='Plural count')
@click.option('--var', 'variables', multiple=True, metavar='NAME=VALUE',
              help='Interpolation value (repeatable)')
@click.pass_obj
def lookup(config, locale, key, translations_file, scope, count, variables):
    """
    Look up LOCALE KEY through the cache.

    Examples:

        i18n-cache lookup en greeting -t locales.yaml --var name=Ann

        i18n-cache lookup de inbox.messages -t locales.yaml --count 3
    """
    options = {}
    for item in variables:
        name, sep, value = item.partition('=')
        if not sep:
            raise click.BadParameter(f"expected NAME=VALUE, got {item!r}", param_hint='--var')
        options[name] = value
    if scope:
        options['scope'] = scope
    if count is not None:
        options['count'] = count

    backend = None
    try:
        with open(translations_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        backend = create_cached_backend(SimpleBackend(data), config.cache)
        result = backend.translate(locale, key, **options)
    except MissingTranslationData as e:
        console.print(f"[yellow]{e.message}[/yellow]")
        sys.exit(1)
    except (TranslationSystemError, yaml.YAMLError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    finally:
        if backend is not None and backend.store is not None:
            backend.store.close()

    if isinstance(result, (dict, list)):
        console.print(yaml.safe_dump(result, allow_unicode=True, default_flow_style=False).rstrip(), markup=False)
    else:
        console.print(str(result), markup=False)


if __name__ == '__main__':
    cli()
