"""
Main entry point for running as module: python -m i18n_cache
"""
from i18n_cache.cli.cli_interface import cli

if __name__ == '__main__':
    cli()
