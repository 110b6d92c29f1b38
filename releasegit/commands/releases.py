"""
Handles the 'releases' command: show the release plan.

Lists releases oldest first with the commit each one already resolves to.
Nothing is downloaded or written.
"""

import json
import sys

import click

from ..api import create_catalog, create_fetcher, create_updater, open_store
from ..config import configure_logging, load_config
from ..errors import ReleaseGitError
from ..exit_codes import get_exit_code_for_exception
from ..infra.memory_store import MemoryObjectStore
from ..render import render_releases_table


@click.command("releases")
@click.option("--catalog-url", default=None, help="Download page listing the releases")
@click.option("--repo", "-r", "repo", default=None, help="Repository whose tags resolve releases")
@click.option("--order", type=click.Choice(["published", "version"]), default=None, help="How releases are ordered")
@click.option("--json", "as_json", is_flag=True, help="Output JSONL instead of a table")
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
def releases_handler(catalog_url, repo, order, as_json, verbose):
    """List releases oldest first and whether each is already committed.

    \b
    Examples:
        releasegit releases
        releasegit releases --repo ~/src/datomic-free --json
    """
    config = load_config()
    configure_logging(config, verbose)

    try:
        store = open_store(repo) if repo else MemoryObjectStore()
        with create_fetcher(config, max_workers=1) as fetcher:
            updater = create_updater(store, fetcher, config, order=order)
            releases = updater.plan(create_catalog(config, catalog_url))
    except ReleaseGitError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(get_exit_code_for_exception(e))

    if as_json or not sys.stdout.isatty():
        for release in releases:
            click.echo(json.dumps(release.to_dict(), ensure_ascii=False))
    else:
        render_releases_table(releases, tag_prefix=updater.tag_prefix)
