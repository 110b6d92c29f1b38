"""
Handles the 'update' command: bring a repository's release history up to date.

Prints the commit id that the "latest" reference points at on stdout.
Progress and errors go to stderr through the releasegit logger.
"""

import signal
import sys
import threading
from contextlib import contextmanager

import click

from ..api import create_catalog, create_fetcher, create_updater, open_store
from ..config import configure_logging, load_config, logger
from ..errors import ReleaseGitError
from ..exit_codes import INTERRUPTED, get_exit_code_for_exception
from ..infra.memory_store import MemoryObjectStore
from ..services.cancellation import CancellationToken


@click.command("update")
@click.option("--repo", "-r", "repo", default=None, help="Git repository to update (default from config)")
@click.option("--catalog-url", default=None, help="Download page listing the releases")
@click.option("--cache-dir", default=None, type=click.Path(file_okay=False), help="Archive cache directory")
@click.option("--ref", "latest_ref", default=None, help="Reference to point at the newest commit")
@click.option("--workers", type=click.IntRange(min=1), default=None, help="Archive prefetch workers (1 disables prefetch)")
@click.option("--timeout", type=click.FloatRange(min=0), default=None, help="Stop before the next release after this many seconds")
@click.option("--order", type=click.Choice(["published", "version"]), default=None, help="How releases are ordered")
@click.option("--init", "init_repo", is_flag=True, help="Create the repository if it does not exist")
@click.option("--dry-run", is_flag=True, help="Build in memory and print the resulting commit without writing")
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
def update_handler(repo, catalog_url, cache_dir, latest_ref, workers, timeout, order, init_repo, dry_run, verbose):
    """Build missing release commits and tags, then move the latest ref.

    Releases whose tag already exists are skipped, so the command can be
    re-run after a failure and resumes where it stopped.

    \b
    Examples:
        releasegit update --repo ~/src/datomic-free --init
        releasegit update --dry-run -v
        releasegit update --workers 4 --timeout 1800
    """
    config = load_config()
    configure_logging(config, verbose)

    history = config.get("history", {})
    repo = repo or history.get("repository", ".")
    token = CancellationToken(timeout or history.get("deadline_seconds") or None)

    try:
        if dry_run:
            store = MemoryObjectStore(tags=_existing_tags(repo, init_repo))
        else:
            store = open_store(repo, init=init_repo)

        with create_fetcher(config, cache_dir=cache_dir, max_workers=workers) as fetcher:
            updater = create_updater(
                store,
                fetcher,
                config,
                order=order,
                latest_ref=latest_ref,
                cancel_token=token
            )
            with cancel_on_interrupt(token):
                head = updater.run(create_catalog(config, catalog_url))
    except KeyboardInterrupt:
        click.echo("Interrupted", err=True)
        sys.exit(INTERRUPTED)
    except ReleaseGitError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(get_exit_code_for_exception(e))

    builder = updater.chain_builder
    logger.info(f"{builder.built} built, {builder.skipped} already present")
    if dry_run:
        logger.info("Dry run: nothing was written to the repository")
    click.echo(head)


@contextmanager
def cancel_on_interrupt(token):
    """Turn the first Ctrl+C into a cancellation request.

    The run then stops before the next release with RunCancelled, leaving
    every finished release committed and tagged. A second Ctrl+C
    interrupts immediately.
    """
    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    previous = signal.getsignal(signal.SIGINT)

    def _handle_interrupt(signum, frame):
        if token.is_cancelled():
            raise KeyboardInterrupt
        logger.warning("Interrupt received, stopping after the current release")
        token.cancel()

    signal.signal(signal.SIGINT, _handle_interrupt)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)


def _existing_tags(repo, init_repo):
    """Tags of the repository, or none if it does not exist yet and --init was given."""
    try:
        return open_store(repo).find_tags()
    except ReleaseGitError:
        if init_repo:
            return []
        raise
