"""
Rendering utilities for releasegit.

Provides table output for release plans using rich.
"""

from typing import Iterable

from rich.table import Table
from rich.console import Console
from rich import box

from .domain.release import Release

console = Console()


def render_releases_table(releases: Iterable[Release], tag_prefix: str = "v", out: Console = None):
    """Render the ordered release plan as a table."""
    out = out or console
    releases = list(releases)

    if not releases:
        out.print("[yellow]No releases found.[/yellow]")
        return

    table = Table(
        title="Releases (oldest first)",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Version", style="cyan", no_wrap=True)
    table.add_column("Published", style="blue")
    table.add_column("Archive", style="white")
    table.add_column("Tag", style="white")
    table.add_column("Commit", style="green")

    for release in releases:
        if release.resolved_commit:
            commit = release.resolved_commit[:12]
        else:
            commit = "[yellow]pending[/yellow]"
        table.add_row(
            release.version,
            release.published_at.strftime("%Y-%m-%d"),
            release.filename,
            release.tag_name(tag_prefix),
            commit,
        )

    out.print(table)

    pending = sum(1 for release in releases if not release.is_resolved)
    out.print(f"\n[bold]Summary:[/bold] {len(releases)} releases, {pending} to build")
