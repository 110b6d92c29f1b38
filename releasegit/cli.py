#!/usr/bin/env python3

import click

from releasegit.commands.update import update_handler
from releasegit.commands.releases import releases_handler
from releasegit.commands.config import config_cmd


@click.group()
@click.version_option(package_name="releasegit")
def cli():
    """releasegit - Git history for releases published only as archives.

    Turns each downloadable release archive into a commit, chained oldest
    to newest and tagged v<version>, and keeps a "latest" branch on the
    newest one.
    """
    pass


cli.add_command(update_handler)
cli.add_command(releases_handler)
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
