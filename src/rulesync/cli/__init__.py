"""
rulesync CLI - Render and reconcile vmalert rules ConfigMaps.

Commands:
    rulesync render     Render VMRule manifests into rules ConfigMaps offline
    rulesync reconcile  Reconcile the rules ConfigMaps of a VMAlert in a cluster
"""

import click

from rulesync import __version__

from .reconcile import reconcile
from .render import render


@click.group()
@click.version_option(version=__version__, prog_name="rulesync")
def main():
    """rulesync - VMRule to vmalert ConfigMap reconciliation."""
    pass


main.add_command(render)
main.add_command(reconcile)


if __name__ == "__main__":
    main()
