"""Main CLI entry point for variant_shredding."""

import click

from variant_shredding import __version__
from variant_shredding.cli.commands.inspect import inspect_schema


@click.group()
@click.version_option(version=__version__)
def main():
    """Variant Shredding - inspect shredding schemas of variant columns."""
    pass


# Register commands
main.add_command(inspect_schema)


if __name__ == "__main__":
    main()
