"""CLI command for inspecting the shredding schema of a Parquet column."""

import json
import sys

import click

from variant_shredding.api import read_shredding_schema
from variant_shredding.core.exceptions import VariantShreddingError
from variant_shredding.core.logging import configure_logging
from variant_shredding.core.schema import VariantSchema
from variant_shredding.models.shredding_config import load_config


@click.command(name="inspect")
@click.argument("parquet_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("column")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML file with shredding options",
)
@click.option("--json", "as_json", is_flag=True, help="Print the schema as JSON")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Log level",
)
def inspect_schema(
    parquet_path: str, column: str, config_path: str | None, as_json: bool, log_level: str
):
    """Show how a variant column is shredded.

    Examples:

        variant-shredding inspect events.parquet payload
        variant-shredding inspect events.parquet payload --json
    """
    configure_logging(level=log_level)

    try:
        config = load_config(config_path) if config_path else None
        schema = read_shredding_schema(parquet_path, column, config=config)
    except VariantShreddingError as e:
        click.echo(f"✗ Failed to inspect column '{column}': {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(schema.to_dict(), indent=2))
        return

    for line in render_tree(schema, column):
        click.echo(line)


def render_tree(schema: VariantSchema, label: str, depth: int = 0) -> list[str]:
    """Render a schema tree as indented lines, one per node."""
    lines = [f"{'  ' * depth}{label} [{_slots(schema)}] {_kind(schema)}"]
    if schema.object_fields is not None:
        for field in schema.object_fields:
            lines.extend(render_tree(field.schema, f".{field.field_name}", depth + 1))
    if schema.array_child is not None:
        lines.extend(render_tree(schema.array_child, "[]", depth + 1))
    return lines


def _slots(schema: VariantSchema) -> str:
    slots = [
        ("metadata", schema.top_level_metadata_index),
        ("value", schema.value_slot_index),
        ("typed_value", schema.typed_slot_index),
    ]
    present = sorted((index, name) for name, index in slots if index is not None)
    return ", ".join(f"{name}={index}" for index, name in present)


def _kind(schema: VariantSchema) -> str:
    if schema.is_unshredded():
        return "unshredded"
    if schema.scalar_type is not None:
        return str(schema.scalar_type)
    if schema.object_fields is not None:
        return f"object({len(schema.object_fields)})"
    if schema.array_child is not None:
        return "array"
    return "variant"
