"""Public Python API for variant_shredding package.

This module provides the main entry points for obtaining shredding schemas
from Arrow types and Parquet files.
"""

import logging
from typing import Optional

import pyarrow as pa
import pyarrow.parquet as pq

from variant_shredding.core.derivation import build_variant_schema
from variant_shredding.core.exceptions import InvalidSchemaError, VariantShreddingError
from variant_shredding.core.schema import VariantSchema
from variant_shredding.models.shredding_config import ShreddingConfig

logger = logging.getLogger(__name__)


def schema_from_arrow(
    struct_type: pa.DataType, config: Optional[ShreddingConfig] = None
) -> VariantSchema:
    """Derive the shredding schema of a variant column from its Arrow type.

    Args:
        struct_type: Arrow struct type of the variant column
        config: Derivation limits

    Returns:
        Root VariantSchema

    Raises:
        InvalidSchemaError: If the struct is not a valid shredding schema

    Example:
        >>> struct = pa.struct([("metadata", pa.binary()), ("value", pa.binary())])
        >>> schema_from_arrow(struct).is_unshredded()
        True
    """
    return build_variant_schema(struct_type, top_level=True, config=config)


def read_shredding_schema(
    path: str, column: str, config: Optional[ShreddingConfig] = None
) -> VariantSchema:
    """Read the shredding schema of a variant column stored in a Parquet file.

    Only the file footer is read; no row data is loaded.

    Args:
        path: Path to the Parquet file
        column: Name of the top-level variant column
        config: Derivation limits

    Returns:
        Root VariantSchema of the column

    Raises:
        VariantShreddingError: If the file cannot be read
        InvalidSchemaError: If the column is missing or not a valid shredding schema
    """
    try:
        arrow_schema = pq.read_schema(path)
    except (OSError, pa.ArrowException) as e:
        raise VariantShreddingError(
            f"Failed to read Parquet schema: {e}", context={"path": str(path)}
        ) from e

    logger.debug(
        "Read Parquet schema",
        extra={"context": {"column": column, "path": str(path)}},
    )

    index = arrow_schema.get_field_index(column)
    if index < 0:
        raise InvalidSchemaError(
            f"Column not found: {column}",
            context={"path": str(path), "columns": ",".join(arrow_schema.names)},
        )
    return schema_from_arrow(arrow_schema.field(index).type, config=config)
