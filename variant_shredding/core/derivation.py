"""Derive shredding schemas from Arrow struct types, and render them back.

A shredded variant column is a struct with up to three fields:

- ``metadata``: binary field-name dictionary, top level only
- ``value``: binary fallback encoding of the value
- ``typed_value``: a scalar column, a list of shredded element structs, or a
  struct whose fields are themselves shredded structs

The position of each field in the struct is its slot index.
"""

import logging
from typing import Optional

import pyarrow as pa

from variant_shredding.core.exceptions import InvalidSchemaError
from variant_shredding.core.schema import ObjectField, VariantSchema
from variant_shredding.core.type_mapping import arrow_to_scalar_type, scalar_type_to_arrow
from variant_shredding.models.shredding_config import ShreddingConfig

logger = logging.getLogger(__name__)

METADATA_FIELD_NAME = "metadata"
VALUE_FIELD_NAME = "value"
TYPED_VALUE_FIELD_NAME = "typed_value"
ARRAY_ELEMENT_FIELD_NAME = "element"


def build_variant_schema(
    struct_type: pa.DataType,
    top_level: bool = True,
    config: Optional[ShreddingConfig] = None,
) -> VariantSchema:
    """Build a shredding schema from the Arrow type of a variant column.

    Args:
        struct_type: Arrow struct type of the (possibly shredded) column
        top_level: Whether this struct is the column itself, which must carry
            a metadata field
        config: Derivation limits (defaults to ShreddingConfig())

    Returns:
        VariantSchema describing the struct

    Raises:
        InvalidSchemaError: If the struct is not a valid shredding schema
    """
    config = config or ShreddingConfig()
    schema = _build(struct_type, top_level, config, depth=1, path="$")
    logger.debug(
        "Derived shredding schema",
        extra={
            "context": {
                "unshredded": schema.is_unshredded(),
                "field_count": schema.field_count,
            }
        },
    )
    return schema


def _build(
    struct_type: pa.DataType,
    top_level: bool,
    config: ShreddingConfig,
    depth: int,
    path: str,
) -> VariantSchema:
    if isinstance(struct_type, pa.BaseExtensionType):
        struct_type = struct_type.storage_type
    if not pa.types.is_struct(struct_type):
        raise InvalidSchemaError(
            "Shredding schema must be a struct",
            context={"path": path, "type": str(struct_type)},
        )
    if depth > config.max_schema_depth:
        raise InvalidSchemaError(
            "Shredding schema is nested too deeply",
            context={"path": path, "max_schema_depth": config.max_schema_depth},
        )
    _require_unique_names(struct_type, path)

    typed_slot_index = None
    value_slot_index = None
    metadata_index = None
    scalar_type = None
    object_fields = None
    array_child = None

    for i in range(struct_type.num_fields):
        field = struct_type.field(i)
        if field.name == TYPED_VALUE_FIELD_NAME:
            typed_slot_index = i
            scalar_type, object_fields, array_child = _typed_payload(
                field.type, config, depth, f"{path}.{TYPED_VALUE_FIELD_NAME}"
            )
        elif field.name == VALUE_FIELD_NAME:
            _require_binary(field, path)
            value_slot_index = i
        elif field.name == METADATA_FIELD_NAME and top_level:
            _require_binary(field, path)
            metadata_index = i
        else:
            raise InvalidSchemaError(
                "Unexpected field in shredding schema",
                context={"path": path, "field": field.name},
            )

    if top_level and metadata_index is None:
        raise InvalidSchemaError(
            "Top-level shredding schema requires a metadata field",
            context={"path": path},
        )

    return VariantSchema(
        typed_slot_index,
        value_slot_index,
        metadata_index,
        struct_type.num_fields,
        scalar_type=scalar_type,
        object_fields=object_fields,
        array_child=array_child,
    )


def _typed_payload(
    arrow_type: pa.DataType, config: ShreddingConfig, depth: int, path: str
):
    if pa.types.is_struct(arrow_type):
        _require_unique_names(arrow_type, path)
        if arrow_type.num_fields > config.max_schema_width:
            raise InvalidSchemaError(
                "Shredded object has too many fields",
                context={
                    "path": path,
                    "fields": arrow_type.num_fields,
                    "max_schema_width": config.max_schema_width,
                },
            )
        fields = []
        for i in range(arrow_type.num_fields):
            field = arrow_type.field(i)
            child = _build(field.type, False, config, depth + 1, f"{path}.{field.name}")
            fields.append(ObjectField(field.name, child))
        return None, fields, None

    if pa.types.is_list(arrow_type) or pa.types.is_large_list(arrow_type):
        child = _build(arrow_type.value_type, False, config, depth + 1, f"{path}[]")
        return None, None, child

    return arrow_to_scalar_type(arrow_type), None, None


def _require_unique_names(struct_type: pa.DataType, path: str) -> None:
    names = [struct_type.field(i).name for i in range(struct_type.num_fields)]
    if not names:
        raise InvalidSchemaError("Shredding struct must not be empty", context={"path": path})
    if len(set(names)) != len(names):
        raise InvalidSchemaError(
            "Shredding struct has duplicate field names", context={"path": path}
        )


def _require_binary(field: pa.Field, path: str) -> None:
    if not (pa.types.is_binary(field.type) or pa.types.is_large_binary(field.type)):
        raise InvalidSchemaError(
            f"Field '{field.name}' must be binary",
            context={"path": path, "type": str(field.type)},
        )


def to_arrow_type(
    schema: VariantSchema, config: Optional[ShreddingConfig] = None
) -> pa.StructType:
    """Render a shredding schema as the Arrow struct that stores it.

    Args:
        schema: Shredding schema to render
        config: Physical options (defaults to ShreddingConfig())

    Returns:
        Arrow struct type with each slot at its index

    Raises:
        InvalidSchemaError: If the typed_value kind is unknown or the slot
            indices are not contiguous
    """
    config = config or ShreddingConfig()

    slots: dict[int, pa.Field] = {}
    if schema.top_level_metadata_index is not None:
        slots[schema.top_level_metadata_index] = pa.field(
            METADATA_FIELD_NAME, pa.binary(), nullable=False
        )
    if schema.value_slot_index is not None:
        slots[schema.value_slot_index] = pa.field(VALUE_FIELD_NAME, pa.binary())
    if schema.typed_slot_index is not None:
        slots[schema.typed_slot_index] = pa.field(
            TYPED_VALUE_FIELD_NAME, _typed_arrow_type(schema, config)
        )

    if sorted(slots) != list(range(len(slots))):
        raise InvalidSchemaError(
            "Slot indices must be contiguous and start at 0",
            context={"slots": sorted(slots)},
        )
    return pa.struct([slots[i] for i in range(len(slots))])


def _typed_arrow_type(schema: VariantSchema, config: ShreddingConfig) -> pa.DataType:
    if schema.scalar_type is not None:
        return scalar_type_to_arrow(schema.scalar_type, config.timestamp_unit)
    if schema.object_fields is not None:
        return pa.struct(
            [
                pa.field(field.field_name, to_arrow_type(field.schema, config), nullable=False)
                for field in schema.object_fields
            ]
        )
    if schema.array_child is not None:
        return pa.list_(
            pa.field(
                ARRAY_ELEMENT_FIELD_NAME,
                to_arrow_type(schema.array_child, config),
                nullable=False,
            )
        )
    raise InvalidSchemaError(
        "typed_value slot has no scalar, object or array type",
        context={"typed_slot_index": schema.typed_slot_index},
    )
