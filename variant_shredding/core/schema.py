"""Shredding schema for variant values.

A shredding schema describes how a variant value is split into a generic
``value`` (the self-describing binary encoding), an optional strongly typed
``typed_value``, and, at the top level only, the ``metadata`` dictionary of
field names. When ``typed_value`` is an array or an object, it recursively
carries its own shredding schema for the elements or for each field.

Slots are identified by their position in the physical record. Only present
slots get a position, and positions are contiguous starting at 0, so readers
can index straight into a compact row of the present slots.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence

from variant_shredding.core.exceptions import (
    InvalidSchemaError,
    MetadataEncodingError,
    MetadataNotComputedError,
)
from variant_shredding.core.metadata import MetadataEncoder, default_metadata_encoder
from variant_shredding.core.scalar_types import BaseScalarType

logger = logging.getLogger(__name__)


class ShreddingState(str, Enum):
    """Whether a node uses its typed_value slot."""

    GENERIC_ONLY = "generic_only"  # Value kept only in the fallback encoding
    TYPED = "typed"  # typed_value slot in use, value slot optional


@dataclass(frozen=True)
class ObjectField:
    """One named field of an object-typed schema node."""

    field_name: str
    schema: "VariantSchema"


class VariantSchema:
    """One level of a variant shredding schema.

    Nodes are built bottom-up: children (array element or object fields) are
    constructed first and handed to their parent, which takes ownership of
    them. Apart from ``promote_to_typed`` a node never changes after
    construction, so a finished tree can be read from many threads without
    locking.

    Args:
        typed_slot_index: Position of ``typed_value``, or None if not shredded
        value_slot_index: Position of ``value``, or None if fully shredded
        top_level_metadata_index: Position of ``metadata``; set only on the root
        field_count: Number of present slots
        scalar_type: Scalar type held by ``typed_value``
        object_fields: Fields of an object held by ``typed_value``
        array_child: Element schema of an array held by ``typed_value``
        metadata_encoder: Encoder used by ``promote_to_typed``; defaults to
            the canonical variant metadata encoder

    Raises:
        InvalidSchemaError: If the slots or typed payload are inconsistent
    """

    def __init__(
        self,
        typed_slot_index: Optional[int],
        value_slot_index: Optional[int],
        top_level_metadata_index: Optional[int],
        field_count: int,
        scalar_type: Optional[BaseScalarType] = None,
        object_fields: Optional[Sequence[ObjectField]] = None,
        array_child: Optional["VariantSchema"] = None,
        *,
        metadata_encoder: Optional[MetadataEncoder] = None,
    ) -> None:
        payloads = [
            name
            for name, payload in (
                ("scalar_type", scalar_type),
                ("object_fields", object_fields),
                ("array_child", array_child),
            )
            if payload is not None
        ]
        if len(payloads) > 1:
            raise InvalidSchemaError(
                "typed_value can hold only one of a scalar, an object or an array",
                context={"payloads": "+".join(payloads)},
            )
        if payloads and typed_slot_index is None:
            raise InvalidSchemaError(
                f"{payloads[0]} requires a typed_value slot",
                context={"payload": payloads[0]},
            )

        _validate_slots(
            typed_slot_index, value_slot_index, top_level_metadata_index, field_count
        )

        if scalar_type is not None and not isinstance(scalar_type, BaseScalarType):
            raise InvalidSchemaError(
                "scalar_type must be a scalar type",
                context={"type": type(scalar_type).__name__},
            )

        children: list[VariantSchema] = []
        fields: Optional[tuple[ObjectField, ...]] = None
        field_index: Optional[Mapping[str, int]] = None
        if object_fields is not None:
            fields = tuple(object_fields)
            positions: dict[str, int] = {}
            for position, field in enumerate(fields):
                if not isinstance(field, ObjectField) or not isinstance(
                    field.field_name, str
                ):
                    raise InvalidSchemaError(
                        "object_fields must contain ObjectField entries with string names",
                        context={"position": position},
                    )
                if field.field_name in positions:
                    raise InvalidSchemaError(
                        "Duplicate object field name",
                        context={"field_name": field.field_name},
                    )
                positions[field.field_name] = position
                children.append(field.schema)
            field_index = MappingProxyType(positions)

        if array_child is not None:
            children.append(array_child)

        seen: set[int] = set()
        for child in children:
            _validate_child(child)
            if id(child) in seen:
                raise InvalidSchemaError("Schema node is used more than once")
            seen.add(id(child))

        self._typed_slot_index = typed_slot_index
        self._value_slot_index = value_slot_index
        self._top_level_metadata_index = top_level_metadata_index
        self._scalar_type = scalar_type
        self._object_fields = fields
        self._object_field_index = field_index
        self._array_child = array_child
        self._metadata_encoder = metadata_encoder or default_metadata_encoder()
        self._metadata: Optional[bytes] = None
        self._owned = False

        for child in children:
            child._owned = True

    @property
    def typed_slot_index(self) -> Optional[int]:
        return self._typed_slot_index

    @property
    def value_slot_index(self) -> Optional[int]:
        return self._value_slot_index

    @property
    def top_level_metadata_index(self) -> Optional[int]:
        return self._top_level_metadata_index

    @property
    def field_count(self) -> int:
        """Number of present slots among value, typed_value and metadata."""
        return _count_present(
            self._typed_slot_index,
            self._value_slot_index,
            self._top_level_metadata_index,
        )

    @property
    def scalar_type(self) -> Optional[BaseScalarType]:
        return self._scalar_type

    @property
    def object_fields(self) -> Optional[tuple[ObjectField, ...]]:
        return self._object_fields

    @property
    def object_field_index(self) -> Optional[Mapping[str, int]]:
        """Read-only mapping from field name to position in ``object_fields``."""
        return self._object_field_index

    @property
    def array_child(self) -> Optional["VariantSchema"]:
        return self._array_child

    @property
    def metadata_bytes(self) -> Optional[bytes]:
        """Metadata computed by the last ``promote_to_typed``, if any."""
        return self._metadata

    @property
    def is_root(self) -> bool:
        return self._top_level_metadata_index is not None

    @property
    def state(self) -> ShreddingState:
        if self._typed_slot_index is None:
            return ShreddingState.GENERIC_ONLY
        return ShreddingState.TYPED

    def promote_to_typed(self, typed_slot_index: int) -> None:
        """Switch this node to its typed representation.

        The typed slot takes ``typed_slot_index``, the generic value slot is
        dropped, and the metadata dictionary is recomputed from the object
        field names (an empty name set for scalar and array nodes). The
        metadata is encoded before anything changes, so a failed encoding
        leaves the node untouched.

        The resulting slots must still occupy distinct, contiguous positions
        starting at 0, so with a metadata slot at 0 the typed slot must be 1.

        Raises:
            InvalidSchemaError: If the new slot layout is not valid
            MetadataEncodingError: If the metadata encoder rejects the names
        """
        _validate_slots(
            typed_slot_index,
            None,
            self._top_level_metadata_index,
            _count_present(typed_slot_index, self._top_level_metadata_index),
        )
        metadata = self._encode_field_names()

        self._typed_slot_index = typed_slot_index
        self._value_slot_index = None
        self._metadata = metadata

        logger.debug(
            "Promoted schema node to typed",
            extra={
                "context": {
                    "typed_slot_index": typed_slot_index,
                    "field_names": len(self._object_fields or ()),
                    "metadata_size": len(metadata),
                }
            },
        )

    def metadata(self) -> bytes:
        """Return the metadata computed by ``promote_to_typed``.

        Raises:
            MetadataNotComputedError: If the node was never promoted
        """
        if self._metadata is None:
            raise MetadataNotComputedError(
                "Metadata is computed by promote_to_typed, which has not been called"
            )
        return self._metadata

    def is_unshredded(self) -> bool:
        """Whether the whole variant is stored in the fallback encoding.

        True only for a root node with a value slot and no typed slot.
        Readers may take a fast path for such columns.
        """
        return (
            self._top_level_metadata_index is not None
            and self._value_slot_index is not None
            and self._typed_slot_index is None
        )

    def field_position(self, name: str) -> Optional[int]:
        """Position of ``name`` in ``object_fields``, or None if not present."""
        if self._object_field_index is None:
            return None
        return self._object_field_index.get(name)

    def to_dict(self) -> dict[str, Any]:
        """Describe the schema tree as JSON-compatible data."""
        return {
            "typed_slot_index": self._typed_slot_index,
            "value_slot_index": self._value_slot_index,
            "top_level_metadata_index": self._top_level_metadata_index,
            "field_count": self.field_count,
            "scalar_type": (
                self._scalar_type.model_dump(mode="json")
                if self._scalar_type is not None
                else None
            ),
            "object_fields": (
                [
                    {"field_name": field.field_name, "schema": field.schema.to_dict()}
                    for field in self._object_fields
                ]
                if self._object_fields is not None
                else None
            ),
            "array_child": (
                self._array_child.to_dict() if self._array_child is not None else None
            ),
        }

    def _encode_field_names(self) -> bytes:
        names = [field.field_name for field in self._object_fields or ()]
        try:
            return bytes(self._metadata_encoder.encode(names))
        except MetadataEncodingError:
            raise
        except Exception as e:
            raise MetadataEncodingError(
                f"Metadata encoder failed: {e}",
                context={"field_names": len(names)},
            ) from e

    def __repr__(self) -> str:
        return (
            "VariantSchema("
            f"typed_slot_index={self._typed_slot_index}, "
            f"value_slot_index={self._value_slot_index}, "
            f"top_level_metadata_index={self._top_level_metadata_index}, "
            f"field_count={self.field_count}, "
            f"scalar_type={self._scalar_type}, "
            f"object_fields={list(self._object_fields) if self._object_fields is not None else None}, "
            f"array_child={self._array_child!r})"
        )


def _count_present(*indices: Optional[int]) -> int:
    return sum(1 for index in indices if index is not None)


def _validate_slots(
    typed_slot_index: Optional[int],
    value_slot_index: Optional[int],
    top_level_metadata_index: Optional[int],
    field_count: int,
) -> None:
    slots = {
        "typed_slot_index": typed_slot_index,
        "value_slot_index": value_slot_index,
        "top_level_metadata_index": top_level_metadata_index,
    }
    for name, index in slots.items():
        if index is not None and (not isinstance(index, int) or isinstance(index, bool)):
            raise InvalidSchemaError(
                f"{name} must be an integer or None",
                context={name: repr(index)},
            )

    present = [index for index in slots.values() if index is not None]
    if field_count != len(present):
        raise InvalidSchemaError(
            "field_count does not match the number of present slots",
            context={"field_count": field_count, "present_slots": len(present)},
        )
    if not 1 <= field_count <= 3:
        raise InvalidSchemaError(
            "A schema node needs between 1 and 3 slots",
            context={"field_count": field_count},
        )
    if sorted(present) != list(range(field_count)):
        raise InvalidSchemaError(
            "Slot indices must be contiguous and start at 0",
            context={name: index for name, index in slots.items() if index is not None},
        )


def _validate_child(child: Any) -> None:
    if not isinstance(child, VariantSchema):
        raise InvalidSchemaError(
            "Nested schema must be a VariantSchema",
            context={"type": type(child).__name__},
        )
    if child.top_level_metadata_index is not None:
        raise InvalidSchemaError(
            "Nested schema must not have a metadata slot",
            context={"top_level_metadata_index": child.top_level_metadata_index},
        )
    if child._owned:
        raise InvalidSchemaError("Schema node already belongs to another parent")
