"""Scalar types a shredded ``typed_value`` slot can hold.

Each type is an immutable pydantic model tagged with a ``kind`` literal, so
the closed set can be validated from plain mappings through the
``ScalarType`` discriminated union.
"""

from enum import Enum, IntEnum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


class ScalarKind(str, Enum):
    """Values of the ``kind`` tag carried by each scalar type."""

    STRING = "string"
    INTEGRAL = "integral"
    FLOAT = "float"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    BINARY = "binary"
    DECIMAL = "decimal"
    DATE = "date"
    TIMESTAMP = "timestamp"
    TIMESTAMP_NTZ = "timestamp_ntz"
    UUID = "uuid"


class IntegralSize(IntEnum):
    """Bit width of an integral type."""

    BYTE = 8
    SHORT = 16
    INT = 32
    LONG = 64


class BaseScalarType(BaseModel):
    """Common base for all scalar types."""

    model_config = ConfigDict(frozen=True)

    kind: str

    def __str__(self) -> str:
        return self.kind


class StringType(BaseScalarType):
    kind: Literal["string"] = "string"


class IntegralType(BaseScalarType):
    kind: Literal["integral"] = "integral"
    size: IntegralSize = Field(description="Integer width in bits")

    @property
    def width(self) -> int:
        return int(self.size)

    def __str__(self) -> str:
        return f"int{self.width}"


class FloatType(BaseScalarType):
    """32-bit IEEE float."""

    kind: Literal["float"] = "float"


class DoubleType(BaseScalarType):
    """64-bit IEEE float."""

    kind: Literal["double"] = "double"


class BooleanType(BaseScalarType):
    kind: Literal["boolean"] = "boolean"


class BinaryType(BaseScalarType):
    kind: Literal["binary"] = "binary"


class DecimalType(BaseScalarType):
    kind: Literal["decimal"] = "decimal"
    precision: int = Field(gt=0, description="Total number of digits")
    scale: int = Field(ge=0, description="Digits after the decimal point")

    @model_validator(mode="after")
    def validate_scale(self) -> "DecimalType":
        """Validate scale does not exceed precision."""
        if self.scale > self.precision:
            raise ValueError(
                f"scale ({self.scale}) must not exceed precision ({self.precision})"
            )
        return self

    def __str__(self) -> str:
        return f"decimal({self.precision},{self.scale})"


class DateType(BaseScalarType):
    kind: Literal["date"] = "date"


class TimestampType(BaseScalarType):
    """Timestamp adjusted to UTC."""

    kind: Literal["timestamp"] = "timestamp"


class TimestampNTZType(BaseScalarType):
    """Timestamp without time zone."""

    kind: Literal["timestamp_ntz"] = "timestamp_ntz"


class UuidType(BaseScalarType):
    kind: Literal["uuid"] = "uuid"


ScalarType = Annotated[
    Union[
        StringType,
        IntegralType,
        FloatType,
        DoubleType,
        BooleanType,
        BinaryType,
        DecimalType,
        DateType,
        TimestampType,
        TimestampNTZType,
        UuidType,
    ],
    Field(discriminator="kind"),
]

_scalar_type_adapter = TypeAdapter(ScalarType)


def parse_scalar_type(data: dict) -> BaseScalarType:
    """Validate a mapping such as ``{"kind": "decimal", "precision": 10, "scale": 2}``.

    Raises:
        pydantic.ValidationError: If the kind is unknown or parameters are invalid
    """
    return _scalar_type_adapter.validate_python(data)
