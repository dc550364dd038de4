"""Mapping between shredded scalar types and Arrow types.

Shredded ``typed_value`` columns are stored as ordinary Arrow/Parquet
columns; these helpers translate between the two representations.
"""

import pyarrow as pa
from pydantic import ValidationError

from variant_shredding.core.exceptions import InvalidSchemaError
from variant_shredding.core.scalar_types import (
    BaseScalarType,
    BinaryType,
    BooleanType,
    DateType,
    DecimalType,
    DoubleType,
    FloatType,
    IntegralSize,
    IntegralType,
    ScalarKind,
    StringType,
    TimestampNTZType,
    TimestampType,
    UuidType,
)

# Scalar kinds without parameters
SCALAR_KIND_TO_ARROW_TYPE: dict[ScalarKind, pa.DataType] = {
    ScalarKind.STRING: pa.string(),
    ScalarKind.FLOAT: pa.float32(),
    ScalarKind.DOUBLE: pa.float64(),
    ScalarKind.BOOLEAN: pa.bool_(),
    ScalarKind.BINARY: pa.binary(),
    ScalarKind.DATE: pa.date32(),
    ScalarKind.UUID: pa.binary(16),
}

INTEGRAL_SIZE_TO_ARROW_TYPE: dict[IntegralSize, pa.DataType] = {
    IntegralSize.BYTE: pa.int8(),
    IntegralSize.SHORT: pa.int16(),
    IntegralSize.INT: pa.int32(),
    IntegralSize.LONG: pa.int64(),
}

MAX_DECIMAL128_PRECISION = 38
MAX_DECIMAL256_PRECISION = 76
TIMESTAMP_TIMEZONE = "UTC"


def scalar_type_to_arrow(
    scalar_type: BaseScalarType, timestamp_unit: str = "us"
) -> pa.DataType:
    """Convert a scalar type to its Arrow type.

    Args:
        scalar_type: Scalar type of a typed_value slot
        timestamp_unit: Arrow unit for timestamp types ("ms", "us" or "ns")

    Returns:
        Arrow DataType

    Raises:
        InvalidSchemaError: If the type has no Arrow representation
    """
    kind = ScalarKind(scalar_type.kind)
    if kind in SCALAR_KIND_TO_ARROW_TYPE:
        return SCALAR_KIND_TO_ARROW_TYPE[kind]
    if kind == ScalarKind.INTEGRAL:
        return INTEGRAL_SIZE_TO_ARROW_TYPE[scalar_type.size]
    if kind == ScalarKind.DECIMAL:
        if scalar_type.precision > MAX_DECIMAL256_PRECISION:
            raise InvalidSchemaError(
                f"Decimal precision exceeds {MAX_DECIMAL256_PRECISION} digits",
                context={"type": str(scalar_type)},
            )
        if scalar_type.precision > MAX_DECIMAL128_PRECISION:
            return pa.decimal256(scalar_type.precision, scalar_type.scale)
        return pa.decimal128(scalar_type.precision, scalar_type.scale)
    if kind == ScalarKind.TIMESTAMP:
        return pa.timestamp(timestamp_unit, tz=TIMESTAMP_TIMEZONE)
    if kind == ScalarKind.TIMESTAMP_NTZ:
        return pa.timestamp(timestamp_unit)
    raise InvalidSchemaError(
        f"Unsupported scalar type: {scalar_type}", context={"kind": kind.value}
    )


def arrow_to_scalar_type(arrow_type: pa.DataType) -> BaseScalarType:
    """Convert an Arrow type to the scalar type it shreds.

    Args:
        arrow_type: Arrow DataType of a typed_value column

    Returns:
        Scalar type

    Raises:
        InvalidSchemaError: If the Arrow type cannot hold a shredded scalar
    """
    if pa.types.is_string(arrow_type) or pa.types.is_large_string(arrow_type):
        return StringType()
    if pa.types.is_signed_integer(arrow_type):
        return IntegralType(size=arrow_type.bit_width)
    if pa.types.is_float32(arrow_type):
        return FloatType()
    if pa.types.is_float64(arrow_type):
        return DoubleType()
    if pa.types.is_boolean(arrow_type):
        return BooleanType()
    if pa.types.is_binary(arrow_type) or pa.types.is_large_binary(arrow_type):
        return BinaryType()
    if pa.types.is_fixed_size_binary(arrow_type) and arrow_type.byte_width == 16:
        return UuidType()
    if pa.types.is_decimal(arrow_type):
        try:
            return DecimalType(precision=arrow_type.precision, scale=arrow_type.scale)
        except ValidationError as e:
            raise InvalidSchemaError(
                f"Unsupported decimal type: {arrow_type}",
                context={"type": str(arrow_type)},
            ) from e
    if pa.types.is_date32(arrow_type):
        return DateType()
    if pa.types.is_timestamp(arrow_type):
        if arrow_type.tz is None:
            return TimestampNTZType()
        return TimestampType()
    raise InvalidSchemaError(
        "Unsupported Arrow type for a shredded scalar",
        context={"type": str(arrow_type)},
    )
