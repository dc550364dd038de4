"""Core module for variant_shredding package."""

from variant_shredding.core.derivation import build_variant_schema, to_arrow_type
from variant_shredding.core.exceptions import (
    ConfigError,
    InvalidSchemaError,
    MetadataEncodingError,
    MetadataNotComputedError,
    VariantShreddingError,
)
from variant_shredding.core.metadata import (
    CanonicalMetadataEncoder,
    MetadataEncoder,
    encode_metadata,
)
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
    ScalarType,
    StringType,
    TimestampNTZType,
    TimestampType,
    UuidType,
    parse_scalar_type,
)
from variant_shredding.core.schema import ObjectField, ShreddingState, VariantSchema
from variant_shredding.core.type_mapping import (
    arrow_to_scalar_type,
    scalar_type_to_arrow,
)

__all__ = [
    "VariantSchema",
    "ObjectField",
    "ShreddingState",
    "ScalarKind",
    "ScalarType",
    "BaseScalarType",
    "StringType",
    "IntegralSize",
    "IntegralType",
    "FloatType",
    "DoubleType",
    "BooleanType",
    "BinaryType",
    "DecimalType",
    "DateType",
    "TimestampType",
    "TimestampNTZType",
    "UuidType",
    "parse_scalar_type",
    "MetadataEncoder",
    "CanonicalMetadataEncoder",
    "encode_metadata",
    "scalar_type_to_arrow",
    "arrow_to_scalar_type",
    "build_variant_schema",
    "to_arrow_type",
    "VariantShreddingError",
    "InvalidSchemaError",
    "MetadataEncodingError",
    "MetadataNotComputedError",
    "ConfigError",
]
