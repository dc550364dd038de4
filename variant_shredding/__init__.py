"""Variant Shredding - schemas for shredded semi-structured values.

Describes how a variant value is split into a generic binary encoding plus
strongly typed columns, for encoders and decoders that must agree on the
layout.
"""

__version__ = "0.1.0"

# Public API
from variant_shredding.api import read_shredding_schema, schema_from_arrow

# Exceptions
from variant_shredding.core.exceptions import (
    ConfigError,
    InvalidSchemaError,
    MetadataEncodingError,
    MetadataNotComputedError,
    VariantShreddingError,
)
from variant_shredding.core.schema import ObjectField, ShreddingState, VariantSchema

# Configuration
from variant_shredding.models.shredding_config import ShreddingConfig, load_config

__all__ = [
    # Version
    "__version__",
    # Public API
    "schema_from_arrow",
    "read_shredding_schema",
    # Schema
    "VariantSchema",
    "ObjectField",
    "ShreddingState",
    # Configuration
    "ShreddingConfig",
    "load_config",
    # Exceptions
    "VariantShreddingError",
    "InvalidSchemaError",
    "MetadataEncodingError",
    "MetadataNotComputedError",
    "ConfigError",
]
