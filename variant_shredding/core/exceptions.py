"""Exception hierarchy for the variant_shredding package."""


class VariantShreddingError(Exception):
    """Base exception for all variant_shredding errors."""

    def __init__(self, message: str, context: dict | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class InvalidSchemaError(VariantShreddingError):
    """Raised when a shredding schema violates a structural rule."""

    pass


class MetadataEncodingError(VariantShreddingError):
    """Raised when field names cannot be encoded into variant metadata."""

    pass


class MetadataNotComputedError(VariantShreddingError):
    """Raised when metadata is requested before the node was promoted."""

    pass


class ConfigError(VariantShreddingError):
    """Raised when shredding configuration cannot be loaded."""

    pass
