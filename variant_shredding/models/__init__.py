"""Configuration models for variant_shredding."""

from variant_shredding.models.shredding_config import ShreddingConfig, load_config

__all__ = [
    "ShreddingConfig",
    "load_config",
]
