"""Configuration model for shredding schema derivation."""

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from variant_shredding.core.exceptions import ConfigError


class ShreddingConfig(BaseModel):
    """Limits and physical options used when deriving shredding schemas."""

    max_schema_depth: int = Field(
        default=50,
        description="Maximum nesting depth of shredded objects and arrays",
        ge=1,
    )
    max_schema_width: int = Field(
        default=300,
        description="Maximum number of shredded fields in a single object",
        ge=1,
    )
    timestamp_unit: Literal["ms", "us", "ns"] = Field(
        default="us", description="Arrow unit for shredded timestamp columns"
    )

    @field_validator("timestamp_unit", mode="before")
    @classmethod
    def normalize_timestamp_unit(cls, v):
        """Accept timestamp units in any case."""
        if isinstance(v, str):
            return v.lower()
        return v


def load_config(path: str) -> ShreddingConfig:
    """Load shredding configuration from a YAML file.

    The file may hold the options at the top level or under a ``shredding`` key.

    Args:
        path: Path to the YAML file

    Returns:
        ShreddingConfig instance

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or fails validation
    """
    config_path = Path(path)
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {path}", context={"path": str(path)})
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML in config file: {e}", context={"path": str(path)}
        ) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(
            "Config file must contain a YAML dictionary", context={"path": str(path)}
        )
    if "shredding" in data:
        data = data["shredding"] or {}

    try:
        return ShreddingConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            f"Config validation failed: {e}", context={"path": str(path)}
        ) from e
