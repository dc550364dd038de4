"""Pytest configuration and shared fixtures."""

import tempfile
from pathlib import Path

import pyarrow as pa
import pytest

from variant_shredding.core.scalar_types import IntegralType, StringType
from variant_shredding.core.schema import ObjectField, VariantSchema


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def object_schema():
    """Root object schema with fields a (int64) and b (array of string).

    Layout: metadata=0, value=1, typed_value=2.
    """
    a = VariantSchema(1, 0, None, 2, scalar_type=IntegralType(size=64))
    element = VariantSchema(1, 0, None, 2, scalar_type=StringType())
    b = VariantSchema(1, 0, None, 2, array_child=element)
    return VariantSchema(
        2,
        1,
        0,
        3,
        object_fields=[ObjectField("a", a), ObjectField("b", b)],
    )


@pytest.fixture
def shredded_struct():
    """Arrow struct of a variant column shredded as {a: int64, b: [string]}."""
    element = pa.struct([("value", pa.binary()), ("typed_value", pa.string())])
    return pa.struct(
        [
            ("metadata", pa.binary()),
            ("value", pa.binary()),
            (
                "typed_value",
                pa.struct(
                    [
                        (
                            "a",
                            pa.struct(
                                [("value", pa.binary()), ("typed_value", pa.int64())]
                            ),
                        ),
                        (
                            "b",
                            pa.struct(
                                [
                                    ("value", pa.binary()),
                                    ("typed_value", pa.list_(element)),
                                ]
                            ),
                        ),
                    ]
                ),
            ),
        ]
    )


class RecordingEncoder:
    """Metadata encoder that records the names it receives."""

    def __init__(self, result: bytes = b"\x01\x00\x00"):
        self.calls: list[list[str]] = []
        self.result = result

    def encode(self, field_names):
        self.calls.append(list(field_names))
        return self.result


@pytest.fixture
def recording_encoder():
    return RecordingEncoder()
