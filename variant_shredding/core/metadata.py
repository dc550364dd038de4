"""Variant metadata (field-name dictionary) encoding.

The shredding schema only needs one thing from the metadata encoder: turn a
set of object field names into the binary dictionary that accompanies a
variant value. ``CanonicalMetadataEncoder`` produces the standard layout:

    header | dictionary_size | offset * (dictionary_size + 1) | string bytes

The header byte holds the format version in bits 0-3, the ``sorted_strings``
flag in bit 4 and ``offset_size - 1`` in bits 6-7. Sizes and offsets are
little-endian unsigned integers of ``offset_size`` bytes.
"""

from typing import Iterable, Protocol

from variant_shredding.core.exceptions import MetadataEncodingError

METADATA_VERSION = 1
SORTED_STRINGS_FLAG = 0x10
MAX_OFFSET_SIZE = 4


class MetadataEncoder(Protocol):
    """Protocol for encoding a field-name set into variant metadata bytes."""

    def encode(self, field_names: Iterable[str]) -> bytes:
        """Encode field names into an opaque metadata blob.

        Implementations must be deterministic with respect to the *set* of
        names: order and repetition of the input must not change the result.

        Raises:
            MetadataEncodingError: If the names cannot be encoded
        """
        ...


class CanonicalMetadataEncoder:
    """Encodes a sorted, de-duplicated dictionary of UTF-8 field names."""

    def encode(self, field_names: Iterable[str]) -> bytes:
        encoded = sorted({_utf8(name) for name in field_names})

        total_length = sum(len(name) for name in encoded)
        offset_size = _offset_size(max(len(encoded), total_length))

        out = bytearray()
        out.append(
            METADATA_VERSION | SORTED_STRINGS_FLAG | ((offset_size - 1) << 6)
        )
        out += len(encoded).to_bytes(offset_size, "little")

        offset = 0
        out += offset.to_bytes(offset_size, "little")
        for name in encoded:
            offset += len(name)
            out += offset.to_bytes(offset_size, "little")

        for name in encoded:
            out += name

        return bytes(out)


_default_encoder = CanonicalMetadataEncoder()


def encode_metadata(field_names: Iterable[str]) -> bytes:
    """Encode field names with the default canonical encoder."""
    return _default_encoder.encode(field_names)


def default_metadata_encoder() -> MetadataEncoder:
    return _default_encoder


def _utf8(name: str) -> bytes:
    if not isinstance(name, str):
        raise MetadataEncodingError(
            "Field name must be a string",
            context={"type": type(name).__name__},
        )
    try:
        return name.encode("utf-8")
    except UnicodeEncodeError as e:
        raise MetadataEncodingError(
            f"Field name is not valid UTF-8: {e.reason}",
            context={"field_name": repr(name)},
        ) from e


def _offset_size(max_value: int) -> int:
    for size in range(1, MAX_OFFSET_SIZE + 1):
        if max_value < 1 << (8 * size):
            return size
    raise MetadataEncodingError(
        "Metadata dictionary exceeds the maximum encodable size",
        context={"max_value": max_value},
    )
