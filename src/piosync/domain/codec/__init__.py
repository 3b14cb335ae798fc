"""Deterministic tree encodings of structured names and addresses."""

from __future__ import annotations

from piosync.domain.codec.addresses import (
    address_entries,
    decode_address,
    decode_addresses,
    encode_addresses,
    line_string,
    text_string,
)
from piosync.domain.codec.names import (
    decode_name,
    encode_name,
    extension_value,
    family_string,
    full_name,
    name_groups,
)

__all__ = [
    "address_entries",
    "decode_address",
    "decode_addresses",
    "decode_name",
    "encode_addresses",
    "encode_name",
    "extension_value",
    "family_string",
    "full_name",
    "line_string",
    "name_groups",
    "text_string",
]
