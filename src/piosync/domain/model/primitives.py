"""Typed primitive values stored on resource tree nodes.

Each wrapper carries the FHIR primitive type name so adapters can tell the
backend how to materialise the value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

type EntityId = str
type ResourceTypeTag = str

UUID_URN_PREFIX = "urn:uuid:"


@dataclass(frozen=True, slots=True)
class PrimitiveValue:
    value: str

    DATA_TYPE: ClassVar[str] = "string"

    @property
    def data_type(self) -> str:
        return self.DATA_TYPE

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class StringValue(PrimitiveValue):
    DATA_TYPE: ClassVar[str] = "string"


@dataclass(frozen=True, slots=True)
class UriValue(PrimitiveValue):
    DATA_TYPE: ClassVar[str] = "uri"


@dataclass(frozen=True, slots=True)
class CodeValue(PrimitiveValue):
    DATA_TYPE: ClassVar[str] = "code"


@dataclass(frozen=True, slots=True)
class MarkdownValue(PrimitiveValue):
    DATA_TYPE: ClassVar[str] = "markdown"


@dataclass(frozen=True, slots=True)
class UuidValue(PrimitiveValue):
    """Reference to another resource; rendered as ``urn:uuid:<id>``."""

    DATA_TYPE: ClassVar[str] = "uuid"

    def __str__(self) -> str:
        if self.value.startswith(UUID_URN_PREFIX):
            return self.value
        return f"{UUID_URN_PREFIX}{self.value}"


_PRIMITIVES_BY_TYPE: dict[str, type[PrimitiveValue]] = {
    cls.DATA_TYPE: cls
    for cls in (StringValue, UriValue, CodeValue, MarkdownValue, UuidValue)
}


def primitive_for(data_type: str | None, value: str) -> PrimitiveValue:
    """Rebuild a typed primitive from its wire representation.

    Unknown type names degrade to ``StringValue``.
    """

    cls = _PRIMITIVES_BY_TYPE.get(data_type or "", StringValue)
    return cls(value)


def strip_uuid_urn(value: str | None) -> str | None:
    if value is None:
        return None
    return value.removeprefix(UUID_URN_PREFIX)
