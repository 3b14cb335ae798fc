"""Public domain model surface."""

from __future__ import annotations

from piosync.domain.model.coding import Coding, SelectOption, SelectOptions
from piosync.domain.model.enums import AddressType, AddressUse, NameUse, ResourceTag
from piosync.domain.model.forms import (
    DeviceFinding,
    FindingRecord,
    FormBaseModel,
    ImplantFinding,
    MaidenNameModel,
    StructuredAddressModel,
    StructuredNameModel,
)
from piosync.domain.model.primitives import (
    CodeValue,
    EntityId,
    MarkdownValue,
    PrimitiveValue,
    ResourceTypeTag,
    StringValue,
    UriValue,
    UuidValue,
    primitive_for,
    strip_uuid_urn,
)

__all__ = [
    "AddressType",
    "AddressUse",
    "CodeValue",
    "Coding",
    "DeviceFinding",
    "EntityId",
    "FindingRecord",
    "FormBaseModel",
    "ImplantFinding",
    "MaidenNameModel",
    "MarkdownValue",
    "NameUse",
    "PrimitiveValue",
    "ResourceTag",
    "ResourceTypeTag",
    "SelectOption",
    "SelectOptions",
    "StringValue",
    "StructuredAddressModel",
    "StructuredNameModel",
    "UriValue",
    "UuidValue",
    "primitive_for",
    "strip_uuid_urn",
]
