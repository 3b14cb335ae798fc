"""Encoding of structured postal addresses.

Street-level parts travel as extensions nested under ``address[i].line``; the
district is a top-level extension of the entry. ``line`` and ``text`` hold the
human-readable renderings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from piosync.domain.code_fidelity import check_code
from piosync.domain.codec.names import extension_value
from piosync.domain.model.enums import AddressType
from piosync.domain.model.forms import StructuredAddressModel
from piosync.domain.model.primitives import StringValue, UriValue

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from piosync.domain.model.coding import SelectOption
    from piosync.domain.tree import ResourceNode

STREET_URL: Final[str] = "http://hl7.org/fhir/StructureDefinition/iso21090-ADXP-streetName"
HOUSE_NUMBER_URL: Final[str] = "http://hl7.org/fhir/StructureDefinition/iso21090-ADXP-houseNumber"
ADDITIONAL_LOCATOR_URL: Final[str] = (
    "http://hl7.org/fhir/StructureDefinition/iso21090-ADXP-additionalLocator"
)
POST_BOX_URL: Final[str] = "http://hl7.org/fhir/StructureDefinition/iso21090-ADXP-postBox"
DISTRICT_URL: Final[str] = "http://hl7.org/fhir/StructureDefinition/iso21090-ADXP-precinct"

# attribute name -> extension URL, in write order
_LINE_EXTENSIONS: Final[tuple[tuple[str, str], ...]] = (
    ("street", STREET_URL),
    ("house_number", HOUSE_NUMBER_URL),
    ("additional_locator", ADDITIONAL_LOCATOR_URL),
    ("post_office_box_number", POST_BOX_URL),
)
_DIRECT_FIELDS: Final[tuple[tuple[str, str], ...]] = (
    ("postal_code", "postalCode"),
    ("city", "city"),
    ("country", "country"),
    ("use", "use"),
)


def line_string(address: StructuredAddressModel) -> str:
    if address.post_office_box_radio:
        line = address.post_office_box_number or ""
    else:
        line = f"{address.street or ''} {address.house_number or ''}".strip()
        if address.additional_locator:
            line += f", {address.additional_locator}"
    # an empty street leaves ", <locator>"
    return line.removeprefix(", ")


def text_string(address: StructuredAddressModel, line: str) -> str:
    postal_and_city = f"{address.postal_code or ''} {address.city or ''}".strip()
    return (
        line
        + (f", {address.district}" if address.district else "")
        + (f", {postal_and_city}" if postal_and_city else "")
        + (f", {address.country}" if address.country else "")
    )


@dataclass(slots=True)
class _AddressEntryWriter:
    """Writes one ``address[i]`` entry; owns that entry's line-extension counter."""

    node: ResourceNode
    path: str
    next_line_extension: int = 0

    def write_extension(self, path: str, url: str, value: str) -> None:
        self.node.set_value(path, UriValue(url))
        self.node.set_value(f"{path}.valueString", StringValue(value))

    def write_line_extension(self, url: str, value: str) -> None:
        self.write_extension(f"{self.path}.line.extension[{self.next_line_extension}]", url, value)
        self.next_line_extension += 1

    def write(self, address: StructuredAddressModel) -> None:
        for attribute, url in _LINE_EXTENSIONS:
            value = getattr(address, attribute)
            if value:
                self.write_line_extension(url, value)
        if address.district:
            self.write_extension(f"{self.path}.extension[0]", DISTRICT_URL, address.district)
        for attribute, element in _DIRECT_FIELDS:
            value = getattr(address, attribute)
            if value:
                self.node.set_value(f"{self.path}.{element}", StringValue(str(value)))

        address_type = AddressType.POSTAL if address.post_office_box_radio else AddressType.BOTH
        line = line_string(address)
        self.node.set_value(f"{self.path}.type", StringValue(address_type.value))
        self.node.set_value(f"{self.path}.line", StringValue(line))
        self.node.set_value(f"{self.path}.text", StringValue(text_string(address, line)))


def encode_addresses(node: ResourceNode, addresses: Sequence[StructuredAddressModel]) -> None:
    """Replace the content of ``node`` with ``address[i]`` entries."""

    node.delete_subtree_by_path("")
    for index, address in enumerate(addresses):
        _AddressEntryWriter(node, f"address[{index}]").write(address)


def decode_address(
    entry: ResourceNode, *, country_options: Sequence[SelectOption] | None = None
) -> StructuredAddressModel:
    def direct(element: str) -> str | None:
        return entry.get_subtree_by_path(element).get_value_as_string()

    line = entry.get_subtree_by_path("line")
    values: dict[str, object] = {
        attribute: extension_value(line, url) for attribute, url in _LINE_EXTENSIONS
    }
    values["post_office_box_radio"] = direct("type") == AddressType.POSTAL
    values["district"] = extension_value(entry, DISTRICT_URL)
    values["postal_code"] = direct("postalCode")
    values["city"] = direct("city")
    country = direct("country")
    values["country"] = check_code(country, country_options) if country_options else country
    values["use"] = direct("use")
    return StructuredAddressModel.model_validate(values)


def decode_addresses(
    entries: Iterable[ResourceNode], *, country_options: Sequence[SelectOption] | None = None
) -> list[StructuredAddressModel]:
    return [decode_address(entry, country_options=country_options) for entry in entries]


def address_entries(node: ResourceNode) -> list[ResourceNode]:
    """Return the ``address[i]`` children of a resource node."""

    return [child for child in node.children if child.last_path_element.startswith("address[")]
