"""Pydantic models describing the flat, form-shaped records the editor submits."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import AddressUse


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class FormBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class FindingRecord(FormBaseModel):
    """One entity of a multi-entity form. Subclasses add the domain fields."""

    id: str

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: object) -> object:
        return str(value) if value is not None else value


class MaidenNameModel(FormBaseModel):
    family_name: str | None = Field(default=None, alias="familyName")
    namenszusatz: str | None = None
    vorsatzwort: str | None = None

    _normalize = field_validator("family_name", "namenszusatz", "vorsatzwort", mode="before")(
        _blank_to_none
    )


class StructuredNameModel(MaidenNameModel):
    given_name: str | None = Field(default=None, alias="givenName")
    prefix: str | None = None
    geburtsname: MaidenNameModel | None = None

    _normalize_given = field_validator("given_name", "prefix", mode="before")(_blank_to_none)


class StructuredAddressModel(FormBaseModel):
    street: str | None = None
    house_number: str | None = Field(default=None, alias="houseNumber")
    additional_locator: str | None = Field(default=None, alias="additionalLocator")
    post_office_box_number: str | None = Field(default=None, alias="postOfficeBoxNumber")
    post_office_box_radio: bool = Field(default=False, alias="postOfficeBoxRadio")
    district: str | None = None
    postal_code: str | None = Field(default=None, alias="postalCode")
    city: str | None = None
    country: str | None = None
    use: AddressUse | None = None

    _normalize = field_validator(
        "street",
        "house_number",
        "additional_locator",
        "post_office_box_number",
        "district",
        "postal_code",
        "city",
        "country",
        "use",
        mode="before",
    )(_blank_to_none)

    @field_validator("post_office_box_radio", mode="before")
    @classmethod
    def _parse_radio(cls, value: object) -> object:
        if value is None or value == "":
            return False
        return value


class ImplantFinding(FindingRecord):
    implant_type: str | None = Field(default=None, alias="implantType")
    comment: str | None = None

    _normalize = field_validator("implant_type", "comment", mode="before")(_blank_to_none)


class DeviceFinding(FindingRecord):
    device_type: str | None = Field(default=None, alias="deviceType")
    device_name: str | None = Field(default=None, alias="deviceName")
    model_number: str | None = Field(default=None, alias="modelNumber")
    udi_carrier: str | None = Field(default=None, alias="udiCarrier")
    serial_number: str | None = Field(default=None, alias="serialNumber")
    responsible_organization: str | None = Field(
        default=None, alias="deviceResponsibleOrganization"
    )

    _normalize = field_validator(
        "device_type",
        "device_name",
        "model_number",
        "udi_carrier",
        "serial_number",
        "responsible_organization",
        mode="before",
    )(_blank_to_none)
