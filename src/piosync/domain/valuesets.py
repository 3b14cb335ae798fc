"""Curated value sets offered by the editor's drop-downs."""

from __future__ import annotations

from functools import lru_cache
from importlib import resources
from typing import TYPE_CHECKING, Final

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from piosync.domain.model.coding import Coding, SelectOption

if TYPE_CHECKING:
    from collections.abc import Mapping

LOOKUP_TABLE_RESOURCE: Final[str] = "valuesets.json"

COUNTRY_VALUE_SET: Final[str] = "https://fhir.kbv.de/ValueSet/KBV_VS_Base_Deuev_Anlage_8"
MEDICAL_DEVICE_VALUE_SET: Final[str] = "https://fhir.kbv.de/ValueSet/KBV_VS_MIO_ULB_Medical_Device"
DEVICE_VALUE_SET: Final[str] = "https://fhir.kbv.de/ValueSet/KBV_VS_Base_Device_SNOMED_CT"


class ValueSetNotFoundError(LookupError):
    """Raised when a value set URL has no (or an empty) lookup table."""


class ValueSetEntry(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    code: str
    system: str | None = None
    version: str | None = None
    display: str | None = None
    german_display: str | None = Field(default=None, alias="germanDisplay")

    def to_coding(self) -> Coding:
        return Coding(
            system=self.system, version=self.version, code=self.code, display=self.display
        )


type LookupTable = Mapping[str, tuple[ValueSetEntry, ...]]

_LOOKUP_TABLE_ADAPTER = TypeAdapter(dict[str, tuple[ValueSetEntry, ...]])


@lru_cache(maxsize=1)
def load_lookup_table() -> LookupTable:
    """Load the bundled value-set lookup table."""

    raw = resources.files("piosync").joinpath("domain", "data", LOOKUP_TABLE_RESOURCE).read_bytes()
    return _LOOKUP_TABLE_ADAPTER.validate_json(raw)


class ValueSet:
    """Options and codings of one value set."""

    def __init__(self, url: str, *, table: LookupTable | None = None) -> None:
        entries = (table if table is not None else load_lookup_table()).get(url)
        if not entries:
            raise ValueSetNotFoundError(f"ValueSet {url} not found")
        self.url = url
        self._entries = entries

    @property
    def options(self) -> tuple[SelectOption, ...]:
        """Drop-down options, labelled with the German display where present."""

        return tuple(
            SelectOption(
                value=entry.code, label=entry.german_display or entry.display or entry.code
            )
            for entry in self._entries
        )

    def get_by_code(self, code: str | None) -> Coding | None:
        if not code:
            return None
        for entry in self._entries:
            if entry.code == code:
                return entry.to_coding()
        return None

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and self.get_by_code(code) is not None
