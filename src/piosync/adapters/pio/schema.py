"""Pydantic models describing the PIO backend payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PioBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SubTreePayload(PioBaseModel):
    """One node of a serialized sub-tree."""

    absolute_path: str = Field(alias="absolutePath")
    data: str | None = None
    data_type: str | None = Field(default=None, alias="dataType")
    children: list[SubTreePayload] = Field(default_factory=list["SubTreePayload"])

    @field_validator("data", mode="before")
    @classmethod
    def _stringify_data(cls, value: object) -> object:
        # booleans and numbers arrive as JSON scalars
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    @field_validator("children", mode="before")
    @classmethod
    def _null_children(cls, value: object) -> object:
        return [] if value is None else value


class SubTreesData(PioBaseModel):
    sub_trees: list[SubTreePayload] = Field(default_factory=list[SubTreePayload], alias="subTrees")


class UuidsData(PioBaseModel):
    uuids: dict[str, str] = Field(default_factory=dict[str, str])


class ResponseEnvelope(PioBaseModel):
    """Common ``{success, message, data}`` envelope of every endpoint."""

    success: bool
    message: str | None = None
    data: dict[str, object] | None = None


class SubTreesRequest(PioBaseModel):
    sub_trees: list[SubTreePayload] = Field(alias="subTrees")
