"""Terminology references."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True, kw_only=True)
class Coding:
    """A single terminology reference (system/version/code/display)."""

    system: str | None = None
    version: str | None = None
    code: str | None = None
    display: str | None = None


@dataclass(frozen=True, slots=True)
class SelectOption:
    """One entry of a curated drop-down list."""

    value: str
    label: str


type SelectOptions = tuple[SelectOption, ...] | list[SelectOption]
