"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class NameUse(StrEnum):
    OFFICIAL = "official"
    MAIDEN = "maiden"


class AddressType(StrEnum):
    POSTAL = "postal"
    BOTH = "both"


class AddressUse(StrEnum):
    HOME = "home"
    WORK = "work"
    TEMP = "temp"
    OLD = "old"
    BILLING = "billing"


class ResourceTag(StrEnum):
    """Resource schema names the editor works with."""

    PATIENT = "KBV_PR_MIO_ULB_Patient"
    ORGANIZATION = "KBV_PR_MIO_ULB_Organization"
    DEVICE = "KBV_PR_MIO_ULB_Device"
    DEVICE_IMPLANT = "KBV_PR_MIO_ULB_Device_Implant"
    CONDITION_MEDICAL_PROBLEM = "KBV_PR_MIO_ULB_Condition_Medical_Problem_Diagnosis"
