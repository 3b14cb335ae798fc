"""Per-resource-type handlers for multi-entity forms.

A ``FindingHandler`` knows how to read one resource type's sub-tree into a
form record and how to write a record back onto a sub-tree. The
``FindingDispatchTable`` looks handlers up by resource tag and hands them to
the reconciler.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from piosync.domain.code_fidelity import (
    check_coding,
    get_unsupported_coding,
    write_coding_to_subtree,
)
from piosync.domain.model.coding import Coding
from piosync.domain.model.enums import ResourceTag
from piosync.domain.model.forms import DeviceFinding, FindingRecord, ImplantFinding
from piosync.domain.model.primitives import (
    MarkdownValue,
    StringValue,
    UriValue,
    UuidValue,
    strip_uuid_urn,
)
from piosync.domain.valuesets import DEVICE_VALUE_SET, MEDICAL_DEVICE_VALUE_SET, ValueSet

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping, Sequence

    from piosync.domain.model.primitives import EntityId, ResourceTypeTag
    from piosync.domain.reconciliation import (
        EntitySnapshotMap,
        EntityTransform,
        MultiEntityReconciler,
        ReconciliationOutcome,
    )
    from piosync.domain.tree import ResourceNode

log = getLogger(__name__)

TERMINOLOGY_ASSOCIATION_URL: Final[str] = (
    "https://fhir.kbv.de/StructureDefinition/KBV_EX_MIO_ULB_Terminologie_Assoziation"
)
RESPONSIBLE_PARTY_URL: Final[str] = (
    "https://fhir.kbv.de/StructureDefinition/KBV_EX_Base_Responsible_Person_Organization"
)
IMPLANT_CONCEPT: Final[Coding] = Coding(
    system="http://snomed.info/sct",
    version="http://snomed.info/sct/900000000000207008/version/20220331",
    code="40388003",
    display="Implant, device (physical object)",
)

TYPE_CODING_PATH: Final[str] = "type.coding"

type FindingReader[F: FindingRecord] = Callable[[ResourceNode], F]


@dataclass(frozen=True, slots=True, kw_only=True)
class FindingHandler[F: FindingRecord]:
    tag: ResourceTypeTag
    model: type[F]
    read: FindingReader[F]
    transform: EntityTransform[F]
    value_set_url: str | None = None

    def parse(self, raw_findings: Iterable[Mapping[str, Any] | F]) -> list[F]:
        """Validate raw form records into this handler's model."""

        return [
            item if isinstance(item, self.model) else self.model.model_validate(item)
            for item in raw_findings
        ]


class FindingDispatchTable:
    """Mapping ``ResourceTypeTag -> FindingHandler``."""

    def __init__(self, handlers: Iterable[FindingHandler[Any]] = ()) -> None:
        self._handlers: dict[ResourceTypeTag, FindingHandler[Any]] = {}
        for handler in handlers:
            self.register(handler)

    def register(self, handler: FindingHandler[Any]) -> None:
        if handler.tag in self._handlers:
            log.debug("Replacing finding handler for %s", handler.tag)
        self._handlers[handler.tag] = handler

    def __getitem__(self, tag: ResourceTypeTag) -> FindingHandler[Any]:
        try:
            return self._handlers[tag]
        except KeyError:
            raise LookupError(f"No finding handler registered for {tag!r}") from None

    def __contains__(self, tag: object) -> bool:
        return tag in self._handlers

    def __iter__(self) -> Iterator[ResourceTypeTag]:
        return iter(self._handlers)

    def read(self, tag: ResourceTypeTag, nodes: Iterable[ResourceNode]) -> list[FindingRecord]:
        handler = self[tag]
        return [handler.read(node) for node in nodes]

    async def reconcile(
        self,
        reconciler: MultiEntityReconciler,
        tag: ResourceTypeTag,
        snapshot: EntitySnapshotMap,
        raw_findings: Sequence[Mapping[str, Any] | FindingRecord],
        *,
        on_snapshot: Callable[[EntitySnapshotMap], None] | None = None,
    ) -> ReconciliationOutcome:
        handler = self[tag]
        findings = handler.parse(raw_findings)
        return await reconciler.reconcile(
            snapshot, findings, handler.transform, tag, on_snapshot=on_snapshot
        )


def _coded_type(node: ResourceNode, token: str | None, value_set: ValueSet) -> Coding | None:
    """Coding to write for a selected type: offered code or the preserved foreign one."""

    if token is None:
        return None
    offered = value_set.get_by_code(token)
    if offered is not None:
        return offered
    return get_unsupported_coding(token, node, TYPE_CODING_PATH, value_set)


# Implants (KBV_PR_MIO_ULB_Device_Implant)


def read_implant(node: ResourceNode, *, value_set: ValueSet) -> ImplantFinding:
    return ImplantFinding(
        id=node.entity_id,
        implantType=check_coding(node, TYPE_CODING_PATH, value_set.options),
        comment=node.get_subtree_by_path("note.text").get_value_as_string(),
    )


def write_implant(
    node: ResourceNode, finding: ImplantFinding, *, patient_id: EntityId, value_set: ValueSet
) -> ResourceNode:
    coding = _coded_type(node, finding.implant_type, value_set)
    node.delete_subtree_by_path("")

    write_coding_to_subtree(node, TYPE_CODING_PATH, coding)
    if finding.comment:
        node.set_value("note.text", MarkdownValue(finding.comment))
    if finding.implant_type or finding.comment:
        write_coding_to_subtree(node, "extension[0].valueCodeableConcept.coding", IMPLANT_CONCEPT)
        node.set_value("extension[0]", UriValue(TERMINOLOGY_ASSOCIATION_URL))
        node.set_value("patient.reference", UuidValue(patient_id))
    return node


# Devices (KBV_PR_MIO_ULB_Device)


def read_device(node: ResourceNode, *, value_set: ValueSet) -> DeviceFinding:
    def text(path: str) -> str | None:
        return node.get_subtree_by_path(path).get_value_as_string()

    organization = text("extension[0].valueReference.reference")
    return DeviceFinding(
        id=node.entity_id,
        deviceType=check_coding(node, TYPE_CODING_PATH, value_set.options),
        deviceName=text("deviceName.name") or text("deviceName.name[0]"),
        modelNumber=text("modelNumber"),
        udiCarrier=text("udiCarrier.deviceIdentifier"),
        serialNumber=text("serialNumber"),
        deviceResponsibleOrganization=strip_uuid_urn(organization),
    )


def write_device(
    node: ResourceNode, finding: DeviceFinding, *, patient_id: EntityId, value_set: ValueSet
) -> ResourceNode:
    coding = _coded_type(node, finding.device_type, value_set)
    node.delete_subtree_by_path("")

    write_coding_to_subtree(node, TYPE_CODING_PATH, coding)
    if finding.responsible_organization:
        node.set_value(
            "extension[0].valueReference.reference", UuidValue(finding.responsible_organization)
        )
        node.set_value("extension[0]", UriValue(RESPONSIBLE_PARTY_URL))
    for path, value in (
        ("deviceName.name", finding.device_name),
        ("modelNumber", finding.model_number),
        ("udiCarrier.deviceIdentifier", finding.udi_carrier),
        ("serialNumber", finding.serial_number),
    ):
        if value:
            node.set_value(path, StringValue(value))
    if node.children:
        node.set_value("patient.reference", UuidValue(patient_id))
    return node


def implant_handler(
    patient_id: EntityId, value_set: ValueSet | None = None
) -> FindingHandler[ImplantFinding]:
    value_set = value_set or ValueSet(MEDICAL_DEVICE_VALUE_SET)
    return FindingHandler(
        tag=ResourceTag.DEVICE_IMPLANT,
        model=ImplantFinding,
        read=partial(read_implant, value_set=value_set),
        transform=partial(write_implant, patient_id=patient_id, value_set=value_set),
        value_set_url=value_set.url,
    )


def device_handler(
    patient_id: EntityId, value_set: ValueSet | None = None
) -> FindingHandler[DeviceFinding]:
    value_set = value_set or ValueSet(DEVICE_VALUE_SET)
    return FindingHandler(
        tag=ResourceTag.DEVICE,
        model=DeviceFinding,
        read=partial(read_device, value_set=value_set),
        transform=partial(write_device, patient_id=patient_id, value_set=value_set),
        value_set_url=value_set.url,
    )


def default_dispatch_table(patient_id: EntityId) -> FindingDispatchTable:
    """Handlers for every multi-entity resource the editor ships with."""

    return FindingDispatchTable([implant_handler(patient_id), device_handler(patient_id)])
