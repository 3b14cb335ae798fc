"""Encoding of structured human names.

A person carries an official name (``name[0]``) and optionally a maiden name
(``name[1]``). Family-name parts are stored twice: once flattened into
``family``/``text`` for display, and once as typed extensions on ``family`` so
the parts can be edited separately again.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from piosync.domain.model.enums import NameUse
from piosync.domain.model.forms import MaidenNameModel, StructuredNameModel
from piosync.domain.model.primitives import CodeValue, StringValue, UriValue
from piosync.domain.tree import parse_segment

if TYPE_CHECKING:
    from collections.abc import Iterable

    from piosync.domain.tree import ResourceNode

log = getLogger(__name__)

OWN_NAME_URL: Final[str] = "http://hl7.org/fhir/StructureDefinition/humanname-own-name"
NAMENSZUSATZ_URL: Final[str] = "http://fhir.de/StructureDefinition/humanname-namenszusatz"
VORSATZWORT_URL: Final[str] = "http://hl7.org/fhir/StructureDefinition/humanname-own-prefix"
PREFIX_QUALIFIER_URL: Final[str] = "http://hl7.org/fhir/StructureDefinition/iso21090-EN-qualifier"
ACADEMIC_QUALIFIER: Final[str] = "AC"

_GROUP_INDEX: Final[dict[NameUse, int]] = {NameUse.OFFICIAL: 0, NameUse.MAIDEN: 1}


def family_string(
    family_name: str | None, namenszusatz: str | None, vorsatzwort: str | None
) -> str:
    """Flatten family-name parts into ``"<namenszusatz> <vorsatzwort> <family>"``."""

    family = f"{namenszusatz or ''} {vorsatzwort or ''} {family_name or ''}"
    return family.strip().replace("  ", " ")


def full_name(family: str, *, prefix: str | None = None, given: str | None = None) -> str:
    return f"{prefix + ' ' if prefix else ''}{family}{', ' + given if given else ''}"


def _family_parts(name: MaidenNameModel) -> list[tuple[str, str]]:
    # own-name first; extension indices depend on this order
    parts = (
        (OWN_NAME_URL, name.family_name),
        (NAMENSZUSATZ_URL, name.namenszusatz),
        (VORSATZWORT_URL, name.vorsatzwort),
    )
    return [(url, value) for url, value in parts if value]


def _encode_group(
    node: ResourceNode,
    use: NameUse,
    name: MaidenNameModel,
    *,
    given: str | None = None,
    prefix: str | None = None,
) -> None:
    path = f"name[{_GROUP_INDEX[use]}]"
    family = family_string(name.family_name, name.namenszusatz, name.vorsatzwort)

    if name.family_name:
        node.set_value(f"{path}.use", CodeValue(use.value))
        node.set_value(f"{path}.text", StringValue(full_name(family, prefix=prefix, given=given)))
        node.set_value(f"{path}.family", StringValue(family))

    for index, (url, value) in enumerate(_family_parts(name)):
        extension = f"{path}.family.extension[{index}]"
        node.set_value(extension, UriValue(url))
        node.set_value(f"{extension}.valueString", StringValue(value))

    if prefix:
        node.set_value(f"{path}.prefix", StringValue(prefix))
        node.set_value(f"{path}.prefix.extension", UriValue(PREFIX_QUALIFIER_URL))
        node.set_value(f"{path}.prefix.extension.valueCode", CodeValue(ACADEMIC_QUALIFIER))

    if given:
        node.set_value(f"{path}.given", StringValue(given))


def encode_name(node: ResourceNode, name: StructuredNameModel) -> None:
    """Replace the content of ``node`` with the tree form of ``name``."""

    node.delete_subtree_by_path("")
    _encode_group(node, NameUse.OFFICIAL, name, given=name.given_name, prefix=name.prefix)
    if name.geburtsname is not None:
        _encode_group(node, NameUse.MAIDEN, name.geburtsname)


def extension_value(parent: ResourceNode, url: str) -> str | None:
    """Return ``valueString`` of the ``extension[i]`` child of ``parent`` carrying ``url``."""

    for extension in parent.children:
        if not extension.last_path_element.startswith("extension"):
            continue
        if extension.get_value_as_string() == url:
            return extension.get_subtree_by_path("valueString").get_value_as_string()
    return None


def _decode_family(group: ResourceNode) -> dict[str, str | None]:
    family = group.get_subtree_by_path("family")
    return {
        "familyName": extension_value(family, OWN_NAME_URL),
        "namenszusatz": extension_value(family, NAMENSZUSATZ_URL),
        "vorsatzwort": extension_value(family, VORSATZWORT_URL),
    }


def _group_use(group: ResourceNode) -> NameUse:
    use = group.get_subtree_by_path("use").get_value_as_string()
    if use in (NameUse.OFFICIAL, NameUse.MAIDEN):
        return NameUse(use)
    # groups without a family name carry no use; fall back to their position
    _, index = parse_segment(group.last_path_element)
    return NameUse.MAIDEN if index == _GROUP_INDEX[NameUse.MAIDEN] else NameUse.OFFICIAL


def decode_name(groups: Iterable[ResourceNode]) -> StructuredNameModel:
    """Build the flat name model from ``name[i]`` nodes."""

    official: dict[str, object] = {}
    maiden: dict[str, str | None] | None = None
    for group in groups:
        if _group_use(group) is NameUse.MAIDEN:
            maiden = _decode_family(group)
            continue
        values = {
            **_decode_family(group),
            "givenName": group.get_subtree_by_path("given").get_value_as_string(),
            "prefix": group.get_subtree_by_path("prefix").get_value_as_string(),
        }
        official.update({key: value for key, value in values.items() if value is not None})
        qualifier = group.get_subtree_by_path("prefix.extension.valueCode").get_value_as_string()
        if qualifier not in (None, ACADEMIC_QUALIFIER):
            log.debug("Ignoring prefix qualifier %s at %s", qualifier, group.absolute_path)

    if maiden is not None:
        official["geburtsname"] = MaidenNameModel.model_validate(maiden)
    return StructuredNameModel.model_validate(official)


def name_groups(node: ResourceNode) -> list[ResourceNode]:
    """Return the ``name[i]`` children of a resource node."""

    return [child for child in node.children if child.last_path_element.startswith("name[")]
