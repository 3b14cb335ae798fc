"""Preservation of terminology codes the editor's curated option lists do not offer.

A curated drop-down only ever shows a subset of a code system, while persisted
data may hold any code of it. Codes outside the offered options are rendered
as a decorated token (``"<display> (nicht unterstützter Code: <code>)"``). As
long as the user keeps that token selected, the original coding is written
back unchanged on save.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from piosync.domain.model.coding import Coding
from piosync.domain.model.primitives import CodeValue, StringValue, UriValue

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from piosync.domain.model.coding import SelectOption
    from piosync.domain.tree import ResourceNode
    from piosync.domain.valuesets import ValueSet

log = getLogger(__name__)

UNSUPPORTED_CODING_MARKER: Final[str] = " (nicht unterstützter Code:"
UNSUPPORTED_CODE_SUFFIX: Final[str] = " (nicht unterstützter Code)"

_CODING_FIELDS: Final[tuple[str, ...]] = ("system", "version", "code", "display")


def _join(sub_path: str, leaf: str) -> str:
    return leaf if sub_path == "" else f"{sub_path}.{leaf}"


def _offers(options: Iterable[SelectOption], code: str | None) -> bool:
    return code is not None and any(option.value == code for option in options)


def unsupported_coding_token(display: str, code: str | None) -> str:
    return f"{display}{UNSUPPORTED_CODING_MARKER} {code or ''})"


def token_display(token: str) -> str:
    """Return the display part of a (possibly decorated) selection token."""

    return token.split(UNSUPPORTED_CODING_MARKER)[0]


def read_coding(node: ResourceNode, path: str) -> Coding | None:
    values = {
        name: node.get_subtree_by_path(_join(path, name)).get_value_as_string()
        for name in _CODING_FIELDS
    }
    if not any(values.values()):
        return None
    return Coding(**values)


def write_coding_to_subtree(node: ResourceNode, path: str, coding: Coding | None) -> None:
    """Write a coding element; missing members are skipped."""

    if coding is None:
        return
    if coding.system is not None:
        node.set_value(_join(path, "system"), UriValue(coding.system))
    if coding.version is not None:
        node.set_value(_join(path, "version"), StringValue(coding.version))
    if coding.code is not None:
        node.set_value(_join(path, "code"), CodeValue(coding.code))
    if coding.display is not None:
        node.set_value(_join(path, "display"), StringValue(coding.display))


def delete_coding_from_subtree(node: ResourceNode, path: str) -> None:
    for name in _CODING_FIELDS:
        node.delete_value(_join(path, name))


def check_coding(node: ResourceNode, path: str, options: Sequence[SelectOption]) -> str | None:
    """Return the selectable value for the coding stored at ``path``.

    Offered codes come back verbatim; other codes are decorated with their
    display. A foreign code without a display cannot be represented and is
    reported as lost.
    """

    code = node.get_subtree_by_path(_join(path, "code")).get_value_as_string()
    display = node.get_subtree_by_path(_join(path, "display")).get_value_as_string()

    if _offers(options, code):
        return code
    if display:
        return unsupported_coding_token(display, code)
    if code:
        log.warning(
            f"Dropping code {code!r} at {node.absolute_path}: not offered and has no display"
        )
    return None


def check_code(code: str | None, options: Sequence[SelectOption]) -> str | None:
    """Same as ``check_coding`` for bare codes."""

    if not code:
        return None
    if _offers(options, code):
        return code
    if UNSUPPORTED_CODE_SUFFIX in code:
        return code
    return f"{code}{UNSUPPORTED_CODE_SUFFIX}"


def check_multiple_coding(
    container: ResourceNode, sub_path: str, options: Sequence[SelectOption]
) -> list[str]:
    values = (check_coding(child, sub_path, options) for child in container.children)
    return [value for value in values if value]


def _kept_unsupported_coding(
    node: ResourceNode, sub_path: str, selected_displays: Iterable[str], value_set: ValueSet
) -> Coding | None:
    coding = read_coding(node, sub_path)
    if coding is None or not coding.code or not coding.display:
        return None
    if coding.code in value_set:
        return None
    if coding.display not in selected_displays:
        return None
    return coding


def get_all_unsupported_codings(
    selected_tokens: Sequence[str] | None,
    container: ResourceNode,
    sub_path: str,
    value_set: ValueSet,
) -> list[Coding]:
    """Collect stored codings outside ``value_set`` that the user kept selected."""

    selected_displays = {token_display(token) for token in selected_tokens or ()}
    codings: list[Coding] = []
    for child in container.children:
        coding = _kept_unsupported_coding(child, sub_path, selected_displays, value_set)
        if coding is not None:
            codings.append(coding)
    return codings


def get_unsupported_coding(
    selected_token: str | None,
    node: ResourceNode,
    sub_path: str,
    value_set: ValueSet,
) -> Coding | None:
    if not selected_token:
        return None
    return _kept_unsupported_coding(node, sub_path, {token_display(selected_token)}, value_set)


def _next_index(container: ResourceNode, container_name: str) -> int:
    indices = [-1]
    for child in container.children:
        name, _, rest = child.last_path_element.partition("[")
        if name == container_name and rest.rstrip("]").isdigit():
            indices.append(int(rest.rstrip("]")))
    return max(indices) + 1


def write_unsupported_codings_to_subtree(
    container: ResourceNode,
    container_name: str,
    sub_path: str,
    codings: Sequence[Coding] | None,
) -> None:
    """Append preserved codings after the highest ``container_name[i]`` already written."""

    if not codings:
        return
    next_index = _next_index(container, container_name)
    for offset, coding in enumerate(codings):
        element = f"{container_name}[{next_index + offset}]"
        write_coding_to_subtree(container, _join_element(element, sub_path), coding)


def write_unsupported_coding_to_subtree(
    node: ResourceNode,
    container_name: str,
    sub_path: str,
    coding: Coding | None,
) -> None:
    if coding is None:
        return
    write_coding_to_subtree(node, _join_element(container_name, sub_path), coding)


def _join_element(element: str, sub_path: str) -> str:
    return element if sub_path == "" else f"{element}.{sub_path}"
