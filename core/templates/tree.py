"""Traversal, collapse state and JSON payloads for the form tree."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any

from core.templates.models import Field, Node, Section, StructureResult

SectionPath = tuple[int, ...]


def flatten_fields(nodes: Sequence[Node]) -> list[Field]:
    """Return every field of the tree in source order."""

    fields: list[Field] = []
    for node in nodes:
        if isinstance(node, Section):
            fields.extend(flatten_fields(node.children))
        else:
            fields.append(node)
    return fields


def iter_sections(
    nodes: Sequence[Node], parent: SectionPath = ()
) -> Iterator[tuple[SectionPath, Section]]:
    """Yield ``(path, section)`` pairs depth-first.

    A path is the tuple of child indexes from the top-level list, so it is only
    valid for the tree it was computed from.
    """

    for index, node in enumerate(nodes):
        if isinstance(node, Section):
            path = (*parent, index)
            yield path, node
            yield from iter_sections(node.children, path)


class CollapseState:
    """Expand/collapse flags kept beside the immutable tree."""

    def __init__(self, collapsed: set[SectionPath] | None = None) -> None:
        self._collapsed: set[SectionPath] = set(collapsed or ())

    def is_collapsed(self, path: SectionPath) -> bool:
        return path in self._collapsed

    def toggle(self, path: SectionPath) -> bool:
        """Flip one section and return its new state."""

        if path in self._collapsed:
            self._collapsed.remove(path)
            return False
        self._collapsed.add(path)
        return True

    def collapse_all(self, nodes: Sequence[Node]) -> None:
        self._collapsed = {path for path, _ in iter_sections(nodes)}

    def expand_all(self) -> None:
        self._collapsed.clear()


def node_to_payload(
    node: Node, path: SectionPath, collapse_state: CollapseState | None = None
) -> dict[str, Any]:
    if isinstance(node, Section):
        return {
            "name": node.name,
            "collapsed": collapse_state.is_collapsed(path) if collapse_state else False,
            "children": [
                node_to_payload(child, (*path, index), collapse_state)
                for index, child in enumerate(node.children)
            ],
        }

    payload: dict[str, Any] = {"type": node.type, "code": node.code, "name": node.name}
    if node.regex is not None:
        payload["regex"] = node.regex
    if node.error_text is not None:
        payload["errorText"] = node.error_text
    if node.dictionary is not None:
        payload["dictionary"] = node.dictionary
    if node.options is not None:
        payload["options"] = [
            {"value": option.value, "label": option.label} for option in node.options
        ]
    return payload


def result_to_payload(
    result: StructureResult, collapse_state: CollapseState | None = None
) -> dict[str, Any]:
    """Serialize a structure result into the collaborator-facing JSON shape."""

    return {
        "structure": [
            node_to_payload(node, (index,), collapse_state)
            for index, node in enumerate(result.structure)
        ],
        "aliasMap": dict(result.alias_map),
    }
