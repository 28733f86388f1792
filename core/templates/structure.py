"""Form structure extraction: blocks, section wrappers and parameters."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from core.templates.dictionary import extract_dictionary
from core.templates.markup import Element, iter_elements, read_attr
from core.templates.models import (
    DEFAULT_BLOCK_NAME,
    DEFAULT_SECTION_NAME,
    ExtractionContext,
    Node,
    Section,
    StructureResult,
)
from core.templates.parameters import extract_parameters
from core.templates.tree import flatten_fields

logger = logging.getLogger("actform.templates")

DEFAULT_FORM_ROLES: tuple[str, ...] = ("Act", "Info")
BLOCK_TAGS = ("Simple", "Alt", "Multi")
_FORM_TAGS = ("Form",)
_SECTION_TAGS = ("Section",)


def extract_structure(
    template_text: str,
    dictionary_text: str,
    excluded_codes: Iterable[str] = (),
    *,
    form_roles: Iterable[str] = DEFAULT_FORM_ROLES,
) -> StructureResult:
    """Build the form tree and alias map for one template.

    Rules:
    - Only ``Form`` regions whose ``Code`` is one of ``form_roles`` are read.
    - Top-level ``Simple``/``Alt``/``Multi`` blocks need a ``Code``; excluded
      codes and codes already seen anywhere in the document are dropped.
    - ``Section`` wrappers with a ``Code`` become child sections; wrappers
      without one are spliced into their parent.
    - Source order is kept at every level.
    """

    context = ExtractionContext(dictionaries=extract_dictionary(dictionary_text))
    excluded = set(excluded_codes)
    roles = set(form_roles)
    structure: list[Node] = []

    for form in iter_elements(template_text, _FORM_TAGS):
        if form.self_closing or read_attr(form.attrs, "Code") not in roles:
            continue

        for block in iter_elements(form.body, BLOCK_TAGS):
            if block.self_closing:
                continue
            code = read_attr(block.attrs, "Code")
            if code is None or code in excluded or code in context.seen_block_codes:
                continue
            context.seen_block_codes.add(code)

            structure.append(
                Section(
                    name=read_attr(block.attrs, "Name") or DEFAULT_BLOCK_NAME,
                    children=tuple(_extract_wrappers(block.body, context)),
                )
            )

    logger.debug(
        "extracted structure: blocks=%d fields=%d aliases=%d",
        len(structure),
        len(flatten_fields(structure)),
        len(context.alias_map),
    )
    return StructureResult(structure=structure, alias_map=context.alias_map)


def _extract_wrappers(body: str, context: ExtractionContext) -> list[Node]:
    nodes: list[Node] = []
    for wrapper in iter_elements(body, _SECTION_TAGS):
        if not wrapper.self_closing:
            nodes.extend(_extract_wrapper(wrapper, context))
    return nodes


def _extract_wrapper(wrapper: Element, context: ExtractionContext) -> list[Node]:
    nodes: list[Node] = []
    cursor = 0
    for nested in iter_elements(wrapper.body, _SECTION_TAGS):
        nodes.extend(extract_parameters(wrapper.body[cursor : nested.start], context))
        if not nested.self_closing:
            nodes.extend(_extract_wrapper(nested, context))
        cursor = nested.end
    nodes.extend(extract_parameters(wrapper.body[cursor:], context))

    if read_attr(wrapper.attrs, "Code") is None:
        return nodes
    name = read_attr(wrapper.attrs, "Name") or DEFAULT_SECTION_NAME
    return [Section(name=name, children=tuple(nodes))]
