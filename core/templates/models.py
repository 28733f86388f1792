"""Data models for form-template extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

FieldType = Literal["Param", "ParamText", "ParamDate", "ParamSelect", "ParamMemo"]

DEFAULT_FIELD_NAME = "Без названия"
DEFAULT_BLOCK_NAME = "Без названия"
DEFAULT_SECTION_NAME = "Раздел"


@dataclass(frozen=True)
class Option:
    """One ``|value|label|`` entry of a lookup dictionary."""

    value: str
    label: str


@dataclass(frozen=True)
class Field:
    """Fillable leaf of the form tree."""

    type: FieldType
    code: str
    name: str
    regex: str | None = None
    error_text: str | None = None
    dictionary: str | None = None
    options: tuple[Option, ...] | None = None


@dataclass(frozen=True)
class Section:
    """Composite node of the form tree.

    Expand/collapse state is tracked separately in ``CollapseState``.
    """

    name: str
    children: tuple[Node, ...] = ()


Node = Union[Field, Section]
Dictionaries = dict[str, list[Option]]


@dataclass
class StructureResult:
    """Extraction output: the form tree and the code -> alias key map."""

    structure: list[Node] = field(default_factory=list)
    alias_map: dict[str, str] = field(default_factory=dict)


@dataclass
class ExtractionContext:
    """Mutable state of one extraction pass.

    Created per ``extract_structure`` call and threaded through the parameter
    extractor, so separate calls never share counters.
    """

    dictionaries: Dictionaries = field(default_factory=dict)
    alias_map: dict[str, str] = field(default_factory=dict)
    code_counters: dict[str, int] = field(default_factory=dict)
    issued_codes: set[str] = field(default_factory=set)
    seen_block_codes: set[str] = field(default_factory=set)

    def issue_code(self, raw_code: str) -> tuple[str, int]:
        """Return a pass-unique code for ``raw_code`` and its occurrence index.

        The Nth occurrence of a raw code becomes ``{raw_code}_{N}``. Indexes
        whose suffixed code is already taken are skipped.
        """

        count = self.code_counters.get(raw_code, 0) + 1
        code = raw_code if count == 1 else f"{raw_code}_{count}"
        while code in self.issued_codes:
            count += 1
            code = f"{raw_code}_{count}"
        self.code_counters[raw_code] = count
        self.issued_codes.add(code)
        return code, count
