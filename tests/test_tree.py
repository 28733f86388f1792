from __future__ import annotations

from core.templates.models import Field, Option, Section, StructureResult
from core.templates.tree import CollapseState, flatten_fields, iter_sections, result_to_payload


def _structure() -> list[Field | Section]:
    return [
        Section(
            name="Block",
            children=(
                Field(type="ParamText", code="A", name="A", regex="\\d+", error_text="digits"),
                Section(
                    name="Sub",
                    children=(
                        Field(
                            type="ParamSelect",
                            code="S",
                            name="S",
                            dictionary="D",
                            options=(Option(value="1", label="One"),),
                        ),
                    ),
                ),
            ),
        ),
        Section(name="Second", children=(Field(type="ParamDate", code="B", name="B"),)),
    ]


def test_flatten_fields_preserves_source_order() -> None:
    assert [field.code for field in flatten_fields(_structure())] == ["A", "S", "B"]


def test_iter_sections_yields_index_paths() -> None:
    paths = [(path, section.name) for path, section in iter_sections(_structure())]

    assert paths == [((0,), "Block"), ((0, 1), "Sub"), ((1,), "Second")]


def test_collapse_state_toggle_and_bulk_operations() -> None:
    state = CollapseState()

    assert state.toggle((0, 1)) is True
    assert state.is_collapsed((0, 1))
    assert state.toggle((0, 1)) is False
    assert not state.is_collapsed((0, 1))

    state.collapse_all(_structure())
    assert all(state.is_collapsed(path) for path, _ in iter_sections(_structure()))
    state.expand_all()
    assert not state.is_collapsed((0,))


def test_result_payload_shape() -> None:
    state = CollapseState({(0, 1)})
    result = StructureResult(structure=_structure(), alias_map={"A": "A", "S": "S"})

    payload = result_to_payload(result, state)

    block = payload["structure"][0]
    assert block["name"] == "Block"
    assert block["collapsed"] is False
    assert block["children"][0] == {
        "type": "ParamText",
        "code": "A",
        "name": "A",
        "regex": "\\d+",
        "errorText": "digits",
    }
    sub = block["children"][1]
    assert sub["collapsed"] is True
    assert sub["children"][0]["options"] == [{"value": "1", "label": "One"}]
    assert sub["children"][0]["dictionary"] == "D"
    assert payload["structure"][1]["children"][0] == {"type": "ParamDate", "code": "B", "name": "B"}
    assert payload["aliasMap"] == {"A": "A", "S": "S"}
