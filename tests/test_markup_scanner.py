from __future__ import annotations

from core.templates.markup import (
    find_marker_keys,
    first_marker_key,
    has_marker,
    iter_elements,
    read_attr,
)


def test_read_attr_returns_first_match() -> None:
    attrs = ' Code="First" Name="Label" Code="Second"'

    assert read_attr(attrs, "Code") == "First"
    assert read_attr(attrs, "Name") == "Label"


def test_read_attr_ignores_longer_attribute_names() -> None:
    attrs = ' SecCode="Wrong" CodeSelected="{?External(X)?}" Code="Right"'

    assert read_attr(attrs, "Code") == "Right"


def test_read_attr_treats_empty_value_as_absent() -> None:
    assert read_attr(' Code=""', "Code") is None
    assert read_attr(' Name="x"', "Code") is None


def test_iter_elements_keeps_nested_same_tag_inside_parent() -> None:
    text = '<Section Code="A"><Section>inner</Section>tail</Section><Section Code="B">b</Section>'

    elements = list(iter_elements(text, ("Section",)))

    assert [read_attr(item.attrs, "Code") for item in elements] == ["A", "B"]
    assert elements[0].body == "<Section>inner</Section>tail"
    assert text[elements[0].start : elements[0].end].endswith("tail</Section>")


def test_iter_elements_flags_self_closing() -> None:
    elements = list(iter_elements('<ParamText Code="A" /><ParamText Code="B">x</ParamText>', ("ParamText",)))

    assert [item.self_closing for item in elements] == [True, False]
    assert read_attr(elements[0].attrs, "Code") == "A"
    assert elements[1].body == "x"


def test_iter_elements_does_not_match_longer_tag_names() -> None:
    text = "<ParamText Code=\"A\">x</ParamText><Param Code=\"B\">y</Param>"

    elements = list(iter_elements(text, ("Param",)))

    assert [item.body for item in elements] == ["y"]


def test_iter_elements_skips_unterminated_element() -> None:
    text = '<Simple Code="Open"> <Simple Code="Inner">x</Simple>'

    elements = list(iter_elements(text, ("Simple",)))

    assert [read_attr(item.attrs, "Code") for item in elements] == ["Inner"]


def test_iter_elements_allows_gt_inside_quoted_attribute() -> None:
    text = '<ParamText Code="A" RegEx="a>b">body</ParamText>'

    elements = list(iter_elements(text, ("ParamText",)))

    assert len(elements) == 1
    assert read_attr(elements[0].attrs, "RegEx") == "a>b"
    assert elements[0].body == "body"


def test_iter_elements_is_total_over_garbage() -> None:
    assert list(iter_elements('<<Section "</Section>>>"<Section', ("Section",))) == []


def test_marker_helpers() -> None:
    text = "a {?External(One)?} b {?Editor(Two)?} c {?Other(Three)?}"

    assert has_marker(text)
    assert not has_marker("{?Other(Three)?}")
    assert first_marker_key(text) == "One"
    assert first_marker_key("no markers") is None
    assert find_marker_keys(text) == ["One", "Two"]


def test_marker_key_does_not_cross_another_marker_opening() -> None:
    text = "{?Editor(a {?External(B)?} {?External(C)?}"

    assert find_marker_keys(text) == ["B", "C"]
