"""
Element Model Tests
===================

Typed element parsing, defaults and table grid consistency.
"""

from marksheet_labs.canvas import operations
from marksheet_labs.models.document_models import TemplateDocument
from marksheet_labs.models.element_models import (
    ElementType,
    GenericElement,
    SubjectRow,
    TableElement,
    TextElement,
    create_element,
    dump_element,
    parse_element,
)


def test_create_element_applies_kind_defaults():
    element = create_element(ElementType.HEADING, "h1")
    assert element.type == "heading"
    assert element.content == "Heading"
    assert element.font_size == 24
    assert (element.x, element.y, element.width, element.height) == (150, 100, 300, 40)


def test_create_element_unknown_kind_falls_back_to_text():
    element = create_element("sparkline", "x1")
    assert isinstance(element, TextElement)
    assert element.id == "x1"


def test_create_element_overrides_accept_both_spellings():
    element = create_element(ElementType.TEXT, "t1", fontSize=18, text_align="left")
    assert element.font_size == 18
    assert element.text_align == "left"


def test_dump_uses_camel_case_keys():
    wire = dump_element(create_element(ElementType.TEXT, "t1"))
    assert wire["fontSize"] == 14
    assert wire["textAlign"] == "center"
    assert "font_size" not in wire


def test_float_geometry_rounds_half_up():
    element = parse_element({"id": "b", "type": "box", "x": 10.5, "y": 3.4, "width": 99.5})
    assert (element.x, element.y, element.width) == (11, 3, 100)


def test_unknown_kind_is_kept_with_its_attributes():
    element = parse_element({"id": "w", "type": "widget", "content": "hi", "customFlag": True})
    assert isinstance(element, GenericElement)
    wire = dump_element(element)
    assert wire["type"] == "widget"
    assert wire["customFlag"] is True


def test_table_grid_is_padded_and_truncated():
    table = parse_element({
        "id": "t", "type": "table", "rows": 2, "cols": 2,
        "headers": ["A", "B", "C"],
        "data": [["1"], ["2", "3", "4"], ["5", "6"]],
    })
    assert table.headers == ["A", "B"]
    assert table.data == [["1", ""], ["2", "3"]]


def test_table_cells_are_stringified():
    table = parse_element({"id": "t", "type": "table", "rows": 1, "cols": 2, "data": [[1, None]]})
    assert table.data == [["1", ""]]


def test_table_columns_three_to_five_on_two_rows():
    table = create_element(ElementType.TABLE, "t1", rows=2)
    document = TemplateDocument(elements=[table])
    assert len(document.elements[0].data) == 2

    updated = operations.update_element(document, "t1", "cols", 5)
    table = updated.find("t1")
    assert isinstance(table, TableElement)
    assert table.cols == 5
    assert table.headers == ["Header 1", "Header 2", "Header 3", "Header 4", "Header 5"]
    assert len(table.data) == 2
    assert all(len(row) == 5 for row in table.data)
    assert table.data[0] == ["Cell 1", "Cell 2", "Cell 3", "", ""]


def test_subject_row_default_placeholder():
    row = SubjectRow(id=3, name="Science")
    assert row.marks_placeholder == "{{marks_3}}"
    assert row.max_marks == 100


def test_document_round_trips_through_wire_form(document):
    restored = TemplateDocument.model_validate(document.to_wire())
    assert restored == document
    assert restored.element_ids() == document.element_ids()
