"""
Template Serializer Tests
=========================

Section partition, the persisted payload and loading of both the
sectioned and the older flat template formats.
"""

from marksheet_labs.models.document_models import SectionStyle, TemplateDocument
from marksheet_labs.models.element_models import GenericElement, create_element
from marksheet_labs.services.template_serializer import (
    SECTION_NAMES,
    build_template_payload,
    combine_sections,
    load_template,
    partition_elements,
    section_for,
)


def _box(element_id, y, height):
    return create_element("box", element_id, y=y, height=height)


def test_section_for_uses_vertical_midpoint():
    assert section_for(_box("a", 0, 100)) == "header"
    assert section_for(_box("b", 150, 100)) == "body"
    assert section_for(_box("c", 580, 60)) == "footer"


def test_section_boundaries_belong_to_body():
    assert section_for(_box("a", 180, 40)) == "body"
    assert section_for(_box("b", 580, 40)) == "body"


def test_partition_is_idempotent(document):
    first = partition_elements(document.elements)
    second = partition_elements(combine_sections(first))
    assert {name: [e.id for e in elements] for name, elements in first.items()} == \
        {name: [e.id for e in elements] for name, elements in second.items()}


def _layered_page():
    # Full-page background added first, so z-order differs from section order
    return [
        create_element("box", "background", x=0, y=0, width=600, height=800),
        create_element("signature", "sig", y=700, height=40),
        create_element("heading", "title", y=20, height=40),
        create_element("text", "note", y=300, height=40),
    ]


def test_recombined_sections_follow_section_then_original_order():
    elements = _layered_page()
    combined = combine_sections(partition_elements(elements))

    expected = sorted(
        elements,
        key=lambda element: (SECTION_NAMES.index(section_for(element)), elements.index(element)),
    )
    assert [e.id for e in combined] == [e.id for e in expected] == ["title", "background", "note", "sig"]
    assert combine_sections(partition_elements(combined)) == combined


def test_partition_of_default_template(document):
    sections = partition_elements(document.elements)
    header_ids = [element.id for element in sections["header"]]
    assert header_ids[:4] == ["logo-1", "title-1", "subtitle-1", "marksheet-title"]
    assert "subjects-table-1" in [element.id for element in sections["body"]]
    assert [element.id for element in sections["footer"]] == ["sig-1", "sig-2", "sig-3"]


def test_payload_wire_format(document):
    payload = build_template_payload(document, html="<html></html>")
    wire = payload.to_wire()

    assert "templateId" not in wire
    assert "logo" not in wire
    assert wire["templateName"] == "Untitled Template"
    assert wire["canvasBackgroundColor"] == "#ffffff"
    assert wire["html"] == "<html></html>"
    assert set(wire["sections"]) == {"header", "body", "footer"}
    assert wire["sections"]["header"]["style"]["height"] == "200px"
    assert wire["sections"]["body"]["style"]["backgroundColor"] == "transparent"
    assert len(wire["elements"]) == len(document.elements)
    sectioned = sum(len(section["elements"]) for section in wire["sections"].values())
    assert sectioned == len(document.elements)


def test_payload_carries_logo_subjects_and_id():
    document = TemplateDocument(elements=[
        create_element("logo", "logo", content="data:image/png;base64,AA"),
        create_element("subjects_table", "s", subjects=[{"id": 1, "name": "Math"}]),
    ])
    payload = build_template_payload(
        document,
        section_styles={"body": SectionStyle(height="500px")},
        template_id="t-1",
    )
    wire = payload.to_wire()
    assert wire["templateId"] == "t-1"
    assert wire["logo"] == "data:image/png;base64,AA"
    assert wire["subjects"][0]["marksPlaceholder"] == "{{marks_1}}"
    assert wire["sections"]["body"]["style"]["height"] == "500px"
    assert wire["sections"]["header"]["style"]["height"] == "200px"


def test_load_sectioned_template_round_trip(document):
    wire = build_template_payload(document, background_image="data:image/png;base64,BB").to_wire()
    wire["_id"] = "abc"
    loaded = load_template(wire)

    assert loaded.template_id == "abc"
    assert sorted(loaded.document.element_ids()) == sorted(document.element_ids())
    assert loaded.document.find("title-1") == document.find("title-1")
    assert loaded.background_image == "data:image/png;base64,BB"
    assert loaded.section_styles["footer"].height == "200px"


def test_load_flat_template_with_defaults():
    loaded = load_template({
        "elements": [
            {"id": "a", "type": "text", "content": "one"},
            {"id": "a", "type": "heading", "content": "two"},
            {"type": "box"},
        ],
    })
    assert loaded.template_id is None
    assert loaded.document.template_name == "Untitled Template"
    assert loaded.document.institution_name == "Enter Institution Name"
    assert loaded.document.element_ids() == ["a", "a-1", "box-2"]
    assert loaded.section_styles["body"].height == "400px"


def test_load_skips_invalid_elements_and_keeps_unknown_kinds():
    loaded = load_template({
        "templateId": "t",
        "elements": [
            {"id": "bad", "type": "table", "rows": 0},
            {"id": "w", "type": "qr_code", "content": "x", "size": 3},
            "not an element",
        ],
    })
    assert loaded.document.element_ids() == ["w"]
    assert isinstance(loaded.document.find("w"), GenericElement)


def test_load_uses_stored_section_styles():
    loaded = load_template({
        "sections": {
            "header": {"elements": [{"id": "h", "type": "heading"}], "style": {"height": "150px"}},
            "footer": {"elements": [{"id": "f", "type": "signature"}], "style": "bogus"},
        },
    })
    assert loaded.document.element_ids() == ["h", "f"]
    assert loaded.section_styles["header"].height == "150px"
    assert loaded.section_styles["footer"].height == "200px"


def test_load_sectioned_template_keeps_drawing_order():
    document = TemplateDocument(elements=_layered_page())
    wire = build_template_payload(document).to_wire()
    assert [e["id"] for e in wire["sections"]["header"]["elements"]] == ["title"]

    loaded = load_template(wire)
    assert loaded.document.element_ids() == ["background", "sig", "title", "note"]


def test_load_sectioned_template_ignores_mismatched_flat_list():
    wire = build_template_payload(TemplateDocument(elements=_layered_page())).to_wire()
    wire["elements"] = wire["elements"][:2]
    assert load_template(wire).document.element_ids() == ["title", "background", "note", "sig"]
