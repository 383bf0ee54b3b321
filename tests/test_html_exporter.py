"""
HTML Exporter Tests
===================
"""

from marksheet_labs.models.document_models import TemplateDocument
from marksheet_labs.models.element_models import create_element, parse_element
from marksheet_labs.services.html_exporter import export_template_html, get_html_exporter


def _export(*elements, **kwargs):
    return export_template_html(TemplateDocument(elements=list(elements)), **kwargs)


def test_page_shell_and_canvas_size(document):
    html = export_template_html(document)
    assert html.startswith("<!DOCTYPE html>")
    assert "width: 600px;" in html
    assert "height: 800px;" in html
    assert "<title>Untitled Template</title>" in html
    assert "background-color: #ffffff;" in html


def test_text_content_is_escaped():
    html = _export(create_element("text", "t", content="<script>alert('x')</script>"))
    assert "<script>" not in html
    assert "&lt;script&gt;alert(&#x27;x&#x27;)&lt;/script&gt;" in html


def test_placeholders_are_kept_literally(document):
    html = export_template_html(document)
    for token in ("{{studentName}}", "{{class}}", "{{rollNumber}}", "{{percentage}}%", "{{grade}}", "{{result}}"):
        assert token in html


def test_elements_are_absolutely_positioned():
    html = _export(create_element("box", "b", x=12, y=34, width=56, height=78))
    assert "position: absolute; left: 12px; top: 34px; width: 56px; height: 78px" in html


def test_style_values_cannot_break_out_of_attribute():
    html = _export(create_element("text", "t", textColor='red;" onclick="alert(1)'))
    assert 'onclick="alert(1)"' not in html
    assert "color: red onclick=alert(1)" in html


def test_empty_logo_is_omitted_and_uploaded_logo_rendered():
    assert "<img" not in _export(create_element("logo", "l"))
    html = _export(create_element("logo", "l", content="data:image/png;base64,AAAA"))
    assert '<img src="data:image/png;base64,AAAA" alt="Logo"' in html


def test_subjects_table_rows():
    html = _export(create_element("subjects_table", "s", subjects=[
        {"id": 1, "name": "Math & Science", "maxMarks": 50},
        {"id": 2, "name": "English"},
    ]))
    assert "Math &amp; Science" in html
    assert "{{marks_1}}" in html and "{{marks_2}}" in html
    assert ">50<" in html
    assert "Max Marks" in html


def test_table_header_can_be_hidden():
    table = create_element("table", "t", rows=1, cols=2, headers=["H1", "H2"], showHeader=False)
    html = _export(table)
    assert "H1" not in html
    assert "<tbody>" in html


def test_background_image_is_rendered():
    html = _export(background_color="#fef3c7", background_image="data:image/png;base64,CC")
    assert "background-color: #fef3c7;" in html
    assert "background-image: url('data:image/png;base64,CC')" in html


def test_background_image_cannot_close_the_style_block():
    html = _export(background_image="x');}</style><script>alert(1)</script>")
    assert "</style><script>" not in html


def test_unknown_kind_renders_its_content():
    exporter = get_html_exporter()
    element = parse_element({"id": "w", "type": "widget", "content": "<b>hi</b>"})
    assert exporter.render_element(element).endswith(">&lt;b&gt;hi&lt;/b&gt;</div>")
    assert exporter.render_element(parse_element({"id": "e", "type": "widget"})) == ""


def test_elements_render_in_z_order():
    html = _export(create_element("text", "a", content="first"), create_element("text", "b", content="second"))
    assert html.index("first") < html.index("second")
