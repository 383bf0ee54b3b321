"""
Marksheet HTML Exporter
=======================

Renders a template document as a standalone HTML page.

The page holds a 600x800 `.marksheet-container` with one absolutely
positioned fragment per element, in z-order. Every text value is
HTML-escaped; `{{placeholder}}` tokens are kept literally so the stored
HTML can be filled per student later.
"""

import logging
from html import escape
from typing import Callable, Dict, List, Optional

from ..config import CANVAS_HEIGHT, CANVAS_WIDTH, DEFAULT_BACKGROUND_COLOR
from ..models.document_models import TemplateDocument
from ..models.element_models import ElementBase, ElementType

logger = logging.getLogger(__name__)

BORDER_GRAY = "#d1d5db"
LABEL_GRAY = "#9ca3af"
SURFACE_GRAY = "#f3f4f6"
TEXT_DARK = "#1f2937"

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
  <style>
    * {{
      margin: 0;
      padding: 0;
      box-sizing: border-box;
    }}
    body {{
      font-family: Arial, sans-serif;
    }}
    .marksheet-container {{
      width: {width}px;
      height: {height}px;
      position: relative;
      margin: 0 auto;
      background-color: {background_color};
      {background_image}
      overflow: hidden;
    }}
  </style>
</head>
<body>
  <div class="marksheet-container">{body}
  </div>
</body>
</html>"""


def _text(value: Optional[object]) -> str:
    return escape("" if value is None else str(value))


def _css(value: Optional[object]) -> str:
    """Value safe inside a style attribute or style block."""
    text = "" if value is None else str(value)
    for char in "<>\"';{}\\":
        text = text.replace(char, "")
    return text


def _url(value: Optional[object]) -> str:
    """URL safe inside a quoted CSS url(); data URLs keep their semicolons."""
    text = "" if value is None else str(value)
    for char in "<>\"'()\\\n\r":
        text = text.replace(char, "")
    return text


class MarksheetHtmlExporter:
    """Generates the static HTML page for a template document."""

    def __init__(self):
        self.renderers: Dict[str, Callable[[ElementBase, str], str]] = {
            ElementType.LOGO.value: self._render_logo,
            ElementType.TEXT.value: self._render_text,
            ElementType.HEADING.value: self._render_text,
            ElementType.INPUT_FIELD.value: self._render_input_field,
            ElementType.DATE_FIELD.value: self._render_date_field,
            ElementType.STUDENT_NAME.value: self._render_student_field,
            ElementType.STUDENT_CLASS.value: self._render_student_field,
            ElementType.ROLL_NUMBER.value: self._render_student_field,
            ElementType.FATHER_NAME.value: self._render_student_field,
            ElementType.DOB.value: self._render_student_field,
            ElementType.PHOTO.value: self._render_photo,
            ElementType.SUBJECTS_TABLE.value: self._render_subjects_table,
            ElementType.TABLE.value: self._render_table,
            ElementType.PERCENTAGE.value: self._render_calculated_field,
            ElementType.GRADE.value: self._render_calculated_field,
            ElementType.RESULT.value: self._render_calculated_field,
            ElementType.REMARKS.value: self._render_remarks,
            ElementType.SIGNATURE.value: self._render_signature,
            ElementType.BOX.value: self._render_box,
            ElementType.LINE.value: self._render_line,
            ElementType.CIRCLE.value: self._render_circle,
        }

    def export(
        self,
        document: TemplateDocument,
        background_color: Optional[str] = None,
        background_image: Optional[str] = None
    ) -> str:
        """
        Render the full HTML page.

        Args:
            document: Document to render
            background_color: Canvas background color, white by default
            background_image: Optional data URL covering the canvas

        Returns:
            Complete HTML document string
        """
        logger.info(f"[HTML-EXPORT] Rendering {len(document.elements)} element(s) for '{document.template_name}'")

        fragments: List[str] = []
        for element in document.elements:
            fragment = self.render_element(element)
            if fragment:
                fragments.append("\n    " + fragment)

        image_css = ""
        if background_image:
            image_css = (
                f"background-image: url('{_url(background_image)}'); background-size: cover; "
                "background-position: center; background-repeat: no-repeat;"
            )

        return PAGE_TEMPLATE.format(
            title=_text(document.template_name or "Marksheet"),
            width=CANVAS_WIDTH,
            height=CANVAS_HEIGHT,
            background_color=_css(background_color or DEFAULT_BACKGROUND_COLOR),
            background_image=image_css,
            body="".join(fragments),
        )

    def render_element(self, element: ElementBase) -> str:
        """HTML fragment for one element; empty when nothing is shown."""
        renderer = self.renderers.get(element.type, self._render_generic)
        return renderer(element, self._base_style(element))

    def _base_style(self, element: ElementBase) -> str:
        parts = [
            "position: absolute",
            f"left: {element.x}px",
            f"top: {element.y}px",
            f"width: {element.width}px",
            f"height: {element.height}px",
        ]
        font_size = getattr(element, "font_size", None)
        font_weight = getattr(element, "font_weight", None)
        font_family = getattr(element, "font_family", None)
        text_color = getattr(element, "text_color", None)
        background = getattr(element, "background_color", None)
        text_align = getattr(element, "text_align", None)

        if font_size:
            parts.append(f"font-size: {_css(font_size)}px")
        if font_weight:
            parts.append(f"font-weight: {_css(font_weight)}")
        if font_family:
            parts.append(f"font-family: {_css(font_family)}")
        if text_color:
            parts.append(f"color: {_css(text_color)}")
        if background and background != "transparent":
            parts.append(f"background-color: {_css(background)}")
        if text_align:
            parts.append(f"text-align: {_css(text_align)}")
        return "; ".join(parts)

    # ------------------------------------------------------------------
    # Element renderers
    # ------------------------------------------------------------------

    def _render_logo(self, element, style: str) -> str:
        if not element.content:
            return ""
        return f'<img src="{_text(element.content)}" alt="Logo" style="{style}; object-fit: contain;" />'

    def _render_text(self, element, style: str) -> str:
        return f'<div style="{style}">{_text(element.content)}</div>'

    def _label(self, text: str, font_size: int) -> str:
        return f'<span style="font-weight: 600; font-size: {font_size}px;">{_text(text)}</span>'

    def _render_input_field(self, element, style: str) -> str:
        font_size = element.font_size or 12
        return f'''<div style="{style}; display: flex; align-items: center; gap: 4px;">
      {self._label(element.field_label or "Field:", font_size)}
      <div style="flex: 1; border-bottom: 1px solid {LABEL_GRAY}; min-height: 18px; background-color: #f9fafb; padding: 0 4px;">
        {_text(element.content or element.placeholder or "")}
      </div>
    </div>'''

    def _render_date_field(self, element, style: str) -> str:
        font_size = element.font_size or 12
        return f'''<div style="{style}; display: flex; align-items: center; gap: 4px;">
      {self._label(element.field_label or "Date:", font_size)}
      <span style="border-bottom: 1px solid {LABEL_GRAY}; flex: 1; font-size: {font_size}px;">
        {_text(element.content or "{{date}}")}
      </span>
    </div>'''

    def _render_student_field(self, element, style: str) -> str:
        font_size = element.font_size or 12
        underline = f"border-bottom: 1px solid {LABEL_GRAY};" if element.show_underline else ""
        return f'''<div style="{style}; display: flex; align-items: center; gap: 8px;">
      {self._label(element.prefix or "", font_size)}
      <span style="flex: 1; {underline} font-size: {font_size}px;">
        {_text(element.content)}
      </span>
    </div>'''

    def _render_photo(self, element, style: str) -> str:
        if element.content:
            inner = f'<img src="{_text(element.content)}" alt="Photo" style="width: 100%; height: 100%; object-fit: cover;" />'
        else:
            inner = f'<span style="color: {LABEL_GRAY}; font-size: 10px;">Photo</span>'
        border = _css(element.border_color or BORDER_GRAY)
        return f'''<div style="{style}; border: 1px solid {border}; display: flex; align-items: center; justify-content: center; background-color: {SURFACE_GRAY};">
      {inner}
    </div>'''

    def _render_subjects_table(self, element, style: str) -> str:
        padding = element.cell_padding or 6
        font_size = element.font_size or 12
        widths = list(element.col_widths or []) + [None] * 4
        index_width = f"{widths[0] or 30}px"
        name_width = f"{widths[1]}px" if widths[1] else "auto"
        max_width = f"{widths[2] or 70}px"
        obtained_width = f"{widths[3] or 80}px"
        head_cell = f"border: 1px solid #4b5563; padding: {padding}px;"
        body_cell = f"border: 1px solid {BORDER_GRAY}; padding: {padding}px;"

        rows = []
        for index, subject in enumerate(element.subjects, start=1):
            name = subject.name or subject.subject_name or ""
            obtained = subject.marks_placeholder or "{{marks_%d}}" % index
            rows.append(f'''
          <tr style="background-color: white;">
            <td style="{body_cell} text-align: center; color: {TEXT_DARK};">{index}</td>
            <td style="{body_cell} color: {TEXT_DARK};">{_text(name)}</td>
            <td style="{body_cell} text-align: center; color: {TEXT_DARK};">{_text(subject.max_marks or 100)}</td>
            <td style="{body_cell} text-align: center; color: #4b5563;">{_text(obtained)}</td>
          </tr>''')

        return f'''<div style="{style}">
      <table style="width: 100%; border-collapse: collapse; font-size: {font_size}px;">
        <thead>
          <tr style="background-color: {TEXT_DARK}; color: white;">
            <th style="{head_cell} text-align: left; width: {index_width};">#</th>
            <th style="{head_cell} text-align: left; width: {name_width};">Subject</th>
            <th style="{head_cell} text-align: center; width: {max_width};">Max Marks</th>
            <th style="{head_cell} text-align: center; width: {obtained_width};">Obtained</th>
          </tr>
        </thead>
        <tbody>{"".join(rows)}
        </tbody>
      </table>
    </div>'''

    def _render_table(self, element, style: str) -> str:
        padding = element.cell_padding or 6
        font_size = element.font_size or 12
        border = _css(element.border_color or BORDER_GRAY)
        cell_style = f"border: 1px solid {border}; padding: {padding}px;"

        head = ""
        if element.show_header and element.headers:
            header_cells = "".join(
                f'''
            <th style="{cell_style}">
              {_text(header)}
            </th>''' for header in element.headers
            )
            head = f'''
        <thead>
          <tr style="background-color: {_css(element.header_bg_color or SURFACE_GRAY)};">{header_cells}
          </tr>
        </thead>'''

        body_rows = "".join(
            "\n          <tr>" + "".join(
                f'''
            <td style="{cell_style}">
              {_text(cell)}
            </td>''' for cell in row
            ) + "\n          </tr>"
            for row in element.data
        )

        return f'''<div style="{style}">
      <table style="width: 100%; border-collapse: collapse; font-size: {font_size}px;">{head}
        <tbody>{body_rows}
        </tbody>
      </table>
    </div>'''

    def _render_calculated_field(self, element, style: str) -> str:
        title = element.title or element.type.upper()
        return f'''<div style="{style}; background-color: white; border: 1px solid #e5e7eb; border-radius: 4px; padding: 8px; text-align: center;">
      <div style="font-size: 10px; color: #6b7280; text-transform: uppercase; letter-spacing: 0.5px; margin-bottom: 4px;">{_text(title)}</div>
      <div style="font-size: {element.font_size or 14}px; font-weight: {_css(element.font_weight or "bold")}; color: {TEXT_DARK};">
        {_text(element.content)}
      </div>
    </div>'''

    def _render_remarks(self, element, style: str) -> str:
        return f'''<div style="{style}; background-color: #f9fafb; border: 1px solid #e5e7eb; border-radius: 4px; padding: 8px;">
      <div style="font-size: 11px; font-weight: 600; color: #374151; margin-bottom: 4px;">Remarks:</div>
      <div style="font-size: 11px; color: #6b7280; border-bottom: 1px solid {BORDER_GRAY}; min-height: 30px;">
        {_text(element.content or "{{remarks}}")}
      </div>
    </div>'''

    def _render_signature(self, element, style: str) -> str:
        return f'''<div style="{style}; text-align: center;">
      <div style="border-bottom: 1px solid {LABEL_GRAY}; margin-bottom: 4px; height: 32px;"></div>
      <div style="font-size: {element.font_size or 12}px; color: #4b5563;">
        {_text(element.content or "Signature")}
      </div>
    </div>'''

    def _shape_border(self, element) -> str:
        return f"{element.border_width or 1}px solid {_css(element.border_color or BORDER_GRAY)}"

    def _render_box(self, element, style: str) -> str:
        background = _css(element.background_color or SURFACE_GRAY)
        return f'<div style="{style}; background-color: {background}; border: {self._shape_border(element)}; border-radius: 4px;"></div>'

    def _render_line(self, element, style: str) -> str:
        background = _css(element.background_color or element.border_color or BORDER_GRAY)
        return f'<div style="{style}; background-color: {background}; height: {element.height or 2}px;"></div>'

    def _render_circle(self, element, style: str) -> str:
        background = _css(element.background_color or SURFACE_GRAY)
        return f'<div style="{style}; background-color: {background}; border: {self._shape_border(element)}; border-radius: 50%;"></div>'

    def _render_generic(self, element, style: str) -> str:
        content = getattr(element, "content", None)
        if not content:
            return ""
        return f'<div style="{style}">{_text(content)}</div>'


# Singleton instance
_exporter = None


def get_html_exporter() -> MarksheetHtmlExporter:
    """Get singleton MarksheetHtmlExporter instance."""
    global _exporter
    if _exporter is None:
        _exporter = MarksheetHtmlExporter()
    return _exporter


def export_template_html(
    document: TemplateDocument,
    background_color: Optional[str] = None,
    background_image: Optional[str] = None
) -> str:
    """
    Convenience function to render a document as HTML.

    Args:
        document: Template document
        background_color: Canvas background color
        background_image: Canvas background image data URL

    Returns:
        HTML string
    """
    return get_html_exporter().export(document, background_color, background_image)
