"""
Template Serializer
===================

Converts between the editable document and the persisted template
document.

Elements are partitioned into header/body/footer sections by their
vertical midpoint. Loading accepts both the sectioned format and the older
flat `elements` format.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from ..config import (
    CANVAS_HEIGHT,
    DEFAULT_BACKGROUND_COLOR,
    DEFAULT_INSTITUTION_NAME,
    DEFAULT_SUBTITLE,
    DEFAULT_TEMPLATE_NAME,
    FOOTER_FRACTION,
    HEADER_FRACTION,
)
from ..models.document_models import (
    SectionStyle,
    TemplateDocument,
    TemplatePayload,
    TemplateSection,
    TemplateSections,
    default_section_styles,
)
from ..models.element_models import (
    ElementBase,
    LogoElement,
    SubjectsTableElement,
    parse_element,
)

logger = logging.getLogger(__name__)

SECTION_NAMES = ("header", "body", "footer")

HEADER_LIMIT = CANVAS_HEIGHT * HEADER_FRACTION
FOOTER_LIMIT = CANVAS_HEIGHT * (1 - FOOTER_FRACTION)


def section_for(element: ElementBase) -> str:
    """header above y=200, footer below y=600, judged by the midpoint."""
    middle = element.center_y
    if middle < HEADER_LIMIT:
        return "header"
    if middle > FOOTER_LIMIT:
        return "footer"
    return "body"


def partition_elements(elements: List[ElementBase]) -> Dict[str, List[ElementBase]]:
    """Split elements into sections, keeping their relative order."""
    sections: Dict[str, List[ElementBase]] = {name: [] for name in SECTION_NAMES}
    for element in elements:
        sections[section_for(element)].append(element)
    return sections


def combine_sections(sections: Dict[str, List[ElementBase]]) -> List[ElementBase]:
    """Header, then body, then footer elements."""
    combined: List[ElementBase] = []
    for name in SECTION_NAMES:
        combined.extend(sections.get(name) or [])
    return combined


def build_template_payload(
    document: TemplateDocument,
    section_styles: Optional[Dict[str, SectionStyle]] = None,
    background_color: str = DEFAULT_BACKGROUND_COLOR,
    background_image: Optional[str] = None,
    html: str = "",
    template_id: Optional[str] = None
) -> TemplatePayload:
    """
    Persistence document for POST/PUT /api/marksheet-templates.

    Args:
        document: Current document
        section_styles: Style per section, defaults when omitted
        background_color: Canvas background color
        background_image: Canvas background image data URL
        html: Static HTML export of the document
        template_id: Set only when updating an existing template

    Returns:
        TemplatePayload; use to_wire() for the JSON body
    """
    styles = default_section_styles()
    styles.update(section_styles or {})

    partitioned = partition_elements(document.elements)
    sections = TemplateSections(**{
        name: TemplateSection(elements=partitioned[name], style=styles[name])
        for name in SECTION_NAMES
    })

    table = next((e for e in document.elements if isinstance(e, SubjectsTableElement)), None)
    logo = next((e for e in document.elements if isinstance(e, LogoElement)), None)

    return TemplatePayload(
        template_id=template_id,
        template_name=document.template_name,
        institution_name=document.institution_name,
        subtitle=document.subtitle,
        elements=list(document.elements),
        sections=sections,
        subjects=list(table.subjects) if table is not None else [],
        logo=(logo.content or None) if logo is not None else None,
        canvas_background_color=background_color or DEFAULT_BACKGROUND_COLOR,
        canvas_background_image=background_image or None,
        html=html,
    )


class LoadedTemplate(BaseModel):
    """Editor state reconstructed from a persisted template."""
    template_id: Optional[str] = None
    document: TemplateDocument
    section_styles: Dict[str, SectionStyle] = Field(default_factory=default_section_styles)
    background_color: str = DEFAULT_BACKGROUND_COLOR
    background_image: Optional[str] = None


def _parse_elements(raw_elements: List[Any]) -> List[ElementBase]:
    """Typed elements; duplicate or missing ids get a unique replacement."""
    elements: List[ElementBase] = []
    taken = set()
    for index, raw in enumerate(raw_elements or []):
        if not isinstance(raw, dict):
            logger.warning(f"[SERIALIZER] Skipping non-object element at {index}")
            continue

        raw = dict(raw)
        element_id = str(raw.get("id") or f"{raw.get('type') or 'element'}-{index}")
        if element_id in taken:
            suffix = 1
            while f"{element_id}-{suffix}" in taken:
                suffix += 1
            logger.warning(f"[SERIALIZER] Duplicate element id {element_id}, renamed")
            element_id = f"{element_id}-{suffix}"
        raw["id"] = element_id
        raw.setdefault("type", "text")

        try:
            element = parse_element(raw)
        except ValidationError as e:
            logger.warning(f"[SERIALIZER] Skipping invalid element {element_id}: {e.error_count()} error(s)")
            continue
        taken.add(element_id)
        elements.append(element)
    return elements


def _section_style(raw_section: Any, default: SectionStyle) -> SectionStyle:
    style = raw_section.get("style") if isinstance(raw_section, dict) else None
    if not isinstance(style, dict):
        return default
    try:
        return SectionStyle.model_validate(style)
    except ValidationError:
        logger.warning("[SERIALIZER] Invalid section style, using default")
        return default


def _drawing_order(sectioned: List[Any], flat: Any) -> List[Any]:
    """Sectioned elements in the z-order of the flat list when both hold the same ids."""
    if not isinstance(flat, list):
        return sectioned

    order: Dict[str, int] = {}
    for index, raw in enumerate(flat):
        if isinstance(raw, dict) and raw.get("id") is not None:
            order.setdefault(str(raw["id"]), index)
    ids = [str(raw["id"]) if isinstance(raw, dict) and raw.get("id") is not None else None for raw in sectioned]

    if len(order) != len(flat) or len(set(ids)) != len(ids) or set(ids) != set(order):
        return sectioned
    return sorted(sectioned, key=lambda raw: order[str(raw["id"])])


def load_template(template: Dict[str, Any]) -> LoadedTemplate:
    """
    Reconstruct editor state from a persisted template.

    Sectioned templates concatenate header, body and footer elements, in
    the z-order of the flat `elements` list when it holds the same
    elements. Flat templates use `elements` and derive the section styles
    from defaults.
    Missing names fall back to the defaults of a new template.
    """
    styles = default_section_styles()
    sections = template.get("sections")

    if isinstance(sections, dict):
        raw_elements: List[Any] = []
        for name in SECTION_NAMES:
            raw_section = sections.get(name) or {}
            raw_elements.extend(raw_section.get("elements") or [])
            styles[name] = _section_style(raw_section, styles[name])
        raw_elements = _drawing_order(raw_elements, template.get("elements"))
        logger.info(f"[SERIALIZER] Loading sectioned template with {len(raw_elements)} element(s)")
    else:
        raw_elements = template.get("elements") or []
        logger.info(f"[SERIALIZER] Loading flat template with {len(raw_elements)} element(s)")

    document = TemplateDocument(
        elements=_parse_elements(raw_elements),
        template_name=template.get("templateName") or DEFAULT_TEMPLATE_NAME,
        institution_name=template.get("institutionName") or DEFAULT_INSTITUTION_NAME,
        subtitle=template.get("subtitle") or DEFAULT_SUBTITLE,
    )

    template_id = template.get("templateId") or template.get("_id")
    return LoadedTemplate(
        template_id=str(template_id) if template_id else None,
        document=document,
        section_styles=styles,
        background_color=template.get("canvasBackgroundColor") or DEFAULT_BACKGROUND_COLOR,
        background_image=template.get("canvasBackgroundImage") or None,
    )
