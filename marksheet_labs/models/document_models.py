"""
Document Models for Marksheet Labs
===================================

Editable template document, section styles and the persisted template
payload exchanged with the school API.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from .element_models import WIRE_CONFIG, Element, SubjectRow
from ..config import (
    DEFAULT_BACKGROUND_COLOR,
    DEFAULT_INSTITUTION_NAME,
    DEFAULT_SUBTITLE,
    DEFAULT_TEMPLATE_NAME,
)


class TemplateDocument(BaseModel):
    """
    Full editable state of a template.

    This is the unit of undo/redo and of the last-saved comparison. Element
    order is z-order: later elements paint above earlier ones.
    """
    model_config = WIRE_CONFIG

    elements: List[Element] = Field(default_factory=list)
    template_name: str = DEFAULT_TEMPLATE_NAME
    institution_name: str = DEFAULT_INSTITUTION_NAME
    subtitle: str = DEFAULT_SUBTITLE

    def find(self, element_id: Optional[str]):
        """Element with the given id, or None."""
        for element in self.elements:
            if element.id == element_id:
                return element
        return None

    def index_of(self, element_id: Optional[str]) -> int:
        """Z-order index of the element, -1 when absent."""
        for index, element in enumerate(self.elements):
            if element.id == element_id:
                return index
        return -1

    def element_ids(self) -> List[str]:
        return [element.id for element in self.elements]

    def snapshot(self) -> "TemplateDocument":
        """Deep copy, safe to keep while the editor moves on."""
        return self.model_copy(deep=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class SectionStyle(BaseModel):
    """Layout style of one template section."""
    model_config = WIRE_CONFIG

    position: str = "relative"
    left: str = "0px"
    top: str = "0px"
    width: str = "100%"
    height: str = "400px"
    padding: str = "20px"
    background_color: str = "transparent"


class TemplateSection(BaseModel):
    model_config = WIRE_CONFIG

    elements: List[Element] = Field(default_factory=list)
    style: SectionStyle = Field(default_factory=SectionStyle)


def default_section_styles() -> Dict[str, SectionStyle]:
    """Header and footer are 200px tall, body 400px."""
    return {
        "header": SectionStyle(height="200px"),
        "body": SectionStyle(height="400px"),
        "footer": SectionStyle(height="200px"),
    }


class TemplateSections(BaseModel):
    model_config = WIRE_CONFIG

    header: TemplateSection = Field(
        default_factory=lambda: TemplateSection(style=SectionStyle(height="200px"))
    )
    body: TemplateSection = Field(
        default_factory=lambda: TemplateSection(style=SectionStyle(height="400px"))
    )
    footer: TemplateSection = Field(
        default_factory=lambda: TemplateSection(style=SectionStyle(height="200px"))
    )


class TemplatePayload(BaseModel):
    """Template document as stored by POST/PUT /api/marksheet-templates."""
    model_config = WIRE_CONFIG

    template_id: Optional[str] = None
    template_name: str = DEFAULT_TEMPLATE_NAME
    institution_name: str = DEFAULT_INSTITUTION_NAME
    subtitle: str = DEFAULT_SUBTITLE
    elements: List[Element] = Field(default_factory=list)
    sections: TemplateSections = Field(default_factory=TemplateSections)
    subjects: List[SubjectRow] = Field(default_factory=list)
    logo: Optional[str] = None
    canvas_background_color: str = DEFAULT_BACKGROUND_COLOR
    canvas_background_image: Optional[str] = None
    html: str = ""

    def to_wire(self) -> Dict[str, Any]:
        """JSON body; absent template id, logo and background image are omitted."""
        body = self.model_dump(by_alias=True, mode="json")
        for key in ("templateId", "logo", "canvasBackgroundImage"):
            if body.get(key) is None:
                body.pop(key, None)
        return body
