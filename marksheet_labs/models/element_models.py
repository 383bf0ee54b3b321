"""
Element Models for Marksheet Labs
==================================

Typed canvas elements for the marksheet template builder.

Every element shares a base record (id, type, x, y, width, height) and adds
a kind-specific payload. The wire format is camelCase JSON; attributes are
snake_case with camelCase aliases. Elements whose kind is not known are kept
as GenericElement so their attributes survive a load/save round trip.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


class ElementType(str, Enum):
    """Element kinds available in the builder."""
    LOGO = "logo"
    TEXT = "text"
    HEADING = "heading"
    INPUT_FIELD = "input_field"
    DATE_FIELD = "date_field"
    TABLE = "table"
    BOX = "box"
    LINE = "line"
    CIRCLE = "circle"
    STUDENT_NAME = "student_name"
    STUDENT_CLASS = "student_class"
    ROLL_NUMBER = "roll_number"
    FATHER_NAME = "father_name"
    DOB = "dob"
    SUBJECTS_TABLE = "subjects_table"
    TOTAL_ROW = "total_row"
    PERCENTAGE = "percentage"
    GRADE = "grade"
    RESULT = "result"
    REMARKS = "remarks"
    SIGNATURE = "signature"
    PHOTO = "photo"


WIRE_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="allow",
)


class ElementBase(BaseModel):
    """Attributes shared by every canvas element."""
    model_config = WIRE_CONFIG

    id: str
    type: str
    x: int = 0
    y: int = 0
    width: int = Field(default=100, ge=0)
    height: int = Field(default=30, ge=0)
    label: Optional[str] = None

    @field_validator("x", "y", "width", "height", mode="before")
    @classmethod
    def _round_geometry(cls, value: Any) -> Any:
        if isinstance(value, float):
            return int(value + 0.5) if value >= 0 else -int(-value + 0.5)
        return value

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2


class TextualElement(ElementBase):
    """Element that shows a content string with typography."""
    content: Optional[str] = None
    font_size: Optional[int] = None
    font_weight: Optional[Union[int, str]] = None
    font_family: Optional[str] = None
    text_align: Optional[str] = None
    text_color: Optional[str] = None
    background_color: Optional[str] = None

    @field_validator("content", mode="before")
    @classmethod
    def _stringify_content(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)


class LogoElement(ElementBase):
    type: Literal["logo"] = "logo"
    content: Optional[str] = None  # data URL


class PhotoElement(ElementBase):
    type: Literal["photo"] = "photo"
    content: Optional[str] = None  # data URL
    border_color: Optional[str] = None


class TextElement(TextualElement):
    type: Literal["text"] = "text"


class HeadingElement(TextualElement):
    type: Literal["heading"] = "heading"


class TotalRowElement(TextualElement):
    type: Literal["total_row"] = "total_row"


class SignatureElement(TextualElement):
    type: Literal["signature"] = "signature"


class RemarksElement(TextualElement):
    type: Literal["remarks"] = "remarks"


class InputFieldElement(TextualElement):
    type: Literal["input_field"] = "input_field"
    placeholder: Optional[str] = None
    field_label: Optional[str] = None


class DateFieldElement(TextualElement):
    type: Literal["date_field"] = "date_field"
    field_label: Optional[str] = None


class StudentFieldElement(TextualElement):
    """Labelled student attribute such as name or roll number."""
    prefix: Optional[str] = None
    show_underline: bool = True


class StudentNameElement(StudentFieldElement):
    type: Literal["student_name"] = "student_name"


class StudentClassElement(StudentFieldElement):
    type: Literal["student_class"] = "student_class"


class RollNumberElement(StudentFieldElement):
    type: Literal["roll_number"] = "roll_number"


class FatherNameElement(StudentFieldElement):
    type: Literal["father_name"] = "father_name"


class DobElement(StudentFieldElement):
    type: Literal["dob"] = "dob"


class CalculatedFieldElement(TextualElement):
    """Boxed calculated value (percentage, grade, result)."""
    title: Optional[str] = None


class PercentageElement(CalculatedFieldElement):
    type: Literal["percentage"] = "percentage"


class GradeElement(CalculatedFieldElement):
    type: Literal["grade"] = "grade"


class ResultElement(CalculatedFieldElement):
    type: Literal["result"] = "result"


class ShapeElement(ElementBase):
    background_color: Optional[str] = None
    border_color: Optional[str] = None
    border_width: Optional[int] = None


class BoxElement(ShapeElement):
    type: Literal["box"] = "box"


class CircleElement(ShapeElement):
    type: Literal["circle"] = "circle"


class LineElement(ShapeElement):
    type: Literal["line"] = "line"


class TableElement(ElementBase):
    """
    Free-form table.

    headers always has exactly `cols` entries and data exactly `rows` rows
    of `cols` cells; short rows are padded with "" and long ones truncated.
    """
    type: Literal["table"] = "table"
    font_size: Optional[int] = None
    cell_padding: Optional[int] = None
    rows: int = Field(default=3, ge=1)
    cols: int = Field(default=3, ge=1)
    headers: List[str] = Field(default_factory=list)
    data: List[List[str]] = Field(default_factory=list)
    border_color: Optional[str] = None
    header_bg_color: Optional[str] = None
    show_header: bool = True

    @field_validator("headers", mode="before")
    @classmethod
    def _stringify_headers(cls, value: Any) -> Any:
        if isinstance(value, list):
            return ["" if cell is None else str(cell) for cell in value]
        return value

    @field_validator("data", mode="before")
    @classmethod
    def _stringify_cells(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [
                ["" if cell is None else str(cell) for cell in (row or [])]
                for row in value
            ]
        return value

    @model_validator(mode="after")
    def _fit_grid(self) -> "TableElement":
        headers = list(self.headers[: self.cols])
        while len(headers) < self.cols:
            headers.append(f"Header {len(headers) + 1}")

        data = [(list(row) + [""] * self.cols)[: self.cols] for row in self.data[: self.rows]]
        while len(data) < self.rows:
            data.append([""] * self.cols)

        self.headers = headers
        self.data = data
        return self


class SubjectRow(BaseModel):
    """One row of the subjects table."""
    model_config = WIRE_CONFIG

    id: int
    name: str = ""
    subject_name: Optional[str] = None
    subject_id: Optional[str] = None
    max_marks: Union[int, float] = 100
    marks_placeholder: str = ""

    @model_validator(mode="after")
    def _default_placeholder(self) -> "SubjectRow":
        if not self.marks_placeholder:
            self.marks_placeholder = "{{marks_%d}}" % self.id
        return self


class SubjectsTableElement(ElementBase):
    type: Literal["subjects_table"] = "subjects_table"
    subjects: List[SubjectRow] = Field(default_factory=list)
    font_size: Optional[int] = None
    cell_padding: Optional[int] = None
    col_widths: List[Optional[int]] = Field(default_factory=lambda: [30, None, 70, 80])


class GenericElement(ElementBase):
    """Element of a kind this version does not know."""
    content: Optional[str] = None


ELEMENT_CLASSES: Dict[str, type] = {
    ElementType.LOGO.value: LogoElement,
    ElementType.TEXT.value: TextElement,
    ElementType.HEADING.value: HeadingElement,
    ElementType.INPUT_FIELD.value: InputFieldElement,
    ElementType.DATE_FIELD.value: DateFieldElement,
    ElementType.TABLE.value: TableElement,
    ElementType.BOX.value: BoxElement,
    ElementType.LINE.value: LineElement,
    ElementType.CIRCLE.value: CircleElement,
    ElementType.STUDENT_NAME.value: StudentNameElement,
    ElementType.STUDENT_CLASS.value: StudentClassElement,
    ElementType.ROLL_NUMBER.value: RollNumberElement,
    ElementType.FATHER_NAME.value: FatherNameElement,
    ElementType.DOB.value: DobElement,
    ElementType.SUBJECTS_TABLE.value: SubjectsTableElement,
    ElementType.TOTAL_ROW.value: TotalRowElement,
    ElementType.PERCENTAGE.value: PercentageElement,
    ElementType.GRADE.value: GradeElement,
    ElementType.RESULT.value: ResultElement,
    ElementType.REMARKS.value: RemarksElement,
    ElementType.SIGNATURE.value: SignatureElement,
    ElementType.PHOTO.value: PhotoElement,
}


def _element_tag(value: Any) -> str:
    kind = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return kind if kind in ELEMENT_CLASSES else "generic"


Element = Annotated[
    Union[
        Annotated[LogoElement, Tag("logo")],
        Annotated[TextElement, Tag("text")],
        Annotated[HeadingElement, Tag("heading")],
        Annotated[InputFieldElement, Tag("input_field")],
        Annotated[DateFieldElement, Tag("date_field")],
        Annotated[TableElement, Tag("table")],
        Annotated[BoxElement, Tag("box")],
        Annotated[LineElement, Tag("line")],
        Annotated[CircleElement, Tag("circle")],
        Annotated[StudentNameElement, Tag("student_name")],
        Annotated[StudentClassElement, Tag("student_class")],
        Annotated[RollNumberElement, Tag("roll_number")],
        Annotated[FatherNameElement, Tag("father_name")],
        Annotated[DobElement, Tag("dob")],
        Annotated[SubjectsTableElement, Tag("subjects_table")],
        Annotated[TotalRowElement, Tag("total_row")],
        Annotated[PercentageElement, Tag("percentage")],
        Annotated[GradeElement, Tag("grade")],
        Annotated[ResultElement, Tag("result")],
        Annotated[RemarksElement, Tag("remarks")],
        Annotated[SignatureElement, Tag("signature")],
        Annotated[PhotoElement, Tag("photo")],
        Annotated[GenericElement, Tag("generic")],
    ],
    Discriminator(_element_tag),
]

_ELEMENT_ADAPTER = TypeAdapter(Element)


def parse_element(data: Any) -> ElementBase:
    """Validate a wire dict (or element) into its typed element class."""
    return _ELEMENT_ADAPTER.validate_python(data)


def dump_element(element: ElementBase) -> Dict[str, Any]:
    """Element as camelCase JSON-ready dict."""
    return element.model_dump(by_alias=True, mode="json")


def wire_name(element: ElementBase, prop: str) -> str:
    """Map a snake_case attribute or camelCase key to the wire key."""
    field = type(element).model_fields.get(prop)
    if field is not None:
        return field.alias or prop
    return prop


# Per-type defaults, in wire form
ELEMENT_DEFAULTS: Dict[str, Dict[str, Any]] = {
    ElementType.LOGO: {
        "x": 260, "y": 20, "width": 80, "height": 80,
        "content": None, "label": "Logo",
    },
    ElementType.TEXT: {
        "x": 100, "y": 100, "width": 200, "height": 30,
        "content": "Enter Text", "fontSize": 14, "fontWeight": 400,
        "fontFamily": "Arial, sans-serif", "textAlign": "center", "label": "Text",
        "textColor": "#000000", "backgroundColor": "transparent",
    },
    ElementType.HEADING: {
        "x": 150, "y": 100, "width": 300, "height": 40,
        "content": "Heading", "fontSize": 24, "fontWeight": 700,
        "fontFamily": "Arial, sans-serif", "textAlign": "center", "label": "Heading",
        "textColor": "#000000", "backgroundColor": "transparent",
    },
    ElementType.INPUT_FIELD: {
        "x": 50, "y": 100, "width": 200, "height": 30,
        "content": "", "fontSize": 12, "label": "Input Field",
        "placeholder": "Enter value", "fieldLabel": "Field:",
    },
    ElementType.DATE_FIELD: {
        "x": 50, "y": 100, "width": 150, "height": 30,
        "content": "{{date}}", "fontSize": 12, "label": "Date Field",
        "fieldLabel": "Date:",
    },
    ElementType.TABLE: {
        "x": 50, "y": 100, "width": 500, "height": 120,
        "label": "Table", "fontSize": 12, "cellPadding": 6,
        "rows": 3, "cols": 3,
        "headers": ["Header 1", "Header 2", "Header 3"],
        "data": [
            ["Cell 1", "Cell 2", "Cell 3"],
            ["Cell 4", "Cell 5", "Cell 6"],
            ["Cell 7", "Cell 8", "Cell 9"],
        ],
        "borderColor": "#d1d5db", "headerBgColor": "#f3f4f6", "showHeader": True,
    },
    ElementType.PHOTO: {
        "x": 500, "y": 200, "width": 80, "height": 100,
        "content": None, "label": "Photo", "borderColor": "#d1d5db",
    },
    ElementType.STUDENT_NAME: {
        "x": 50, "y": 200, "width": 200, "height": 25,
        "content": "{{studentName}}", "fontSize": 12, "fontWeight": 400,
        "label": "Student Name", "prefix": "Name:", "showUnderline": True,
    },
    ElementType.STUDENT_CLASS: {
        "x": 280, "y": 200, "width": 130, "height": 25,
        "content": "{{class}}", "fontSize": 12, "fontWeight": 400,
        "label": "Class", "prefix": "Class:", "showUnderline": True,
    },
    ElementType.ROLL_NUMBER: {
        "x": 430, "y": 200, "width": 130, "height": 25,
        "content": "{{rollNumber}}", "fontSize": 12, "fontWeight": 400,
        "label": "Roll No", "prefix": "Roll No:", "showUnderline": True,
    },
    ElementType.FATHER_NAME: {
        "x": 50, "y": 230, "width": 200, "height": 25,
        "content": "{{fatherName}}", "fontSize": 12, "fontWeight": 400,
        "label": "Father Name", "prefix": "Father's Name:", "showUnderline": True,
    },
    ElementType.DOB: {
        "x": 280, "y": 230, "width": 150, "height": 25,
        "content": "{{dob}}", "fontSize": 12, "fontWeight": 400,
        "label": "Date of Birth", "prefix": "DOB:", "showUnderline": True,
    },
    ElementType.SUBJECTS_TABLE: {
        "x": 50, "y": 270, "width": 500, "height": 80,
        "subjects": [], "label": "Subjects Table", "fontSize": 12,
        "cellPadding": 6, "colWidths": [30, None, 70, 80],
    },
    ElementType.PERCENTAGE: {
        "x": 50, "y": 440, "width": 90, "height": 40,
        "content": "{{percentage}}%", "fontSize": 14, "fontWeight": "bold",
        "label": "Percentage", "title": "PERCENTAGE",
    },
    ElementType.GRADE: {
        "x": 150, "y": 440, "width": 90, "height": 40,
        "content": "{{grade}}", "fontSize": 14, "fontWeight": "bold",
        "label": "Grade", "title": "GRADE",
    },
    ElementType.RESULT: {
        "x": 250, "y": 440, "width": 90, "height": 40,
        "content": "{{result}}", "fontSize": 14, "fontWeight": "bold",
        "label": "Result", "title": "RESULT",
    },
    ElementType.REMARKS: {
        "x": 50, "y": 510, "width": 500, "height": 50,
        "content": "", "fontSize": 11, "label": "Remarks",
    },
    ElementType.SIGNATURE: {
        "x": 50, "y": 580, "width": 130, "height": 45,
        "content": "Class Teacher", "fontSize": 12, "fontWeight": 400,
        "fontFamily": "Arial, sans-serif", "label": "Signature",
    },
    ElementType.BOX: {
        "x": 100, "y": 100, "width": 150, "height": 80,
        "backgroundColor": "#f3f4f6", "borderColor": "#d1d5db", "borderWidth": 1,
        "label": "Box",
    },
    ElementType.LINE: {
        "x": 50, "y": 180, "width": 500, "height": 2,
        "backgroundColor": "#d1d5db", "label": "Line",
    },
    ElementType.CIRCLE: {
        "x": 100, "y": 100, "width": 60, "height": 60,
        "backgroundColor": "#f3f4f6", "borderColor": "#d1d5db", "borderWidth": 1,
        "label": "Circle",
    },
}


def create_element(element_type: str, element_id: str, **overrides: Any) -> ElementBase:
    """
    Create an element of the given kind with its default properties.

    Unknown kinds fall back to a text element. Overrides are wire-form
    (camelCase) or attribute-form keys applied on top of the defaults.

    Args:
        element_type: One of ElementType values
        element_id: Unique id for the new element
        **overrides: Properties replacing the defaults

    Returns:
        Typed element instance
    """
    kind = element_type.value if isinstance(element_type, ElementType) else str(element_type)
    if kind not in ELEMENT_CLASSES:
        kind = ElementType.TEXT.value

    element_class = ELEMENT_CLASSES[kind]
    payload: Dict[str, Any] = {"id": element_id, "type": kind}
    payload.update(ELEMENT_DEFAULTS.get(ElementType(kind), {}))
    for key, value in overrides.items():
        field = element_class.model_fields.get(key)
        payload[field.alias if field is not None and field.alias else key] = value
    payload["id"] = element_id
    payload["type"] = kind
    return parse_element(payload)
