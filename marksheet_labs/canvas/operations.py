"""
Element Operations
==================

Pure document -> document functions used by the editor.

Every function returns a new TemplateDocument and never mutates its input.
When an operation does not apply (unknown id, bound reached, invalid
value) the input document itself is returned, so callers can detect a
no-op with an identity check.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from ..models.document_models import TemplateDocument
from ..models.editor_models import LayerDirection, TableCell
from ..models.element_models import (
    ElementBase,
    ElementType,
    GenericElement,
    LogoElement,
    SubjectRow,
    SubjectsTableElement,
    TableElement,
    TextualElement,
    create_element,
    parse_element,
    wire_name,
)

logger = logging.getLogger(__name__)

DUPLICATE_OFFSET = 20
SUBJECT_ROW_HEIGHT = 30
SUBJECT_ROW_REMOVE_HEIGHT = 35
SUBJECTS_TABLE_BASE_HEIGHT = 80


def new_element_id(document: TemplateDocument, prefix: str) -> str:
    """`<prefix>-<epoch millis>`, suffixed until unique in the document."""
    base = f"{prefix}-{int(time.time() * 1000)}"
    taken = set(document.element_ids())
    candidate = base
    suffix = 1
    while candidate in taken:
        candidate = f"{base}-{suffix}"
        suffix += 1
    return candidate


def default_template() -> TemplateDocument:
    """The marksheet a new template starts from."""
    elements = [
        create_element(ElementType.LOGO, "logo-1"),
        create_element(
            ElementType.TEXT, "title-1",
            x=150, y=110, width=300, content="Enter Institution Name",
            fontSize=24, fontWeight="bold",
        ),
        create_element(
            ElementType.TEXT, "subtitle-1",
            x=175, y=150, width=250, content="Academic Year 2024-2025",
            fontSize=14, fontWeight="normal",
        ),
        create_element(
            ElementType.TEXT, "marksheet-title",
            x=225, y=180, width=150, content="MARKSHEET",
            fontSize=20, fontWeight="bold",
        ),
        create_element(ElementType.LINE, "line-1"),
        create_element(ElementType.STUDENT_NAME, "student-name-1"),
        create_element(ElementType.STUDENT_CLASS, "student-class-1"),
        create_element(ElementType.ROLL_NUMBER, "roll-number-1"),
        create_element(ElementType.SUBJECTS_TABLE, "subjects-table-1"),
        create_element(ElementType.PERCENTAGE, "percentage-1"),
        create_element(ElementType.GRADE, "grade-1"),
        create_element(ElementType.RESULT, "result-1"),
        create_element(ElementType.REMARKS, "remarks-1"),
        create_element(ElementType.SIGNATURE, "sig-1", x=50),
        create_element(ElementType.SIGNATURE, "sig-2", x=225, content="Principal"),
        create_element(ElementType.SIGNATURE, "sig-3", x=400, content="Parent/Guardian"),
    ]
    return TemplateDocument(elements=elements)


def _replace_at(document: TemplateDocument, index: int, element: ElementBase) -> TemplateDocument:
    elements = list(document.elements)
    elements[index] = element
    return document.model_copy(update={"elements": elements})


def _patched(element: ElementBase, changes: Dict[str, Any]) -> Optional[ElementBase]:
    """Element with the wire-keyed changes applied, or None if invalid."""
    payload = element.model_dump(by_alias=True)
    for prop, value in changes.items():
        payload[wire_name(element, prop)] = value
    try:
        return parse_element(payload)
    except ValidationError as e:
        logger.warning(f"[OPERATIONS] Rejected change {changes} on {element.id}: {e.error_count()} error(s)")
        return None


def update_fields(document: TemplateDocument, element_id: str, changes: Dict[str, Any]) -> TemplateDocument:
    """Apply several property changes to one element at once."""
    index = document.index_of(element_id)
    if index < 0:
        logger.debug(f"[OPERATIONS] No element {element_id}, update ignored")
        return document

    element = document.elements[index]
    new_id = changes.get("id", element.id)
    if new_id != element.id and document.index_of(new_id) >= 0:
        logger.warning(f"[OPERATIONS] Element id {new_id} already in use")
        return document

    updated = _patched(element, changes)
    if updated is None or updated == element:
        return document
    return _replace_at(document, index, updated)


def update_element(document: TemplateDocument, element_id: str, prop: str, value: Any) -> TemplateDocument:
    """
    Replace exactly one property on exactly one element.

    Args:
        document: Current document
        element_id: Target element; unknown ids are a no-op
        prop: Property name, camelCase ("fontSize") or snake_case ("font_size")
        value: New value

    Returns:
        New document, or the same document when nothing changed
    """
    return update_fields(document, element_id, {prop: value})


def update_document_field(document: TemplateDocument, prop: str, value: str) -> TemplateDocument:
    """Set template_name, institution_name or subtitle."""
    field = {
        "templateName": "template_name",
        "institutionName": "institution_name",
    }.get(prop, prop)
    if field not in ("template_name", "institution_name", "subtitle"):
        logger.warning(f"[OPERATIONS] Unknown document field {prop}")
        return document
    if getattr(document, field) == value:
        return document
    return document.model_copy(update={field: value})


def add_element(
    document: TemplateDocument,
    element_type: str,
    element_id: Optional[str] = None
) -> Tuple[TemplateDocument, str]:
    """Append a new element of the given kind on top of the z-order."""
    kind = element_type.value if isinstance(element_type, ElementType) else str(element_type)
    if element_id is None or document.index_of(element_id) >= 0:
        element_id = new_element_id(document, kind)
    element = create_element(kind, element_id)
    return document.model_copy(update={"elements": document.elements + [element]}), element_id


def delete_element(document: TemplateDocument, element_id: str) -> TemplateDocument:
    if document.index_of(element_id) < 0:
        return document
    elements = [element for element in document.elements if element.id != element_id]
    return document.model_copy(update={"elements": elements})


def duplicate_element(document: TemplateDocument, element_id: str) -> Tuple[TemplateDocument, Optional[str]]:
    """Copy an element, offset by 20/20, on top of the z-order."""
    element = document.find(element_id)
    if element is None:
        return document, None

    copy_id = new_element_id(document, element.type)
    payload = element.model_dump(by_alias=True)
    payload.update({
        "id": copy_id,
        "x": element.x + DUPLICATE_OFFSET,
        "y": element.y + DUPLICATE_OFFSET,
    })
    copy = parse_element(payload)
    return document.model_copy(update={"elements": document.elements + [copy]}), copy_id


def move_element_layer(document: TemplateDocument, element_id: str, direction: str) -> TemplateDocument:
    """Swap an element with its z-order neighbour; no-op at the bounds."""
    index = document.index_of(element_id)
    if index < 0:
        return document

    direction = LayerDirection(direction)
    target = index + 1 if direction == LayerDirection.UP else index - 1
    if target < 0 or target >= len(document.elements):
        return document

    elements = list(document.elements)
    elements[index], elements[target] = elements[target], elements[index]
    return document.model_copy(update={"elements": elements})


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

def _table(document: TemplateDocument, element_id: str) -> Optional[TableElement]:
    element = document.find(element_id)
    return element if isinstance(element, TableElement) else None


def add_table_row(document: TemplateDocument, element_id: str) -> TemplateDocument:
    table = _table(document, element_id)
    if table is None:
        return document
    return update_fields(document, element_id, {"rows": table.rows + 1})


def remove_table_row(document: TemplateDocument, element_id: str) -> TemplateDocument:
    table = _table(document, element_id)
    if table is None or table.rows <= 1:
        return document
    return update_fields(document, element_id, {"rows": table.rows - 1})


def add_table_column(document: TemplateDocument, element_id: str) -> TemplateDocument:
    table = _table(document, element_id)
    if table is None:
        return document
    return update_fields(document, element_id, {"cols": table.cols + 1})


def remove_table_column(document: TemplateDocument, element_id: str) -> TemplateDocument:
    table = _table(document, element_id)
    if table is None or table.cols <= 1:
        return document
    return update_fields(document, element_id, {"cols": table.cols - 1})


# ---------------------------------------------------------------------------
# Subjects table
# ---------------------------------------------------------------------------

def subjects_table(document: TemplateDocument) -> Optional[SubjectsTableElement]:
    """The document's subjects table, if it has one."""
    for element in document.elements:
        if isinstance(element, SubjectsTableElement):
            return element
    return None


def _replace_subjects(
    document: TemplateDocument,
    table: SubjectsTableElement,
    subjects: List[SubjectRow],
    height: int
) -> TemplateDocument:
    updated = table.model_copy(update={"subjects": subjects, "height": max(0, height)})
    return _replace_at(document, document.index_of(table.id), updated)


def add_subject(document: TemplateDocument) -> TemplateDocument:
    """Append a "Subject N" row with a name not already used."""
    table = subjects_table(document)
    if table is None:
        return document

    existing = {subject.name for subject in table.subjects}
    new_id = len(table.subjects) + 1
    while f"Subject {new_id}" in existing:
        new_id += 1

    row = SubjectRow(id=new_id, name=f"Subject {new_id}", max_marks=100)
    return _replace_subjects(document, table, table.subjects + [row], table.height + SUBJECT_ROW_HEIGHT)


def update_subject(document: TemplateDocument, subject_id: int, prop: str, value: Any) -> TemplateDocument:
    table = subjects_table(document)
    if table is None:
        return document

    subjects = []
    changed = False
    for subject in table.subjects:
        if subject.id == subject_id:
            payload = subject.model_dump(by_alias=True)
            field = SubjectRow.model_fields.get(prop)
            payload[field.alias if field is not None and field.alias else prop] = value
            try:
                updated = SubjectRow.model_validate(payload)
            except ValidationError:
                logger.warning(f"[OPERATIONS] Invalid value for subject {subject_id}.{prop}")
                return document
            if updated != subject:
                subject = updated
                changed = True
        subjects.append(subject)

    if not changed:
        return document
    return _replace_subjects(document, table, subjects, table.height)


def remove_subject(document: TemplateDocument, subject_id: int) -> TemplateDocument:
    """Remove a subject row; the last remaining row is kept."""
    table = subjects_table(document)
    if table is None or len(table.subjects) <= 1:
        return document

    subjects = [subject for subject in table.subjects if subject.id != subject_id]
    if len(subjects) == len(table.subjects):
        return document
    return _replace_subjects(document, table, subjects, table.height - SUBJECT_ROW_REMOVE_HEIGHT)


def set_subjects(document: TemplateDocument, subjects: List[Dict[str, Any]]) -> TemplateDocument:
    """
    Replace the subjects table rows.

    Rows are deduplicated by name, re-numbered 1..n with `{{marks_i}}`
    placeholders, and the table height becomes 80 + 30 per row.
    """
    table = subjects_table(document)
    if table is None:
        return document

    seen = set()
    rows: List[SubjectRow] = []
    for subject in subjects:
        name = subject.get("name") or subject.get("subjectName") or ""
        if not name or name in seen:
            continue
        seen.add(name)
        index = len(rows) + 1
        rows.append(SubjectRow(
            id=index,
            name=name,
            subject_name=subject.get("subjectName") or name,
            subject_id=subject.get("subjectId") or subject.get("id"),
            max_marks=subject.get("maxMarks") or 100,
            marks_placeholder="{{marks_%d}}" % index,
        ))

    height = SUBJECTS_TABLE_BASE_HEIGHT + len(rows) * SUBJECT_ROW_HEIGHT
    return _replace_subjects(document, table, rows, height)


# ---------------------------------------------------------------------------
# Content helpers
# ---------------------------------------------------------------------------

def insert_placeholder(
    document: TemplateDocument,
    element_id: str,
    key: str,
    cell: Optional[TableCell] = None
) -> TemplateDocument:
    """
    Append `{{key}}` to an element.

    Text-bearing elements get it at the end of their content; tables get it
    in the focused header or data cell.
    """
    element = document.find(element_id)
    placeholder = "{{%s}}" % key

    if isinstance(element, (TextualElement, GenericElement)):
        return update_fields(document, element_id, {"content": (element.content or "") + placeholder})

    if isinstance(element, TableElement) and cell is not None and cell.col is not None:
        if not 0 <= cell.col < element.cols:
            return document
        if cell.row == "header":
            headers = list(element.headers)
            headers[cell.col] = headers[cell.col] + placeholder
            return update_fields(document, element_id, {"headers": headers})
        if isinstance(cell.row, int) and 0 <= cell.row < element.rows:
            data = [list(row) for row in element.data]
            data[cell.row][cell.col] = data[cell.row][cell.col] + placeholder
            return update_fields(document, element_id, {"data": data})

    return document


def set_logo(document: TemplateDocument, data_url: str, element_id: Optional[str] = None) -> TemplateDocument:
    """Store an uploaded image data URL on one element, or on every logo."""
    if element_id is not None:
        return update_fields(document, element_id, {"content": data_url})

    for element in document.elements:
        if isinstance(element, LogoElement):
            document = update_fields(document, element.id, {"content": data_url})
    return document


def apply_generated_elements(
    document: TemplateDocument,
    raw_elements: List[Dict[str, Any]],
    template_name: Optional[str] = None
) -> TemplateDocument:
    """
    Replace the canvas with generated elements.

    Each raw element is laid over the defaults of its kind and given a
    fresh id; elements that fail validation are skipped.
    """
    stamp = int(time.time() * 1000)
    elements = []
    for index, raw in enumerate(raw_elements):
        kind = str(raw.get("type") or "text").lower()
        overrides = {key: value for key, value in raw.items() if key not in ("id", "type")}
        try:
            elements.append(create_element(kind, f"ai_{stamp}_{index}", **overrides))
        except ValidationError as e:
            logger.warning(f"[OPERATIONS] Skipping generated element {index} ({kind}): {e.error_count()} error(s)")

    update: Dict[str, Any] = {"elements": elements}
    if template_name:
        update["template_name"] = template_name
    return document.model_copy(update=update)
