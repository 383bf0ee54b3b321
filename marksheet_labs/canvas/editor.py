"""
Editor Session
==============

One template being edited: the live document, its undo/redo history, the
interaction engine, selection and save status.

Every document change goes through `_apply()`, which checkpoints the
pre-image into history before installing the new document. Gestures
checkpoint once on release, and text edits to the same field within the
debounce window share one checkpoint.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError

from ..config import DEFAULT_BACKGROUND_COLOR, TEXT_EDIT_DEBOUNCE_SECONDS
from ..models.document_models import (
    SectionStyle,
    TemplateDocument,
    TemplatePayload,
    default_section_styles,
)
from ..models.editor_models import (
    CanvasOffset,
    KeyCommand,
    KeyEvent,
    PointerEvent,
    ResizeHandle,
    TableCell,
    Tool,
    WheelEvent,
)
from ..models.element_models import ElementBase
from ..models.keyset_models import KeySet
from ..services.html_exporter import get_html_exporter
from ..services.marks_calculator import CalculationMode, build_preview_students, subjects_from_marks
from ..services.placeholder_resolver import PlaceholderResolver, ResolutionContext
from ..services.school_client import SchoolApiClient
from ..services.template_serializer import build_template_payload, load_template
from . import operations
from .history import HistoryStack
from .interaction import InteractionEngine

logger = logging.getLogger(__name__)

# Properties whose edits are typed keystroke by keystroke
TEXT_PROPERTIES = {"content", "headers", "data", "prefix", "title", "fieldLabel", "field_label", "placeholder", "label"}


class PreviewResult(BaseModel):
    """Resolved HTML for one student."""
    html: str
    student_id: Optional[str] = None
    key_set_id: Optional[str] = None
    errors: List[str] = Field(default_factory=list)


class EditorSession:
    """Dispatcher for every edit made to one template."""

    def __init__(
        self,
        session_id: str,
        document: Optional[TemplateDocument] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.session_id = session_id
        self.document = document if document is not None else operations.default_template()
        self.history = HistoryStack()
        self.interaction = InteractionEngine()

        self.selected_id: Optional[str] = None
        self.focused_cell: Optional[TableCell] = None

        self.template_id: Optional[str] = None
        self.saved = False
        self.last_saved: Optional[TemplateDocument] = None
        self.status_message: Optional[str] = None

        self.section_styles: Dict[str, SectionStyle] = default_section_styles()
        self.background_color = DEFAULT_BACKGROUND_COLOR
        self.background_image: Optional[str] = None

        self.preview_students: List[Dict[str, Any]] = []
        self.key_sets: List[KeySet] = []
        self.selected_student_id: Optional[str] = None
        self.active_key_set_id: Optional[str] = None

        self._clock = clock
        self._pending_edit: Optional[Tuple[str, str]] = None
        self._last_edit_at = 0.0
        self._gesture_origin: Optional[TemplateDocument] = None

        self.history.record(self.document)

    # ------------------------------------------------------------------
    # History plumbing
    # ------------------------------------------------------------------

    @property
    def selected_element(self) -> Optional[ElementBase]:
        return self.document.find(self.selected_id)

    def _record_pre_image(self, pre_image: TemplateDocument) -> None:
        if self.history.current != pre_image:
            self.history.record(pre_image)
        else:
            self.history.truncate()

    def _seal(self) -> None:
        """Record the live document if it is not the entry under the cursor."""
        self._pending_edit = None
        if self.history.current != self.document:
            self.history.record(self.document)

    def _apply(self, document: TemplateDocument, edit_key: Optional[Tuple[str, str]] = None) -> bool:
        """Install a new document; False when the operation was a no-op."""
        if document is self.document:
            return False
        if self.interaction.in_gesture:
            self.pointer_up()

        if edit_key is not None:
            now = self._clock()
            continuing = (
                self._pending_edit == edit_key
                and now - self._last_edit_at < TEXT_EDIT_DEBOUNCE_SECONDS
            )
            self._pending_edit = edit_key
            self._last_edit_at = now
            if not continuing:
                self._record_pre_image(self.document)
        else:
            self._pending_edit = None
            self._record_pre_image(self.document)

        self.document = document
        self.saved = False
        return True

    def _install(self, document: TemplateDocument) -> None:
        """Replace the live document without touching history."""
        with self.history.applying():
            self.document = document
            if self.document.find(self.selected_id) is None:
                self.selected_id = None
                self.focused_cell = None

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select(self, element_id: Optional[str]) -> bool:
        if element_id is not None and self.document.find(element_id) is None:
            return False
        if element_id != self.selected_id:
            self.focused_cell = None
        self.selected_id = element_id
        return True

    def clear_selection(self) -> None:
        self.selected_id = None
        self.focused_cell = None

    def focus_cell(self, cell: Optional[TableCell]) -> None:
        self.focused_cell = cell

    # ------------------------------------------------------------------
    # Element operations
    # ------------------------------------------------------------------

    def add_element(self, element_type: str) -> str:
        document, element_id = operations.add_element(self.document, element_type)
        self._apply(document)
        self.select(element_id)
        return element_id

    def update_element(self, element_id: str, prop: str, value: Any) -> bool:
        edit_key = (element_id, prop) if prop in TEXT_PROPERTIES else None
        changed = self._apply(operations.update_element(self.document, element_id, prop, value), edit_key)
        if changed and prop == "id" and self.selected_id == element_id:
            self.selected_id = value
        return changed

    def update_document_field(self, prop: str, value: str) -> bool:
        document = operations.update_document_field(self.document, prop, value)
        return self._apply(document, ("document", prop))

    def delete_element(self, element_id: Optional[str] = None) -> bool:
        element_id = element_id or self.selected_id
        if element_id is None:
            return False
        changed = self._apply(operations.delete_element(self.document, element_id))
        if changed and self.selected_id == element_id:
            self.clear_selection()
        return changed

    def duplicate_element(self, element_id: Optional[str] = None) -> Optional[str]:
        document, copy_id = operations.duplicate_element(self.document, element_id or self.selected_id)
        if self._apply(document):
            self.select(copy_id)
            return copy_id
        return None

    def move_layer(self, element_id: str, direction: str) -> bool:
        return self._apply(operations.move_element_layer(self.document, element_id, direction))

    def add_table_row(self, element_id: str) -> bool:
        return self._apply(operations.add_table_row(self.document, element_id))

    def remove_table_row(self, element_id: str) -> bool:
        return self._apply(operations.remove_table_row(self.document, element_id))

    def add_table_column(self, element_id: str) -> bool:
        return self._apply(operations.add_table_column(self.document, element_id))

    def remove_table_column(self, element_id: str) -> bool:
        return self._apply(operations.remove_table_column(self.document, element_id))

    def add_subject(self) -> bool:
        return self._apply(operations.add_subject(self.document))

    def update_subject(self, subject_id: int, prop: str, value: Any) -> bool:
        document = operations.update_subject(self.document, subject_id, prop, value)
        return self._apply(document, (f"subject-{subject_id}", prop))

    def remove_subject(self, subject_id: int) -> bool:
        return self._apply(operations.remove_subject(self.document, subject_id))

    def set_subjects(self, subjects: List[Dict[str, Any]]) -> bool:
        return self._apply(operations.set_subjects(self.document, subjects))

    def insert_placeholder(self, key: str, element_id: Optional[str] = None) -> bool:
        """Append `{{key}}` to the selected element (or focused table cell)."""
        element_id = element_id or self.selected_id
        if element_id is None:
            return False
        cell = self.focused_cell if element_id == self.selected_id else None
        return self._apply(operations.insert_placeholder(self.document, element_id, key, cell))

    def set_logo(self, data_url: str, element_id: Optional[str] = None) -> bool:
        return self._apply(operations.set_logo(self.document, data_url, element_id))

    def set_background(self, color: Optional[str] = None, image: Optional[str] = None, clear_image: bool = False) -> None:
        """Canvas background is saved with the template but is not undoable."""
        if color:
            self.background_color = color
        if image:
            self.background_image = image
        elif clear_image:
            self.background_image = None
        self.saved = False

    def set_section_style(self, section: str, style: Dict[str, Any]) -> bool:
        if section not in self.section_styles:
            return False
        payload = self.section_styles[section].model_dump()
        payload.update(style)
        try:
            self.section_styles[section] = SectionStyle.model_validate(payload)
        except ValidationError:
            logger.warning(f"[EDITOR] Invalid style for section {section}")
            return False
        self.saved = False
        return True

    # ------------------------------------------------------------------
    # Pointer, wheel and keyboard
    # ------------------------------------------------------------------

    def pointer_down(
        self,
        event: PointerEvent,
        element_id: Optional[str] = None,
        handle: Optional[ResizeHandle] = None
    ) -> None:
        """Start a pan, resize or drag; a click on empty canvas deselects."""
        self._pending_edit = None
        if self.interaction.wants_pan(event):
            self.interaction.begin_pan(event)
            return

        if handle is not None:
            element = self.document.find(element_id or self.selected_id)
            if element is not None and self.interaction.begin_resize(element, handle, event):
                self.select(element.id)
                self._gesture_origin = self.document
            return

        element = self.document.find(element_id)
        if element is None:
            self.clear_selection()
            return

        self.select(element.id)
        if self.interaction.begin_drag(element, event):
            self._gesture_origin = self.document

    def pointer_move(self, event: PointerEvent) -> bool:
        """Advance the gesture; True when the document changed."""
        geometry = self.interaction.move(event)
        element_id = self.interaction.active_element_id
        if not geometry or element_id is None:
            return False
        document = operations.update_fields(self.document, element_id, geometry)
        if document is self.document:
            return False
        self.document = document
        return True

    def pointer_up(self) -> bool:
        """Finish the gesture; True when it changed the document."""
        self.interaction.end()
        origin, self._gesture_origin = self._gesture_origin, None
        if origin is None or self.document == origin:
            return False
        self._record_pre_image(origin)
        self.saved = False
        return True

    def wheel(self, event: WheelEvent) -> bool:
        return self.interaction.wheel(event)

    def set_tool(self, tool: Tool) -> None:
        self.interaction.set_tool(tool)

    def handle_key(self, event: KeyEvent) -> Optional[KeyCommand]:
        """Run the command bound to a key press, if any."""
        command = self.interaction.interpret_key(event)
        if command == KeyCommand.SELECT_TOOL:
            self.set_tool(Tool.SELECT)
        elif command == KeyCommand.PAN_TOOL:
            self.set_tool(Tool.PAN)
        elif command == KeyCommand.DELETE:
            self.delete_element()
        elif command == KeyCommand.UNDO:
            self.undo()
        elif command == KeyCommand.REDO:
            self.redo()
        elif command == KeyCommand.RESET_VIEW:
            self.interaction.reset_view()
        return command

    # ------------------------------------------------------------------
    # Undo, redo, revert
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        if self.interaction.in_gesture:
            self.pointer_up()
        self._seal()
        snapshot = self.history.undo()
        if snapshot is None:
            return False
        self._install(snapshot)
        self.saved = False
        return True

    def redo(self) -> bool:
        if self.interaction.in_gesture:
            self.pointer_up()
        self._seal()
        snapshot = self.history.redo()
        if snapshot is None:
            return False
        self._install(snapshot)
        self.saved = False
        return True

    def revert(self) -> bool:
        """Return to the last saved document; the revert itself is undoable."""
        if self.last_saved is None:
            self.status_message = "No saved state to revert to"
            return False
        self._pending_edit = None
        self._record_pre_image(self.document)
        self._install(self.last_saved.snapshot())
        self.clear_selection()
        self.saved = True
        self.status_message = "Reverted to last saved state"
        return True

    # ------------------------------------------------------------------
    # Export and preview
    # ------------------------------------------------------------------

    def export_html(self, document: Optional[TemplateDocument] = None) -> str:
        return get_html_exporter().export(
            document or self.document,
            self.background_color,
            self.background_image,
        )

    def build_payload(self) -> TemplatePayload:
        return build_template_payload(
            self.document,
            section_styles=self.section_styles,
            background_color=self.background_color,
            background_image=self.background_image,
            html=self.export_html(),
            template_id=self.template_id,
        )

    def find_student(self, student_id: Optional[str]) -> Optional[Dict[str, Any]]:
        for student in self.preview_students:
            if student_id is not None and str(student.get("id")) == str(student_id):
                return student
        return None

    def find_key_set(self, key_set_id: Optional[str]) -> Optional[KeySet]:
        for key_set in self.key_sets:
            if key_set_id is not None and key_set.key_set_id == key_set_id:
                return key_set
        return None

    def preview(
        self,
        student: Optional[Dict[str, Any]] = None,
        key_set: Optional[KeySet] = None,
        subject: Optional[Dict[str, Any]] = None
    ) -> PreviewResult:
        """
        Render the document with placeholders filled for one student.

        Explicit arguments win over the session's selected student and
        active key set.
        """
        student = student if student is not None else self.find_student(self.selected_student_id)
        key_set = key_set if key_set is not None else self.find_key_set(self.active_key_set_id)

        resolver = PlaceholderResolver(ResolutionContext(student=student, key_set=key_set, subject=subject))
        html = self.export_html(resolver.resolve_document(self.document))
        if resolver.errors:
            logger.warning(f"[EDITOR] Preview for {self.session_id} had {len(resolver.errors)} formula error(s)")

        return PreviewResult(
            html=html,
            student_id=str(student.get("id")) if student and student.get("id") is not None else None,
            key_set_id=key_set.key_set_id if key_set else None,
            errors=resolver.errors,
        )

    # ------------------------------------------------------------------
    # Network operations
    # ------------------------------------------------------------------

    async def save(self, client: SchoolApiClient) -> bool:
        """POST a new template or PUT an existing one; saved stays False on failure."""
        payload = self.build_payload()
        # Edits made while the request is in flight are not part of this save
        snapshot = self.document.snapshot()
        result = await client.save_template(payload)
        if not result.success:
            self.saved = False
            self.status_message = result.error or "Failed to save template"
            return False

        saved_id = None
        if isinstance(result.data, dict):
            saved_id = result.data.get("templateId") or result.data.get("_id")
        if saved_id:
            self.template_id = str(saved_id)

        self.last_saved = snapshot
        self.saved = self.document == snapshot
        self.status_message = "Template saved successfully"
        logger.info(f"[EDITOR] Session {self.session_id} saved as template {self.template_id}")
        return True

    async def load(self, client: SchoolApiClient, template_id: str) -> bool:
        """Replace the session with a stored template; history starts over."""
        result = await client.load_template(template_id)
        if not result.success:
            self.status_message = result.error or "Failed to load template"
            return False

        loaded = load_template(result.data)
        self.template_id = loaded.template_id or template_id
        self.section_styles = loaded.section_styles
        self.background_color = loaded.background_color
        self.background_image = loaded.background_image

        self.document = loaded.document
        self.history.reset(self.document)
        self._pending_edit = None
        self.clear_selection()
        self.saved = True
        self.last_saved = self.document.snapshot()
        self.status_message = f"Loaded template '{self.document.template_name}'"
        logger.info(f"[EDITOR] Session {self.session_id} loaded template {self.template_id}")
        return True

    async def generate(self, client: SchoolApiClient, prompt: str) -> bool:
        """Replace the canvas with a generated layout (undoable)."""
        if not prompt or not prompt.strip():
            return False

        result = await client.generate_template(prompt.strip())
        if not result.success:
            self.status_message = result.error or "Failed to generate template"
            return False

        raw_elements = result.data.get("elements") or []
        if not raw_elements:
            self.status_message = "No elements were generated"
            return False

        document = operations.apply_generated_elements(
            self.document,
            raw_elements,
            result.data.get("templateName") or "AI Generated Template",
        )
        self._apply(document)
        self.clear_selection()
        self.status_message = f"Created '{self.document.template_name}' with {len(self.document.elements)} elements"
        return True

    async def refresh_subjects(self, client: SchoolApiClient, class_id: Optional[str] = None) -> bool:
        """Fill the subjects table from the API's subjects."""
        result = await client.fetch_subjects(class_id)
        if not result.success:
            self.status_message = result.error
            return False
        if not result.data:
            return False
        return self.set_subjects(result.data)

    async def load_preview_data(
        self,
        client: SchoolApiClient,
        class_id: Optional[str] = None,
        calculation_mode: str = CalculationMode.SUM,
        custom_formula: Optional[str] = None
    ) -> bool:
        """
        Fetch students, classes, marks and subjects for the preview.

        Subjects that have marks replace the subjects table rows. Each
        student's `finalMarks` follows `calculation_mode`.
        """
        students = await client.fetch_students(class_id)
        classes = await client.fetch_classes()
        marks = await client.fetch_marks(class_id)
        subjects = await client.fetch_subjects(class_id)

        if not students.success:
            self.status_message = students.error
            self.preview_students = []
            return False

        mark_records = marks.data if marks.success else []
        subject_records = subjects.data if subjects.success else []
        class_records = classes.data if classes.success else []

        table_subjects = subjects_from_marks(mark_records, subject_records)
        if table_subjects:
            self.set_subjects(table_subjects)

        self.preview_students = build_preview_students(
            students.data,
            mark_records,
            subject_records,
            class_records,
            calculation_mode=calculation_mode,
            custom_formula=custom_formula,
        )
        if self.find_student(self.selected_student_id) is None:
            self.selected_student_id = None
        return True

    async def load_key_sets(self, client: SchoolApiClient) -> bool:
        result = await client.fetch_key_sets()
        if not result.success:
            self.status_message = result.error
            return False

        key_sets = []
        for raw in result.data:
            try:
                key_sets.append(KeySet.model_validate(raw))
            except ValidationError:
                logger.warning("[EDITOR] Skipping invalid key set")
        self.key_sets = key_sets
        return True

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def to_state(self) -> Dict[str, Any]:
        """Wire view of the session for API responses."""
        return {
            "sessionId": self.session_id,
            "templateId": self.template_id,
            "document": self.document.to_wire(),
            "selectedId": self.selected_id,
            "focusedCell": self.focused_cell.model_dump(by_alias=True) if self.focused_cell else None,
            "tool": self.interaction.tool.value,
            "zoom": self.interaction.zoom,
            "offset": self.interaction.offset.model_dump(by_alias=True),
            "gesture": self.interaction.gesture.value,
            "canUndo": self.history.can_undo or self.history.current != self.document,
            "canRedo": self.history.can_redo and self.history.current == self.document,
            "saved": self.saved,
            "statusMessage": self.status_message,
            "canvasBackgroundColor": self.background_color,
            "canvasBackgroundImage": self.background_image,
            "sectionStyles": {
                name: style.model_dump(by_alias=True) for name, style in self.section_styles.items()
            },
            "selectedStudentId": self.selected_student_id,
            "activeKeySetId": self.active_key_set_id,
        }

    def to_record(self) -> Dict[str, Any]:
        """Everything needed to rebuild the session from disk; gestures are not kept."""
        return {
            "id": self.session_id,
            "document": self.document.to_wire(),
            "history": [entry.to_wire() for entry in self.history.entries()],
            "cursor": self.history.cursor,
            "templateId": self.template_id,
            "saved": self.saved,
            "lastSaved": self.last_saved.to_wire() if self.last_saved else None,
            "sectionStyles": {
                name: style.model_dump(by_alias=True) for name, style in self.section_styles.items()
            },
            "canvasBackgroundColor": self.background_color,
            "canvasBackgroundImage": self.background_image,
            "tool": self.interaction.tool.value,
            "zoom": self.interaction.zoom,
            "offset": self.interaction.offset.model_dump(by_alias=True),
            "selectedId": self.selected_id,
            "previewStudents": self.preview_students,
            "keySets": [key_set.model_dump(by_alias=True) for key_set in self.key_sets],
            "selectedStudentId": self.selected_student_id,
            "activeKeySetId": self.active_key_set_id,
        }

    @classmethod
    def from_record(
        cls,
        record: Dict[str, Any],
        clock: Callable[[], float] = time.monotonic
    ) -> "EditorSession":
        session = cls(
            record["id"],
            document=TemplateDocument.model_validate(record["document"]),
            clock=clock,
        )
        history = [TemplateDocument.model_validate(entry) for entry in record.get("history") or []]
        if history:
            session.history.restore(history, record.get("cursor", len(history) - 1))

        session.template_id = record.get("templateId")
        session.saved = bool(record.get("saved"))
        if record.get("lastSaved"):
            session.last_saved = TemplateDocument.model_validate(record["lastSaved"])
        for name, style in (record.get("sectionStyles") or {}).items():
            if name in session.section_styles:
                session.section_styles[name] = SectionStyle.model_validate(style)
        session.background_color = record.get("canvasBackgroundColor") or DEFAULT_BACKGROUND_COLOR
        session.background_image = record.get("canvasBackgroundImage")

        session.interaction.set_tool(record.get("tool") or Tool.SELECT)
        session.interaction.set_zoom(record.get("zoom") or 100)
        session.interaction.offset = CanvasOffset.model_validate(record.get("offset") or {})
        session.select(record.get("selectedId"))

        session.preview_students = record.get("previewStudents") or []
        session.key_sets = [KeySet.model_validate(raw) for raw in record.get("keySets") or []]
        session.selected_student_id = record.get("selectedStudentId")
        session.active_key_set_id = record.get("activeKeySetId")
        return session
