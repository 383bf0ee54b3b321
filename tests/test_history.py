"""
History Stack Tests
===================
"""

from marksheet_labs.canvas.history import HistoryStack
from marksheet_labs.models.document_models import TemplateDocument


def _named(index: int) -> TemplateDocument:
    return TemplateDocument(template_name=f"doc-{index}")


def test_empty_stack():
    history = HistoryStack()
    assert len(history) == 0
    assert history.current is None
    assert history.undo() is None
    assert history.redo() is None


def test_undo_redo_bounds():
    history = HistoryStack()
    for index in range(3):
        history.record(_named(index))

    assert history.undo().template_name == "doc-1"
    assert history.undo().template_name == "doc-0"
    assert history.undo() is None
    assert history.cursor == 0

    assert history.redo().template_name == "doc-1"
    assert history.redo().template_name == "doc-2"
    assert history.redo() is None
    assert history.cursor == 2


def test_cap_evicts_oldest_entries():
    history = HistoryStack()
    for index in range(60):
        history.record(_named(index))

    assert len(history) == 50
    assert history.cursor == 49
    assert history.current.template_name == "doc-59"
    assert history.entries()[0].template_name == "doc-10"


def test_record_drops_redo_branch():
    history = HistoryStack()
    for index in range(3):
        history.record(_named(index))
    history.undo()
    history.undo()

    history.record(_named(9))
    assert [entry.template_name for entry in history.entries()] == ["doc-0", "doc-9"]
    assert not history.can_redo


def test_truncate_drops_redo_branch_only():
    history = HistoryStack()
    for index in range(3):
        history.record(_named(index))
    history.undo()
    history.truncate()
    assert len(history) == 2
    assert history.current.template_name == "doc-1"


def test_entries_are_deep_copies():
    history = HistoryStack()
    document = _named(0)
    history.record(document)
    document.template_name = "changed"
    assert history.current.template_name == "doc-0"

    restored = history.entries()[0]
    restored.template_name = "changed again"
    assert history.current.template_name == "doc-0"


def test_applying_suppresses_recording():
    history = HistoryStack()
    history.record(_named(0))
    with history.applying():
        assert history.is_applying
        assert history.record(_named(1)) is False
    assert not history.is_applying
    assert len(history) == 1


def test_reset_and_restore():
    history = HistoryStack(limit=3)
    history.reset(_named(7))
    assert len(history) == 1 and history.cursor == 0

    history.restore([_named(index) for index in range(5)], cursor=4)
    assert [entry.template_name for entry in history.entries()] == ["doc-2", "doc-3", "doc-4"]
    assert history.cursor == 2

    history.restore([_named(0), _named(1)], cursor=10)
    assert history.cursor == 1
