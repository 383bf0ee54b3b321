"""
State Manager Tests
===================
"""

import json

from marksheet_labs.canvas.state_manager import StateManager


def test_create_and_get_session(state_manager):
    session = state_manager.create_session("abc")
    assert state_manager.get_session("abc") is session
    assert (state_manager.sessions_dir / "abc.json").exists()


def test_create_session_generates_id(state_manager):
    session = state_manager.create_session()
    assert len(session.session_id) == 36
    assert state_manager.list_sessions() == [session.session_id]


def test_create_existing_session_returns_it(state_manager):
    first = state_manager.create_session("abc")
    assert state_manager.create_session("abc") is first


def test_missing_session(state_manager):
    assert state_manager.get_session("nope") is None
    assert not state_manager.save_session("nope")
    assert not state_manager.delete_session("nope")


def test_session_survives_restart_with_history(state_manager, clock):
    session = state_manager.create_session("abc")
    session.update_element("title-1", "x", 10)
    session.update_element("title-1", "x", 20)
    session.select("title-1")
    state_manager.save_session("abc")

    reloaded = StateManager(sessions_dir=state_manager.sessions_dir, clock=clock).get_session("abc")
    assert reloaded is not session
    assert reloaded.document == session.document
    assert reloaded.selected_id == "title-1"
    assert reloaded.undo()
    assert reloaded.document.find("title-1").x == 10


def test_saved_record_has_timestamps(state_manager):
    state_manager.create_session("abc")
    record = json.loads((state_manager.sessions_dir / "abc.json").read_text())
    assert record["id"] == "abc"
    assert record["created_at"]
    assert record["updated_at"]
    assert record["document"]["templateName"] == "Untitled Template"


def test_corrupt_session_file_is_not_loaded(state_manager):
    (state_manager.sessions_dir / "broken.json").write_text("{not json")
    assert state_manager.get_session("broken") is None


def test_delete_session(state_manager):
    state_manager.create_session("abc")
    assert state_manager.delete_session("abc")
    assert state_manager.get_session("abc") is None
    assert state_manager.list_sessions() == []
