"""
Editor State Manager
====================

Keeps editor sessions in memory and persists them as JSON files.
"""

import json
import logging
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from .editor import EditorSession

logger = logging.getLogger(__name__)


class StateManager:
    """Manages editor sessions."""

    def __init__(self, sessions_dir: Optional[Path] = None, clock: Callable[[], float] = time.monotonic):
        self.sessions_dir = Path(sessions_dir or "sessions")
        self.sessions_dir.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        self._cache: Dict[str, EditorSession] = {}
        self._created: Dict[str, str] = {}
        logger.info(f"[STATE-MANAGER] Initialized with sessions_dir={self.sessions_dir}")

    def _session_path(self, session_id: str) -> Path:
        return self.sessions_dir / f"{session_id}.json"

    def create_session(self, session_id: Optional[str] = None) -> EditorSession:
        """Create a session holding the default template."""
        if session_id is None:
            session_id = str(uuid.uuid4())

        existing = self.get_session(session_id)
        if existing is not None:
            return existing

        session = EditorSession(session_id, clock=self._clock)
        self._cache[session_id] = session
        self._created[session_id] = datetime.now().isoformat()
        self.save_session(session_id)
        logger.info(f"[STATE-MANAGER] Created session {session_id}")
        return session

    def get_session(self, session_id: str) -> Optional[EditorSession]:
        """Session from the cache, or from disk on first access."""
        if session_id in self._cache:
            return self._cache[session_id]

        session_path = self._session_path(session_id)
        if not session_path.exists():
            return None

        try:
            with open(session_path) as f:
                record = json.load(f)
            session = EditorSession.from_record(record, clock=self._clock)
        except (OSError, ValueError, KeyError, ValidationError) as e:
            logger.error(f"[STATE-MANAGER] Could not restore session {session_id}: {e}")
            return None

        self._cache[session_id] = session
        self._created[session_id] = record.get("created_at") or datetime.now().isoformat()
        return session

    def save_session(self, session_id: str) -> bool:
        """Write the session to disk."""
        session = self._cache.get(session_id)
        if session is None:
            return False

        record = session.to_record()
        record["created_at"] = self._created.get(session_id)
        record["updated_at"] = datetime.now().isoformat()
        with open(self._session_path(session_id), "w") as f:
            json.dump(record, f, indent=2)
        return True

    def delete_session(self, session_id: str) -> bool:
        found = self._cache.pop(session_id, None) is not None
        self._created.pop(session_id, None)
        session_path = self._session_path(session_id)
        if session_path.exists():
            session_path.unlink()
            found = True
        return found

    def list_sessions(self) -> List[str]:
        on_disk = {path.stem for path in self.sessions_dir.glob("*.json")}
        return sorted(on_disk | set(self._cache))
