"""
File Store - Persists sessions as JSON files with expiry.

The store:
- One JSON file per session id
- Expiry deadline stored alongside the session (wall clock)
- Expired or unreadable files read as missing and are removed
- No database required
"""

from __future__ import annotations
import json
import logging
import os
import time
from pathlib import Path
from typing import Callable

from ..engine_core.state import Session
from ..ports import SessionStore

logger = logging.getLogger(__name__)


class FileSessionStore(SessionStore):
    """
    File-based SessionStore.

    Usage:
        store = FileSessionStore(store_dir="~/.zkmind/sessions")
        store.set(7, session)
        store.extend_ttl(7, 3600)
        session = store.get(7)
    """

    def __init__(
        self,
        store_dir: str | Path | None = None,
        default_ttl: int = 3600,
        clock: Callable[[], float] = time.time,
    ):
        if store_dir is None:
            store_dir = Path.home() / ".zkmind" / "sessions"
        self.store_dir = Path(store_dir).expanduser()
        self.default_ttl = default_ttl
        self._clock = clock

        self.store_dir.mkdir(parents=True, exist_ok=True)

    def get(self, session_id: int) -> Session | None:
        path = self._get_path(session_id)
        entry = self._load_entry(path)
        if entry is None:
            return None
        return Session.from_dict(entry["session"])

    def set(self, session_id: int, session: Session) -> None:
        path = self._get_path(session_id)
        entry = self._load_entry(path)
        expires_at = entry["expires_at"] if entry else self._clock() + self.default_ttl
        self._save_entry(path, {
            "session_id": session_id,
            "expires_at": expires_at,
            "session": session.to_dict(),
        })

    def extend_ttl(self, session_id: int, ttl_seconds: int) -> None:
        path = self._get_path(session_id)
        entry = self._load_entry(path)
        if entry is None:
            return
        entry["expires_at"] = max(entry["expires_at"], self._clock() + ttl_seconds)
        self._save_entry(path, entry)

    def list_sessions(self) -> list[int]:
        """IDs of stored session files (expired ones included until read)."""
        if not self.store_dir.exists():
            return []
        return sorted(int(f.stem) for f in self.store_dir.glob("*.json") if f.stem.isdigit())

    def _get_path(self, session_id: int) -> Path:
        return self.store_dir / f"{session_id}.json"

    def _load_entry(self, path: Path) -> dict | None:
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                entry = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Dropping unreadable session file %s: %s", path, e)
            path.unlink(missing_ok=True)
            return None

        if self._clock() >= entry.get("expires_at", 0):
            logger.info("Session file %s expired", path.name)
            path.unlink(missing_ok=True)
            return None
        return entry

    def _save_entry(self, path: Path, entry: dict):
        # Write-then-rename so a crash never leaves a half-written session
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(entry, f, indent=2)
        os.replace(tmp_path, path)
