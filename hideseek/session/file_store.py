"""
File Session Store - JSON-on-disk game records.

The store:
- Keeps the in-memory store's semantics (versions, conflicts, watchers)
- Writes every committed record to <data_dir>/<game_id>.json
- Reloads all records on start, so games survive a restart

Design decisions:
- One file per game, written to a temp file and renamed into place
- Unreadable files are skipped with a warning, never deleted
- Write failures surface as CollaboratorUnavailableError and leave the
  previous record untouched
"""

from __future__ import annotations
import json
import os
from pathlib import Path
from typing import Any

from ..errors import CollaboratorUnavailableError
from ..logging_config import get_logger
from .store import InMemorySessionStore

logger = get_logger(__name__)


class FileSessionStore(InMemorySessionStore):
    """
    Store backed by a directory of JSON files.

    Usage:
        store = FileSessionStore(data_dir="~/.hideseek/games")
        game_id = await store.create(game)
    """

    def __init__(self, data_dir: str | Path | None = None):
        super().__init__()
        if data_dir is None:
            data_dir = Path.home() / ".hideseek" / "games"
        self.data_dir = Path(data_dir).expanduser()
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._load_all()

    def list_stored(self) -> list[str]:
        """Game ids that have a record on disk."""
        return [f.stem for f in self.data_dir.glob("*.json")]

    def _load_all(self):
        for path in self.data_dir.glob("*.json"):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    record = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Skipping unreadable game record %s: %s", path, e)
                continue
            game_id = record.get("game_id") if isinstance(record, dict) else None
            if not game_id:
                logger.warning("Skipping game record without game_id: %s", path)
                continue
            self._records[game_id] = record
        logger.info("Loaded %d game record(s) from %s", len(self._records), self.data_dir)

    def _path(self, game_id: str) -> Path:
        return self.data_dir / f"{game_id}.json"

    def _persist(self, game_id: str, record: dict[str, Any]):
        path = self._path(game_id)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(record, f, indent=2)
            os.replace(tmp_path, path)
        except OSError as e:
            logger.error("Failed to write game record %s: %s", path, e)
            raise CollaboratorUnavailableError(f"Could not persist game {game_id}") from e
