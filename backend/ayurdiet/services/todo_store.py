"""
Todo persistence: the whole list lives as one JSON blob under a namespaced
key, read and rewritten on every operation.

The medium is an injected storage port (anything with read/write/delete by
key). A missing, cleared or unreadable blob loads as an empty list.
"""

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol
from pydantic import ValidationError
from ayurdiet.schemas.todo import TodoRecord

logger = logging.getLogger(__name__)

PRIORITY_RANK = {"high": 3, "medium": 2, "low": 1}


class StoragePort(Protocol):
    def read(self, key: str) -> Optional[str]: ...
    def write(self, key: str, value: str) -> None: ...
    def delete(self, key: str) -> None: ...


class MemoryStorage:
    def __init__(self):
        self._data: dict[str, str] = {}

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


def _safe_key(key: str) -> str:
    cleaned = re.sub(r"[^\w.\-@]+", "_", key.strip())
    if cleaned in {"", ".", ".."}:
        cleaned = "unknown"
    return cleaned[:200]


class FileStorage:
    """One `<key>.json` file per key under `root`."""

    def __init__(self, root):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / f"{_safe_key(key)}.json"

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, value: str) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


def _created_ts(record: TodoRecord) -> float:
    try:
        # fromisoformat only accepts a trailing "Z" from Python 3.11 on.
        value = record.created_at
        if value.endswith(("Z", "z")):
            value = value[:-1] + "+00:00"
        return datetime.fromisoformat(value).timestamp()
    except ValueError:
        return 0.0


class TodoStore:
    def __init__(self, storage: StoragePort, key: str = "dietitian_todos"):
        self.storage = storage
        self.key = key

    def load(self) -> list[TodoRecord]:
        try:
            raw = self.storage.read(self.key)
        except OSError as e:
            logger.error("Error loading todos from %s: %s", self.key, e)
            return []
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Discarding unreadable todo blob %s: %s", self.key, e)
            return []
        if not isinstance(items, list):
            return []

        records = []
        for item in items:
            try:
                records.append(TodoRecord.model_validate(item))
            except ValidationError as e:
                logger.warning("Skipping malformed todo in %s: %s", self.key, e)
        return records

    def save(self, records: list[TodoRecord]) -> None:
        payload = json.dumps([r.model_dump() for r in records], ensure_ascii=False)
        try:
            self.storage.write(self.key, payload)
        except OSError as e:
            logger.error("Error saving todos to %s: %s", self.key, e)

    def get(self, todo_id: str) -> Optional[TodoRecord]:
        return next((t for t in self.load() if t.id == todo_id), None)

    def add(self, record: TodoRecord) -> bool:
        todos = self.load()
        if any(t.id == record.id for t in todos):
            return False
        todos.append(record)
        self.save(todos)
        return True

    def update(self, todo_id: str, fields: dict) -> Optional[TodoRecord]:
        todos = self.load()
        updated = None
        for i, todo in enumerate(todos):
            if todo.id == todo_id:
                updated = TodoRecord.model_validate({**todo.model_dump(), **fields, "id": todo_id})
                todos[i] = updated
        if updated is not None:
            self.save(todos)
        return updated

    def remove(self, todo_id: str) -> bool:
        todos = self.load()
        remaining = [t for t in todos if t.id != todo_id]
        if len(remaining) == len(todos):
            return False
        self.save(remaining)
        return True

    def active(self) -> list[TodoRecord]:
        return [t for t in self.load() if not t.is_completed]

    def top(self, limit: int = 3) -> list[TodoRecord]:
        """Open todos, highest priority first, newest first within a priority."""
        ranked = sorted(
            self.active(),
            key=lambda t: (PRIORITY_RANK.get(t.priority, 0), _created_ts(t)),
            reverse=True,
        )
        return ranked[:limit]

    def clear(self) -> None:
        try:
            self.storage.delete(self.key)
        except OSError as e:
            logger.error("Error clearing todos at %s: %s", self.key, e)
