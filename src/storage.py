"""Persistence helpers: a string-keyed blob store and the task list codec.

The blob store mimics browser localStorage: one flat namespace of string
keys mapping to string values. The task list lives under a single fixed key
as a JSON array of {id, text, done, createdAt} objects.
"""
from __future__ import annotations
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from errors import PersistenceCorruption, PersistenceWriteFailure
from models import Task

logger = logging.getLogger(__name__)

STORAGE_KEY = 'todo.tasks.v1'

TaskEntry = Dict[str, Any]


class QuotaExceededError(OSError):
    """Raised by a blob store that has run out of room."""


class MemoryBlobStore:
    """Dict-backed blob store; ``quota`` caps the total stored characters."""

    def __init__(self, initial: Optional[Dict[str, str]] = None, quota: Optional[int] = None):
        self.data: Dict[str, str] = dict(initial or {})
        self.quota = quota

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota is not None:
            used = sum(len(v) for k, v in self.data.items() if k != key)
            if used + len(value) > self.quota:
                raise QuotaExceededError(f'quota of {self.quota} exceeded writing {key!r}')
        self.data[key] = value


class FileBlobStore:
    """Blob store persisted as one JSON object (key -> string) on disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding='utf-8'))
        except (OSError, ValueError, RecursionError) as exc:
            logger.warning("Blob store %s unreadable, treating as empty: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Blob store %s is not a JSON object, treating as empty", self.path)
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=self.path.name, suffix='.tmp', dir=self.path.parent)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=4)
            os.replace(tmp, self.path)
        except OSError:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise


class Storage:
    def __init__(self, blobs, key: str = STORAGE_KEY):
        self.blobs = blobs
        self.key = key

    def load(self) -> List[Task]:
        """Load the canonical task list.

        Missing key -> empty list. Unparsable or schema-invalid content is
        logged and also yields an empty list; corrupt state never propagates.
        """
        raw = self.blobs.get(self.key)
        if raw is None:
            return []
        try:
            return decode_tasks(raw)
        except PersistenceCorruption as exc:
            logger.warning("Discarding corrupt task list under %r: %s", self.key, exc)
            return []

    def save(self, tasks: List[Task]) -> None:
        """Write the full canonical list; raises PersistenceWriteFailure."""
        payload = encode_tasks(tasks)
        try:
            self.blobs.set(self.key, payload)
        except OSError as exc:
            raise PersistenceWriteFailure(f'could not write {self.key!r}: {exc}') from exc
        logger.debug("Saved %d tasks under %r", len(tasks), self.key)


def encode_tasks(tasks: List[Task]) -> str:
    entries: List[TaskEntry] = [
        {'id': t.id, 'text': t.text, 'done': t.done, 'createdAt': t.created_at}
        for t in tasks
    ]
    return json.dumps(entries, ensure_ascii=False, separators=(',', ':'))


def decode_tasks(raw: str) -> List[Task]:
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError) as exc:
        raise PersistenceCorruption(f'invalid JSON: {exc}') from exc
    if not isinstance(data, list):
        raise PersistenceCorruption(f'expected a list, got {type(data).__name__}')
    tasks: List[Task] = []
    seen = set()
    for index, entry in enumerate(data):
        task = _decode_entry(entry, index)
        if task.id in seen:
            raise PersistenceCorruption(f'duplicate id {task.id!r} at index {index}')
        seen.add(task.id)
        tasks.append(task)
    return tasks


def _decode_entry(entry: Any, index: int) -> Task:
    if not isinstance(entry, dict):
        raise PersistenceCorruption(f'entry {index} is not an object')
    tid = entry.get('id')
    text = entry.get('text')
    done = entry.get('done')
    created = entry.get('createdAt')
    if not isinstance(tid, str) or not tid:
        raise PersistenceCorruption(f'entry {index} has no string id')
    if not isinstance(text, str) or not text.strip():
        raise PersistenceCorruption(f'entry {index} has empty or missing text')
    if not isinstance(done, bool):
        raise PersistenceCorruption(f'entry {index} has non-boolean done')
    # bool is an int subclass; a stray true/false is not a timestamp
    if isinstance(created, bool) or not isinstance(created, (int, float)):
        raise PersistenceCorruption(f'entry {index} has non-numeric createdAt')
    try:
        created_at = int(created)
    except (OverflowError, ValueError) as exc:  # Infinity / NaN
        raise PersistenceCorruption(f'entry {index} has invalid createdAt: {exc}') from exc
    return Task(id=tid, text=text.strip(), done=done, created_at=created_at)
