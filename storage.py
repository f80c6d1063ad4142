"""
JSON-file table store used as the persistence collaborator for form submissions
and parent entity configuration.

Each table lives in <root>/<table>.json as a JSON list of records. The insert /
update calls return an InsertResult(data, error) pair in the same shape the
hosted client returns, so callers check `.error` instead of catching.

Exports:
- InsertResult
- JsonTableStore(root)
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import uuid
from typing import Any, Dict, List, NamedTuple, Optional

logger = logging.getLogger(__name__)


class InsertResult(NamedTuple):
    data: Optional[Dict[str, Any]]
    error: Optional[str]


def _read_json(path: str, default: Any) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return default


def _write_json(path: str, data: Any) -> None:
    folder = os.path.dirname(path) or "."
    os.makedirs(folder, exist_ok=True)
    # Unique temp name per writer; os.replace swaps the whole file in one step
    with tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=folder, prefix=os.path.basename(path) + ".", suffix=".tmp", delete=False
    ) as f:
        tmp = f.name
        try:
            json.dump(data, f, ensure_ascii=False, indent=2)
        except (TypeError, ValueError):
            f.close()
            os.remove(tmp)
            raise
    try:
        os.replace(tmp, path)
    except OSError:
        os.remove(tmp)
        raise


_locks_guard = threading.Lock()
_path_locks: Dict[str, threading.Lock] = {}


def _lock_for(path: str) -> threading.Lock:
    """One lock per table file, shared by every store in the process."""
    key = os.path.abspath(path)
    with _locks_guard:
        return _path_locks.setdefault(key, threading.Lock())


class JsonTableStore:
    """Tiny table store over a directory of JSON files."""

    def __init__(self, root: str):
        self.root = root

    def _path(self, table: str) -> str:
        return os.path.join(self.root, f"{table}.json")

    def _rows(self, table: str) -> List[Dict[str, Any]]:
        rows = _read_json(self._path(table), [])
        if not isinstance(rows, list):
            raise ValueError(f"Table '{table}' is not a JSON list")
        return rows

    def select(self, table: str, **filters: Any) -> List[Dict[str, Any]]:
        """Return rows whose columns equal every given filter."""
        rows = self._rows(table)
        if not filters:
            return rows
        return [r for r in rows if all(r.get(k) == v for k, v in filters.items())]

    def get(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        for row in self._rows(table):
            if row.get("id") == record_id:
                return row
        return None

    def insert(self, table: str, record: Dict[str, Any]) -> InsertResult:
        row = dict(record)
        row.setdefault("id", uuid.uuid4().hex)
        try:
            with _lock_for(self._path(table)):
                rows = self._rows(table)
                rows.append(row)
                _write_json(self._path(table), rows)
        except (OSError, ValueError) as e:
            logger.error("insert into %s failed: %s", table, e)
            return InsertResult(None, str(e))
        return InsertResult(row, None)

    def update(self, table: str, record_id: str, patch: Dict[str, Any]) -> InsertResult:
        try:
            with _lock_for(self._path(table)):
                rows = self._rows(table)
                for row in rows:
                    if row.get("id") == record_id:
                        row.update(patch)
                        _write_json(self._path(table), rows)
                        return InsertResult(row, None)
        except (OSError, ValueError) as e:
            logger.error("update of %s/%s failed: %s", table, record_id, e)
            return InsertResult(None, str(e))
        return InsertResult(None, f"No row '{record_id}' in table '{table}'")
