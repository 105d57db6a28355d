"""
Local disk storage helpers for exported documents and persisted client state.
"""
from __future__ import annotations

import hashlib
import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger("hopetrack.storage")

DATA_DIR = Path(os.environ.get("DATA_DIR", "data"))
EXPORTS_DIR = DATA_DIR / "exports"
STATE_DIR = DATA_DIR / "state"


def ensure_dirs() -> None:
    """Create data directories if they don't exist."""
    EXPORTS_DIR.mkdir(parents=True, exist_ok=True)
    STATE_DIR.mkdir(parents=True, exist_ok=True)


def sha256_bytes(data: bytes) -> str:
    """Compute sha256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def save_export(filename: str, data: bytes, exports_dir: Path | None = None) -> Path:
    """Write an exported document to the downloads directory. Returns the file path."""
    target_dir = exports_dir or EXPORTS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / filename
    path.write_bytes(data)
    return path


def get_export_path(filename: str) -> Path:
    """Return the full path to a previously exported document."""
    return EXPORTS_DIR / filename


class StateStore(Protocol):
    """Key/value persistence used for notification state."""

    def load(self, key: str, default: Any = None) -> Any: ...

    def save(self, key: str, value: Any) -> None: ...


class MemoryStateStore:
    """In-process store; values are round-tripped through JSON like the file store."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.save(key, value)

    def load(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return default
        return json.loads(raw)

    def save(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)


class JsonFileStateStore:
    """
    One JSON document on disk holding every key.

    A missing or corrupt file reads as empty; the next save rewrites it.
    """

    def __init__(self, path: Path | None = None):
        self.path = path or (STATE_DIR / "notifications.json")

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning(f"State file {self.path} unreadable, starting empty: {exc}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"State file {self.path} does not hold an object, starting empty")
            return {}
        return data

    def load(self, key: str, default: Any = None) -> Any:
        return self._read_all().get(key, default)

    def save(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp.replace(self.path)
