"""JSON file backed key-value storage for client state."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

_logger = logging.getLogger(__name__)


@dataclass
class FileStateStorage:
    """Durable string storage kept in a single JSON document on disk."""

    path: Path

    @classmethod
    def create(cls, path: str | Path) -> "FileStateStorage":
        return cls(path=Path(path).expanduser())

    def get(self, key: str) -> str | None:
        """Return the stored value for ``key``, if present."""
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""
        entries = self._read()
        entries[key] = value
        self._write(entries)

    def remove(self, key: str) -> None:
        """Delete ``key``; missing keys are ignored."""
        entries = self._read()
        if entries.pop(key, None) is not None:
            self._write(entries)

    def _read(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            entries = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            _logger.warning("Ignoring unreadable state file: %s", self.path)
            return {}
        return entries if isinstance(entries, dict) else {}

    def _write(self, entries: dict[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(entries, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)
