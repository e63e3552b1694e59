"""JSON file implementation of the key-value store."""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from growth_tracker.services.storage import KeyValueStore

_logger = logging.getLogger(__name__)


@dataclass
class JsonFileStorage(KeyValueStore):
    """Stores every key in a single JSON object on disk."""

    path: Path

    def get(self, key: str) -> str | None:
        """Return the stored value, if present."""
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        """Store a value and rewrite the file."""
        values = self._load()
        values[key] = value
        self._dump(values)

    def remove(self, key: str) -> None:
        """Remove a key and rewrite the file."""
        values = self._load()
        if values.pop(key, None) is not None:
            self._dump(values)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            _logger.warning("Ignoring unreadable storage file %s", self.path)
            return {}
        if not isinstance(payload, dict):
            return {}
        return {str(key): str(value) for key, value in payload.items()}

    def _dump(self, values: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(values, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)
