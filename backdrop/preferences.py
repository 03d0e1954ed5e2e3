# backdrop/preferences.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

ENABLE_PARTICLES = "enable_particles"


class PreferenceStore:
    """
    Small persisted key/value store for user-facing toggles.

    Backed by a JSON file when a path is given, otherwise kept in memory.
    An unreadable file is treated as empty rather than fatal.
    """

    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path is not None else None
        self._values: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable preferences %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._values, indent=2, sort_keys=True))

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value
        self._save()

    @property
    def particles_enabled(self) -> bool:
        return bool(self.get(ENABLE_PARTICLES, True))

    def disable_particles(self) -> None:
        self.set(ENABLE_PARTICLES, False)

    def enable_particles(self) -> None:
        self.set(ENABLE_PARTICLES, True)
