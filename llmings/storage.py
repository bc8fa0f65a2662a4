"""JSON file storage.

All state is stored in flat JSON files under a configurable base directory.
There is no database or ORM — reads and writes go through plain helper
methods that load and dump JSON.

Directory layout:

    {base}/
      config.json             ← app settings (see llmings.config)
      runs/
        {key}.json            ← one persisted run blob per key

Keys are scoped per mode and date, e.g. "run-daily-2026-10-19".
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class Storage:
    def __init__(self, base_path: Path) -> None:
        self._base = base_path
        self._runs_root = base_path / "runs"
        self._runs_root.mkdir(parents=True, exist_ok=True)

    @property
    def base_path(self) -> Path:
        return self._base

    # ------------------------------------------------------------------
    # Internal path helpers
    # ------------------------------------------------------------------

    def _run_file(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._runs_root / f"{key}.json"

    def config_file(self) -> Path:
        return self._base / "config.json"

    def _read_json(self, path: Path) -> Any:
        return json.loads(path.read_text())

    def _write_json(self, path: Path, data: Any) -> None:
        # Write to a sibling temp file and swap it in, so a reader never
        # sees a half-written blob.
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_text(json.dumps(data, indent=2))
        os.replace(tmp, path)

    # ------------------------------------------------------------------
    # Key-value blobs
    # ------------------------------------------------------------------

    def load(self, key: str) -> Any | None:
        """Return the decoded blob for `key`, or None if absent or unreadable."""
        path = self._run_file(key)
        if not path.is_file():
            return None
        try:
            return self._read_json(path)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Stored blob %s is unreadable: %s", key, e)
            return None

    def save(self, key: str, blob: Any) -> None:
        self._write_json(self._run_file(key), blob)
        logger.debug("saved %s", key)

    def delete(self, key: str) -> bool:
        path = self._run_file(key)
        if not path.is_file():
            return False
        path.unlink()
        return True

    def keys(self) -> list[str]:
        return sorted(p.stem for p in self._runs_root.glob("*.json"))

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    def load_config(self) -> dict[str, Any]:
        path = self.config_file()
        if not path.is_file():
            return {}
        data = self._read_json(path)
        return data if isinstance(data, dict) else {}

    def save_config(self, config: dict[str, Any]) -> None:
        self._write_json(self.config_file(), config)
