"""JSON file-based settings storage — implements SettingsStoragePort."""

import json
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict


def _log(msg: str):
    print(f"[ForceNotification] {msg}", file=sys.stderr)


class JsonStorage:
    """Stores one JSON object per key under ``<storage_dir>/<namespace>.<key>.json``."""

    def __init__(self, storage_dir: str = "memory", namespace: str = "ForceNotification"):
        self._storage_dir = Path(storage_dir)
        self._storage_dir.mkdir(parents=True, exist_ok=True)
        self._namespace = namespace

    def _path(self, key: str) -> Path:
        return self._storage_dir / f"{self._namespace}.{key}.json"

    def load(self, key: str) -> Dict[str, Any]:
        path = self._path(key)
        if not path.exists():
            return {}
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            _log(f"Failed to read {path.name}: {e}")
            return {}
        return raw if isinstance(raw, dict) else {}

    def save(self, key: str, data: Dict[str, Any]) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(data, ensure_ascii=False, indent=2)
        # Atomic write
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent), suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, str(path))
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
