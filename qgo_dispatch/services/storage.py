"""
Persistent local key-value storage.

A JSON object on disk mapping string keys to JSON values; the server-side
counterpart of a browser's localStorage. Writes go through a temporary
file and ``os.replace`` so a crash never leaves a half-written file.
"""
import json
import logging
import os
import tempfile
from typing import Any, Optional

logger = logging.getLogger(__name__)


class LocalStorage:
    """JSON-file backed key-value store."""

    def __init__(self, path: str):
        self.path = os.path.abspath(path)

    def _read_all(self) -> dict[str, Any]:
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.error(f"Local storage at {self.path} is unreadable, ignoring it: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Local storage at {self.path} is not a JSON object, ignoring it")
            return {}
        return data

    def _write_all(self, data: dict[str, Any]) -> None:
        directory = os.path.dirname(self.path)
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".storage-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get_item(self, key: str) -> Optional[Any]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)
