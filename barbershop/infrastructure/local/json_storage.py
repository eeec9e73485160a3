from __future__ import annotations

import logging
import re
import threading
from pathlib import Path

from barbershop.application.ports.local_storage import LocalStoragePort


class JsonFileLocalStorage(LocalStoragePort):
    """One file per key under data_dir; values are stored verbatim (JSON documents)."""

    def __init__(self, data_dir: str = "./data/local") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def _get_file_path(self, key: str) -> Path:
        safe_key = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self._data_dir / f"{safe_key}.json"

    def get_item(self, key: str) -> str | None:
        file_path = self._get_file_path(key)
        if not file_path.exists():
            return None
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            self._logger.warning("Unreadable local storage file", extra={"error": str(e)})
            return None

    def set_item(self, key: str, value: str) -> None:
        """Write atomically through a temp file and rename."""
        file_path = self._get_file_path(key)
        temp_path = file_path.with_suffix(".json.tmp")

        with self._lock:
            try:
                with open(temp_path, "w", encoding="utf-8") as f:
                    f.write(value)
                temp_path.replace(file_path)
            except Exception:
                if temp_path.exists():
                    try:
                        temp_path.unlink()
                    except OSError:
                        pass
                raise

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._get_file_path(key).unlink(missing_ok=True)
