"""Simple JSON-based config store.

Settings are only read; selections and alarm times are never written back.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "analog_clock" / "config.json"

    def get_language(self) -> str:
        data = self._read_all()
        return str(data.get("language", "en"))

    def get_log_level(self) -> str:
        data = self._read_all()
        return str(data.get("log_level", "INFO")).upper()

    def get_base_dir(self) -> Optional[Path]:
        return self._get_path("base_dir")

    def get_site_of_origin_dir(self) -> Optional[Path]:
        return self._get_path("site_of_origin_dir")

    def get_component_package(self) -> str:
        data = self._read_all()
        return str(data.get("component_package", "clock_assets"))

    def get_alarm_text(self) -> str:
        data = self._read_all()
        return str(data.get("alarm_text", "07:00"))

    def _get_path(self, key: str) -> Optional[Path]:
        value = self._read_all().get(key)
        if not value:
            return None
        return Path(str(value)).expanduser()

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}
