"""Protocol interfaces used by AlarmController and the bootstrap."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Protocol


class AudioOutput(Protocol):
    def load(self, data: bytes) -> Any: ...

    def play_looping(self, handle: Any) -> None: ...

    def stop(self, handle: Any) -> None: ...

    def dispose(self, handle: Any) -> None: ...


class ConfigStore(Protocol):
    def get_language(self) -> str: ...

    def get_log_level(self) -> str: ...

    def get_base_dir(self) -> Optional[Path]: ...

    def get_site_of_origin_dir(self) -> Optional[Path]: ...

    def get_component_package(self) -> str: ...

    def get_alarm_text(self) -> str: ...
