"""Core data models for the clock."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional

ASSET_FOLDER = "resources"

FACE_NAMES = ("Clock_Face-001.png", "Clock_Face-002.png", "Clock_Face-003.png")
HOUR_HAND_NAMES = ("Clock-Hand-001h.png", "Clock-Hand-002h.png", "Clock-Hand-003h.png")
MINUTE_HAND_NAMES = ("Clock-Hand-001m.png", "Clock-Hand-002m.png", "Clock-Hand-003m.png")
ALARM_SOUND_NAMES = ("Clock-Alarm04-01.wav", "Clock-Alarm04-02.wav", "Clock-Alarm04-03.wav")

SCALE_PRESETS = (0.5, 0.75, 1.0, 1.25, 1.5)
SCALE_EPSILON = 0.0001


def scale_matches(current: float, preset: float) -> bool:
    return abs(current - preset) < SCALE_EPSILON


class SourceKind(str, Enum):
    EMBEDDED_COMPONENT = "component"
    EMBEDDED_PACK = "pack"
    SITE_OF_ORIGIN = "siteoforigin"
    LOCAL_FILE = "file"


class AssetKind(str, Enum):
    IMAGE = "image"
    AUDIO_BYTES = "audio"


class AlarmPhase(str, Enum):
    UNARMED = "UNARMED"
    ARMED = "ARMED"
    RINGING = "RINGING"


@dataclass(frozen=True)
class AssetRequest:
    folder: str
    filename: str

    @property
    def relative_path(self) -> str:
        return f"{self.folder}/{self.filename}"


@dataclass(frozen=True)
class ResolutionAttempt:
    source: SourceKind
    ok: bool
    message: str


@dataclass(frozen=True)
class ResolvedAsset:
    """A loaded asset tagged with the source that produced it.

    ``payload`` is a decoded ``QImage`` for images and ``bytes`` for audio.
    """

    kind: AssetKind
    source: SourceKind
    payload: Any


@dataclass(frozen=True)
class AlarmTime:
    hour: int
    minute: int

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass
class AlarmState:
    armed: bool = False
    target: Optional[AlarmTime] = None
    ringing: bool = False
    last_triggered_at: Optional[datetime] = None
    active_handle: Any = None
    # Sound index the active handle was loaded from.
    loaded_sound_index: Optional[int] = None


@dataclass
class AssetSelection:
    face_index: int = 0
    hour_hand_index: int = 0
    minute_hand_index: int = 0
    alarm_sound_index: int = 0

    def __post_init__(self) -> None:
        for name in ("face_index", "hour_hand_index", "minute_hand_index", "alarm_sound_index"):
            _check_index(getattr(self, name))

    def with_index(self, category: str, index: int) -> AssetSelection:
        _check_index(index)
        return replace(self, **{f"{category}_index": index})

    def face_request(self) -> AssetRequest:
        return AssetRequest(ASSET_FOLDER, FACE_NAMES[self.face_index])

    def hour_hand_request(self) -> AssetRequest:
        return AssetRequest(ASSET_FOLDER, HOUR_HAND_NAMES[self.hour_hand_index])

    def minute_hand_request(self) -> AssetRequest:
        return AssetRequest(ASSET_FOLDER, MINUTE_HAND_NAMES[self.minute_hand_index])

    def sound_request(self, index: int | None = None) -> AssetRequest:
        if index is None:
            index = self.alarm_sound_index
        _check_index(index)
        return AssetRequest(ASSET_FOLDER, ALARM_SOUND_NAMES[index])


def _check_index(index: int) -> None:
    if not 0 <= index <= 2:
        raise ValueError(f"asset index out of range: {index}")


@dataclass
class StatusResult:
    success: bool
    message: str


@dataclass
class ClockReading:
    time_text: str
    hour_angle: float
    minute_angle: float
    timestamp: datetime = field(default_factory=datetime.now)
