"""Per-second clock tick: hand angles, time text and the alarm check."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from alarm_controller import AlarmController
from models import ClockReading

ReadingCallback = Callable[[ClockReading], None]

TICK_INTERVAL_MS = 1000


def hand_angles(now: datetime) -> tuple[float, float]:
    """Return ``(hour_angle, minute_angle)`` in degrees clockwise from 12:00."""
    minute_angle = now.minute * 6.0 + now.second * 0.1
    hour_angle = (now.hour % 12) * 30.0 + now.minute * 0.5 + now.second * (0.5 / 60.0)
    return hour_angle, minute_angle


def format_time(now: datetime) -> str:
    return now.strftime("%H:%M")


class ClockDriver:
    def __init__(
        self,
        alarm: AlarmController,
        clock: Callable[[], datetime] = datetime.now,
        on_reading: Optional[ReadingCallback] = None,
    ) -> None:
        self._alarm = alarm
        self._clock = clock
        self._on_reading = on_reading

    def reading(self, now: datetime) -> ClockReading:
        hour_angle, minute_angle = hand_angles(now)
        return ClockReading(
            time_text=format_time(now),
            hour_angle=hour_angle,
            minute_angle=minute_angle,
            timestamp=now,
        )

    def tick(self, now: datetime | None = None) -> ClockReading:
        if now is None:
            now = self._clock()
        reading = self.reading(now)
        if self._on_reading:
            self._on_reading(reading)
        self._alarm.check(now)
        return reading
