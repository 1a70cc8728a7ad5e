"""One-shot alarm state machine.

The controller is driven from a single timer thread: the clock tick calls
``check`` once per second and UI handlers call the remaining operations.
All state lives in one ``AlarmState`` instance owned by the controller.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from asset_resolver import AssetResolver, format_trace
from errors import ASSET_NOT_FOUND, PLAYBACK_FAILED
from interfaces import AudioOutput
from messages import ARMED, DEFAULT_LANGUAGE, INVALID_FORMAT, RINGING, SOUND_UNAVAILABLE, TARGET_SET, UNSET, status_text
from models import AlarmPhase, AlarmState, AlarmTime, AssetKind, AssetSelection, StatusResult

_LOGGER = logging.getLogger("analog_clock.alarm")

DEBOUNCE_WINDOW = timedelta(seconds=60)

# H or HH, colon, M or MM, optional seconds which are dropped.
_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{1,2})(?::(\d{1,2}))?$")

StatusCallback = Callable[[str], None]
ErrorCallback = Callable[[str, str], None]
RingingCallback = Callable[[bool], None]


def parse_alarm_time(text: str) -> Optional[AlarmTime]:
    match = _TIME_PATTERN.match(text.strip())
    if match is None:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    second = int(match.group(3)) if match.group(3) is not None else 0
    if hour > 23 or minute > 59 or second > 59:
        return None
    return AlarmTime(hour=hour, minute=minute)


class AlarmController:
    def __init__(
        self,
        resolver: AssetResolver,
        audio: AudioOutput,
        selection: AssetSelection | None = None,
        language: str = DEFAULT_LANGUAGE,
        debounce: timedelta = DEBOUNCE_WINDOW,
        on_status: Optional[StatusCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        on_ringing_changed: Optional[RingingCallback] = None,
    ) -> None:
        self._resolver = resolver
        self._audio = audio
        self._selection = selection or AssetSelection()
        self._language = language
        self._debounce = debounce
        self._on_status = on_status
        self._on_error = on_error
        self._on_ringing_changed = on_ringing_changed

        self._state = AlarmState()
        self._firing = False
        self._status = status_text(UNSET, language)

    @property
    def state(self) -> AlarmState:
        return self._state

    @property
    def selection(self) -> AssetSelection:
        return self._selection

    @property
    def status(self) -> str:
        return self._status

    @property
    def stop_enabled(self) -> bool:
        return self._state.ringing

    @property
    def phase(self) -> AlarmPhase:
        if self._state.ringing:
            return AlarmPhase.RINGING
        if self._state.armed:
            return AlarmPhase.ARMED
        return AlarmPhase.UNARMED

    # ------------------------------------------------------------------
    # Target and arming
    # ------------------------------------------------------------------

    def set_target(self, text: str) -> StatusResult:
        target = parse_alarm_time(text)
        if target is None:
            self._state.target = None
            return StatusResult(success=False, message=self._set_status(INVALID_FORMAT))
        self._state.target = target
        if self._state.ringing:
            key = RINGING
        elif self._state.armed:
            key = ARMED
        else:
            key = TARGET_SET
        return StatusResult(success=True, message=self._set_status(key))

    def arm(self, text: str) -> StatusResult:
        result = self.set_target(text)
        if not result.success:
            self._state.armed = False
            return result
        self._state.armed = True
        _LOGGER.info("[alarm] armed for %s", self._state.target)
        return StatusResult(success=True, message=self._set_status(ARMED))

    def disarm(self) -> None:
        if self._state.ringing:
            self._safe_stop_playback()
            self._set_ringing(False)
        self._state.armed = False
        self._state.target = None
        self._state.last_triggered_at = None
        self._set_status(UNSET)

    # ------------------------------------------------------------------
    # Firing
    # ------------------------------------------------------------------

    def check(self, now: datetime) -> bool:
        state = self._state
        if self._firing or not state.armed or state.ringing or state.target is None:
            return False
        if (now.hour, now.minute) != (state.target.hour, state.target.minute):
            return False
        last = state.last_triggered_at
        if last is not None and now - last < self._debounce:
            return False
        return self.fire(now)

    def fire(self, now: datetime) -> bool:
        if self._firing or not self._state.armed or self._state.ringing:
            return False
        # Error callbacks may block in a nested event loop that keeps ticking.
        self._firing = True
        try:
            return self._fire(now)
        finally:
            self._firing = False

    def _fire(self, now: datetime) -> bool:
        handle = self._ensure_handle()
        if handle is None:
            self._abort_fire()
            return False
        try:
            self._audio.play_looping(handle)
        except Exception as exc:
            _LOGGER.error("[alarm] playback failed: %s", exc)
            self._abort_fire()
            self._emit_error(PLAYBACK_FAILED, str(exc))
            return False
        self._state.last_triggered_at = now
        self._set_ringing(True)
        self._set_status(RINGING)
        _LOGGER.info("[alarm] ringing at %s", now.strftime("%H:%M:%S"))
        return True

    def stop(self) -> None:
        if not self._state.ringing:
            return
        try:
            self._audio.stop(self._state.active_handle)
        except Exception as exc:
            _LOGGER.error("[alarm] stop failed: %s", exc)
            self._emit_error(PLAYBACK_FAILED, str(exc))
        # One-shot: stopping also disarms.
        self._state.armed = False
        self._set_ringing(False)
        self._set_status(UNSET)

    # ------------------------------------------------------------------
    # Sound selection
    # ------------------------------------------------------------------

    def preload_sound(self) -> bool:
        return self._ensure_handle() is not None

    def reload_active_sound(self, new_index: int) -> bool:
        self._selection = self._selection.with_index("alarm_sound", new_index)
        state = self._state
        if state.active_handle is not None and state.loaded_sound_index == new_index:
            return True

        was_ringing = state.ringing
        if was_ringing:
            self._safe_stop_playback()

        handle = self._load_sound(new_index)
        if handle is None:
            if was_ringing:
                self._set_ringing(False)
                self._set_status(SOUND_UNAVAILABLE)
            return False

        self._replace_handle(handle, new_index)
        if not was_ringing:
            return True
        try:
            self._audio.play_looping(handle)
        except Exception as exc:
            _LOGGER.error("[alarm] playback failed after sound switch: %s", exc)
            self._emit_error(PLAYBACK_FAILED, str(exc))
            self._set_ringing(False)
            self._set_status(SOUND_UNAVAILABLE)
            return False
        return True

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self) -> None:
        handle = self._state.active_handle
        self._state.active_handle = None
        self._state.loaded_sound_index = None
        self._state.ringing = False
        if handle is None:
            return
        try:
            self._audio.stop(handle)
        except Exception as exc:
            _LOGGER.debug("[alarm] stop during close failed: %s", exc)
        try:
            self._audio.dispose(handle)
        except Exception as exc:
            _LOGGER.debug("[alarm] dispose during close failed: %s", exc)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _ensure_handle(self) -> Any:
        index = self._selection.alarm_sound_index
        state = self._state
        if state.active_handle is not None and state.loaded_sound_index == index:
            return state.active_handle
        handle = self._load_sound(index)
        if handle is not None:
            self._replace_handle(handle, index)
        return handle

    def _load_sound(self, index: int) -> Any:
        request = self._selection.sound_request(index)
        asset, trace = self._resolver.resolve(request, AssetKind.AUDIO_BYTES)
        if asset is None:
            self._emit_error(ASSET_NOT_FOUND, f"{request.relative_path}\n{format_trace(trace)}")
            return None
        try:
            return self._audio.load(asset.payload)
        except Exception as exc:
            _LOGGER.error("[alarm] could not load %s: %s", request.relative_path, exc)
            self._emit_error(PLAYBACK_FAILED, f"{request.relative_path}: {exc}")
            return None

    def _replace_handle(self, handle: Any, index: int) -> None:
        old = self._state.active_handle
        self._state.active_handle = handle
        self._state.loaded_sound_index = index
        if old is not None and old is not handle:
            try:
                self._audio.dispose(old)
            except Exception as exc:
                _LOGGER.debug("[alarm] dispose of previous sound failed: %s", exc)

    def _abort_fire(self) -> None:
        # A failed fire leaves the alarm unarmed.
        self._state.armed = False
        self._set_status(SOUND_UNAVAILABLE)

    def _safe_stop_playback(self) -> None:
        handle = self._state.active_handle
        if handle is None:
            return
        try:
            self._audio.stop(handle)
        except Exception as exc:
            _LOGGER.debug("[alarm] stop failed: %s", exc)

    def _set_ringing(self, ringing: bool) -> None:
        if self._state.ringing == ringing:
            return
        self._state.ringing = ringing
        if self._on_ringing_changed:
            self._on_ringing_changed(ringing)

    def _set_status(self, key: str) -> str:
        target = self._state.target
        self._status = status_text(key, self._language, time=str(target) if target else "--:--")
        if self._on_status:
            self._on_status(self._status)
        return self._status

    def _emit_error(self, code: str, message: str) -> None:
        if self._on_error:
            self._on_error(code, message)
