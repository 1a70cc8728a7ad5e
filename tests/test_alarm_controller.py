from __future__ import annotations

from datetime import datetime

import pytest

from alarm_controller import AlarmController, parse_alarm_time
from asset_resolver import AssetResolver
from errors import ASSET_NOT_FOUND, PLAYBACK_FAILED
from models import ALARM_SOUND_NAMES, AlarmPhase, AlarmTime, AssetRequest, SourceKind


class FakeHandle:
    def __init__(self, data: bytes) -> None:
        self.data = data


class FakeAudio:
    def __init__(self) -> None:
        self.loaded: list[bytes] = []
        self.playing: list[FakeHandle] = []
        self.stopped: list[FakeHandle] = []
        self.disposed: list[FakeHandle] = []
        self.fail_play = False
        self.fail_stop = False

    def load(self, data: bytes) -> FakeHandle:
        self.loaded.append(data)
        return FakeHandle(data)

    def play_looping(self, handle: FakeHandle) -> None:
        if self.fail_play:
            raise RuntimeError("device busy")
        self.playing.append(handle)

    def stop(self, handle: FakeHandle) -> None:
        if self.fail_stop:
            raise RuntimeError("device gone")
        self.stopped.append(handle)
        if handle in self.playing:
            self.playing.remove(handle)

    def dispose(self, handle: FakeHandle) -> None:
        if self.fail_stop:
            raise RuntimeError("device gone")
        self.disposed.append(handle)


def _resolver(files: dict[str, bytes]) -> AssetResolver:
    def fetch(request: AssetRequest) -> bytes:
        if request.filename not in files:
            raise FileNotFoundError(f"file not found:{request.filename}")
        return files[request.filename]

    return AssetResolver(sources=[(SourceKind.LOCAL_FILE, fetch)])


ALL_SOUNDS = {name: name.encode() for name in ALARM_SOUND_NAMES}


def _make(files: dict[str, bytes] | None = None, **kwargs):  # noqa: ANN003, ANN202
    audio = FakeAudio()
    errors: list[tuple[str, str]] = []
    statuses: list[str] = []
    ringing: list[bool] = []
    controller = AlarmController(
        resolver=_resolver(ALL_SOUNDS if files is None else files),
        audio=audio,
        on_error=lambda c, m: errors.append((c, m)),
        on_status=statuses.append,
        on_ringing_changed=ringing.append,
        **kwargs,
    )
    return controller, audio, errors, statuses, ringing


def _assert_invariant(controller: AlarmController) -> None:
    state = controller.state
    if state.ringing:
        assert state.armed is True
        assert state.active_handle is not None


def at(hour: int, minute: int, second: int = 0, day: int = 1) -> datetime:
    return datetime(2024, 5, day, hour, minute, second)


# ---------------------------------------------------------------
# Time parsing
# ---------------------------------------------------------------

@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("07:00", AlarmTime(7, 0)),
        ("7:5", AlarmTime(7, 5)),
        (" 18:30 ", AlarmTime(18, 30)),
        ("18:30:59", AlarmTime(18, 30)),
        ("0:00", AlarmTime(0, 0)),
        ("23:59", AlarmTime(23, 59)),
    ],
)
def test_parse_accepts(text: str, expected: AlarmTime) -> None:
    assert parse_alarm_time(text) == expected


@pytest.mark.parametrize(
    "text", ["25:99", "24:00", "12:60", "7", "07-00", "", "ab:cd", "123:00", "07:00:60", "07:00pm"]
)
def test_parse_rejects(text: str) -> None:
    assert parse_alarm_time(text) is None


def test_set_target_success_and_failure() -> None:
    controller, _, _, statuses, _ = _make()

    result = controller.set_target("07:00")
    assert result.success is True
    assert controller.state.target == AlarmTime(7, 0)
    assert result.message == "Alarm set: 07:00"

    result = controller.set_target("25:99")
    assert result.success is False
    assert controller.state.target is None
    assert result.message == "Invalid alarm time (e.g. 07:00 / 18:30)."
    assert statuses == ["Alarm set: 07:00", "Invalid alarm time (e.g. 07:00 / 18:30)."]


def test_status_is_localized() -> None:
    controller, _, _, _, _ = _make(language="ja")
    assert controller.status == "アラーム未設定"
    assert controller.arm("07:00").message == "アラーム待機中：07:00"


# ---------------------------------------------------------------
# Arming
# ---------------------------------------------------------------

def test_arm_with_invalid_text_stays_unarmed() -> None:
    controller, _, _, _, _ = _make()

    result = controller.arm("nope")

    assert result.success is False
    assert controller.phase == AlarmPhase.UNARMED
    assert controller.state.armed is False


def test_arm_and_disarm() -> None:
    controller, _, _, _, _ = _make()

    assert controller.arm("07:00").message == "Alarm armed: 07:00"
    assert controller.phase == AlarmPhase.ARMED

    controller.disarm()
    assert controller.phase == AlarmPhase.UNARMED
    assert controller.state.target is None
    assert controller.status == "Alarm not set"


# ---------------------------------------------------------------
# Firing and debounce
# ---------------------------------------------------------------

def test_fires_exactly_once_across_the_target_minute() -> None:
    controller, audio, _, _, ringing = _make()
    controller.arm("07:00")

    fired = [
        controller.check(now)
        for now in (at(6, 59, 59), at(7, 0, 0), at(7, 0, 30), at(7, 1, 0))
    ]

    assert fired == [False, True, False, False]
    assert ringing == [True]
    assert len(audio.playing) == 1
    assert controller.state.last_triggered_at == at(7, 0, 0)
    assert controller.phase == AlarmPhase.RINGING
    assert controller.stop_enabled is True
    assert controller.status == "Alarm ringing: 07:00 (press Stop)"
    _assert_invariant(controller)


def test_check_is_noop_without_target_or_when_unarmed() -> None:
    controller, audio, _, _, _ = _make()
    controller.set_target("07:00")

    assert controller.check(at(7, 0)) is False
    assert audio.loaded == []


def test_debounce_survives_stop_and_rearm() -> None:
    controller, _, _, _, _ = _make()
    controller.arm("07:00")
    assert controller.check(at(7, 0, 0)) is True

    controller.stop()
    controller.arm("07:00")

    assert controller.check(at(7, 0, 45)) is False
    assert controller.check(at(7, 1, 5)) is False
    assert controller.check(at(7, 0, 0, day=2)) is True


def test_disarm_resets_debounce() -> None:
    controller, _, _, _, _ = _make()
    controller.arm("07:00")
    controller.check(at(7, 0, 0))

    controller.disarm()
    controller.arm("07:00")

    assert controller.state.last_triggered_at is None
    assert controller.check(at(7, 0, 45)) is True


def test_handle_is_reused_between_fires() -> None:
    controller, audio, _, _, _ = _make()
    controller.arm("07:00")
    controller.check(at(7, 0))
    controller.stop()
    controller.arm("07:00")
    controller.check(at(7, 0, day=2))

    assert audio.loaded == [ALARM_SOUND_NAMES[0].encode()]


def test_fire_without_sound_reports_trace_and_disarms() -> None:
    controller, audio, errors, _, ringing = _make(files={})
    controller.arm("07:00")

    assert controller.check(at(7, 0)) is False

    assert ringing == []
    assert controller.state.ringing is False
    assert controller.state.armed is False
    assert controller.state.last_triggered_at is None
    assert errors[0][0] == ASSET_NOT_FOUND
    assert "x file not found:Clock-Alarm04-01.wav" in errors[0][1]
    assert controller.status == "Alarm sound unavailable"


def test_playback_failure_leaves_alarm_silent() -> None:
    controller, audio, errors, _, _ = _make()
    audio.fail_play = True
    controller.arm("07:00")

    assert controller.fire(at(7, 0)) is False

    assert controller.state.ringing is False
    assert controller.state.last_triggered_at is None
    assert errors == [(PLAYBACK_FAILED, "device busy")]


def test_ticks_during_error_dialog_do_not_refire() -> None:
    audio = FakeAudio()
    errors: list[str] = []
    controller: AlarmController

    def on_error(code: str, message: str) -> None:
        errors.append(code)
        # A modal dialog keeps the timer running underneath it.
        for second in range(1, 5):
            controller.check(at(7, 0, second))

    controller = AlarmController(resolver=_resolver({}), audio=audio, on_error=on_error)
    controller.arm("07:00")

    assert controller.check(at(7, 0, 0)) is False
    for second in range(5, 60):
        assert controller.check(at(7, 0, second)) is False

    assert errors == [ASSET_NOT_FOUND]
    assert controller.state.armed is False


def test_playback_error_reported_after_disarm() -> None:
    audio = FakeAudio()
    audio.fail_play = True
    armed_during_error: list[bool] = []
    controller: AlarmController

    def on_error(code: str, message: str) -> None:
        armed_during_error.append(controller.state.armed)
        assert controller.check(at(7, 0, 1)) is False

    controller = AlarmController(resolver=_resolver(ALL_SOUNDS), audio=audio, on_error=on_error)
    controller.arm("07:00")

    assert controller.check(at(7, 0, 0)) is False
    assert armed_during_error == [False]
    assert controller.status == "Alarm sound unavailable"


# ---------------------------------------------------------------
# Stopping
# ---------------------------------------------------------------

def test_stop_after_ringing_disarms() -> None:
    controller, audio, _, _, ringing = _make()
    controller.arm("07:00")
    controller.check(at(7, 0))
    handle = controller.state.active_handle

    controller.stop()

    assert controller.phase == AlarmPhase.UNARMED
    assert controller.state.armed is False
    assert controller.state.ringing is False
    assert controller.stop_enabled is False
    assert audio.stopped == [handle]
    assert ringing == [True, False]


def test_stop_when_not_ringing_is_noop() -> None:
    controller, audio, _, _, _ = _make()
    controller.arm("07:00")

    controller.stop()

    assert controller.phase == AlarmPhase.ARMED
    assert audio.stopped == []


def test_disarm_while_ringing_stops_playback() -> None:
    controller, audio, _, _, ringing = _make()
    controller.arm("07:00")
    controller.check(at(7, 0))

    controller.disarm()

    assert audio.playing == []
    assert ringing == [True, False]
    assert controller.phase == AlarmPhase.UNARMED


# ---------------------------------------------------------------
# Switching sounds
# ---------------------------------------------------------------

def test_switch_sound_while_ringing_keeps_ringing() -> None:
    controller, audio, errors, _, ringing = _make()
    controller.arm("07:00")
    controller.check(at(7, 0))
    old = controller.state.active_handle

    assert controller.reload_active_sound(2) is True

    new = controller.state.active_handle
    assert new is not old
    assert new.data == ALARM_SOUND_NAMES[2].encode()
    assert old in audio.stopped
    assert old in audio.disposed
    assert audio.playing == [new]
    assert controller.phase == AlarmPhase.RINGING
    assert controller.status == "Alarm ringing: 07:00 (press Stop)"
    assert ringing == [True]
    assert errors == []
    _assert_invariant(controller)


def test_switch_to_missing_sound_while_ringing_stops() -> None:
    files = {ALARM_SOUND_NAMES[0]: b"one"}
    controller, audio, errors, _, ringing = _make(files=files)
    controller.arm("07:00")
    controller.check(at(7, 0))

    assert controller.reload_active_sound(1) is False

    assert controller.state.ringing is False
    assert audio.playing == []
    assert ringing == [True, False]
    assert errors[0][0] == ASSET_NOT_FOUND
    assert controller.status == "Alarm sound unavailable"
    assert controller.selection.alarm_sound_index == 1
    _assert_invariant(controller)


def test_switch_sound_while_idle_loads_eagerly() -> None:
    controller, audio, _, _, _ = _make()

    assert controller.reload_active_sound(1) is True

    assert audio.loaded == [ALARM_SOUND_NAMES[1].encode()]
    assert controller.state.loaded_sound_index == 1
    assert audio.playing == []


def test_failed_idle_switch_keeps_previous_sound() -> None:
    files = {ALARM_SOUND_NAMES[0]: b"one"}
    controller, _, errors, _, _ = _make(files=files)
    assert controller.preload_sound() is True
    previous = controller.state.active_handle

    assert controller.reload_active_sound(2) is False

    assert controller.state.active_handle is previous
    assert controller.state.loaded_sound_index == 0
    assert errors[0][0] == ASSET_NOT_FOUND


def test_out_of_range_sound_index_rejected() -> None:
    controller, _, _, _, _ = _make()
    with pytest.raises(ValueError):
        controller.reload_active_sound(3)


# ---------------------------------------------------------------
# Teardown
# ---------------------------------------------------------------

def test_close_never_raises() -> None:
    controller, audio, _, _, _ = _make()
    controller.arm("07:00")
    controller.check(at(7, 0))
    audio.fail_stop = True

    controller.close()

    assert controller.state.active_handle is None
    assert controller.state.ringing is False


def test_close_without_handle() -> None:
    controller, audio, _, _, _ = _make()
    controller.close()
    assert audio.stopped == []
