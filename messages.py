"""Localized status strings and menu labels."""

from __future__ import annotations

UNSET = "unset"
TARGET_SET = "target_set"
ARMED = "armed"
RINGING = "ringing"
INVALID_FORMAT = "invalid_format"
SOUND_UNAVAILABLE = "sound_unavailable"

DEFAULT_LANGUAGE = "en"

STATUS_MESSAGES = {
    "en": {
        UNSET: "Alarm not set",
        TARGET_SET: "Alarm set: {time}",
        ARMED: "Alarm armed: {time}",
        RINGING: "Alarm ringing: {time} (press Stop)",
        INVALID_FORMAT: "Invalid alarm time (e.g. 07:00 / 18:30).",
        SOUND_UNAVAILABLE: "Alarm sound unavailable",
    },
    "ja": {
        UNSET: "アラーム未設定",
        TARGET_SET: "アラーム設定：{time}",
        ARMED: "アラーム待機中：{time}",
        RINGING: "アラーム鳴動中：{time}（停止ボタンで停止）",
        INVALID_FORMAT: "アラーム時刻の形式が不正です（例：07:00 / 18:30）。",
        SOUND_UNAVAILABLE: "アラーム音を読み込めません",
    },
}


def status_text(key: str, language: str = DEFAULT_LANGUAGE, **values: object) -> str:
    table = STATUS_MESSAGES.get(language, STATUS_MESSAGES[DEFAULT_LANGUAGE])
    return table[key].format(**values)


MENU_LABELS = {
    "en": {
        "show_alarm": "Show alarm",
        "hide_alarm": "Hide alarm",
        "topmost": "Always on top",
        "scale": "Scale",
        "face": "Face",
        "hour_hand": "Hour hand",
        "minute_hand": "Minute hand",
        "alarm_sound": "Alarm sound",
        "quit": "Quit",
        "enabled": "Enabled",
        "stop": "Stop",
        "alarm_title": "Alarm",
        "resources_title": "Resources",
    },
    "ja": {
        "show_alarm": "アラームを表示",
        "hide_alarm": "アラームを隠す",
        "topmost": "常に手前に表示",
        "scale": "倍率",
        "face": "文字盤",
        "hour_hand": "時針",
        "minute_hand": "分針",
        "alarm_sound": "アラーム音",
        "quit": "終了",
        "enabled": "有効",
        "stop": "停止",
        "alarm_title": "アラーム",
        "resources_title": "リソース",
    },
}


def label_text(key: str, language: str = DEFAULT_LANGUAGE) -> str:
    table = MENU_LABELS.get(language, MENU_LABELS[DEFAULT_LANGUAGE])
    return table[key]
