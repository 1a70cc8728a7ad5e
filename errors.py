"""Shared error codes and user-facing messages."""

from __future__ import annotations

ASSET_NOT_FOUND = "ASSET_NOT_FOUND"
INVALID_TIME_FORMAT = "INVALID_TIME_FORMAT"
PLAYBACK_FAILED = "PLAYBACK_FAILED"
INIT_FAILED = "INIT_FAILED"

ERROR_MESSAGES = {
    ASSET_NOT_FOUND: "Resource could not be loaded from any location.",
    INVALID_TIME_FORMAT: "Alarm time must look like 07:00 or 18:30.",
    PLAYBACK_FAILED: "Alarm sound could not be played.",
    INIT_FAILED: "The clock failed to start.",
}
