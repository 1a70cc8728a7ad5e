"""Application entrypoint."""

from __future__ import annotations

import logging
import sys

from alarm_controller import AlarmController
from asset_resolver import AssetResolver, default_sources
from audio_player import SoundDevicePlayer
from clock_driver import TICK_INTERVAL_MS, ClockDriver
from clock_window import ClockWindow
from config import JsonConfigStore
from errors import ERROR_MESSAGES, INIT_FAILED
from interfaces import ConfigStore

try:
    from PySide6.QtCore import QTimer
    from PySide6.QtWidgets import QApplication, QMessageBox
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the clock: {exc}")

_LOGGER = logging.getLogger("analog_clock")


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.config_store: ConfigStore = JsonConfigStore()
        logging.basicConfig(
            level=self.config_store.get_log_level(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        self.resolver = AssetResolver(
            sources=default_sources(
                component_package=self.config_store.get_component_package(),
                site_of_origin_dir=self.config_store.get_site_of_origin_dir(),
                base_dir=self.config_store.get_base_dir(),
            )
        )
        self.player = SoundDevicePlayer()
        self.controller = AlarmController(
            resolver=self.resolver,
            audio=self.player,
            language=self.config_store.get_language(),
            on_status=self._on_status,
            on_error=self._on_error,
            on_ringing_changed=self._on_ringing_changed,
        )
        self.window = ClockWindow(
            resolver=self.resolver,
            alarm=self.controller,
            alarm_text=self.config_store.get_alarm_text(),
            language=self.config_store.get_language(),
        )
        self.driver = ClockDriver(self.controller, on_reading=self.window.show_reading)

        self.timer = QTimer()
        self.timer.setInterval(TICK_INTERVAL_MS)
        self.timer.timeout.connect(self.driver.tick)
        self.app.aboutToQuit.connect(self.controller.close)

    # ------------------------------------------------------------------
    # Controller callbacks (timer thread == UI thread)
    # ------------------------------------------------------------------

    def _on_status(self, text: str) -> None:
        self.window.set_status(text)

    def _on_error(self, code: str, message: str) -> None:
        _LOGGER.warning("%s: %s", code, message)
        self.window.show_error(code, message)

    def _on_ringing_changed(self, ringing: bool) -> None:
        self.window.set_ringing(ringing)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load_resources(self) -> None:
        failures = self.window.load_images()
        if failures:
            self.window.show_warning("\n\n".join(failures))
        self.controller.preload_sound()

    def run(self) -> int:
        try:
            self.load_resources()
        except Exception as exc:
            _LOGGER.exception("resource bootstrap failed")
            QMessageBox.critical(self.window, ERROR_MESSAGES[INIT_FAILED], repr(exc))
        self.driver.tick()
        self.timer.start()
        self.window.show()
        return self.app.exec()


def main() -> int:
    try:
        app = App()
    except Exception as exc:
        _LOGGER.exception("window bootstrap failed")
        if QApplication.instance() is not None:
            QMessageBox.critical(None, ERROR_MESSAGES[INIT_FAILED], repr(exc))
        return 1
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
