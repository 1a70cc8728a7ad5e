"""Frameless analog clock window with an optional alarm panel."""

from __future__ import annotations

import logging
from typing import Any, Optional

from alarm_controller import AlarmController
from asset_resolver import AssetResolver, format_trace
from errors import ERROR_MESSAGES, PLAYBACK_FAILED
from messages import DEFAULT_LANGUAGE, label_text
from models import (
    ALARM_SOUND_NAMES,
    FACE_NAMES,
    HOUR_HAND_NAMES,
    MINUTE_HAND_NAMES,
    SCALE_PRESETS,
    AssetKind,
    AssetSelection,
    ClockReading,
    scale_matches,
)

try:
    from PySide6.QtCore import QPointF, QRectF, Qt
    from PySide6.QtGui import QAction, QColor, QFont, QPainter, QPen
    from PySide6.QtWidgets import (
        QApplication,
        QCheckBox,
        QHBoxLayout,
        QLabel,
        QLineEdit,
        QMenu,
        QMessageBox,
        QPushButton,
        QVBoxLayout,
        QWidget,
    )
except Exception:  # pragma: no cover
    QPointF = None  # type: ignore
    QRectF = None  # type: ignore
    Qt = None  # type: ignore
    QAction = None  # type: ignore
    QApplication = None  # type: ignore
    QColor = None  # type: ignore
    QFont = None  # type: ignore
    QPainter = None  # type: ignore
    QPen = None  # type: ignore
    QCheckBox = object  # type: ignore
    QHBoxLayout = object  # type: ignore
    QLabel = object  # type: ignore
    QLineEdit = object  # type: ignore
    QMenu = object  # type: ignore
    QMessageBox = None  # type: ignore
    QPushButton = object  # type: ignore
    QVBoxLayout = object  # type: ignore
    QWidget = object  # type: ignore

_LOGGER = logging.getLogger("analog_clock.window")

BASE_WIDTH = 260
BASE_HEIGHT = 260
BASE_MIN_WIDTH = 160
BASE_MIN_HEIGHT = 160
PANEL_HEIGHT = 110
RESIZE_MARGIN = 6

_IMAGE_CATEGORIES = {
    "face": FACE_NAMES,
    "hour_hand": HOUR_HAND_NAMES,
    "minute_hand": MINUTE_HAND_NAMES,
}


class ClockFace(QWidget):
    """Paints the face image and both hands, or a plain vector clock."""

    def __init__(self) -> None:
        super().__init__()
        self.images: dict[str, Any] = {}
        self.reading: Optional[ClockReading] = None

    def paintEvent(self, event: Any) -> None:  # noqa: N802
        side = min(self.width(), self.height())
        rect = QRectF(-side / 2, -side / 2, side, side)
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.setRenderHint(QPainter.SmoothPixmapTransform, True)
        painter.translate(self.width() / 2, self.height() / 2)

        face = self.images.get("face")
        if face is not None:
            painter.drawImage(rect, face)
        else:
            painter.setPen(QPen(QColor("#333333"), max(2.0, side / 80)))
            painter.setBrush(QColor(255, 255, 255, 220))
            painter.drawEllipse(rect.adjusted(2, 2, -2, -2))

        reading = self.reading
        if reading is not None:
            painter.setPen(QColor("#555555"))
            font = QFont()
            font.setPixelSize(max(8, int(side / 12)))
            painter.setFont(font)
            painter.drawText(
                QRectF(-side / 2, side / 6, side, side / 8), Qt.AlignCenter, reading.time_text
            )
            self._draw_hand(painter, rect, "hour_hand", reading.hour_angle, 0.28, side / 30)
            self._draw_hand(painter, rect, "minute_hand", reading.minute_angle, 0.42, side / 45)
        painter.end()

    def _draw_hand(
        self, painter: Any, rect: Any, key: str, angle: float, length: float, width: float
    ) -> None:
        painter.save()
        painter.rotate(angle)
        image = self.images.get(key)
        if image is not None:
            painter.drawImage(rect, image)
        else:
            painter.setPen(QPen(QColor("#222222"), width, Qt.SolidLine, Qt.RoundCap))
            painter.drawLine(QPointF(0, 0), QPointF(0, -rect.height() * length))
        painter.restore()


class ClockWindow(QWidget):
    def __init__(
        self,
        resolver: AssetResolver,
        alarm: AlarmController,
        alarm_text: str = "07:00",
        language: str = DEFAULT_LANGUAGE,
    ) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self._resolver = resolver
        self._alarm = alarm
        self._selection = AssetSelection()
        self._scale = 1.0
        self._language = language

        self.setWindowFlags(Qt.FramelessWindowHint | Qt.Tool)
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setMouseTracking(True)

        self._face = ClockFace()
        self._face.setAttribute(Qt.WA_TransparentForMouseEvents, True)

        self._alarm_edit = QLineEdit(alarm_text)
        self._alarm_edit.setPlaceholderText("HH:MM")
        self._enabled_box = QCheckBox(self._label("enabled"))
        self._enabled_box.toggled.connect(self._on_enabled_toggled)
        self._stop_button = QPushButton(self._label("stop"))
        self._stop_button.setEnabled(False)
        self._stop_button.clicked.connect(self._alarm.stop)
        self._status_label = QLabel(self._alarm.status)
        self._status_label.setWordWrap(True)

        row = QHBoxLayout()
        row.addWidget(self._alarm_edit)
        row.addWidget(self._enabled_box)
        row.addWidget(self._stop_button)

        self._panel = QWidget()
        self._panel.setStyleSheet(
            "background: rgba(0,0,0,170); color: white; border-radius: 8px;"
        )
        panel_layout = QVBoxLayout()
        panel_layout.addLayout(row)
        panel_layout.addWidget(self._status_label)
        self._panel.setLayout(panel_layout)
        self._panel.setVisible(False)

        layout = QVBoxLayout()
        layout.setContentsMargins(RESIZE_MARGIN, RESIZE_MARGIN, RESIZE_MARGIN, RESIZE_MARGIN)
        layout.addWidget(self._face, 1)
        layout.addWidget(self._panel)
        self.setLayout(layout)

        self.apply_scale(1.0)

    @property
    def scale(self) -> float:
        return self._scale

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    def load_images(self) -> list[str]:
        """Load every image category, returning failure traces."""
        failures = []
        for category in _IMAGE_CATEGORIES:
            failure = self._load_image(category)
            if failure:
                failures.append(failure)
        return failures

    def _load_image(self, category: str) -> Optional[str]:
        request = getattr(self._selection, f"{category}_request")()
        asset, trace = self._resolver.resolve(request, AssetKind.IMAGE)
        if asset is None:
            # Keep whatever was shown before.
            return f"{request.relative_path}\n{format_trace(trace)}"
        self._face.images[category] = asset.payload
        self._face.update()
        return None

    def _select_image(self, category: str, index: int) -> None:
        self._selection = self._selection.with_index(category, index)
        failure = self._load_image(category)
        if failure:
            self.show_warning(failure)

    def _select_sound(self, index: int) -> None:
        self._alarm.reload_active_sound(index)

    # ------------------------------------------------------------------
    # Controller callbacks
    # ------------------------------------------------------------------

    def show_reading(self, reading: ClockReading) -> None:
        self._face.reading = reading
        self._face.update()

    def set_status(self, text: str) -> None:
        self._status_label.setText(text)

    def set_ringing(self, ringing: bool) -> None:
        self._stop_button.setEnabled(ringing)
        self._sync_enabled_box()

    def show_error(self, code: str, message: str) -> None:
        title = ERROR_MESSAGES.get(code, code)
        if code == PLAYBACK_FAILED:
            QMessageBox.critical(self, self._label("alarm_title"), f"{title}\n\n{message}")
        else:
            QMessageBox.warning(self, self._label("alarm_title"), f"{title}\n\n{message}")
        self._sync_enabled_box()

    def show_warning(self, message: str) -> None:
        QMessageBox.warning(self, self._label("resources_title"), message)

    def _sync_enabled_box(self) -> None:
        self._enabled_box.blockSignals(True)
        self._enabled_box.setChecked(self._alarm.state.armed)
        self._enabled_box.blockSignals(False)

    # ------------------------------------------------------------------
    # Alarm panel
    # ------------------------------------------------------------------

    def _on_enabled_toggled(self, checked: bool) -> None:
        if checked:
            self._alarm.arm(self._alarm_edit.text())
        else:
            self._alarm.disarm()
        self._sync_enabled_box()

    def toggle_alarm_panel(self) -> None:
        visible = not self._panel.isVisible()
        self._panel.setVisible(visible)
        if visible:
            self._alarm.set_target(self._alarm_edit.text())
        self._apply_size()

    def toggle_topmost(self) -> None:
        on_top = not bool(self.windowFlags() & Qt.WindowStaysOnTopHint)
        self.setWindowFlag(Qt.WindowStaysOnTopHint, on_top)
        self.show()

    # ------------------------------------------------------------------
    # Scale
    # ------------------------------------------------------------------

    def apply_scale(self, scale: float) -> None:
        self._scale = scale
        font = self._panel.font()
        font.setPointSizeF(max(6.0, 10.0 * scale))
        self._panel.setFont(font)
        self._apply_size()

    def _apply_size(self) -> None:
        extra = PANEL_HEIGHT if self._panel.isVisible() else 0
        self.setMinimumSize(
            int(BASE_MIN_WIDTH * self._scale), int((BASE_MIN_HEIGHT + extra) * self._scale)
        )
        self.resize(int(BASE_WIDTH * self._scale), int((BASE_HEIGHT + extra) * self._scale))

    # ------------------------------------------------------------------
    # Mouse: drag to move, grab an edge to resize
    # ------------------------------------------------------------------

    def _edges_at(self, pos: Any) -> Any:
        edges = Qt.Edge(0)
        if pos.x() <= RESIZE_MARGIN:
            edges |= Qt.LeftEdge
        elif pos.x() >= self.width() - RESIZE_MARGIN:
            edges |= Qt.RightEdge
        if pos.y() <= RESIZE_MARGIN:
            edges |= Qt.TopEdge
        elif pos.y() >= self.height() - RESIZE_MARGIN:
            edges |= Qt.BottomEdge
        return edges

    def mousePressEvent(self, event: Any) -> None:  # noqa: N802
        if event.button() != Qt.LeftButton:
            super().mousePressEvent(event)
            return
        handle = self.windowHandle()
        if handle is None:
            return
        edges = self._edges_at(event.position().toPoint())
        if edges:
            handle.startSystemResize(edges)
        elif not handle.startSystemMove():
            # Not supported by every platform; moving is cosmetic.
            _LOGGER.debug("[window] system move unavailable")

    # ------------------------------------------------------------------
    # Context menu
    # ------------------------------------------------------------------

    def contextMenuEvent(self, event: Any) -> None:  # noqa: N802
        self.build_menu().exec(event.globalPos())

    def build_menu(self) -> Any:
        menu = QMenu(self)

        panel_action = QAction(
            self._label("hide_alarm" if self._panel.isVisible() else "show_alarm"), menu
        )
        panel_action.triggered.connect(self.toggle_alarm_panel)
        menu.addAction(panel_action)

        topmost_action = QAction(self._label("topmost"), menu)
        topmost_action.setCheckable(True)
        topmost_action.setChecked(bool(self.windowFlags() & Qt.WindowStaysOnTopHint))
        topmost_action.triggered.connect(self.toggle_topmost)
        menu.addAction(topmost_action)

        scale_menu = menu.addMenu(self._label("scale"))
        for preset in SCALE_PRESETS:
            action = QAction(f"{int(preset * 100)}%", scale_menu)
            action.setCheckable(True)
            action.setChecked(scale_matches(self._scale, preset))
            action.triggered.connect(lambda _=False, p=preset: self.apply_scale(p))
            scale_menu.addAction(action)

        menu.addSeparator()
        for category, names in _IMAGE_CATEGORIES.items():
            current = getattr(self._selection, f"{category}_index")
            self._add_picker(
                menu,
                self._label(category),
                names,
                current,
                lambda i, c=category: self._select_image(c, i),
            )
        self._add_picker(
            menu,
            self._label("alarm_sound"),
            ALARM_SOUND_NAMES,
            self._alarm.selection.alarm_sound_index,
            self._select_sound,
        )

        menu.addSeparator()
        quit_action = QAction(self._label("quit"), menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)
        return menu

    def quit(self) -> None:
        # Tool windows do not quit the application when closed.
        self.close()
        QApplication.quit()

    def _label(self, key: str) -> str:
        return label_text(key, self._language)

    @staticmethod
    def _add_picker(menu: Any, label: str, names: tuple, current: int, on_pick: Any) -> None:
        submenu = menu.addMenu(label)
        for index, name in enumerate(names):
            action = QAction(name, submenu)
            action.setCheckable(True)
            action.setChecked(index == current)
            action.triggered.connect(lambda _=False, i=index: on_pick(i))
            submenu.addAction(action)
