"""Floating status pill: elapsed time, lock progress, pulses and errors."""

from __future__ import annotations

from recording import format_duration

try:
    from PySide6.QtCore import Qt, QTimer
    from PySide6.QtWidgets import QApplication, QLabel, QProgressBar, QVBoxLayout, QWidget
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QTimer = None  # type: ignore
    QApplication = None  # type: ignore
    QLabel = object  # type: ignore
    QProgressBar = object  # type: ignore
    QVBoxLayout = object  # type: ignore
    QWidget = object  # type: ignore

BOTTOM_MARGIN = 96
NORMAL_BG = "rgba(25,25,60,190)"
ERROR_BG = "rgba(0,0,0,210)"
PULSE_BG = {
    "medium": "rgba(120,110,200,210)",
    "heavy": "rgba(160,140,255,235)",
}


def _pill_style(color: str, background: str) -> str:
    return (
        f"color: {color}; font-size: 18px; padding: 16px;"
        f"background: {background}; border-radius: 12px;"
    )


class OverlayWindow(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowFlags(Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint | Qt.Tool)
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setAttribute(Qt.WA_ShowWithoutActivating, True)
        self.setFixedWidth(420)

        self._label = QLabel("")
        self._label.setWordWrap(True)
        self._label.setAlignment(Qt.AlignCenter)
        self._restyle()

        self._lock_bar = QProgressBar()
        self._lock_bar.setRange(0, 100)
        self._lock_bar.setTextVisible(False)
        self._lock_bar.setFixedHeight(6)
        self._lock_bar.hide()

        box = QVBoxLayout()
        box.setContentsMargins(0, 0, 0, 0)
        box.addWidget(self._label)
        box.addWidget(self._lock_bar)
        self.setLayout(box)

        self._hide_timer = QTimer(self)
        self._hide_timer.setSingleShot(True)
        self._hide_timer.timeout.connect(self.hide)

    def set_text(self, text: str) -> None:
        self._hide_timer.stop()
        self._label.setText(text)
        self._place()
        self.show()

    def show_recording(self, elapsed_seconds: int, locked: bool) -> None:
        hint = "Locked, tap Stop when done" if locked else "Slide up to lock"
        if self._hide_timer.isActive():
            self._restyle()
        self.set_text(f"● {format_duration(elapsed_seconds)}   {hint}")
        self._lock_bar.setVisible(not locked)

    def set_lock_progress(self, progress: float) -> None:
        self._lock_bar.setValue(int(round(progress * 100)))

    def pulse(self, kind: str) -> None:
        """Brief background flash in place of a haptic tap."""
        self._restyle(background=PULSE_BG.get(kind, NORMAL_BG))
        QTimer.singleShot(120, self._restyle)

    def hide_with_delay(self, delay_ms: int = 400) -> None:
        self._lock_bar.hide()
        self._hide_timer.start(delay_ms)

    def show_error(self, text: str, hide_after_ms: int = 2500) -> None:
        self._restyle(color="#FF6B6B", background=ERROR_BG)
        self._lock_bar.hide()
        self.set_text(f"⚠️ {text}")
        self.hide_with_delay(hide_after_ms)

    def hideEvent(self, event) -> None:  # noqa: N802, ANN001
        self._restyle()
        super().hideEvent(event)

    def _restyle(self, color: str = "white", background: str = NORMAL_BG) -> None:
        self._label.setStyleSheet(_pill_style(color, background))

    def _place(self) -> None:
        # Bottom centre of the primary screen, above the dock/taskbar.
        screen = QApplication.primaryScreen() if QApplication is not None else None
        if screen is None:
            return
        area = screen.availableGeometry()
        self.adjustSize()
        self.move(
            area.x() + (area.width() - self.width()) // 2,
            area.y() + area.height() - self.height() - BOTTOM_MARGIN,
        )
