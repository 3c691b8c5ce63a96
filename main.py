"""Application entrypoint."""

from __future__ import annotations

import logging
import sys
import threading
from typing import Callable, Optional

from config import AppSettings, JsonConfigStore, load_settings
from errors import DreamTalkError, VALIDATION_ERROR, user_message
from hotkey import HoldToRecordHotkey
from interaction import InteractionController
from interpreter import DashscopeInterpreter
from journal import DreamJournal
from models import FeedbackKind, InteractionState, InterpretationResult, RecordingArtifact
from overlay import OverlayWindow
from permissions import PermissionGate, SoundDevicePermissionProvider
from recorder import SoundDeviceRecorder
from recording import RecordingSession, discard_artifact, format_duration
from store import SupabaseJournalStore
from transcriber import DashscopeTranscriber

try:
    from PySide6.QtCore import QEvent, QObject, QPoint, QSize, Qt, QTimer, Signal
    from PySide6.QtGui import QAction, QBrush, QColor, QIcon, QPainter, QPixmap
    from PySide6.QtWidgets import (
        QApplication,
        QHBoxLayout,
        QInputDialog,
        QLabel,
        QLineEdit,
        QMenu,
        QMessageBox,
        QPlainTextEdit,
        QPushButton,
        QSystemTrayIcon,
        QVBoxLayout,
        QWidget,
    )
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger("dreamtalk")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

ICON_IDLE = "#8A7FD4"
ICON_RECORDING = "#FF4444"
ICON_LOCKED = "#FFB020"


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _create_icon(color: str = ICON_IDLE, size: int = 22) -> QIcon:
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


class QtTicker:
    """Recording clock on the Qt event loop."""

    def __init__(self) -> None:
        self._timer: Optional[QTimer] = None

    def start(self, interval_s: float, callback: Callable[[], None]) -> None:
        if self._timer is not None:
            return
        self._timer = QTimer()
        self._timer.timeout.connect(callback)
        self._timer.start(int(interval_s * 1000))

    def cancel(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.stop()
            timer.deleteLater()


class UIBridge(QObject):
    """Marshals hotkey and worker-thread events onto the Qt thread."""

    press_signal = Signal()
    release_signal = Signal()
    lock_signal = Signal()
    cancel_signal = Signal()
    result_signal = Signal(int, object)
    failure_signal = Signal(int, str, str)


class RecordButton(QPushButton):
    """Press-and-hold button that reports vertical drag distance."""

    pressed_in = Signal()
    dragged = Signal(float)
    released_out = Signal()

    def __init__(self, text: str = "Hold to record") -> None:
        super().__init__(text)
        self._origin: Optional[QPoint] = None
        self.setMinimumHeight(72)

    def mousePressEvent(self, event) -> None:  # noqa: N802, ANN001
        if event.button() != Qt.LeftButton:
            return
        self._origin = event.position().toPoint()
        self.setDown(True)
        self.pressed_in.emit()

    def mouseMoveEvent(self, event) -> None:  # noqa: N802, ANN001
        if self._origin is None:
            return
        self.dragged.emit(float(event.position().toPoint().y() - self._origin.y()))

    def mouseReleaseEvent(self, event) -> None:  # noqa: N802, ANN001
        if self._origin is None:
            return
        self._origin = None
        self.setDown(False)
        self.released_out.emit()


class DreamWindow(QWidget):
    """The interpret screen. Hiding it counts as the screen losing focus."""

    blurred = Signal()

    def __init__(self) -> None:
        super().__init__()
        self.setWindowTitle("DreamTalk")
        self.setMinimumWidth(420)

        self.status_label = QLabel("Hold the button and tell your dream")
        self.timer_label = QLabel(format_duration(0))
        self.record_button = RecordButton()
        self.stop_button = QPushButton("Stop")
        self.stop_button.hide()

        self.text_input = QPlainTextEdit()
        self.text_input.setPlaceholderText("…or type your dream here")
        self.send_button = QPushButton("Interpret")

        self.result_label = QLabel("")
        self.result_label.setWordWrap(True)
        self.result_label.setTextInteractionFlags(Qt.TextSelectableByMouse)

        record_row = QHBoxLayout()
        record_row.addWidget(self.record_button, 1)
        record_row.addWidget(self.stop_button)

        layout = QVBoxLayout()
        layout.addWidget(self.status_label)
        layout.addWidget(self.timer_label)
        layout.addLayout(record_row)
        layout.addWidget(self.text_input)
        layout.addWidget(self.send_button)
        layout.addWidget(self.result_label, 1)
        self.setLayout(layout)

    def hideEvent(self, event) -> None:  # noqa: N802, ANN001
        self.blurred.emit()
        super().hideEvent(event)

    def changeEvent(self, event) -> None:  # noqa: N802, ANN001
        if event.type() == QEvent.WindowStateChange and self.isMinimized():
            self.blurred.emit()
        super().changeEvent(event)


def render_result(result: InterpretationResult) -> str:
    lines = [result.summary, "", result.interpretation]
    if result.symbols:
        lines.append("")
        lines.append("Symbols:")
        lines.extend(f"  • {s.symbol}: {s.meaning}" for s in result.symbols)
    if result.mood.primary:
        lines.append("")
        lines.append(f"Mood: {result.mood.primary} ({result.mood.emotional_tone})")
    if result.themes:
        lines.append(f"Themes: {', '.join(result.themes)}")
    if result.suggestions:
        lines.append("")
        lines.append("Suggestions:")
        lines.extend(f"  • {s}" for s in result.suggestions)
    return "\n".join(lines)


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.config_store = JsonConfigStore()
        self.settings: AppSettings = load_settings(self.config_store)

        self.window = DreamWindow()
        self.overlay = OverlayWindow()
        self.ui = UIBridge()
        self.ui.press_signal.connect(self._on_press_in)
        self.ui.release_signal.connect(self._on_press_out)
        self.ui.lock_signal.connect(self._on_lock_key)
        self.ui.cancel_signal.connect(self._on_blur)
        self.ui.result_signal.connect(self._on_result_ui)
        self.ui.failure_signal.connect(self._on_failure_ui)

        self.gate = PermissionGate(SoundDevicePermissionProvider())
        self.gate.check()
        self.recorder = SoundDeviceRecorder()
        self.interpreter = DashscopeInterpreter(
            api_key=self.settings.dashscope_api_key,
            model=self.settings.interpretation_model,
            language=self.settings.language,
        )
        self.transcriber = DashscopeTranscriber(
            api_key=self.settings.dashscope_api_key,
            model=self.settings.transcription_model,
        )
        self.journal: Optional[DreamJournal] = None
        if self.settings.has_backend:
            try:
                store = SupabaseJournalStore(self.settings.supabase_url, self.settings.supabase_key)
            except DreamTalkError:
                logger.warning("Journal backend unavailable, dreams will not be saved", exc_info=True)
            else:
                self.journal = DreamJournal(store, self.interpreter, self.transcriber)

        self.controller = InteractionController(
            session_factory=self._new_session,
            lock_threshold=self.settings.lock_threshold,
            on_state_change=self._on_state_change,
            on_feedback=self._on_feedback,
            on_progress=self.overlay.set_lock_progress,
            on_artifact=self._on_artifact,
            on_error=self._on_error,
        )
        self.hotkey = HoldToRecordHotkey(
            record_key=self.settings.hotkey,
            lock_key=self.settings.lock_hotkey,
            cancel_key=self.settings.cancel_hotkey,
        )

        self._display_timer = QTimer()
        self._display_timer.timeout.connect(self._refresh_elapsed)
        self._display_timer.start(250)

        self._wire_window()
        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(ICON_IDLE))
        self.tray.setToolTip("DreamTalk — Ready")
        self._setup_menu()
        self.tray.show()

    def _new_session(self) -> RecordingSession:
        return RecordingSession(self.gate, self.recorder, ticker_factory=QtTicker)

    def _wire_window(self) -> None:
        w = self.window
        w.record_button.pressed_in.connect(self._on_press_in)
        w.record_button.dragged.connect(self.controller.slide)
        w.record_button.released_out.connect(self.controller.gesture_end)
        w.stop_button.clicked.connect(self.controller.explicit_stop)
        w.send_button.clicked.connect(self._on_send_text)
        w.blurred.connect(self._on_blur)

    def _setup_menu(self) -> None:
        menu = QMenu()

        show_action = QAction("Open DreamTalk", menu)
        show_action.triggered.connect(self._show_window)
        menu.addAction(show_action)

        sign_in_action = QAction("Sign In", menu)
        sign_in_action.triggered.connect(self._sign_in)
        sign_in_action.setEnabled(self.journal is not None)
        menu.addAction(sign_in_action)

        api_action = QAction("Set API Key", menu)
        api_action.triggered.connect(self._set_api_key)
        menu.addAction(api_action)

        mic_action = QAction("Re-check Microphone", menu)
        mic_action.triggered.connect(self.gate.refresh)
        menu.addAction(mic_action)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self.tray.setContextMenu(menu)

    def _show_window(self) -> None:
        self.window.showNormal()
        self.window.raise_()
        self.window.activateWindow()

    def _set_api_key(self) -> None:
        value, ok = QInputDialog.getText(None, "API Key", "DashScope API Key")
        if not ok:
            return
        self.config_store.set_api_key(value)
        QMessageBox.information(None, "Saved", "API Key saved. Restart app to apply.")

    def _sign_in(self) -> None:
        if self.journal is None:
            return
        email, ok = QInputDialog.getText(None, "Sign In", "Email")
        if not ok or not email:
            return
        password, ok = QInputDialog.getText(None, "Sign In", "Password", QLineEdit.Password)
        if not ok:
            return
        try:
            self.journal.sign_in(email.strip(), password)
        except DreamTalkError as exc:
            logger.info("Sign in failed: %s", exc)
            QMessageBox.warning(None, "Sign In", user_message(exc.code))
            return
        QMessageBox.information(None, "Sign In", "Signed in.")

    # ------------------------------------------------------------------
    # Controller callbacks (Qt thread)
    # ------------------------------------------------------------------

    def _on_state_change(self, from_state: InteractionState, to_state: InteractionState) -> None:
        w = self.window
        if to_state == InteractionState.RECORDING:
            self.tray.setIcon(_create_icon(ICON_RECORDING))
            self.tray.setToolTip("DreamTalk — Recording...")
            w.status_label.setText("Recording… slide up to lock")
            self.overlay.show_recording(0, locked=False)
        elif to_state == InteractionState.LOCKED:
            self.tray.setIcon(_create_icon(ICON_LOCKED))
            w.status_label.setText("Locked")
            w.stop_button.show()
            self.overlay.show_recording(self.controller.elapsed_seconds, locked=True)
        elif to_state == InteractionState.FINALIZING:
            w.stop_button.hide()
            self.tray.setToolTip("DreamTalk — Processing...")
        elif to_state == InteractionState.IDLE:
            w.stop_button.hide()
            w.timer_label.setText(format_duration(0))
            w.status_label.setText("Hold the button and tell your dream")
            self.tray.setIcon(_create_icon(ICON_IDLE))
            self.tray.setToolTip("DreamTalk — Ready")
            self.overlay.hide_with_delay(400)

    def _on_feedback(self, kind: FeedbackKind) -> None:
        self.overlay.pulse(kind.value)

    def _on_error(self, code: str, message: str) -> None:
        logger.info("Recording error %s: %s", code, message)
        self.overlay.show_error(user_message(code))

    def _refresh_elapsed(self) -> None:
        state = self.controller.state
        if state not in (InteractionState.RECORDING, InteractionState.LOCKED):
            return
        elapsed = self.controller.elapsed_seconds
        self.window.timer_label.setText(format_duration(elapsed))
        self.overlay.show_recording(elapsed, locked=state == InteractionState.LOCKED)

    def _on_press_in(self) -> None:
        self.controller.press_in()

    def _on_press_out(self) -> None:
        self.controller.gesture_end()

    def _on_lock_key(self) -> None:
        self.controller.lock()

    def _on_blur(self) -> None:
        self.controller.screen_blur()

    # ------------------------------------------------------------------
    # Interpretation (worker threads -> signals)
    # ------------------------------------------------------------------

    def _on_artifact(self, artifact: RecordingArtifact, generation: int) -> None:
        self.window.status_label.setText("Interpreting your dream…")
        self._run_in_background(generation, lambda: self._process_recording(artifact))

    def _on_send_text(self) -> None:
        text = self.window.text_input.toPlainText()
        if not text.strip():
            self.overlay.show_error(user_message(VALIDATION_ERROR))
            return
        self.window.send_button.setEnabled(False)
        self.window.status_label.setText("Interpreting your dream…")
        generation = self.controller.generation
        self._run_in_background(generation, lambda: self._process_text(text))

    def _process_text(self, text: str) -> InterpretationResult:
        if self.journal is not None:
            _, result = self.journal.submit_text(text)
            return result
        return self.interpreter.interpret(text)

    def _process_recording(self, artifact: RecordingArtifact) -> InterpretationResult:
        if self.journal is not None:
            _, result = self.journal.submit_recording(artifact)
            return result
        try:
            text = self.transcriber.transcribe(artifact)
        finally:
            discard_artifact(artifact)
        return self.interpreter.interpret(text)

    def _run_in_background(self, generation: int, job: Callable[[], InterpretationResult]) -> None:
        def _worker() -> None:
            try:
                result = job()
            except DreamTalkError as exc:
                self.ui.failure_signal.emit(generation, exc.code, exc.message)
                return
            except Exception as exc:
                logger.exception("Interpretation job crashed")
                self.ui.failure_signal.emit(generation, "", str(exc))
                return
            self.ui.result_signal.emit(generation, result)

        threading.Thread(target=_worker, daemon=True).start()

    def _on_result_ui(self, generation: int, result: InterpretationResult) -> None:
        self.window.send_button.setEnabled(True)
        if not self.controller.is_current(generation):
            logger.info("Dropping interpretation for a discarded session")
            return
        self.window.text_input.clear()
        self.window.status_label.setText("Your dream has been interpreted")
        self.window.result_label.setText(render_result(result))

    def _on_failure_ui(self, generation: int, code: str, message: str) -> None:
        self.window.send_button.setEnabled(True)
        if not self.controller.is_current(generation):
            logger.info("Dropping interpretation failure for a discarded session: %s", message)
            return
        logger.warning("Interpretation failed (%s): %s", code, message)
        self.window.status_label.setText("Hold the button and tell your dream")
        QMessageBox.warning(self.window, "Dream Interpretation", user_message(code))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        try:
            self.hotkey.start(
                on_press=self.ui.press_signal.emit,
                on_release=self.ui.release_signal.emit,
                on_lock=self.ui.lock_signal.emit,
                on_cancel=self.ui.cancel_signal.emit,
            )
        except Exception as exc:
            logger.warning("Hotkey disabled: %s", exc)
            self.overlay.show_error(f"Hotkey disabled: {exc}")
        self._show_window()
        return self.app.exec()

    def quit(self) -> None:
        self.hotkey.stop()
        self.controller.screen_blur()
        self._display_timer.stop()
        self.app.quit()


def main() -> int:
    configure_logging()
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
