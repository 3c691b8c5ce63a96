"""Microphone recorder writing 16-bit PCM WAV files."""

from __future__ import annotations

import logging
import threading
import wave
from pathlib import Path
from typing import Any, Optional

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = logging.getLogger(__name__)


class SoundDeviceRecorder:
    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_ms: int = 100,
        max_chunks: int = 36000,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_ms = chunk_ms
        self.max_chunks = max_chunks
        self._stream: Any = None
        self._running = False
        self._lock = threading.Lock()
        self._chunks: list[bytes] = []
        self._path: Optional[Path] = None
        self.dropped_chunks = 0

    @property
    def recording(self) -> bool:
        return self._running

    def start(self, path: str) -> None:
        with self._lock:
            if self._running:
                return
            if sd is None:
                raise RuntimeError("sounddevice is not installed")
            if np is None:
                raise RuntimeError("numpy is not installed")
            self._path = Path(path)
            self._chunks = []
            self.dropped_chunks = 0
            blocksize = int(self.sample_rate * (self.chunk_ms / 1000.0))
            self._stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                blocksize=blocksize,
                callback=self._on_audio,
            )
            self._stream.start()
            self._running = True

    def stop(self) -> Optional[str]:
        """Stop capture and flush the WAV file.

        Returns the file path, or None when nothing was captured.
        """
        with self._lock:
            if not self._running:
                return None
            self._running = False
            if self._stream is not None:
                self._stream.stop()
                self._stream.close()
                self._stream = None
            chunks, self._chunks = self._chunks, []
            path = self._path
        if not chunks or path is None:
            return None
        self._write_wav(path, b"".join(chunks))
        return str(path)

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if not self._running:
            return
        if status:
            logger.debug("Input stream status: %s", status)
        if len(self._chunks) >= self.max_chunks:
            self.dropped_chunks += 1
            return
        self._chunks.append(np.asarray(indata, dtype=np.int16).tobytes())

    def _write_wav(self, path: Path, pcm: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with wave.open(str(path), "wb") as wf:
            wf.setnchannels(self.channels)
            wf.setsampwidth(2)
            wf.setframerate(self.sample_rate)
            wf.writeframes(pcm)
