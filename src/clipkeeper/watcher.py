"""Clipboard change sources.

A watcher turns OS clipboard notifications into ClipboardPayload events.
Platform listeners only have to detect that something changed and call
notify(); pausing, read failures and callback dispatch live here.
"""

import logging
import threading
from collections.abc import Callable

import pyperclip
from PIL import Image

from clipkeeper.config import POLL_INTERVAL
from clipkeeper.errors import ClipboardReadError
from clipkeeper.models import ClipboardPayload

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[ClipboardPayload], None]


class ClipboardWatcher:
    def __init__(self):
        self._on_change: ChangeCallback | None = None
        self._running = False
        self._paused = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_paused(self) -> bool:
        return self._paused

    def start(self, on_change: ChangeCallback) -> None:
        if self._running:
            return
        self._on_change = on_change
        self._running = True
        try:
            self._start_listening()
        except Exception:
            self._running = False
            raise
        logger.info("Clipboard watcher started (%s)", type(self).__name__)

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        self._stop_listening()
        logger.info("Clipboard watcher stopped")

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def notify(self) -> bool:
        """Handle one change notification. Returns True if an event was emitted."""
        if not self._running or self._paused:
            return False

        try:
            payload = self.read_payload()
        except Exception:
            # Usually another process holding the clipboard; the next change retries.
            logger.debug("Clipboard read failed", exc_info=True)
            return False

        if payload is None or self._on_change is None:
            return False

        try:
            self._on_change(payload)
        except Exception:
            logger.exception("Clipboard change handler failed")
        return True

    def _start_listening(self) -> None:
        pass

    def _stop_listening(self) -> None:
        pass

    def read_payload(self) -> ClipboardPayload | None:
        raise NotImplementedError

    def write_text(self, text: str) -> None:
        raise NotImplementedError

    def write_image(self, image: Image.Image) -> None:
        raise NotImplementedError


class PollingWatcher(ClipboardWatcher):
    """Checks for changes on a background thread every `interval` seconds."""

    def __init__(self, interval: float = POLL_INTERVAL):
        super().__init__()
        self._interval = interval
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    def _start_listening(self) -> None:
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="ClipboardWatcher", daemon=True)
        self._thread.start()

    def _stop_listening(self) -> None:
        self._stop_event.set()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=2.0)
        self._thread = None

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                if self.has_changed():
                    self.notify()
            except Exception:
                logger.exception("Clipboard poll failed")

    def has_changed(self) -> bool:
        raise NotImplementedError


class PyperclipWatcher(PollingWatcher):
    """Text-only watcher for platforms without a native listener."""

    def __init__(self, interval: float = POLL_INTERVAL):
        super().__init__(interval)
        self._last_text: str | None = None

    def _start_listening(self) -> None:
        try:
            self._last_text = pyperclip.paste()
        except pyperclip.PyperclipException:
            logger.warning("No clipboard mechanism available; install xclip, xsel or wl-clipboard")
            self._last_text = None
        super()._start_listening()

    def has_changed(self) -> bool:
        try:
            text = pyperclip.paste()
        except pyperclip.PyperclipException:
            return False
        if text == self._last_text:
            return False
        self._last_text = text
        return True

    def read_payload(self) -> ClipboardPayload | None:
        try:
            text = pyperclip.paste()
        except pyperclip.PyperclipException as exc:
            raise ClipboardReadError(str(exc)) from exc
        if not text:
            return None
        return ClipboardPayload(text=text)

    def write_text(self, text: str) -> None:
        pyperclip.copy(text)
        self._last_text = text

    def write_image(self, image: Image.Image) -> None:
        raise NotImplementedError("Copying images back requires the macOS pasteboard watcher")
