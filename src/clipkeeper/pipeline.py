"""Capture pipeline: watcher event -> classify -> dedup -> store -> evict.

One ClipboardPipeline owns the watcher callback. Every event runs to
completion under a lock before the next one starts, which is what keeps the
store at one row per content hash when the same thing is copied repeatedly.
"""

import logging
import sqlite3
import threading
import time
from collections.abc import Callable
from dataclasses import replace
from enum import Enum

from PIL import Image

from clipkeeper.archive import ImageArchive
from clipkeeper.classifier import analyze_text
from clipkeeper.config import MAX_TEXT_SIZE, RESUME_SETTLE_DELAY
from clipkeeper.errors import ImageArchiveError
from clipkeeper.models import ClipboardEntry, ClipboardPayload, ContentType, utc_now
from clipkeeper.sensitive import detect_sensitive
from clipkeeper.settings import SettingsService
from clipkeeper.storage import StorageManager
from clipkeeper.utils import compute_hash
from clipkeeper.watcher import ClipboardWatcher

logger = logging.getLogger(__name__)

Subscriber = Callable[[list[ClipboardEntry]], None]


class PipelineState(Enum):
    IDLE = "idle"
    READING = "reading"
    CLASSIFYING = "classifying"
    DEDUP_CHECK = "dedup_check"
    PERSISTING = "persisting"
    BUMPING = "bumping"
    EVICTING = "evicting"


class PipelineOutcome(Enum):
    ADDED = "added"
    BUMPED = "bumped"
    SKIPPED = "skipped"
    FAILED = "failed"


class ClipboardPipeline:
    def __init__(
        self,
        storage: StorageManager,
        watcher: ClipboardWatcher,
        settings: SettingsService,
        archive: ImageArchive | None = None,
        settle_delay: float = RESUME_SETTLE_DELAY,
    ):
        self._storage = storage
        self._watcher = watcher
        self._settings = settings
        self._archive = archive or storage.archive
        self._settle_delay = settle_delay
        self._lock = threading.Lock()
        self._state = PipelineState.IDLE
        self._subscribers: list[Subscriber] = []
        self._user_paused = False

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def is_monitoring_paused(self) -> bool:
        return self._user_paused

    @property
    def history_limit(self) -> int:
        return self._settings.history_limit

    def start(self) -> None:
        self._watcher.start(self.handle)

    def stop(self) -> None:
        self._watcher.stop()

    def close(self) -> None:
        self.stop()
        self._storage.close()

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def entries(self) -> list[ClipboardEntry]:
        return self._storage.get_recent(limit=self._settings.history_limit)

    def handle(self, payload: ClipboardPayload) -> PipelineOutcome:
        with self._lock:
            self._state = PipelineState.READING
            try:
                if payload.has_text:
                    outcome = self._handle_text(payload.text)
                else:
                    outcome = self._handle_image(payload.image)
            except ImageArchiveError as exc:
                logger.error("Image not archived, entry dropped: %s", exc)
                outcome = PipelineOutcome.FAILED
            except Exception:
                logger.exception("Error processing clipboard change")
                outcome = PipelineOutcome.FAILED
            finally:
                self._state = PipelineState.IDLE

        if outcome in (PipelineOutcome.ADDED, PipelineOutcome.BUMPED):
            self._publish()
        return outcome

    def _handle_text(self, text: str) -> PipelineOutcome:
        if not text or not text.strip():
            return PipelineOutcome.SKIPPED
        if len(text.encode("utf-8")) > MAX_TEXT_SIZE:
            logger.warning("Text too large (%d characters), skipping", len(text))
            return PipelineOutcome.SKIPPED

        self._state = PipelineState.CLASSIFYING
        sensitive = detect_sensitive(text)
        if sensitive is not None:
            logger.debug("Skipping sensitive clipboard content (%s)", sensitive.value)
            return PipelineOutcome.SKIPPED

        analysis = analyze_text(text)
        if self._bump_existing(analysis.content_hash):
            return PipelineOutcome.BUMPED

        self._insert(
            ClipboardEntry(
                id=None,
                content=text,
                content_type=analysis.content_type,
                copied_at=utc_now(),
                preview=analysis.preview,
                color_hex=analysis.color_hex,
                content_hash=analysis.content_hash,
            )
        )
        return PipelineOutcome.ADDED

    def _handle_image(self, image: Image.Image) -> PipelineOutcome:
        self._state = PipelineState.CLASSIFYING
        path = str(self._archive.next_path())
        # Hashes the destination path and size, not the pixels.
        content_hash = compute_hash(f"{path}{image.width}{image.height}")
        if self._bump_existing(content_hash):
            return PipelineOutcome.BUMPED

        self._state = PipelineState.PERSISTING
        saved_path = self._archive.save(image, path)
        self._insert(
            ClipboardEntry(
                id=None,
                content=saved_path,
                content_type=ContentType.IMAGE,
                copied_at=utc_now(),
                preview=f"Image ({self._archive.dimensions(image)})",
                image_path=saved_path,
                content_hash=content_hash,
            )
        )
        return PipelineOutcome.ADDED

    def _bump_existing(self, content_hash: str) -> bool:
        self._state = PipelineState.DEDUP_CHECK
        existing = self._storage.find_by_hash(content_hash)
        if existing is None:
            return False
        self._state = PipelineState.BUMPING
        # The row can vanish between lookup and bump; insert it again instead.
        return self._storage.move_to_top(existing.id)

    def _insert(self, entry: ClipboardEntry) -> None:
        self._state = PipelineState.PERSISTING
        self._storage.add_entry(entry)
        self._state = PipelineState.EVICTING
        try:
            self._storage.enforce_limit(self._settings.history_limit)
        except sqlite3.Error:
            # The entry is committed; the next insert retries eviction.
            logger.exception("Eviction failed after insert")

    def copy_entry(self, entry_id: int) -> bool:
        """Put a history entry back on the clipboard without recapturing it."""
        entry = self._storage.get_entry(entry_id)
        if entry is None:
            return False

        self._watcher.pause()
        try:
            if entry.content_type == ContentType.IMAGE:
                image = self._archive.load(entry.image_path)
                if image is None:
                    return False
                self._watcher.write_image(image)
            else:
                self._watcher.write_text(entry.content)
            self._storage.move_to_top(entry.id)
        except Exception:
            logger.exception("Error copying entry to clipboard")
            return False
        finally:
            time.sleep(self._settle_delay)
            if not self._user_paused:
                self._watcher.resume()

        self._publish()
        return True

    def delete_entry(self, entry_id: int) -> bool:
        with self._lock:
            deleted = self._storage.delete_entry(entry_id)
        if deleted:
            self._publish()
        return deleted

    def toggle_pin(self, entry_id: int) -> bool:
        with self._lock:
            pinned = self._storage.toggle_pin(entry_id)
        self._publish()
        return pinned

    def clear_all(self) -> int:
        with self._lock:
            removed = self._storage.clear_all()
        self._publish()
        return removed

    def set_history_limit(self, limit: int) -> int:
        """Save a new limit and evict down to it right away."""
        with self._lock:
            self._settings.save_settings(replace(self._settings.get_settings(), history_limit=limit))
            evicted = self._storage.enforce_limit(limit)
        if evicted:
            self._publish()
        return evicted

    def toggle_pause_monitoring(self) -> bool:
        self._user_paused = not self._user_paused
        if self._user_paused:
            self._watcher.pause()
        else:
            self._watcher.resume()
        logger.info("Monitoring %s", "paused" if self._user_paused else "resumed")
        return self._user_paused

    def _publish(self) -> None:
        if not self._subscribers:
            return
        snapshot = self.entries()
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("History subscriber failed")
