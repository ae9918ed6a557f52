import logging
import sqlite3
import threading
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

from clipkeeper.archive import ImageArchive
from clipkeeper.config import DB_PATH, DEFAULT_HISTORY_LIMIT, MAX_PREVIEW_STORED
from clipkeeper.models import AppSettings, ClipboardEntry, ContentType, utc_now

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS clipboard_entries (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    content        TEXT NOT NULL CHECK(length(content) > 0),
    content_type   TEXT NOT NULL CHECK(length(content_type) <= 20),
    copied_at      TEXT NOT NULL,
    preview        TEXT CHECK(preview IS NULL OR length(preview) <= 200),
    color_hex      TEXT CHECK(color_hex IS NULL OR length(color_hex) <= 9),
    image_path     TEXT,
    is_pinned      INTEGER NOT NULL DEFAULT 0,
    content_hash   TEXT CHECK(content_hash IS NULL OR length(content_hash) <= 64)
);

CREATE TABLE IF NOT EXISTS app_settings (
    id                 INTEGER PRIMARY KEY CHECK(id = 1),
    history_limit      INTEGER NOT NULL DEFAULT 50,
    hotkey_modifiers   INTEGER NOT NULL DEFAULT 5,
    hotkey_key         INTEGER NOT NULL DEFAULT 86,
    run_on_startup     INTEGER NOT NULL DEFAULT 0,
    theme              TEXT NOT NULL DEFAULT 'Dark',
    widget_position_x  REAL,
    widget_position_y  REAL,
    is_panel_expanded  INTEGER NOT NULL DEFAULT 0
);
"""

INDEXES = """
CREATE INDEX IF NOT EXISTS idx_copied_at ON clipboard_entries(copied_at DESC);
CREATE INDEX IF NOT EXISTS idx_is_pinned ON clipboard_entries(is_pinned);
CREATE INDEX IF NOT EXISTS idx_content_hash ON clipboard_entries(content_hash);
"""

# Newest first; entries bumped within the same microsecond fall back to insertion order.
RECENCY = "copied_at DESC, id DESC"


def _timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


class StorageManager:
    def __init__(self, db_path: str | Path | None = None, archive: ImageArchive | None = None):
        self._db_path = str(db_path) if db_path else str(DB_PATH)
        self._archive = archive or ImageArchive()
        self._lock = threading.Lock()
        # The watcher thread and host commands share this connection; self._lock serializes them.
        self._conn = sqlite3.connect(self._db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self.init_db()

    @property
    def archive(self) -> ImageArchive:
        return self._archive

    def init_db(self) -> None:
        with self._lock:
            self._conn.executescript(SCHEMA)
            self._migrate_schema()
            self._conn.executescript(INDEXES)
            self._conn.commit()

    def _migrate_schema(self) -> None:
        """Add columns missing from databases created by older versions."""
        cursor = self._conn.execute("PRAGMA table_info(clipboard_entries)")
        columns = {row[1] for row in cursor.fetchall()}
        if "color_hex" not in columns:
            self._conn.execute("ALTER TABLE clipboard_entries ADD COLUMN color_hex TEXT")
        if "content_hash" not in columns:
            self._conn.execute("ALTER TABLE clipboard_entries ADD COLUMN content_hash TEXT")

    def _release_files(self, rows) -> None:
        for row in rows:
            if row["content_type"] == ContentType.IMAGE.value:
                self._archive.delete(row["image_path"])

    def add_entry(self, entry: ClipboardEntry) -> ClipboardEntry:
        stored = replace(entry, copied_at=utc_now())
        if stored.preview and len(stored.preview) > MAX_PREVIEW_STORED:
            stored.preview = stored.preview[:MAX_PREVIEW_STORED]
        with self._lock:
            cursor = self._conn.execute(
                """INSERT INTO clipboard_entries
                   (content, content_type, copied_at, preview, color_hex, image_path, is_pinned, content_hash)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    stored.content,
                    stored.content_type.value,
                    _timestamp(stored.copied_at),
                    stored.preview,
                    stored.color_hex,
                    stored.image_path,
                    int(stored.is_pinned),
                    stored.content_hash,
                ),
            )
            self._conn.commit()
        stored.id = cursor.lastrowid
        return stored

    def get_recent(self, limit: int | None = 50) -> list[ClipboardEntry]:
        """Pinned entries first, then everything else, newest first within each group."""
        rows = self._fetchall(
            f"SELECT * FROM clipboard_entries ORDER BY is_pinned DESC, {RECENCY} LIMIT ?",
            (-1 if limit is None else limit,),
        )
        return [self._row_to_entry(r) for r in rows]

    def get_entry(self, entry_id: int) -> ClipboardEntry | None:
        rows = self._fetchall("SELECT * FROM clipboard_entries WHERE id = ?", (entry_id,))
        return self._row_to_entry(rows[0]) if rows else None

    def delete_entry(self, entry_id: int) -> bool:
        with self._lock:
            rows = self._conn.execute(
                "SELECT content_type, image_path FROM clipboard_entries WHERE id = ?", (entry_id,)
            ).fetchall()
            if not rows:
                return False
            self._conn.execute("DELETE FROM clipboard_entries WHERE id = ?", (entry_id,))
            self._conn.commit()
        self._release_files(rows)
        return True

    def clear_all(self) -> int:
        with self._lock:
            rows = self._conn.execute(
                "SELECT content_type, image_path FROM clipboard_entries WHERE is_pinned = 0"
            ).fetchall()
            self._conn.execute("DELETE FROM clipboard_entries WHERE is_pinned = 0")
            self._conn.commit()
        self._release_files(rows)
        return len(rows)

    def toggle_pin(self, entry_id: int) -> bool:
        with self._lock:
            row = self._conn.execute(
                "SELECT is_pinned FROM clipboard_entries WHERE id = ?", (entry_id,)
            ).fetchone()
            if row is None:
                return False
            new_pinned = not row["is_pinned"]
            self._conn.execute(
                "UPDATE clipboard_entries SET is_pinned = ? WHERE id = ?",
                (int(new_pinned), entry_id),
            )
            self._conn.commit()
        return new_pinned

    def find_by_hash(self, content_hash: str) -> ClipboardEntry | None:
        rows = self._fetchall(
            f"SELECT * FROM clipboard_entries WHERE content_hash = ? ORDER BY {RECENCY} LIMIT 1",
            (content_hash,),
        )
        return self._row_to_entry(rows[0]) if rows else None

    def move_to_top(self, entry_id: int) -> bool:
        with self._lock:
            cursor = self._conn.execute(
                "UPDATE clipboard_entries SET copied_at = ? WHERE id = ?",
                (_timestamp(utc_now()), entry_id),
            )
            self._conn.commit()
        return cursor.rowcount > 0

    def enforce_limit(self, limit: int) -> int:
        """Evict unpinned entries beyond the newest `limit` of them."""
        if limit < 0:
            raise ValueError("limit must not be negative")
        with self._lock:
            rows = self._conn.execute(
                f"""SELECT id, content_type, image_path FROM clipboard_entries
                    WHERE is_pinned = 0
                    ORDER BY {RECENCY}
                    LIMIT -1 OFFSET ?""",
                (limit,),
            ).fetchall()
            if not rows:
                return 0
            self._conn.executemany(
                "DELETE FROM clipboard_entries WHERE id = ?", [(row["id"],) for row in rows]
            )
            self._conn.commit()
        self._release_files(rows)
        logger.debug("Evicted %d entries beyond limit %d", len(rows), limit)
        return len(rows)

    def count(self) -> int:
        return self._fetchall("SELECT COUNT(*) AS cnt FROM clipboard_entries")[0]["cnt"]

    def get_pinned(self) -> list[ClipboardEntry]:
        rows = self._fetchall(f"SELECT * FROM clipboard_entries WHERE is_pinned = 1 ORDER BY {RECENCY}")
        return [self._row_to_entry(r) for r in rows]

    def count_pinned(self) -> int:
        return self._fetchall("SELECT COUNT(*) AS cnt FROM clipboard_entries WHERE is_pinned = 1")[0]["cnt"]

    def load_settings(self) -> AppSettings:
        """Read the settings row, seeding it with defaults on first use."""
        with self._lock:
            row = self._conn.execute("SELECT * FROM app_settings WHERE id = 1").fetchone()
            if row is None:
                settings = AppSettings(history_limit=DEFAULT_HISTORY_LIMIT)
                self._write_settings(settings)
                return settings
        return AppSettings(
            history_limit=row["history_limit"],
            hotkey_modifiers=row["hotkey_modifiers"],
            hotkey_key=row["hotkey_key"],
            run_on_startup=bool(row["run_on_startup"]),
            theme=row["theme"],
            widget_position_x=row["widget_position_x"],
            widget_position_y=row["widget_position_y"],
            is_panel_expanded=bool(row["is_panel_expanded"]),
        )

    def store_settings(self, settings: AppSettings) -> None:
        with self._lock:
            self._write_settings(settings)

    def _write_settings(self, settings: AppSettings) -> None:
        self._conn.execute(
            """INSERT OR REPLACE INTO app_settings
               (id, history_limit, hotkey_modifiers, hotkey_key, run_on_startup, theme,
                widget_position_x, widget_position_y, is_panel_expanded)
               VALUES (1, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                settings.history_limit,
                settings.hotkey_modifiers,
                settings.hotkey_key,
                int(settings.run_on_startup),
                settings.theme,
                settings.widget_position_x,
                settings.widget_position_y,
                int(settings.is_panel_expanded),
            ),
        )
        self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def _fetchall(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            return self._conn.execute(sql, params).fetchall()

    def _row_to_entry(self, row: sqlite3.Row) -> ClipboardEntry:
        copied_at = datetime.fromisoformat(row["copied_at"])
        if copied_at.tzinfo is None:
            copied_at = copied_at.replace(tzinfo=timezone.utc)
        return ClipboardEntry(
            id=row["id"],
            content=row["content"],
            content_type=ContentType(row["content_type"]),
            copied_at=copied_at,
            preview=row["preview"],
            color_hex=row["color_hex"],
            image_path=row["image_path"],
            is_pinned=bool(row["is_pinned"]),
            content_hash=row["content_hash"],
        )
