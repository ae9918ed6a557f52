import os
from pathlib import Path

DATA_DIR = Path(os.environ.get("CLIPKEEPER_DATA_DIR", Path.home() / ".local" / "share" / "clipkeeper"))
DB_PATH = DATA_DIR / "clipkeeper.db"
IMAGE_DIR = DATA_DIR / "images"
LOG_PATH = DATA_DIR / "clipkeeper.log"

POLL_INTERVAL = 0.5  # seconds between pasteboard change-count checks
RESUME_SETTLE_DELAY = 0.1  # seconds to wait after our own clipboard write
MAX_TEXT_SIZE = 1_000_000  # 1MB text limit
PREVIEW_LENGTH = 100  # characters kept in the stored preview
MAX_PREVIEW_STORED = 200
THUMBNAIL_MAX_SIZE = 150  # pixels, longest side
MAX_HISTORY_LIMIT = 10_000


def _parse_history_limit() -> int:
    raw = os.environ.get("CLIPKEEPER_HISTORY_LIMIT")
    if raw is None:
        return 50
    try:
        value = int(raw)
    except ValueError:
        return 50
    return max(1, min(MAX_HISTORY_LIMIT, value))


DEFAULT_HISTORY_LIMIT = _parse_history_limit()
