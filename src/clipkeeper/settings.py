import logging
from dataclasses import replace

from clipkeeper.config import MAX_HISTORY_LIMIT
from clipkeeper.models import AppSettings
from clipkeeper.storage import StorageManager

logger = logging.getLogger(__name__)


class SettingsService:
    """Cached access to the singleton AppSettings row."""

    def __init__(self, storage: StorageManager):
        self._storage = storage
        self._cached: AppSettings | None = None

    def get_settings(self) -> AppSettings:
        if self._cached is None:
            self._cached = self._storage.load_settings()
        return self._cached

    def save_settings(self, settings: AppSettings) -> None:
        if not 1 <= settings.history_limit <= MAX_HISTORY_LIMIT:
            raise ValueError(f"history_limit must be between 1 and {MAX_HISTORY_LIMIT}")
        self._storage.store_settings(settings)
        self._cached = settings
        logger.info("Settings saved (history_limit=%d)", settings.history_limit)

    def save_widget_position(self, x: float, y: float) -> None:
        self.save_settings(replace(self.get_settings(), widget_position_x=x, widget_position_y=y))

    def save_panel_state(self, is_expanded: bool) -> None:
        self.save_settings(replace(self.get_settings(), is_panel_expanded=is_expanded))

    @property
    def history_limit(self) -> int:
        return self.get_settings().history_limit
