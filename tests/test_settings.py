from dataclasses import replace

import pytest

from clipkeeper.config import MAX_HISTORY_LIMIT
from clipkeeper.models import AppSettings
from clipkeeper.settings import SettingsService


class TestSettingsService:
    def test_defaults_seeded(self, settings):
        current = settings.get_settings()
        assert current.theme == "Dark"
        assert current.hotkey_key == 0x56
        assert settings.history_limit == current.history_limit

    def test_save_persists(self, settings, storage):
        settings.save_settings(replace(settings.get_settings(), history_limit=25, theme="Light"))

        fresh = SettingsService(storage).get_settings()
        assert fresh.history_limit == 25
        assert fresh.theme == "Light"

    def test_cached_after_first_read(self, settings, storage):
        first = settings.get_settings()
        storage.store_settings(AppSettings(history_limit=7))
        assert settings.get_settings() is first

    @pytest.mark.parametrize("limit", [0, -5, MAX_HISTORY_LIMIT + 1])
    def test_rejects_out_of_range_limit(self, settings, limit):
        with pytest.raises(ValueError):
            settings.save_settings(AppSettings(history_limit=limit))

    def test_boundaries_accepted(self, settings):
        settings.save_settings(AppSettings(history_limit=1))
        assert settings.history_limit == 1
        settings.save_settings(AppSettings(history_limit=MAX_HISTORY_LIMIT))
        assert settings.history_limit == MAX_HISTORY_LIMIT

    def test_widget_position(self, settings, storage):
        settings.save_widget_position(120.5, 48.0)
        fresh = storage.load_settings()
        assert fresh.widget_position_x == 120.5
        assert fresh.widget_position_y == 48.0

    def test_panel_state(self, settings, storage):
        settings.save_panel_state(True)
        assert storage.load_settings().is_panel_expanded is True
