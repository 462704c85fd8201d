"""Tests for dashboard settings normalization."""

from pathlib import Path

from ev_dashboard.settings import (
    DATA_PATH,
    PAGE_SIZE_OPTIONS,
    DashboardSettings,
    normalize_settings,
)


class TestNormalizeSettings:
    def test_defaults(self):
        assert normalize_settings() == DashboardSettings()
        assert normalize_settings({}).data_path == DATA_PATH

    def test_values_are_clamped(self):
        settings = normalize_settings({"bin_width": 0, "make_top_n": 500, "debounce_seconds": -2})
        assert settings.bin_width == 1
        assert settings.make_top_n == 100
        assert settings.debounce_seconds == 0.0

    def test_bad_values_fall_back(self):
        settings = normalize_settings({"bin_width": "wide", "debounce_seconds": "soon"})
        assert settings.bin_width == 50
        assert settings.debounce_seconds == 0.1

    def test_page_sizes(self):
        settings = normalize_settings({"page_sizes": ["20", 5, "x", -1, 5], "default_page_size": 10})
        assert settings.page_sizes == [5, 20]
        assert settings.default_page_size == 5

    def test_empty_page_sizes_use_defaults(self):
        assert normalize_settings({"page_sizes": []}).page_sizes == list(PAGE_SIZE_OPTIONS)

    def test_year_range_is_ordered(self):
        settings = normalize_settings({"model_year_min": 2015, "model_year_max": 2010})
        assert settings.model_year_min == 2015
        assert settings.model_year_max == 2015

    def test_data_path(self):
        assert normalize_settings({"data_path": "/tmp/ev.csv"}).data_path == Path("/tmp/ev.csv")
