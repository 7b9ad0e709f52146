"""
Unit tests for services.sync.configs module.

Tests:
- TimeWindow relative and UTC day-range resolution
- SyncRequest leniency and kind selection
- SyncConfig defaults and bounds
"""

import datetime

import pytest
from pydantic import ValidationError

from curator.services.sync import ALL_KINDS, SyncConfig, SyncRequest, TimeWindow


NOW = 1_700_000_000.0

MAY_1_2024 = 1_714_521_600


class TestTimeWindow:
    """TimeWindow.resolve()."""

    def test_default_last_day(self):
        assert TimeWindow().resolve(NOW) == (int(NOW) - 86_400, int(NOW))

    def test_relative_hours(self):
        window = TimeWindow(since_hours=-168, until_hours=-1)
        assert window.resolve(NOW) == (int(NOW) - 168 * 3_600, int(NOW) - 3_600)

    def test_date_range_includes_end_day(self):
        window = TimeWindow.from_date_range(datetime.date(2024, 5, 1), datetime.date(2024, 5, 3))
        assert window.resolve(NOW) == (MAY_1_2024, MAY_1_2024 + 3 * 86_400)

    def test_single_day(self):
        window = TimeWindow.from_date_range(datetime.date(2024, 5, 1))
        assert window.resolve() == (MAY_1_2024, MAY_1_2024 + 86_400)

    def test_date_range_ignores_now(self):
        window = TimeWindow.from_date_range(datetime.date(2024, 5, 1))
        assert window.resolve(0) == window.resolve(NOW)

    def test_end_date_requires_start_date(self):
        with pytest.raises(ValidationError, match="end_date requires start_date"):
            TimeWindow(end_date=datetime.date(2024, 5, 3))

    def test_frozen(self):
        window = TimeWindow()
        with pytest.raises(ValidationError):
            window.since_hours = -1  # type: ignore[misc]


class TestSyncRequest:
    """SyncRequest model."""

    def test_defaults_are_lenient(self):
        request = SyncRequest()
        assert request.source == ""
        assert request.kinds == frozenset()
        assert request.sync_all is False

    def test_all(self):
        request = SyncRequest(kinds=ALL_KINDS)
        assert request.sync_all is True

    def test_kind_list(self):
        request = SyncRequest(kinds=[1, 3, 1])
        assert request.kinds == frozenset({1, 3})
        assert request.sync_all is False

    def test_unknown_literal(self):
        with pytest.raises(ValidationError):
            SyncRequest(kinds="some")


class TestSyncConfig:
    """SyncConfig model."""

    def test_defaults(self):
        config = SyncConfig()
        assert config.fetch_timeout == 120.0
        assert config.publish_timeout == 15.0
        assert config.log_every == 10
        assert config.metrics.enabled is False

    def test_log_every_positive(self):
        with pytest.raises(ValidationError):
            SyncConfig(log_every=0)

    def test_from_dict(self):
        config = SyncConfig.model_validate({"fetch_timeout": 30, "metrics": {"enabled": True}})
        assert config.fetch_timeout == 30.0
        assert config.metrics.enabled is True
