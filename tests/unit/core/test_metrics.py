"""
Unit tests for core.metrics module.

Tests:
- MetricsConfig defaults and bounds
- start_metrics_server() is a no-op when disabled
"""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from curator.core.metrics import MetricsConfig, start_metrics_server


class TestMetricsConfig:
    """MetricsConfig validation."""

    def test_defaults(self):
        config = MetricsConfig()
        assert config.enabled is False
        assert config.port == 8000
        assert config.host == "127.0.0.1"

    def test_privileged_port_rejected(self):
        with pytest.raises(ValidationError):
            MetricsConfig(port=80)


class TestStartMetricsServer:
    """start_metrics_server() behaviour."""

    def test_disabled(self):
        with patch("curator.core.metrics.start_http_server") as start:
            assert start_metrics_server(MetricsConfig()) is False
        start.assert_not_called()

    def test_enabled(self):
        config = MetricsConfig(enabled=True, port=9100, host="0.0.0.0")
        with patch("curator.core.metrics.start_http_server") as start:
            assert start_metrics_server(config) is True
        start.assert_called_once_with(9100, addr="0.0.0.0")
