"""
Unit tests for TraceFlowConfig.
"""

import pytest

from traceflow import ConfigurationError, TraceFlowConfig, TraceFlowSDK
from traceflow.config import resolve_config


class TestTraceFlowConfig:
    """Test cases for configuration defaults and validation."""

    def test_defaults(self):
        """Test configuration defaults."""
        config = TraceFlowConfig()

        assert config.transport == "http"
        assert config.async_http is True
        assert config.timeout == 5.0
        assert config.max_retries == 3
        assert config.retry_delay == 1000
        assert config.silent_errors is True
        assert config.trace_header == "X-Trace-Id"

    @pytest.mark.parametrize("transport", ["kafka", "KAFKA", "grpc"])
    def test_unsupported_transport_rejected(self, transport):
        """Unknown and unimplemented transports fail at construction."""
        with pytest.raises(ConfigurationError):
            TraceFlowConfig.from_options({"transport": transport})

    def test_kafka_rejected_even_with_silent_errors(self):
        """Configuration errors are fatal regardless of silent_errors."""
        with pytest.raises(ConfigurationError, match="Kafka"):
            TraceFlowSDK({"transport": "kafka", "silent_errors": True, "source": "svc"})

    def test_negative_retries_rejected(self):
        """A negative retry count is a configuration error."""
        with pytest.raises(ConfigurationError):
            TraceFlowConfig.from_options({"max_retries": -1})

    def test_blank_credentials_are_unset(self):
        """Blank credentials are treated as not configured."""
        config = TraceFlowConfig(api_key="  ", username="", password=None)

        assert config.api_key is None
        assert config.username is None

    def test_from_env(self):
        """Test reading every setting from environment variables."""
        environ = {
            "TRACEFLOW_URL": "https://collector.example.com",
            "TRACEFLOW_API_KEY": "k-123",
            "TRACEFLOW_SOURCE": "billing",
            "TRACEFLOW_ASYNC_HTTP": "false",
            "TRACEFLOW_TIMEOUT": "2.5",
            "TRACEFLOW_MAX_RETRIES": "5",
            "TRACEFLOW_RETRY_DELAY": "250",
            "TRACEFLOW_SILENT_ERRORS": "0",
        }

        config = TraceFlowConfig.from_env(environ)

        assert config.endpoint == "https://collector.example.com"
        assert config.api_key == "k-123"
        assert config.source == "billing"
        assert config.async_http is False
        assert config.timeout == 2.5
        assert config.max_retries == 5
        assert config.retry_delay == 250
        assert config.silent_errors is False

    def test_from_env_falls_back_to_app_name_and_applies_overrides(self):
        """APP_NAME names the source and keyword overrides win."""
        config = TraceFlowConfig.from_env({"APP_NAME": "my-app", "TRACEFLOW_MAX_RETRIES": "9"}, max_retries=1)

        assert config.source == "my-app"
        assert config.max_retries == 1

    def test_from_env_kafka_is_configuration_error(self):
        """Selecting kafka from the environment fails loudly."""
        with pytest.raises(ConfigurationError):
            TraceFlowConfig.from_env({"TRACEFLOW_TRANSPORT": "kafka"})

    def test_resolve_config(self):
        """Config objects pass through and mappings are validated."""
        config = TraceFlowConfig(source="a")

        assert resolve_config(config) is config
        assert resolve_config({"source": "b"}).source == "b"
        with pytest.raises(ConfigurationError):
            resolve_config(["not", "a", "mapping"])
