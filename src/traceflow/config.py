"""
Configuration for the TraceFlow SDK.
"""

import os
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

SUPPORTED_TRANSPORTS = ("http",)

# Environment variable -> config field
ENV_KEYS = {
    "TRACEFLOW_TRANSPORT": "transport",
    "TRACEFLOW_ASYNC_HTTP": "async_http",
    "TRACEFLOW_SOURCE": "source",
    "TRACEFLOW_URL": "endpoint",
    "TRACEFLOW_API_KEY": "api_key",
    "TRACEFLOW_USERNAME": "username",
    "TRACEFLOW_PASSWORD": "password",
    "TRACEFLOW_TIMEOUT": "timeout",
    "TRACEFLOW_MAX_RETRIES": "max_retries",
    "TRACEFLOW_RETRY_DELAY": "retry_delay",
    "TRACEFLOW_SILENT_ERRORS": "silent_errors",
    "TRACEFLOW_QUEUE_PROPAGATE": "propagate_context",
}


class TraceFlowConfig(BaseModel):
    """Options consumed by the SDK and its transports."""
    transport: str = Field("http", description="Transport backend; only 'http' is implemented")
    async_http: bool = Field(True, description="Use the non-blocking HTTP transport")
    source: str = Field("python-app", description="Logical name of the emitting service")
    endpoint: str = Field("http://localhost:3009", description="Base URL of the collector")
    api_key: Optional[str] = Field(None, description="Sent as X-API-Key when set")
    username: Optional[str] = Field(None, description="Basic auth username")
    password: Optional[str] = Field(None, description="Basic auth password")
    timeout: float = Field(5.0, gt=0, description="Per-request timeout in seconds")
    max_retries: int = Field(3, ge=0, description="Retries after the first attempt")
    retry_delay: int = Field(1000, ge=0, description="Base backoff delay in milliseconds")
    silent_errors: bool = Field(True, description="Swallow delivery failures instead of raising")
    propagate_context: bool = Field(True, description="Mirror the current trace into TraceFlowContext")
    trace_header: str = Field("X-Trace-Id", description="Header used for cross-service propagation")

    @field_validator("transport")
    @classmethod
    def _check_transport(cls, value: str) -> str:
        value = value.lower()
        if value == "kafka":
            raise ValueError("Kafka transport is not implemented")
        if value not in SUPPORTED_TRANSPORTS:
            raise ValueError(f"Unknown transport '{value}'")
        return value

    @field_validator("api_key", "username", "password")
    @classmethod
    def _blank_is_unset(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "TraceFlowConfig":
        """
        Validate a plain options mapping.

        Args:
            options: Key/value options, as produced by the host's config loader

        Returns:
            Validated configuration

        Raises:
            ConfigurationError: If any option is invalid
        """
        try:
            return cls.model_validate(dict(options))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid TraceFlow configuration: {e}") from e

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "TraceFlowConfig":
        """
        Build a configuration from ``TRACEFLOW_*`` environment variables.

        Args:
            environ: Mapping to read from; defaults to ``os.environ``
            **overrides: Explicit values that win over the environment

        Returns:
            Validated configuration
        """
        environ = os.environ if environ is None else environ
        options: Dict[str, Any] = {}
        for env_key, field_name in ENV_KEYS.items():
            value = environ.get(env_key)
            if value is not None and value != "":
                options[field_name] = value
        if "source" not in options and environ.get("APP_NAME"):
            options["source"] = environ["APP_NAME"]
        options.update(overrides)
        return cls.from_options(options)


def resolve_config(config: Any) -> TraceFlowConfig:
    """Accept a TraceFlowConfig or a plain mapping and return a validated config."""
    if isinstance(config, TraceFlowConfig):
        return config
    if isinstance(config, Mapping):
        return TraceFlowConfig.from_options(config)
    raise ConfigurationError(f"Unsupported configuration type: {type(config).__name__}")
