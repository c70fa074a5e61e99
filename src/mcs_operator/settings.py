"""Centralized operator settings using pydantic-settings.

This module provides a single source of truth for all operator configuration
loaded from environment variables. Uses pydantic for automatic validation,
type coercion, and documentation.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mcs_operator.constants import (
    DEFAULT_REGISTRY_TIMEOUT,
    DEFAULT_RESYNC_INTERVAL,
    DEFAULT_VISIBILITY_ATTEMPTS,
    DEFAULT_VISIBILITY_DELAY,
)


class Settings(BaseSettings):
    """Operator configuration loaded from environment variables.

    All settings have sensible defaults for production use. Override via
    environment variables as documented per field.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Operator identification
    operator_name: str = Field(
        default="mcs-operator",
        description="Name of the operator deployment, used as the tracing service name",
        validation_alias="OPERATOR_NAME",
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        validation_alias="JSON_LOGS",
        description="Enable JSON formatted logging for structured log aggregation",
    )
    correlation_ids: bool = Field(
        default=True,
        validation_alias="CORRELATION_IDS",
        description="Enable correlation IDs in logs for request tracing",
    )
    log_health_probes: bool = Field(
        default=False,
        validation_alias="LOG_HEALTH_PROBES",
        description="Log requests to the health and metrics endpoints",
    )

    # Namespace watching
    namespaces: str = Field(
        default="",
        validation_alias="MCS_OPERATOR_NAMESPACES",
        description="Comma-separated list of namespaces to watch (empty = all namespaces)",
    )

    # Metrics
    metrics_port: int = Field(
        default=8081,
        validation_alias="METRICS_PORT",
        description="Port for Prometheus metrics endpoint",
    )
    metrics_host: str = Field(
        default="0.0.0.0",
        validation_alias="METRICS_HOST",
        description="Host address to bind metrics server",
    )

    # Registry connection
    registry_url: str = Field(
        default="http://service-registry.mcs-system.svc:8080",
        validation_alias="REGISTRY_URL",
        description="Base URL of the shared multi-cluster service registry",
    )
    registry_timeout_seconds: float = Field(
        default=DEFAULT_REGISTRY_TIMEOUT,
        validation_alias="REGISTRY_TIMEOUT_SECONDS",
        description="Per-request timeout for registry API calls",
    )
    registry_verify_ssl: bool = Field(
        default=True,
        validation_alias="REGISTRY_VERIFY_SSL",
        description="Verify TLS certificates of the registry endpoint",
    )
    registry_token: str = Field(
        default="",
        validation_alias="REGISTRY_TOKEN",
        description="Bearer token for the registry API (empty = anonymous)",
    )

    # Eventual consistency of service creation
    service_visibility_attempts: int = Field(
        default=DEFAULT_VISIBILITY_ATTEMPTS,
        ge=1,
        validation_alias="SERVICE_VISIBILITY_ATTEMPTS",
        description="Reads of a newly created registry service before giving up",
    )
    service_visibility_delay_seconds: float = Field(
        default=DEFAULT_VISIBILITY_DELAY,
        ge=0.0,
        validation_alias="SERVICE_VISIBILITY_DELAY_SECONDS",
        description="Delay between reads of a newly created registry service",
    )

    # Reconciliation behavior
    resync_interval_seconds: float = Field(
        default=DEFAULT_RESYNC_INTERVAL,
        validation_alias="RESYNC_INTERVAL_SECONDS",
        description="Interval for periodic re-reconciliation of every ServiceExport",
    )

    # Tracing
    tracing_enabled: bool = Field(
        default=False,
        validation_alias="OTEL_TRACING_ENABLED",
        description="Enable OpenTelemetry tracing",
    )
    tracing_endpoint: str = Field(
        default="http://localhost:4317",
        validation_alias="OTEL_EXPORTER_OTLP_ENDPOINT",
        description="OTLP collector endpoint (gRPC)",
    )
    tracing_sample_rate: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        validation_alias="OTEL_SAMPLE_RATE",
        description="Trace sampling rate (0.0-1.0)",
    )

    @property
    def watched_namespaces(self) -> list[str] | None:
        """Parse watched namespaces from comma-separated string.

        Returns:
            List of namespace names, or None to watch all namespaces
        """
        if self.namespaces:
            return [ns.strip() for ns in self.namespaces.split(",") if ns.strip()]
        return None


# Global settings instance - initialized once at module import
settings = Settings()
