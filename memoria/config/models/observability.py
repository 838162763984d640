"""Observability configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

LogFormat = Literal["json", "console"]


class ObservabilityConfig(BaseModel):
    """Logging and metrics configuration."""

    log_format: LogFormat = Field(default="json", description="Output format")
    redact_pii: bool = Field(default=True, description="Redact sensitive log fields")
    metrics_enabled: bool = Field(default=True, description="Record Prometheus metrics")
