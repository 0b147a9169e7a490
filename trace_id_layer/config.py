"""
Configuration via Pydantic BaseSettings. Single source of truth for all env vars.

All fields are overridable at runtime via environment variables.
"""

from pydantic_settings import BaseSettings


class TraceConfig(BaseSettings):
    """Trace id middleware configuration."""

    header_name: str = "x-trace-id"
    span_name: str = "http-request"
    split_layers: bool = False
    metrics_enabled: bool = True

    model_config = {"env_prefix": "TRACE_"}


class APIConfig(BaseSettings):
    """Server-level configuration."""

    log_level: str = "INFO"
    log_format: str = "json"
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = {"env_prefix": "API_"}


class Settings:
    """Aggregated settings from all config groups."""

    def __init__(self):
        self.trace = TraceConfig()
        self.api = APIConfig()
