"""Configuration for the Typesense exporter"""
from pathlib import Path
from typing import Literal, Optional
from urllib.parse import urlparse
from pydantic import Field, validator
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Configuration class with Pydantic validation and environment-based settings"""

    # Typesense connection
    typesense_url: str = Field(default="http://localhost:8108", description="HTTP API address for Typesense node")
    typesense_api_key: str = Field(..., description="API key for Typesense (required)")
    typesense_timeout: float = Field(default=5.0, gt=0, description="Timeout in seconds for Typesense requests")

    # Server settings
    metrics_host: str = Field(default="0.0.0.0", description="Metrics server host")
    metrics_port: int = Field(default=9115, ge=1, le=65535, description="Metrics server port")
    telemetry_path: str = Field(default="/metrics", description="Path under which to expose metrics")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", description="Log level")
    log_file: Optional[Path] = Field(default=None, description="Optional log file path")

    # Service settings
    service_name: str = Field(default="typesense-exporter", description="Service name")
    service_version: str = Field(default="1.0.0", description="Service version")
    enable_request_logging: bool = Field(default=True, description="Enable HTTP request logging")

    class Config:
        env_prefix = ""
        case_sensitive = False

    @validator('typesense_url')
    def validate_typesense_url(cls, v):
        """Require an absolute http(s) URL and drop any trailing slash"""
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"TYPESENSE_URL must be an absolute http(s) URL, got {v!r}")
        return v.rstrip('/')

    @validator('typesense_api_key')
    def validate_api_key(cls, v):
        if not v or not v.strip():
            raise ValueError("TYPESENSE_API_KEY is required")
        return v

    @validator('telemetry_path')
    def validate_telemetry_path(cls, v):
        if not v.startswith('/'):
            raise ValueError("TELEMETRY_PATH must start with '/'")
        return v

    @validator('log_level', pre=True)
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v

    @validator('log_file')
    def ensure_log_directory(cls, v):
        """Ensure parent directories exist for the log file"""
        if isinstance(v, Path):
            v.parent.mkdir(parents=True, exist_ok=True)
        return v
