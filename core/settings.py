"""
Environment-backed settings, read once at import and validated.

Each group is its own BaseSettings so a missing variable names the concern
it belongs to. Consumers import the module-level singletons.
"""

from typing import Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from pagerender.core.config import FETCH_TIMEOUT_SECONDS as DEFAULT_FETCH_TIMEOUT


class _EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")


class DatabaseSettings(_EnvSettings):
    """Postgres holding `document_versions` and `document_pages`."""

    DB_HOST: str
    DB_PORT: int = 5432
    DB_NAME: str
    DB_USER: str
    DB_PASSWORD: SecretStr
    DB_POOL_MIN_SIZE: int = 2
    DB_POOL_MAX_SIZE: int = 10
    DB_POOL_TIMEOUT: float = 10.0
    DB_COMMAND_TIMEOUT: float = 10.0


class S3Settings(_EnvSettings):
    """Bucket for rendered page images and signed source URLs."""

    S3_ENDPOINT: str
    S3_ACCESS_KEY: str
    S3_SECRET_KEY: SecretStr
    S3_BUCKET: str
    S3_SECURE: bool = True
    S3_VERIFY_SSL: bool = True
    S3_PRESIGN_EXPIRY_SECONDS: int = Field(3600, description="Lifetime of re-signed source URLs")


class ConfigServiceSettings(_EnvSettings):
    """Dynamic configuration store holding the link blocklist."""

    EDGE_CONFIG_URL: str
    EDGE_CONFIG_TOKEN: Optional[SecretStr] = None
    BLOCKLIST_KEY: str = "keywords"


class AlertSettings(_EnvSettings):
    """Chat webhook for operational alerts; log-only when unset."""

    ALERT_WEBHOOK_URL: Optional[str] = None


class AppSettings(_EnvSettings):
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    INTERNAL_API_KEY: SecretStr
    RENDER_MAX_WORKERS: int = Field(2, description="MuPDF workers; bounds peak render memory")
    RENDER_EXECUTOR: Literal["process", "thread"] = "process"
    FETCH_TIMEOUT_SECONDS: float = DEFAULT_FETCH_TIMEOUT


db_settings = DatabaseSettings()
s3_settings = S3Settings()
config_service_settings = ConfigServiceSettings()
alert_settings = AlertSettings()
app_settings = AppSettings()
