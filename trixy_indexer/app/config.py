"""Config file."""
from functools import lru_cache
from pathlib import Path
from urllib.parse import quote_plus

from pydantic import AnyHttpUrl, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_NETWORKS_FILE = Path(__file__).resolve().parent / "registry" / "networks.json"


class Settings(BaseSettings):
    """Application settings."""

    # PROJECT
    project_name: str = Field("trixy-indexer", alias="PROJECT_NAME")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # DATABASE
    postgres_user: str = Field("postgres", alias="POSTGRES_USER")
    postgres_password: SecretStr = Field(SecretStr("postgres"), alias="POSTGRES_PASSWORD")
    postgres_server: str = Field("localhost", alias="POSTGRES_SERVER")
    postgres_port: int = Field(5432, alias="POSTGRES_PORT")
    postgres_db: str = Field("trixy", alias="POSTGRES_DB")
    database_url: str | None = Field(None, alias="DATABASE_URL")

    # FLOW
    flow_network: str = Field("emulator", alias="FLOW_NETWORK")
    flow_access_api_url: AnyHttpUrl | None = Field(None, alias="FLOW_ACCESS_API_URL")
    networks_file: Path = Field(DEFAULT_NETWORKS_FILE, alias="NETWORKS_FILE")
    http_timeout_seconds: float = Field(30.0, gt=0, alias="HTTP_TIMEOUT_SECONDS")

    # SYNC LOOP
    sync_window_size: int = Field(200, ge=1, le=250, alias="SYNC_WINDOW_SIZE")
    sync_poll_interval_seconds: float = Field(2.0, ge=0, alias="SYNC_POLL_INTERVAL_SECONDS")
    sync_retry_delay_seconds: float = Field(2.0, ge=0, alias="SYNC_RETRY_DELAY_SECONDS")
    sync_max_retry_delay_seconds: float = Field(2.0, ge=0, alias="SYNC_MAX_RETRY_DELAY_SECONDS")

    @model_validator(mode="after")
    def assemble_db_url(self) -> "Settings":
        if not self.database_url:
            user = quote_plus(self.postgres_user)
            password = quote_plus(self.postgres_password.get_secret_value())
            host = self.postgres_server
            port = self.postgres_port
            db = self.postgres_db

            self.database_url = f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db}"

        return self

    @model_validator(mode="after")
    def check_retry_delays(self) -> "Settings":
        if self.sync_max_retry_delay_seconds < self.sync_retry_delay_seconds:
            raise ValueError("SYNC_MAX_RETRY_DELAY_SECONDS must be >= SYNC_RETRY_DELAY_SECONDS")
        return self

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
