"""
Configuration management using Pydantic BaseSettings.
All values can be overridden via environment variables or a .env file.
"""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── MySQL (aiomysql driver) ────────────────────────────────────────────
    db_host: str = "mysql"
    db_port: int = 3306
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "teamfeed"
    # Full URL override, e.g. sqlite+aiosqlite:///./teamfeed.db for local runs
    database_url: Optional[str] = None

    @property
    def db_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"mysql+aiomysql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # ── Client SDK ─────────────────────────────────────────────────────────
    api_base_url: str = "http://api:8000"
    api_timeout: float = 5.0

    # ── Feed rules ─────────────────────────────────────────────────────────
    post_title_min_length: int = 2
    post_title_max_length: int = 50
    default_reaction: str = "like"

    # ── Observability ──────────────────────────────────────────────────────
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"
    tracing_enabled: bool = True
    service_name: str = "teamfeed-api"
    environment: str = "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
