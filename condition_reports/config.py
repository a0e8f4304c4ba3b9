# condition_reports/config.py
from functools import lru_cache
from pathlib import Path
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

DEFAULT_DISCLAIMER = (
    "This document reflects the observations of the reporting party only. "
    "It has not been reviewed or signed by an opposing party and may not be complete or exhaustive. "
    "{company} provides tooling only and does not certify property condition or statutory compliance."
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Database ---
    database_url: str = "sqlite:///./condition_reports.db"
    # "database" uses SQLAlchemy; "memory" keeps everything in-process (demo mode, no credentials)
    data_source: Literal["database", "memory"] = "database"

    # --- Security / JWT ---
    jwt_secret: str = "dev-secret-please-change"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24  # 24 hours
    refresh_token_expire_minutes: int = 60 * 24 * 30  # 30 days

    # --- CORS ---
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:4173"]

    # --- Branding ---
    app_name: str = "SelfProHost"
    company_name: str = "SelfProHost"
    report_title: str = "Property Condition Report"
    watermark_text: str = "SOLO REPORT"
    brand_color: str = "#277020"
    disclaimer_version: str = "1.0"
    legal_disclaimer: str = DEFAULT_DISCLAIMER
    public_base_url: str = "http://localhost:5173"

    # --- Storage ---
    file_storage_backend: Literal["local", "s3"] = "local"
    uploads_root: str = "uploads"
    uploads_public_prefix: str = "uploads"
    api_base_url: str = "http://localhost:8000"
    s3_bucket: str | None = None
    s3_region: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: str | None = None
    s3_endpoint_url: str | None = None

    # --- Document Generation ---
    pdf_page_size: Literal["A4", "LETTER"] = "A4"
    pdf_photo_fetch_timeout_seconds: float = 15.0
    pdf_photo_concurrency: int = 4
    pdf_thumbnail_max_dimension: int = 800

    # --- Background activity ---
    heartbeat_enabled: bool = True
    heartbeat_interval_seconds: int = 30 * 60
    activity_log_retention: int = 1000

    # --- Logging ---
    log_level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = "INFO"
    log_format: Literal["json", "text"] = "json"

    @property
    def uploads_root_path(self) -> Path:
        return Path(self.uploads_root)

    @property
    def disclaimer_text(self) -> str:
        body = self.legal_disclaimer.format(company=self.company_name)
        return f"Disclaimer v{self.disclaimer_version}: {body}"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

# Ensure path directory exists (for SQLite)
if settings.database_url.startswith("sqlite:///"):
    db_path = Path(settings.database_url.replace("sqlite:///", ""))
    db_path.parent.mkdir(parents=True, exist_ok=True)

# --- SQLAlchemy setup ---
engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False}
    if settings.database_url.startswith("sqlite")
    else {},
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()
