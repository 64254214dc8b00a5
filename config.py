from __future__ import annotations

from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent

SERVICE_NAME = "mlb-predictions-api"
API_VERSION = "1.0.0"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    # Which deployment this process serves: a local file or the GitHub-backed function
    api_variant: Literal["local", "remote"] = "local"
    environment: str = "production"

    # Local server
    host: str = "0.0.0.0"
    port: int = 3001
    predictions_file: Path = BASE_DIR / "predictions.json"

    # Remote store (GitHub Contents API)
    github_token: str = ""
    github_repo_owner: str = "atomlinsonc"
    github_repo_name: str = "mlb-prediction-scoreboard"
    github_file_path: str = "data/predictions.json"
    github_branch: str = "master"
    github_api_url: str = "https://api.github.com"
    github_timeout: float = 10.0

    # HTTP surface
    route_prefix: str = ""
    max_body_bytes: int = 1024 * 1024

    # Observability
    log_level: str = "INFO"
    log_json: bool = False
    log_file: str | None = None
    sentry_dsn: str | None = None

    @field_validator("log_level", mode="before")
    @classmethod
    def _uppercase_log_level(cls, v: str) -> str:
        return v.upper()

    @field_validator("route_prefix", mode="before")
    @classmethod
    def _normalize_route_prefix(cls, v: str) -> str:
        v = (v or "").strip().rstrip("/")
        if v and not v.startswith("/"):
            v = "/" + v
        return v

    @property
    def is_remote(self) -> bool:
        return self.api_variant == "remote"


settings = Settings()
