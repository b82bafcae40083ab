"""Application configuration using Pydantic settings."""

from functools import lru_cache
import logging
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BrowserTargets(BaseModel):
    """Minimum major browser versions the flattened CSS has to work in."""

    chrome: int = 100
    firefox: int = 100
    safari: int = 15


class Settings(BaseSettings):
    """Central application configuration."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    app_name: str = "Shadow Render"
    environment: str = "development"
    debug: bool = False
    log_level: Optional[str] = None
    log_format: Literal["json", "console"] = "json"

    host: str = "0.0.0.0"
    port: int = 3001
    cors_allowed_origins: List[str] = ["*"]
    max_body_bytes: int = 5 * 1024 * 1024

    render_token: str = ""
    render_token_header: str = "x-render-token"

    render_wait_ms: int = Field(default=2000, ge=0)
    render_head_html: str = ""

    css_host_whitelist: str = "cdn.jsdelivr.net,fonts.googleapis.com"
    css_targets: BrowserTargets = Field(default_factory=BrowserTargets)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: Optional[str]) -> Optional[str]:
        """Accept standard level names in any case; blank means unset."""

        if value is None or not value.strip():
            return None
        name = value.strip().upper()
        if not isinstance(logging.getLevelName(name), int):
            raise ValueError(f"unknown log level: {value}")
        return name

    @property
    def allowed_css_hosts(self) -> List[str]:
        """Hostname suffixes external stylesheets may be fetched from."""

        entries = (part.strip().lower() for part in self.css_host_whitelist.split(","))
        return [entry for entry in entries if entry]


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


settings = get_settings()
