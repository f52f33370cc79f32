"""Pydantic models describing scraper configuration."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_TARGET_URL = "https://ipindia.gov.in/arched-news.htm"
DEFAULT_BASE_URL = "https://ipindia.gov.in/"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class ScheduleType(str, Enum):
    """Scheduler modes for periodic runs."""

    CRON = "cron"
    INTERVAL = "interval"


class ScheduleConfig(BaseModel):
    """When the scheduled scraper should fire."""

    type: ScheduleType = Field(default=ScheduleType.INTERVAL)
    value: Any = Field(
        default=3600,
        description="Cron expression or interval seconds, depending on type.",
    )

    @model_validator(mode="after")
    def _validate_value(self) -> "ScheduleConfig":
        if self.type is ScheduleType.CRON and not isinstance(self.value, str):
            raise ValueError("Cron schedule requires string expression")
        if self.type is ScheduleType.INTERVAL:
            if isinstance(self.value, bool) or not isinstance(self.value, (int, float, dict)):
                raise ValueError("Interval schedule requires seconds (int/float) or kwargs dict")
            if isinstance(self.value, (int, float)) and self.value <= 0:
                raise ValueError("Interval seconds must be > 0")
        return self


class DatabaseConfig(BaseModel):
    """Connection parameters for the relational store."""

    host: str = "localhost"
    port: int = 3306
    user: str = "ems"
    password: str = "wmtadmin"
    name: str = "ip_insights_hub"
    # Full SQLAlchemy URL; takes precedence over the MySQL parts when set.
    url: str | None = None
    echo: bool = False

    def sqlalchemy_url(self) -> str:
        if self.url:
            return self.url
        return f"mysql+pymysql://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"


class BrowserConfig(BaseModel):
    """Headless browser profile used to render the listing page."""

    headless: bool = True
    viewport_size: tuple[int, int] = (1920, 1080)
    user_agent: str = DEFAULT_USER_AGENT
    locale: str = "en-IN"
    navigation_timeout: int = 60000  # milliseconds
    selector_timeout: int = 10000  # milliseconds

    @field_validator("viewport_size", mode="before")
    @classmethod
    def _coerce_viewport(cls, value: Any) -> tuple[int, int]:
        if isinstance(value, (list, tuple)) and len(value) == 2:
            width, height = int(value[0]), int(value[1])
            if width <= 0 or height <= 0:
                raise ValueError("viewport_size values must be positive")
            return (width, height)
        raise ValueError("viewport_size expects a two-item list or tuple")

    @model_validator(mode="after")
    def _validate_timeouts(self) -> "BrowserConfig":
        if self.navigation_timeout <= 0 or self.selector_timeout <= 0:
            raise ValueError("browser timeouts must be > 0")
        return self


class Settings(BaseModel):
    """Complete runtime configuration of a scrape run."""

    target_url: str = DEFAULT_TARGET_URL
    base_url: str = DEFAULT_BASE_URL
    container_selector: str = "#news-container"
    source_keyword: str = "IPIndia News"
    source_label: str = "IPIndia"
    dry_run: bool = False
    api_key: str | None = None
    environment: Literal["production", "development", "test"] = "production"
    timezone: str = "Asia/Kolkata"
    day_first: bool = False
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("base_url")
    @classmethod
    def _ensure_trailing_slash(cls, value: str) -> str:
        return value if value.endswith("/") else value + "/"

    @field_validator("api_key", mode="before")
    @classmethod
    def _blank_key_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


__all__ = [
    "BrowserConfig",
    "DatabaseConfig",
    "DEFAULT_BASE_URL",
    "DEFAULT_TARGET_URL",
    "DEFAULT_USER_AGENT",
    "ScheduleConfig",
    "ScheduleType",
    "Settings",
]
