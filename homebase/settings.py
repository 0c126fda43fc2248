from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field("sqlite:///homebase.db", alias="DATABASE_URL")
    log_level: str = Field("INFO", alias="HOMEBASE_LOG_LEVEL")

    calendar_timezone: str = Field("UTC", alias="CALENDAR_TIMEZONE")

    openweather_api_key: SecretStr | None = Field(None, alias="OPENWEATHER_API_KEY")
    weather_api_url: str = Field("https://api.openweathermap.org/data/2.5/weather", alias="WEATHER_API_URL")
    weather_fresh_minutes: int = Field(60, alias="WEATHER_FRESH_MINUTES")
    weather_cache_max_age_hours: int = Field(24, alias="WEATHER_CACHE_MAX_AGE_HOURS")

    geolocation_url: str | None = Field("http://ip-api.com/json/", alias="GEOLOCATION_URL")
    default_latitude: float | None = Field(None, alias="DEFAULT_LATITUDE")
    default_longitude: float | None = Field(None, alias="DEFAULT_LONGITUDE")
    geolocation_timeout_seconds: float = Field(10.0, alias="GEOLOCATION_TIMEOUT_SECONDS")

    quote_primary_url: str | None = Field("https://zenquotes.io/api/random", alias="QUOTE_PRIMARY_URL")
    quote_secondary_url: str | None = Field("https://api.quotable.io/random", alias="QUOTE_SECONDARY_URL")
    quote_rate_limit: int = Field(5, alias="QUOTE_RATE_LIMIT")
    quote_rate_window_seconds: float = Field(60.0, alias="QUOTE_RATE_WINDOW_SECONDS")

    http_timeout_seconds: float = Field(10.0, alias="HTTP_TIMEOUT_SECONDS")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    @property
    def has_static_location(self) -> bool:
        return self.default_latitude is not None and self.default_longitude is not None

    def today(self) -> date:
        try:
            return datetime.now(ZoneInfo(self.calendar_timezone)).date()
        except Exception:
            return date.today()


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
