from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = Field("Salon Business Hours", alias="APP_NAME")
    storage_backend: str = Field("file", alias="STORAGE_BACKEND")  # file | database | memory
    storage_path: str = Field("data/local-storage.json", alias="STORAGE_PATH")
    database_url: str = Field("sqlite:///./salon.db", alias="DATABASE_URL")
    admin_token: str | None = Field(None, alias="ADMIN_TOKEN")
    timezone: str = Field("Asia/Riyadh", alias="TIMEZONE")
    default_opening_time: str = Field("10:00", alias="DEFAULT_OPENING_TIME")
    default_closing_time: str = Field("20:00", alias="DEFAULT_CLOSING_TIME")
    default_days_off: list[int] = Field(default_factory=lambda: [5], alias="DEFAULT_DAYS_OFF")  # 5 = Friday
    appointment_buffer_minutes: int = Field(15, alias="APPOINTMENT_BUFFER_MINUTES")
    slot_duration_minutes: int = Field(30, alias="SLOT_DURATION_MINUTES")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    cors_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost",
            "http://127.0.0.1",
        ],
        alias="CORS_ORIGINS",
    )


def get_settings() -> Settings:
    return Settings()
