from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Environment
    environment: str = "development"  # "development" or "production"

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/unihaven.db"
    database_echo: bool = False

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False

    # Links in outgoing emails
    client_url: str = "https://unihaven.app"

    # SMTP
    smtp_host: str = ""
    smtp_port: int = 465
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    smtp_start_tls: bool = False
    smtp_timeout: int = 30  # seconds
    email_sender: str = ""
    email_sender_name: str = "UniHaven Notifications"

    # Notifications
    notification_enabled: bool = True

    # Reconciliation job
    reconcile_enabled: bool = True
    reconcile_interval_seconds: int = 60
    reconcile_timeout_seconds: int = 50
    ad_reminder_window_days: int = 3
    ad_reminder_interval_hours: int = 24

    # CORS (comma-separated origins, empty means localhost only)
    cors_origins: str = ""

    # Admin
    admin_api_key: str = ""

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
