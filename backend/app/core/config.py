from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "SOC Portal Downtime Service"
    app_env: str = "development"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "soc_portal"
    postgres_user: str = "soc_portal"
    postgres_password: str = "soc_portal"

    database_url: str | None = None
    db_echo: bool = False
    frontend_origin: str = "http://localhost:3000"
    additional_frontend_origins: str = ""

    storage_timezone: str = "Asia/Dhaka"
    id_suffix: str = "SOCP"
    report_id_prefix: str = "DT"
    admin_notification_prefix: str = "AN"
    user_notification_prefix: str = "UN"

    telegram_bot_token: str | None = None
    telegram_chat_id: str | None = None
    telegram_api_base_url: str = "https://api.telegram.org"
    alert_timeout_seconds: float = 5.0

    @property
    def cors_allowed_origins(self) -> list[str]:
        origins = [self.frontend_origin.strip()]
        if self.additional_frontend_origins.strip():
            origins.extend(
                [value.strip() for value in self.additional_frontend_origins.split(",") if value.strip()]
            )
        unique: list[str] = []
        for origin in origins:
            if origin and origin not in unique:
                unique.append(origin)
        return unique

    @property
    def alerts_configured(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def sqlalchemy_database_uri(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


settings = Settings()
