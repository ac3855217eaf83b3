from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "ttboard"

    # ---------------------------------------------------------------------
    # API contract / OpenAPI
    # ---------------------------------------------------------------------

    api_version: str = "1.0.0"
    api_description: str = (
        "Test-Track task board API.\n\n"
        "Assignment scheduling endpoints require headers: X-Role, X-Actor-User-Id.\n\n"
        "Only admin and data_manager roles may create or remove assignments."
    )

    env: str = "local"
    debug: bool = True

    db_host: str = "127.0.0.1"
    db_port: int = 5432
    db_name: str = "ttboard"
    db_user: str = "ttboard"
    db_password: str = "ttboard"

    # Full SQLAlchemy URL; wins over the db_* parts when set (e.g. sqlite for local runs)
    database_url_override: str | None = None

    # ---------------------------------------------------------------------
    # Scheduling
    # ---------------------------------------------------------------------

    # Upper sanity bound for duration_days and for the span of a date_range
    max_assignment_days: int = 365

    # ---------------------------------------------------------------------
    # Logging
    # ---------------------------------------------------------------------

    log_level: str = "INFO"
    log_file: str | None = None

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+psycopg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )


settings = Settings()
