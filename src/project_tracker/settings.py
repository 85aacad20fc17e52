from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_NAME = "project-tracker"  # Application name constant. Should be in format "kebab-case".


def _default_data_dir() -> str:
    return Path.home().joinpath(f".{APP_NAME}").as_posix()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix=f"{APP_NAME.upper().replace('-', '_')}__",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = Field(default=APP_NAME, description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    app_data_dir: str = Field(
        default_factory=_default_data_dir,
        description="Data directory path",
    )

    # Storage settings
    database_path: str | None = Field(
        default=None,
        description="SQLite database file or SQLAlchemy URL. Defaults to <app_data_dir>/project-tables.db",
    )
    page_size: int = Field(
        default=50, ge=1, description="Maximum number of rows loaded into a controller table"
    )

    # Logging settings
    logging_level: str = Field(
        default="WARNING", description="Logging level (e.g., DEBUG, INFO, WARNING, ERROR)"
    )
    logging_format: str = Field(
        default="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{module}</cyan>:<cyan>{line}</cyan> - <level>{message}</level> | {extra}",
        description="Logging format string",
    )
    logging_to_file: bool = Field(
        default=False, description="Also write logs to <app_data_dir>/logs"
    )
    logging_rotation: str = Field(
        default="10 MB", description="Log file rotation size"
    )
    logging_retention: str = Field(
        default="10 days", description="Log file retention period"
    )
    logging_compression: str = Field(
        default="zip", description="Log file compression method"
    )

    def resolved_database(self) -> str:
        """Database location, falling back to a file inside the data directory."""
        if self.database_path:
            return self.database_path
        return Path(self.app_data_dir).joinpath("project-tables.db").as_posix()


def get_settings() -> Settings:
    """Retrieve application settings."""
    return Settings()
