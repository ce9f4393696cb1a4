import enum
from typing import List, Optional

from pydantic import EmailStr, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from yarl import URL


class LogLevel(str, enum.Enum):
    """Possible log levels."""

    NOTSET = "NOTSET"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    FATAL = "FATAL"


class Settings(BaseSettings):
    """
    Application settings.

    These parameters can be configured
    with environment variables.
    """

    host: str = "127.0.0.1"
    port: int = 8000
    # quantity of workers for uvicorn
    workers_count: int = 1
    # Enable uvicorn reloading
    reload: bool = False

    # Current environment
    environment: str = "dev"

    log_level: LogLevel = LogLevel.INFO

    # Apps whose models.py is loaded into the metadata
    app_names: List[str] = ["auth", "monitoring", "audit"]

    # Variables for the database
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "dbmonitor"
    db_pass: str = "dbmonitor"
    db_base: str = "dbmonitor"
    db_echo: bool = False
    # Full SQLAlchemy URL, takes precedence over the db_* parts when set
    database_url: Optional[str] = None

    # Session tokens
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # Startup bootstrap
    seed_reference_data: bool = True
    admin_email: Optional[EmailStr] = None
    admin_password: Optional[str] = Field(None, min_length=8, max_length=128)
    admin_name: str = "Administrator"

    # Grpc endpoint for opentelemetry.
    # E.G. http://localhost:4317
    opentelemetry_endpoint: Optional[str] = None

    @property
    def db_url(self) -> URL:
        """
        Assemble database URL from settings.

        :return: database URL.
        """
        if self.database_url:
            return URL(self.database_url)
        return URL.build(
            scheme="postgresql+asyncpg",
            host=self.db_host,
            port=self.db_port,
            user=self.db_user,
            password=self.db_pass,
            path=f"/{self.db_base}",
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DBMONITOR_",
        env_file_encoding="utf-8",
    )


settings = Settings()
