# Configuration management

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict  # type: ignore
from sqlalchemy.engine import URL, make_url


@dataclass(frozen=True)
class BackendDescriptor:
    """
    Immutable description of the database a conversion loads into.

    All fields are optional; the defaults describe a private in-memory
    SQLite database.

    Attributes:
        driver: SQLAlchemy drivername (e.g. "sqlite+pysqlite",
            "postgresql+psycopg2"); overrides the scheme of ``url``
        url: SQLAlchemy connection URL or target
        user: Username, overriding any in ``url``
        password: Credential, overriding any in ``url``
        echo: Log every SQL statement through the "sqlalchemy.engine" logger
    """
    driver: Optional[str] = None
    url: str = "sqlite://"
    user: Optional[str] = None
    password: Optional[str] = None
    echo: bool = False

    def sqlalchemy_url(self) -> URL:
        """Merge the descriptor fields into a single SQLAlchemy URL."""
        url = make_url(self.url)
        overrides = {}
        if self.driver:
            overrides["drivername"] = self.driver
        if self.user:
            overrides["username"] = self.user
        if self.password:
            overrides["password"] = self.password
        return url.set(**overrides) if overrides else url

    @property
    def is_in_memory_sqlite(self) -> bool:
        url = self.sqlalchemy_url()
        return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")

    def __repr__(self) -> str:
        # Never echo the credential
        password = "***" if self.password else None
        return (
            f"BackendDescriptor(driver={self.driver!r}, url={self.url!r}, "
            f"user={self.user!r}, password={password!r}, echo={self.echo!r})"
        )


DEFAULT_BACKEND = BackendDescriptor()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SQLONJSON_",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    db_driver: Optional[str] = None
    database_url: str = "sqlite://"
    db_user: Optional[str] = None
    db_password: Optional[str] = None
    echo_sql: bool = False

    # Observability
    log_level: str = "INFO"
    json_logs: bool = True

    def backend_descriptor(self) -> BackendDescriptor:
        return BackendDescriptor(
            driver=self.db_driver,
            url=self.database_url,
            user=self.db_user,
            password=self.db_password,
            echo=self.echo_sql,
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
