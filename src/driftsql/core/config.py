"""Configuration management for driftsql.

Per-backend driver configuration models, TOML config files with named
profiles, and connection precedence resolution.

Precedence order (highest to lowest):
1. --url CLI flag
2. DATABASE_URL environment variable
3. Named profile (--profile, DRIFTSQL_PROFILE env var, default_profile)
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Literal
from urllib.parse import unquote, urlparse

from pydantic import BaseModel, field_validator, model_validator

from driftsql.core.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "driftsql" / "config.toml"

DriverName = Literal["postgres", "neon", "mysql", "libsql", "sqlitecloud", "http"]

_LOCAL_SQLITE_SUFFIXES = (".db", ".sqlite", ".sqlite3")


# ---------------------------------------------------------------------------
# Driver configuration models
# ---------------------------------------------------------------------------


class PostgresHttpConfig(BaseModel):
    url: str
    api_key: str | None = None
    timeout_ms: int = 5000


class PostgresConfig(BaseModel):
    """Either a direct connection string or an HTTP tunnel, never both."""

    connection_string: str | None = None
    http: PostgresHttpConfig | None = None
    statement_timeout_ms: int | None = None

    @model_validator(mode="after")
    def exactly_one_target(self) -> PostgresConfig:
        if bool(self.connection_string) == bool(self.http):
            msg = "PostgresConfig needs exactly one of connection_string or http"
            raise ValueError(msg)
        return self


class NeonConfig(BaseModel):
    connection_string: str
    statement_timeout_ms: int | None = None


class MySQLConfig(BaseModel):
    connection_string: str

    @field_validator("connection_string")
    @classmethod
    def validate_scheme(cls, v: str) -> str:
        scheme = urlparse(v).scheme
        if scheme not in ("mysql", "mariadb"):
            msg = f"Invalid MySQL connection string scheme: '{scheme}'. Expected 'mysql'"
            raise ValueError(msg)
        return v


class SqliteCloudConfig(BaseModel):
    connection_string: str

    @field_validator("connection_string")
    @classmethod
    def validate_scheme(cls, v: str) -> str:
        scheme = urlparse(v).scheme
        if scheme != "sqlitecloud":
            msg = (
                f"Invalid SQLite Cloud connection string scheme: '{scheme}'. "
                "Expected 'sqlitecloud'"
            )
            raise ValueError(msg)
        return v


class LibSQLConfig(BaseModel):
    url: str
    auth_token: str | None = None
    use_alternate_serverless_client: bool = False
    readonly: bool = False

    @property
    def is_local(self) -> bool:
        """True for :memory:, file: URLs and plain filesystem paths."""
        if self.url == ":memory:" or self.url.startswith("file:"):
            return True
        return "://" not in self.url


class HttpConfig(BaseModel):
    """Generic SQL-over-HTTP endpoint."""

    url: str
    api_key: str | None = None
    timeout_ms: int = 5000
    dialect: Literal["postgres", "mysql", "sqlite"] = "postgres"


DriverConfig = (
    PostgresConfig
    | NeonConfig
    | MySQLConfig
    | LibSQLConfig
    | SqliteCloudConfig
    | HttpConfig
)


def driver_config_from_url(url: str, **extra: Any) -> DriverConfig:
    """Infer the backend from a connection URL scheme."""
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if scheme in ("postgresql", "postgres"):
        host = parsed.hostname or ""
        if host.endswith(".neon.tech"):
            return NeonConfig(connection_string=url)
        return PostgresConfig(connection_string=url)
    if scheme in ("mysql", "mariadb"):
        return MySQLConfig(connection_string=url)
    if scheme == "sqlitecloud":
        return SqliteCloudConfig(connection_string=url)
    if scheme in ("libsql", "ws", "wss", "file") or url == ":memory:":
        return LibSQLConfig(url=url, **extra)
    if scheme in ("http", "https"):
        return HttpConfig(url=url, **extra)
    if not scheme and url.endswith(_LOCAL_SQLITE_SUFFIXES):
        return LibSQLConfig(url=url, **extra)
    msg = f"Cannot infer driver from URL scheme: '{scheme or url}'"
    raise ConfigError(msg)


def parse_mysql_url(url: str) -> dict[str, Any]:
    """Split a mysql:// connection string into aiomysql keyword arguments."""
    parsed = urlparse(url)
    result: dict[str, Any] = {
        "host": parsed.hostname or "localhost",
        "port": parsed.port or 3306,
    }
    if parsed.username:
        result["user"] = unquote(parsed.username)
    if parsed.password:
        result["password"] = unquote(parsed.password)
    if parsed.path and parsed.path.strip("/"):
        result["db"] = parsed.path.strip("/")
    return result


# ---------------------------------------------------------------------------
# Profiles and the config file
# ---------------------------------------------------------------------------


class Profile(BaseModel):
    driver: DriverName | None = None
    url: str | None = None
    connection_string: str | None = None
    auth_token: str | None = None
    api_key: str | None = None
    timeout_ms: int | None = None
    statement_timeout_ms: int | None = None
    use_alternate_serverless_client: bool = False
    fallbacks: list[str] = []

    @model_validator(mode="after")
    def needs_target(self) -> Profile:
        if not (self.url or self.connection_string):
            msg = "Profile needs a url or connection_string"
            raise ValueError(msg)
        return self

    def to_driver_config(self) -> DriverConfig:
        target = self.connection_string or self.url or ""
        driver = self.driver
        if driver is None:
            extra: dict[str, Any] = {}
            if self.auth_token:
                extra["auth_token"] = self.auth_token
            if self.use_alternate_serverless_client:
                extra["use_alternate_serverless_client"] = True
            if self.api_key:
                extra["api_key"] = self.api_key
            return driver_config_from_url(target, **extra)
        if driver == "postgres":
            return PostgresConfig(
                connection_string=target,
                statement_timeout_ms=self.statement_timeout_ms,
            )
        if driver == "neon":
            return NeonConfig(
                connection_string=target,
                statement_timeout_ms=self.statement_timeout_ms,
            )
        if driver == "mysql":
            return MySQLConfig(connection_string=target)
        if driver == "sqlitecloud":
            return SqliteCloudConfig(connection_string=target)
        if driver == "libsql":
            return LibSQLConfig(
                url=target,
                auth_token=self.auth_token,
                use_alternate_serverless_client=self.use_alternate_serverless_client,
            )
        return HttpConfig(
            url=target,
            api_key=self.api_key,
            timeout_ms=self.timeout_ms or 5000,
        )


class AppConfig(BaseModel):
    default_profile: str | None = None
    default_format: str | None = None
    profiles: dict[str, Profile] = {}


class ResolvedConfig(BaseModel):
    primary: DriverConfig
    fallbacks: list[DriverConfig] = []
    active_profile: str | None = None
    default_format: str | None = None
    source: str = "default"


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML file.

    Returns default AppConfig if file doesn't exist.
    Raises ConfigError on malformed TOML or invalid config.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return AppConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Malformed TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return AppConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid configuration in {config_path}: {e}"
        raise ConfigError(msg) from e


def _profile_config(config: AppConfig, name: str) -> DriverConfig:
    if name not in config.profiles:
        available = ", ".join(sorted(config.profiles)) if config.profiles else "none"
        msg = f"Unknown profile: '{name}'. Available profiles: {available}"
        raise ConfigError(msg)
    try:
        return config.profiles[name].to_driver_config()
    except ValueError as e:
        msg = f"Invalid profile '{name}': {e}"
        raise ConfigError(msg) from e


def resolve_config(
    config: AppConfig,
    profile_name: str | None = None,
    url: str | None = None,
) -> ResolvedConfig:
    """Resolve the primary and fallback driver configs.

    --url > DATABASE_URL > profile. Fallbacks only come from profiles.
    """
    effective_profile = (
        profile_name or os.environ.get("DRIFTSQL_PROFILE") or config.default_profile
    )

    env_url = os.environ.get("DATABASE_URL")
    try:
        if url:
            return ResolvedConfig(
                primary=driver_config_from_url(url),
                default_format=config.default_format,
                source="cli: --url",
            )
        if env_url:
            return ResolvedConfig(
                primary=driver_config_from_url(env_url),
                default_format=config.default_format,
                source="env: DATABASE_URL",
            )
    except ValueError as e:
        msg = f"Invalid connection URL: {e}"
        raise ConfigError(msg) from e

    if not effective_profile:
        msg = "No database configured. Use --url, DATABASE_URL or a profile"
        raise ConfigError(msg)

    primary = _profile_config(config, effective_profile)
    fallbacks = [
        _profile_config(config, name)
        for name in config.profiles[effective_profile].fallbacks
    ]
    return ResolvedConfig(
        primary=primary,
        fallbacks=fallbacks,
        active_profile=effective_profile,
        default_format=config.default_format,
        source=f"profile: {effective_profile}",
    )
