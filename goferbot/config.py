"""Application configuration loaded from a TOML file."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, TypeVar


class ConfigError(Exception):
    """Raised when the configuration file cannot be read or parsed."""


@dataclass(frozen=True)
class ServerConfig:
    """HTTP server settings."""

    webhook_url: str = ""
    port: int = 0


@dataclass(frozen=True)
class TelegramConfig:
    """Telegram bot settings."""

    bot_token: str = ""


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection settings."""

    host: str = ""
    port: int = 0
    user: str = ""
    password: str = ""
    dbname: str = ""
    sslmode: str = ""
    path: str = "bot.db"

    @property
    def dsn(self) -> str:
        """Connection string in key=value form."""
        return (
            f"host={self.host} port={self.port} user={self.user} "
            f"password={self.password} dbname={self.dbname} sslmode={self.sslmode}"
        )


@dataclass(frozen=True)
class Config:
    """All application settings."""

    server: ServerConfig = field(default_factory=ServerConfig)
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)


_DATABASE_SECTIONS = ("database", "postgres")

_T = TypeVar("_T")


def _section(cls: type[_T], data: Any, name: str) -> _T:
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigError(f"failed to parse config file: [{name}] must be a table")
    values: dict[str, Any] = {}
    for spec in fields(cls):  # type: ignore[arg-type]
        if spec.name not in data:
            continue
        value = data[spec.name]
        expected = type(spec.default)
        wrong_int = expected is int and isinstance(value, bool)
        if wrong_int or not isinstance(value, expected):
            raise ConfigError(
                f"failed to parse config file: {name}.{spec.name} "
                f"must be of type {expected.__name__}"
            )
        values[spec.name] = value
    return cls(**values)


def load(path: str | Path) -> Config:
    """Read the configuration from a TOML file."""
    try:
        raw = Path(path).read_bytes()
    except OSError as exc:
        raise ConfigError(f"failed to read config file: {exc}") from exc

    try:
        document = tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"failed to parse config file: {exc}") from exc

    database_name = next(
        (name for name in _DATABASE_SECTIONS if name in document), _DATABASE_SECTIONS[0]
    )
    return Config(
        server=_section(ServerConfig, document.get("server"), "server"),
        telegram=_section(TelegramConfig, document.get("telegram"), "telegram"),
        database=_section(DatabaseConfig, document.get(database_name), database_name),
    )