from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import mysql.connector

# Timestamps are stored as naive UTC; pin the session so NOW() agrees.
SESSION_TIME_ZONE = "+00:00"


@dataclass(frozen=True)
class DBConfig:
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = "squadops"

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        defaults = cls()
        return cls(
            host=str(db_config.get("host") or defaults.host),
            port=int(db_config.get("port") or defaults.port),
            user=str(db_config.get("user") or defaults.user),
            password=str(db_config.get("password") or ""),
            database=str(db_config.get("database") or defaults.database),
        )

    @property
    def target(self) -> str:
        """``user@host:port/database`` for log lines; never includes the password."""
        return f"{self.user}@{self.host}:{self.port}/{self.database}"

    def connect_kwargs(self, *, with_database: bool = True) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "time_zone": SESSION_TIME_ZONE,
        }
        if with_database:
            kwargs["database"] = self.database
        return kwargs


class DatabaseConnection:
    """Connection factory handed to every MySQL repository.

    Each repository call opens its own short-lived connection, so one call is
    one transaction (see ``mysql_base.db_cursor``).
    """

    def __init__(self, config: DBConfig):
        self.config = config

    def connect(self, *, with_database: bool = True):
        return mysql.connector.connect(**self.config.connect_kwargs(with_database=with_database))
