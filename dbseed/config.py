from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class DbConfig:
    url: str
    echo: bool = False
    pool_pre_ping: bool = True

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if not isinstance(self.url, str) or not self.url.strip():
            raise ValueError("url must be a non-empty SQLAlchemy database URL")

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        prefix: str = "DBSEED_",
    ) -> "DbConfig":
        """
        Build a config from environment variables.

        Reads ``<prefix>DB_URL`` (required) and ``<prefix>DB_ECHO`` (optional,
        "1"/"true"/"yes"/"on" enable statement echoing).
        """
        env = os.environ if environ is None else environ
        url = env.get(f"{prefix}DB_URL")
        if not url:
            raise ValueError(f"{prefix}DB_URL is not set")
        echo = env.get(f"{prefix}DB_ECHO", "").strip().lower() in _TRUE_VALUES
        return cls(url=url, echo=echo)

    def create_engine(self) -> Engine:
        return create_engine(self.url, echo=self.echo, pool_pre_ping=self.pool_pre_ping)
