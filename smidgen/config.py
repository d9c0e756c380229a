from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from sqlalchemy.engine import URL

from .errors import InvalidPrivilegeError

DEFAULT_CONFIG_PATH = Path("config") / "database.yml"
CONFIG_PATH_ENV = "SMIDGEN_DB_CONFIG"


class PrivilegeTier(str, Enum):
    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: "PrivilegeTier | str") -> "PrivilegeTier":
        """
        Resolve a tier from its name. Matching ignores case, so "read",
        "Read" and "READ" all resolve to PrivilegeTier.READ.

        Raises:
            InvalidPrivilegeError: If the value names no known tier
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidPrivilegeError(f"invalid privilege level: {value!r}")


@dataclass(frozen=True)
class DbCredentials:
    host: Optional[str] = None
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None
    drivername: str = "mysql+pymysql"

    def __post_init__(self) -> None:
        if not self.database:
            raise ValueError("database must be set for every privilege tier")

    def url(self) -> URL:
        return URL.create(
            drivername=self.drivername,
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DbCredentials":
        # "url" is the legacy key for the host name
        host = data.get("host", data.get("url"))
        port = data.get("port")
        return cls(
            host=str(host) if host is not None else None,
            port=int(port) if port not in (None, "") else None,
            user=data.get("user"),
            password=data.get("password"),
            database=data.get("database"),
            drivername=data.get("drivername", "mysql+pymysql"),
        )


@dataclass
class DbConfig:
    credentials: Mapping[PrivilegeTier, DbCredentials]
    schema: str = "smidgen"
    audit_table: str = "auditlog"
    audit_queue_size: int = 1_000

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        # deferred: smidgen.db imports this module
        from .db.helpers import _validate_identifier

        _validate_identifier(self.schema, "schema")
        _validate_identifier(self.audit_table, "audit table")
        if self.audit_queue_size <= 0:
            raise ValueError("audit_queue_size must be > 0")

    def credentials_for(self, tier: PrivilegeTier | str) -> DbCredentials:
        resolved = PrivilegeTier.parse(tier)
        try:
            return self.credentials[resolved]
        except KeyError:
            raise InvalidPrivilegeError(
                f"no credentials configured for privilege level {resolved.value!r}"
            ) from None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DbConfig":
        raw_credentials = data.get("credentials")
        if not isinstance(raw_credentials, Mapping) or not raw_credentials:
            raise ValueError("config must contain a non-empty 'credentials' mapping")

        credentials = {
            PrivilegeTier.parse(tier): DbCredentials.from_mapping(values or {})
            for tier, values in raw_credentials.items()
        }
        return cls(
            credentials=credentials,
            schema=data.get("schema", "smidgen"),
            audit_table=data.get("audit_table", "auditlog"),
            audit_queue_size=int(data.get("audit_queue_size", 1_000)),
        )


def load_db_config(path: str | Path | None = None) -> DbConfig:
    """
    Load the privilege-scoped database configuration from YAML.

    Resolution order for the file: explicit ``path``, then the
    ``SMIDGEN_DB_CONFIG`` environment variable, then ``config/database.yml``.
    """
    if path is None:
        path = os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH
    resolved = Path(path)

    with resolved.open("r", encoding="utf-8") as handle:
        parsed = yaml.safe_load(handle)

    if not isinstance(parsed, dict):
        raise ValueError(f"Config file must contain a top-level mapping: {resolved}")
    return DbConfig.from_mapping(parsed)
