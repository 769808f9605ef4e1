from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .config import Config


class EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    server: str = Field("", alias="LDAP_AUTH_SERVER")
    binddn: str = Field("", alias="LDAP_AUTH_BINDDN")
    bindpw: str = Field("", alias="LDAP_AUTH_BINDPW")
    basedn: str = Field("", alias="LDAP_AUTH_BASEDN")

    userattr: str = Field("", alias="LDAP_AUTH_USERATTR")
    passattr: str = Field("", alias="LDAP_AUTH_PASSATTR")
    objclass: str = Field("", alias="LDAP_AUTH_OBJCLASS")

    port: int | None = Field(None, alias="LDAP_AUTH_PORT")
    starttls: bool = Field(False, alias="LDAP_AUTH_STARTTLS")
    escape_filter: bool = Field(False, alias="LDAP_AUTH_ESCAPE_FILTER")

    log_level: str = Field("INFO", alias="LDAP_AUTH_LOG_LEVEL")
    log_file: str = Field("", alias="LDAP_AUTH_LOG_FILE")

    def as_mapping(self) -> dict[str, Any]:
        """Plugin configuration mapping; unset optional values are left out."""
        raw: dict[str, Any] = {
            "server": self.server,
            "binddn": self.binddn,
            "bindpw": self.bindpw,
            "basedn": self.basedn,
            "starttls": self.starttls,
            "escape_filter": self.escape_filter,
        }
        for key in ("userattr", "passattr", "objclass"):
            value = getattr(self, key)
            if value:
                raw[key] = value
        if self.port:
            raw["connection_options"] = {"port": self.port}
        return raw


@lru_cache(maxsize=1)
def get_env() -> EnvSettings:
    return EnvSettings()


def config_from_env(env: EnvSettings | None = None) -> Config:
    """Build a Config from LDAP_AUTH_* variables (same rules as from_mapping)."""
    return Config.from_mapping((env or get_env()).as_mapping())
