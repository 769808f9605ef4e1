from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, ValidationInfo, field_validator

from .errors import ConfigError

REQUIRED_KEYS = ("server", "binddn", "bindpw", "basedn")

# Keys of the original plugin configuration format mapped to field names.
_KEY_ALIASES = {
    "NetLDAP": "connection_options",
    "connectionOptions": "connection_options",
    "connection_options": "connection_options",
}


class Config(BaseModel):
    """Directory plugin configuration.

    Build it with :meth:`from_mapping`; the instance is frozen and never
    refers to the caller's mapping.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", hide_input_in_errors=True)

    server: str
    binddn: str
    bindpw: SecretStr
    basedn: str

    userattr: str = Field(default="cn")
    passattr: str = Field(default="userPassword")
    objclass: str = Field(default="person")

    connection_options: dict[str, Any] = Field(default_factory=dict)
    starttls: bool = Field(default=False)
    escape_filter: bool = Field(default=False)

    @field_validator("server", "binddn", "basedn", mode="before")
    @classmethod
    def _strip_required(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("bindpw", mode="before")
    @classmethod
    def _bindpw_not_empty(cls, v: Any) -> Any:
        raw = v.get_secret_value() if isinstance(v, SecretStr) else v
        if not raw:
            raise ValueError("must not be empty")
        return v

    @field_validator("userattr", "passattr", "objclass", mode="before")
    @classmethod
    def _empty_means_default(cls, v: Any, info: ValidationInfo) -> Any:
        if isinstance(v, str):
            v = v.strip()
        if not v:
            return cls.model_fields[info.field_name].default
        return v

    @field_validator("connection_options", mode="before")
    @classmethod
    def _copy_options(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, Mapping):
            return {str(k): val for k, val in v.items()}
        return v

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "Config":
        """Validate ``raw`` and return a defaulted, immutable config.

        Raises ConfigError if ``raw`` is not a mapping or a required key
        (server, binddn, bindpw, basedn) is missing or empty.
        """
        if not isinstance(raw, Mapping):
            raise ConfigError("Must pass a config mapping")

        data: dict[str, Any] = {}
        for key, value in raw.items():
            data[_KEY_ALIASES.get(key, key)] = value

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise _config_error(e) from e

    def get(self, key: str) -> Any:
        """Value for ``key`` (original key names accepted), ``None`` if unknown."""
        name = _KEY_ALIASES.get(key, key)
        if name not in type(self).model_fields:
            return None
        value = getattr(self, name)
        if isinstance(value, SecretStr):
            return value.get_secret_value()
        if isinstance(value, dict):
            return dict(value)
        return value

    def server_options(self) -> dict[str, Any]:
        """Fresh copy of the connection options, for passing to the client."""
        return dict(self.connection_options)

    def ensure_complete(self) -> None:
        missing = [k for k in REQUIRED_KEYS if not self.get(k)]
        if missing:
            raise ConfigError(_missing_message(missing), missing)


def _missing_message(fields: list[str]) -> str:
    if len(fields) == 1:
        return f"Missing config parameter '{fields[0]}'"
    return "Missing config parameters: " + ", ".join(f"'{f}'" for f in fields)


def _config_error(e: ValidationError) -> ConfigError:
    missing: list[str] = []
    invalid: list[str] = []
    for err in e.errors():
        loc = err.get("loc") or ()
        name = str(loc[0]) if loc else ""
        if name in REQUIRED_KEYS and (err.get("type") == "missing" or "must not be empty" in err.get("msg", "")):
            if name not in missing:
                missing.append(name)
        elif name and name not in invalid:
            invalid.append(name)

    if missing and not invalid:
        return ConfigError(_missing_message(missing), missing)

    parts = []
    if missing:
        parts.append(_missing_message(missing))
    if invalid:
        parts.append("Invalid config parameters: " + ", ".join(f"'{f}'" for f in invalid))
    return ConfigError("; ".join(parts), missing + invalid)
