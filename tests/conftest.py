from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

import pytest

from simple_ldap_auth import Config, Validator


@dataclass
class FakeDirectory:
    """Scripted directory behind the fake ldap3 Server/Connection pair."""

    entries: list[dict[str, Any]] = field(default_factory=list)
    open_error: Exception | None = None
    starttls_ok: bool = True
    bind_ok: bool = True
    bind_error: Exception | None = None
    search_code: int = 0
    search_error: Exception | None = None
    on_search: Callable[[], None] | None = None
    unbind_error: Exception | None = None

    servers: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    binds: list[tuple[str, str]] = field(default_factory=list)
    searches: list[dict[str, Any]] = field(default_factory=list)
    starttls_calls: int = 0
    unbinds: int = 0

    def add_entry(self, dn: str, **attributes: Any) -> None:
        self.entries.append({"dn": dn, "attributes": attributes})


class FakeServer:
    directory: FakeDirectory

    def __init__(self, host: str, port: int | None = None, use_ssl: bool = False, connect_timeout: float | None = None) -> None:
        self.host = host
        options = {"port": port, "use_ssl": use_ssl, "connect_timeout": connect_timeout}
        self.directory.servers.append((host, {k: v for k, v in options.items() if v not in (None, False)}))


class FakeConnection:
    def __init__(self, server: FakeServer, user: str | None = None, password: str | None = None, auto_bind: bool = False) -> None:
        self.server = server
        self.directory = server.directory
        self.user = user
        self.password = password
        self.result: dict[str, Any] = {}
        self.response: list[dict[str, Any]] = []

    def open(self) -> None:
        if self.directory.open_error is not None:
            raise self.directory.open_error

    def start_tls(self) -> bool:
        self.directory.starttls_calls += 1
        if not self.directory.starttls_ok:
            self.result = {"result": 52, "description": "unavailable", "message": "StartTLS not supported"}
        return self.directory.starttls_ok

    def bind(self) -> bool:
        self.directory.binds.append((self.user or "", self.password or ""))
        if self.directory.bind_error is not None:
            raise self.directory.bind_error
        if self.directory.bind_ok:
            self.result = {"result": 0, "description": "success", "message": ""}
            return True
        self.result = {"result": 49, "description": "invalidCredentials", "message": ""}
        return False

    def search(self, search_base: str, search_filter: str, search_scope: Any = None, attributes: Any = None) -> bool:
        self.directory.searches.append(
            {
                "base": search_base,
                "filter": search_filter,
                "scope": search_scope,
                "attributes": list(attributes or []),
            }
        )
        if self.directory.on_search is not None:
            self.directory.on_search()
        if self.directory.search_error is not None:
            raise self.directory.search_error
        if self.directory.search_code != 0:
            self.result = {"result": self.directory.search_code, "description": "operationsError", "message": "search failed"}
            self.response = []
            return False
        self.result = {"result": 0, "description": "success", "message": ""}
        self.response = [
            {"type": "searchResEntry", "dn": e["dn"], "attributes": dict(e["attributes"])}
            for e in self.directory.entries
        ]
        return bool(self.response)

    def unbind(self) -> bool:
        self.directory.unbinds += 1
        if self.directory.unbind_error is not None:
            raise self.directory.unbind_error
        return True


BASE_CONFIG = {
    "server": "ldap.example.org",
    "binddn": "cn=proxy,dc=example,dc=org",
    "bindpw": "proxy-secret",
    "basedn": "ou=people,dc=example,dc=org",
}


@pytest.fixture
def directory(monkeypatch: pytest.MonkeyPatch) -> FakeDirectory:
    d = FakeDirectory()
    server_cls = type("BoundFakeServer", (FakeServer,), {"directory": d})
    monkeypatch.setattr("simple_ldap_auth.validator.Server", server_cls)
    monkeypatch.setattr("simple_ldap_auth.validator.Connection", FakeConnection)
    return d


@pytest.fixture
def make_validator(directory: FakeDirectory):
    def _make(initialize: bool = True, **overrides: Any) -> Validator:
        raw = dict(BASE_CONFIG)
        raw.update(overrides)
        v = Validator(Config.from_mapping(raw))
        if initialize:
            v.initialize()
        return v

    return _make
