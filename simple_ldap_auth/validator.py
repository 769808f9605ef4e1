from __future__ import annotations

import logging
import threading
from typing import Any

from ldap3 import Connection, Server, SUBTREE
from ldap3.core.exceptions import LDAPException

from .config import Config
from .errors import BindError, ConfigError, ConnectionError, NotInitializedError, SearchError
from .filters import build_user_filter, is_dn_attr
from .models import DirectoryRecord, LookupStatus

log = logging.getLogger(__name__)


def _describe(result: dict | None) -> str:
    res = result or {}
    desc = str(res.get("description") or "").strip()
    msg = str(res.get("message") or "").strip()
    code = res.get("result")
    parts = [p for p in (desc, msg) if p]
    if code is not None:
        parts.append(f"code={code}")
    return ", ".join(parts) or "unknown error"


def _get_attr(attributes: Any, name: str) -> Any:
    """Attribute lookup that tolerates case differences in attribute names."""
    if not attributes:
        return None
    if name in attributes:
        return attributes[name]
    wanted = name.lower()
    for key, value in attributes.items():
        if str(key).lower() == wanted:
            return value
    return None


def _first_value(value: Any, strict: bool = False) -> str | None:
    """First value of a (possibly multi-valued) attribute, as text.

    With ``strict`` undecodable bytes raise UnicodeDecodeError instead of
    being replaced.
    """
    if isinstance(value, (list, tuple)):
        if not value:
            return None
        value = value[0]
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="strict" if strict else "replace")
    return str(value)


class Validator:
    """Checks user name/password pairs against a directory.

    One instance owns one bound connection: call :meth:`initialize` once,
    then :meth:`is_valid` as many times as needed.
    """

    def __init__(self, cfg: Config) -> None:
        self.cfg = cfg
        self._conn: Connection | None = None
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._conn is not None

    def __enter__(self) -> "Validator":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _server(self) -> Server:
        options = self.cfg.server_options()
        scheme = str(options.pop("scheme", "") or "").strip()
        host = self.cfg.server
        if scheme and "://" not in host:
            host = f"{scheme}://{host}"
        try:
            return Server(host, **options)
        except TypeError as e:
            raise ConfigError(f"Unsupported connection option: {e}", ["connection_options"]) from e
        except LDAPException as e:
            raise ConnectionError(f"Cannot connect to LDAP server: {self.cfg.server} ({e})") from e

    def initialize(self) -> None:
        """Connect to the server and bind with the service account.

        Raises ConnectionError if the server cannot be reached and BindError
        if the bind is rejected.
        """
        self.cfg.ensure_complete()

        with self._lock:
            if self._conn is not None:
                log.warning("Validator for %s is already initialized, keeping the existing connection", self.cfg.server)
                return

            server = self._server()
            conn = Connection(
                server,
                user=self.cfg.binddn,
                password=self.cfg.bindpw.get_secret_value(),
                auto_bind=False,
            )

            try:
                conn.open()
                if self.cfg.starttls and not conn.start_tls():
                    raise ConnectionError(
                        f"Cannot connect to LDAP server: {self.cfg.server} (StartTLS failed: {_describe(conn.result)})"
                    )
            except LDAPException as e:
                self._unbind_quietly(conn)
                raise ConnectionError(f"Cannot connect to LDAP server: {self.cfg.server} ({e})") from e
            except ConnectionError:
                self._unbind_quietly(conn)
                raise

            try:
                ok = bool(conn.bind())
            except LDAPException as e:
                self._unbind_quietly(conn)
                raise BindError(f"Error binding to LDAP server: {e}") from e
            if not ok:
                desc = _describe(conn.result)
                self._unbind_quietly(conn)
                log.error("Bind as %s to %s rejected: %s", self.cfg.binddn, self.cfg.server, desc)
                raise BindError(f"Error binding to LDAP server: {desc}")

            self._conn = conn
            log.info("Connected to %s as %s", self.cfg.server, self.cfg.binddn)

    def close(self) -> None:
        """Release the connection. Safe to call more than once."""
        with self._lock:
            self._release()

    def _release(self) -> None:
        conn, self._conn = self._conn, None
        if conn is not None:
            self._unbind_quietly(conn)

    @staticmethod
    def _unbind_quietly(conn: Connection) -> None:
        try:
            conn.unbind()
        except Exception:
            log.warning("Failed to release LDAP connection", exc_info=True)

    def _require_conn(self) -> Connection:
        if self._conn is None:
            raise NotInitializedError("Validator is not initialized: call initialize() first")
        return self._conn

    def search(self, username: str) -> DirectoryRecord:
        """Look up ``username`` and extract at most one credential record.

        Zero matches is a normal NOT_FOUND record. With several matches the
        first entry is used and a warning is logged.
        """
        with self._lock:
            conn = self._require_conn()

            userattr = self.cfg.userattr
            passattr = self.cfg.passattr
            use_dn = is_dn_attr(userattr)
            flt = build_user_filter(self.cfg.objclass, userattr, username, escape=self.cfg.escape_filter)
            # The entry DN is not an attribute; ldap3 rejects it in the list when schema checking is on.
            attrs = [passattr] if use_dn else [userattr, passattr]

            try:
                conn.search(
                    search_base=self.cfg.basedn,
                    search_filter=flt,
                    search_scope=SUBTREE,
                    attributes=attrs,
                )
            except LDAPException as e:
                self._release()
                raise SearchError(f"Error searching LDAP server: {e}") from e

            result = dict(conn.result or {})
            if result.get("result", 0) != 0:
                desc = _describe(result)
                self._release()
                log.error("Search under %s failed: %s", self.cfg.basedn, desc)
                raise SearchError(f"Error searching LDAP server: {desc}")

            entries = [r for r in (conn.response or []) if r.get("type", "searchResEntry") == "searchResEntry"]
            return self._extract(entries, username, use_dn)

    def _extract(self, entries: list[dict], username: str, use_dn: bool) -> DirectoryRecord:
        if not entries:
            log.debug("No entry found for user (%s)", username)
            return DirectoryRecord.not_found()

        entry = entries[0]
        dn = str(entry.get("dn") or "")
        attributes = entry.get("attributes") or {}

        if use_dn:
            user = dn
        else:
            user = _first_value(_get_attr(attributes, self.cfg.userattr))
        # Compared verbatim later, so no lossy decoding here.
        try:
            password = _first_value(_get_attr(attributes, self.cfg.passattr), strict=True)
        except UnicodeDecodeError:
            log.warning("Entry %s: %s value is not valid UTF-8, it will never match", dn, self.cfg.passattr)
            password = None

        status = LookupStatus.FOUND
        if len(entries) > 1:
            status = LookupStatus.AMBIGUOUS
            log.warning(
                "ambiguous result: found %d entries for user (%s), using %s",
                len(entries),
                user,
                dn,
            )

        return DirectoryRecord(
            status=status,
            username=user,
            password=password,
            dn=dn,
            entry_count=len(entries),
        )

    def is_valid(self, username: str, password: str) -> bool:
        """True iff the directory holds ``username`` with exactly ``password``.

        "Not found" and "wrong password" are False; directory errors raise
        SearchError.
        """
        record = self.search(username)
        if not record.matches(username):
            log.debug("User (%s) not found", username)
            return False
        if record.password is None:
            log.debug("Entry %s has no %s value", record.dn, self.cfg.passattr)
            return False
        ok = record.password == password
        if not ok:
            log.debug("Password mismatch for user (%s)", username)
        return ok
