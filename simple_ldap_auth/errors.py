from __future__ import annotations

import builtins


class SimpleLDAPAuthError(Exception):
    """Base class for every error raised by the validator."""


class ConfigError(SimpleLDAPAuthError, ValueError):
    """Bad or incomplete configuration. Raised at construction time."""

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields = list(fields or [])


class ConnectionError(SimpleLDAPAuthError, builtins.ConnectionError):
    """The directory server could not be reached (open or StartTLS failed)."""


class BindError(SimpleLDAPAuthError):
    """The service account bind was rejected."""


class SearchError(SimpleLDAPAuthError):
    """The directory reported an error for a user search."""


class NotInitializedError(SimpleLDAPAuthError, RuntimeError):
    """A search was attempted without a live, bound connection."""


# Readable alias for callers that do not want to shadow the builtin name.
DirectoryConnectionError = ConnectionError
