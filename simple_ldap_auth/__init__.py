"""LDAP credential validation for proxy authentication helpers.

Public API:
    - Config
    - Validator
    - DirectoryRecord, LookupStatus
    - AuthResult, authenticate
    - error classes
"""

from .config import Config
from .errors import (
    BindError,
    ConfigError,
    ConnectionError,
    DirectoryConnectionError,
    NotInitializedError,
    SearchError,
    SimpleLDAPAuthError,
)
from .models import DirectoryRecord, LookupStatus
from .validator import Validator
from .auth import AuthResult, authenticate

__all__ = [
    "Config",
    "Validator",
    "DirectoryRecord",
    "LookupStatus",
    "AuthResult",
    "authenticate",
    "SimpleLDAPAuthError",
    "ConfigError",
    "ConnectionError",
    "DirectoryConnectionError",
    "BindError",
    "SearchError",
    "NotInitializedError",
]
