from __future__ import annotations

from ldap3.utils.conv import escape_filter_chars


def escape_ldap_filter_value(value: str) -> str:
    """RFC 4515 escaping of ``\\ * ( )`` and NUL in a filter value."""
    return escape_filter_chars(value)


def is_dn_attr(attr: str) -> bool:
    """True when ``attr`` means "use the entry's DN" (any case-insensitive 'dn' substring)."""
    return "dn" in (attr or "").lower()


def build_user_filter(objclass: str, userattr: str, username: str, *, escape: bool = False) -> str:
    """Filter for a user entry of a given object class.

    Without ``escape`` the user name goes into the filter verbatim, so
    metacharacters like ``*`` or ``)`` keep their filter meaning.
    """
    value = escape_ldap_filter_value(username) if escape else username
    return f"(&(objectClass={objclass})({userattr}={value}))"
