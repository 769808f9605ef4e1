from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LookupStatus(str, Enum):
    NOT_FOUND = "not_found"
    FOUND = "found"
    # More than one entry matched; the first one was used.
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class DirectoryRecord:
    """Result of one user search.

    Lives for a single ``is_valid`` call and is never cached.
    """

    status: LookupStatus
    username: str | None = None
    password: str | None = None
    dn: str = ""
    entry_count: int = 0

    @classmethod
    def not_found(cls) -> "DirectoryRecord":
        return cls(status=LookupStatus.NOT_FOUND)

    @property
    def found(self) -> bool:
        return self.status is not LookupStatus.NOT_FOUND

    @property
    def ambiguous(self) -> bool:
        return self.status is LookupStatus.AMBIGUOUS

    def matches(self, username: str) -> bool:
        """Exact, case-sensitive comparison of the extracted user name."""
        return self.found and self.username is not None and self.username == username

    def as_dict(self) -> dict[str, str | None]:
        """Mapping view: ``{extracted_username: extracted_password}`` or ``{}``."""
        if not self.found or self.username is None:
            return {}
        return {self.username: self.password}
