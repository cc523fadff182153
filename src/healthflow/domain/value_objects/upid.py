"""
UPID value object for type-safe patient identification.
Format: 12 characters from A-Z and 0-9
"""

import re
import secrets
import string
from dataclasses import dataclass
from typing import Any

UPID_ALPHABET = string.ascii_uppercase + string.digits
UPID_LENGTH = 12
_UPID_PATTERN = re.compile(r"^[A-Z0-9]{12}$")


@dataclass(frozen=True)
class Upid:
    """Immutable unique patient identifier value object."""

    value: str

    def __post_init__(self) -> None:
        """Validate UPID format."""
        if not isinstance(self.value, str):
            raise ValueError("UPID must be a string")

        if not self.value:
            raise ValueError("UPID cannot be empty")

        if not _UPID_PATTERN.match(self.value):
            raise ValueError("UPID must be exactly 12 characters from A-Z and 0-9")

    def __str__(self) -> str:
        """String representation."""
        return self.value

    def __eq__(self, other: Any) -> bool:
        """Equality comparison."""
        if not isinstance(other, Upid):
            return False
        return self.value == other.value

    def __hash__(self) -> int:
        """Hash for use in sets and dictionaries."""
        return hash(self.value)

    @classmethod
    def generate(cls) -> "Upid":
        """Generate a new random UPID."""
        return cls("".join(secrets.choice(UPID_ALPHABET) for _ in range(UPID_LENGTH)))

    @classmethod
    def parse(cls, raw: str) -> "Upid":
        """Build a UPID from user input (surrounding whitespace and case are ignored)."""
        if not isinstance(raw, str):
            raise ValueError("UPID must be a string")
        return cls(raw.strip().upper())
