"""
Module: ids.py
Description: Random identifiers for FIFO deduplication ids.

Ids are RFC 4122 version 4 UUIDs drawn from the operating system's
CSPRNG through the secrets module.
"""

import secrets
import uuid
from typing import Iterable, Set


def new_uuid(hyphenated: bool = False) -> str:
    """
    Generate a random (version 4) UUID string.

    Args:
        hyphenated: Render as 8-4-4-4-12 groups instead of 32 hex digits

    Returns:
        Lowercase hex representation of the UUID
    """
    # UUID(version=4) forces the RFC 4122 variant bits and the version nibble
    value = uuid.UUID(bytes=secrets.token_bytes(16), version=4)
    return str(value) if hyphenated else value.hex


class DeduplicationIdGenerator:
    """
    Mints deduplication ids that are unique within one run.

    Values already issued, or observed on source messages via observe(),
    are never handed out.
    """

    def __init__(self, hyphenated: bool = False):
        self.hyphenated = hyphenated
        self._seen: Set[str] = set()

    def observe(self, values: Iterable[str]) -> None:
        """Record ids that must not be issued (e.g. source message dedup ids)."""
        for value in values:
            if value:
                self._seen.add(value)

    def __call__(self) -> str:
        value = new_uuid(self.hyphenated)
        while value in self._seen:
            value = new_uuid(self.hyphenated)
        self._seen.add(value)
        return value
