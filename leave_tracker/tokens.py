"""Identifiers and approval tokens.

A token is a bearer credential: whoever holds the approval link may decide
the group of entries it was issued for.
"""

from __future__ import annotations

import secrets
from typing import Any, Dict, Iterable, List


ID_BYTES = 12
TOKEN_BYTES = 24


def new_id() -> str:
    return secrets.token_hex(ID_BYTES)


def new_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


class TokenScope:
    """Resolve a token to the entries of the single group it addresses."""

    def __init__(self, entries: Iterable[Dict[str, Any]]) -> None:
        self._entries = list(entries)

    def resolve(self, token: str) -> List[Dict[str, Any]]:
        if not token:
            return []
        wanted = token.encode("utf-8")
        return [
            entry
            for entry in self._entries
            if isinstance(entry.get("token"), str)
            and secrets.compare_digest(entry["token"].encode("utf-8"), wanted)
        ]

    def record_ids(self, token: str) -> List[str]:
        return [entry["id"] for entry in self.resolve(token)]


__all__ = ["ID_BYTES", "TOKEN_BYTES", "TokenScope", "new_id", "new_token"]
