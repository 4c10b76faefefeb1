"""Deduplication tokens identifying who a response belongs to.

A registered user answering for themself and a name typed in by someone else
live in separate namespaces, so ``self:<digest>`` and ``for:<digest>`` can
never collide even if the digests did.
"""

from __future__ import annotations

import hashlib

from ..errors import InvalidInput

SELF_PREFIX = "self:"
NAMED_PREFIX = "for:"


def token_for_self(user_id: int) -> str:
    if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
        raise InvalidInput(f"user_id must be a positive integer, got {user_id!r}")
    return SELF_PREFIX + _digest(str(user_id))


def token_for_named(display_name: str) -> str:
    if not display_name:
        raise InvalidInput("display_name must not be empty")
    return NAMED_PREFIX + _digest(display_name.lower())


def _digest(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()
