"""Caller identity.

Identity is derived per request by the auth gate and passed explicitly to
every manager/service call. It is never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Identity:
    user_id: str
    email: str = ""
    display_name: str = ""
    is_admin: bool = False

    # Request-scoped: capabilities of the credential used and, for issued
    # keys, the id of the authenticating ApiKey row (None for the master key).
    permissions: tuple[str, ...] = field(default_factory=tuple)
    key_id: str | None = None
