"""Owner-level in-memory locks for catalog mutations.

BucketManager takes the owner's lock around "create directory + insert row"
and "remove directory + delete row" so two requests from the same owner do
not interleave those steps.

Note: These locks only work within a single process/instance. Across
processes the (owner_id, name) unique constraint is the only guard: the
losing writer gets a ConflictError.
"""

from __future__ import annotations

import asyncio

# Key: owner_id, Value: asyncio.Lock
_owner_locks: dict[str, asyncio.Lock] = {}
_owner_locks_lock = asyncio.Lock()


async def get_owner_lock(owner_id: str) -> asyncio.Lock:
    """Get or create the catalog lock for an owner.

    Args:
        owner_id: The owner to get lock for

    Returns:
        asyncio.Lock for the specified owner
    """
    async with _owner_locks_lock:
        if owner_id not in _owner_locks:
            _owner_locks[owner_id] = asyncio.Lock()
        return _owner_locks[owner_id]


def get_lock_count() -> int:
    """Get current number of locks (for testing/metrics)."""
    return len(_owner_locks)
