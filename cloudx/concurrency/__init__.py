"""Concurrency utilities for CloudX."""

from cloudx.concurrency.locks import get_lock_count, get_owner_lock

__all__ = ["get_owner_lock", "get_lock_count"]
