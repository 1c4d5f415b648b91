"""Adapters - I/O implementations of ports."""

from .json_store import JsonTaskStore, StoreError, TaskNotFoundError

__all__ = [
    "JsonTaskStore",
    "StoreError",
    "TaskNotFoundError",
]
