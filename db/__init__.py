from .database import DatabaseManager
from .memory import (
    DatabaseBackend, InMemoryBackend, MemoryBackend, UserMemory,
    load_tracked, save_tracked,
)
from .models import TrackedMarket, UsageRecord

__all__ = [
    "DatabaseManager",
    "DatabaseBackend",
    "InMemoryBackend",
    "MemoryBackend",
    "UserMemory",
    "load_tracked",
    "save_tracked",
    "TrackedMarket",
    "UsageRecord",
]
