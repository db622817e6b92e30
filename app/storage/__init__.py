# In-memory storage for clinic entities

from app.storage.exceptions import InvalidStatusTransition, StorageError, UsernameAlreadyExists
from app.storage.repository import Storage
from app.storage.seed import seed_demo_data
from app.storage.session_store import MemorySessionStore

__all__ = [
    "Storage",
    "MemorySessionStore",
    "seed_demo_data",
    "StorageError",
    "UsernameAlreadyExists",
    "InvalidStatusTransition",
]
