from .base import Base, metadata_obj
from .storage_entry import StorageEntry

__all__ = [
    "metadata_obj",
    "Base",
    "StorageEntry",
]
