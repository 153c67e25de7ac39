"""Session persistence for P3 Drum Machine."""

from p3drum.storage.errors import (
    DirectoryNotFound,
    FileOperationFailed,
    InsufficientDiskSpace,
    InvalidSessionFile,
    SessionNotFound,
    StorageError,
)
from p3drum.storage.store import APP_DIR_NAME, SessionStore, default_base_dir

__all__ = [
    "APP_DIR_NAME",
    "DirectoryNotFound",
    "FileOperationFailed",
    "InsufficientDiskSpace",
    "InvalidSessionFile",
    "SessionNotFound",
    "SessionStore",
    "StorageError",
    "default_base_dir",
]
