"""Errors raised by the session store."""

from pathlib import Path
from uuid import UUID


class StorageError(Exception):
    """Base class for session store failures."""


class DirectoryNotFound(StorageError):
    def __init__(self, path: Path | str | None = None):
        self.path = path
        where = f": {path}" if path is not None else ""
        super().__init__(f"Could not locate application directory{where}")


class SessionNotFound(StorageError):
    def __init__(self, session_id: UUID):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class InvalidSessionFile(StorageError):
    """The session file exists but is not valid JSON or not a valid session."""

    def __init__(self, path: Path | str, detail: str = ""):
        self.path = path
        self.detail = detail
        msg = f"Session file is invalid or corrupted: {path}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class InsufficientDiskSpace(StorageError):
    def __init__(self, required: int | None = None, available: int | None = None):
        self.required = required
        self.available = available
        msg = "Insufficient disk space"
        if required is not None and available is not None:
            msg += f": need {required} bytes, {available} available"
        super().__init__(msg)


class FileOperationFailed(StorageError):
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"File operation failed: {detail}")
