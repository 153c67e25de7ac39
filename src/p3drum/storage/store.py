"""
On-disk session store.

Layout under the base directory (``<root>/P3DrumMachine``):

    Sessions/<session-id>.json
    Samples/<session-id>/<sample-filename>
    Recordings/<session-id>/<recording-filename>

Session files are replaced atomically: the JSON is written to a hidden temp
file in the same directory, fsynced, then renamed over the old file, and the
directory is fsynced on POSIX so the rename itself is durable. Writes
are atomic per file only; nothing here spans several files.
"""

import contextlib
import errno
import logging
import os
import shutil
import sys
import tempfile
from pathlib import Path
from typing import List
from uuid import UUID, uuid4

from pydantic import ValidationError

from p3drum.schemas.session import Session, SessionSummary
from p3drum.storage.errors import (
    DirectoryNotFound,
    FileOperationFailed,
    InsufficientDiskSpace,
    InvalidSessionFile,
    SessionNotFound,
    StorageError,
)

logger = logging.getLogger(__name__)

APP_DIR_NAME = "P3DrumMachine"
SESSIONS_DIR = "Sessions"
SAMPLES_DIR = "Samples"
RECORDINGS_DIR = "Recordings"


def default_base_dir(root: str | Path | None = None) -> Path:
    """Resolve ``<root>/P3DrumMachine``.

    Without ``root`` the platform's per-user data directory is used:
    ~/Library/Application Support on macOS, %APPDATA% on Windows and
    $XDG_DATA_HOME (default ~/.local/share) elsewhere.
    """
    if root:
        return Path(root).expanduser() / APP_DIR_NAME
    try:
        if sys.platform == "darwin":
            base = Path.home() / "Library" / "Application Support"
        elif sys.platform.startswith("win"):
            appdata = os.environ.get("APPDATA")
            base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
        else:
            xdg = os.environ.get("XDG_DATA_HOME")
            base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    except RuntimeError as e:
        raise DirectoryNotFound() from e
    return base / APP_DIR_NAME


def _wrap_os_error(e: OSError, detail: str) -> StorageError:
    if e.errno == errno.ENOSPC:
        return InsufficientDiskSpace()
    return FileOperationFailed(f"{detail}: {e}")


def _creation_time(path: Path) -> float | None:
    """Birth time where the platform records it, else modification time."""
    try:
        st = path.stat()
    except OSError:
        return None
    birth = getattr(st, "st_birthtime", None)
    return birth if birth is not None else st.st_mtime


def _fsync_directory(directory: Path):
    """Flush a directory entry so a rename inside it survives power loss."""
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


class SessionStore:
    """Durable storage for sessions, imported samples and recordings.

    The directory structure is created on construction. A failure there is
    logged rather than raised; operations that need a missing directory
    raise ``DirectoryNotFound`` later.
    """

    def __init__(self, base_dir: str | Path | None = None):
        self._base_dir: Path | None
        try:
            self._base_dir = (
                Path(base_dir) if base_dir is not None else default_base_dir()
            )
        except DirectoryNotFound as e:
            logger.warning("No usable storage root: %s", e)
            self._base_dir = None

        try:
            self.create_directory_structure()
        except StorageError as e:
            logger.warning("Failed to create directory structure: %s", e)

    # --- Directories ---

    @property
    def base_dir(self) -> Path:
        if self._base_dir is None:
            raise DirectoryNotFound()
        return self._base_dir

    @property
    def sessions_dir(self) -> Path:
        return self.base_dir / SESSIONS_DIR

    @property
    def samples_dir(self) -> Path:
        return self.base_dir / SAMPLES_DIR

    @property
    def recordings_dir(self) -> Path:
        return self.base_dir / RECORDINGS_DIR

    def session_file_path(self, session_id: UUID) -> Path:
        return self.sessions_dir / f"{session_id}.json"

    def session_samples_dir(self, session_id: UUID) -> Path:
        return self.samples_dir / str(session_id)

    def session_recordings_dir(self, session_id: UUID) -> Path:
        return self.recordings_dir / str(session_id)

    def _ensure_dir(self, directory: Path) -> bool:
        """Create ``directory`` if needed. Returns True if it was created."""
        if directory.is_dir():
            return False
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryNotFound(directory) from e
        return True

    def create_directory_structure(self):
        for directory in (
            self.base_dir,
            self.sessions_dir,
            self.samples_dir,
            self.recordings_dir,
        ):
            if self._ensure_dir(directory):
                logger.info("Created directory: %s", directory)

    def create_session_directories(self, session_id: UUID):
        self._ensure_dir(self.session_samples_dir(session_id))
        self._ensure_dir(self.session_recordings_dir(session_id))

    # --- Sessions ---

    def save_session(self, session: Session):
        """Write ``session`` to Sessions/<id>.json, replacing any previous file."""
        path = self.session_file_path(session.id)
        self.create_session_directories(session.id)
        self._ensure_dir(path.parent)
        self._atomic_write(path, session.to_json().encode("utf-8"))
        logger.info("Saved session: %s (%s)", session.name, session.id)

    def load_session(self, session_id: UUID) -> Session:
        path = self.session_file_path(session_id)
        if not path.is_file():
            raise SessionNotFound(session_id)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise FileOperationFailed(f"read {path.name}: {e}") from e

        try:
            session = Session.from_json(data)
        except ValidationError as e:
            raise InvalidSessionFile(path, f"{e.error_count()} error(s)") from e
        if session.id != session_id:
            raise InvalidSessionFile(path, f"file holds session {session.id}")

        logger.info("Loaded session: %s (%s)", session.name, session.id)
        return session

    def list_sessions(self) -> List[SessionSummary]:
        """Summaries of every readable session, most recently modified first.

        Files that fail to load are logged and skipped.
        """
        directory = self.sessions_dir
        if not directory.is_dir():
            return []
        try:
            paths = [
                p
                for p in directory.iterdir()
                if p.suffix == ".json" and not p.name.startswith(".")
            ]
        except OSError as e:
            raise FileOperationFailed(f"list {directory}: {e}") from e

        summaries: List[SessionSummary] = []
        for path in paths:
            try:
                session_id = UUID(path.stem)
            except ValueError:
                logger.warning("Skipping %s: not a session file name", path.name)
                continue
            try:
                session = self.load_session(session_id)
            except StorageError as e:
                logger.warning(
                    "Failed to load session summary from %s: %s", path.name, e
                )
                continue
            summaries.append(SessionSummary.from_session(session))

        summaries.sort(key=lambda s: s.modified_at, reverse=True)
        return summaries

    def delete_session(self, session_id: UUID):
        """Remove the session file and its sample and recording directories."""
        path = self.session_file_path(session_id)
        try:
            if path.exists():
                path.unlink()
            for directory in (
                self.session_samples_dir(session_id),
                self.session_recordings_dir(session_id),
            ):
                if directory.exists():
                    shutil.rmtree(directory)
        except OSError as e:
            raise FileOperationFailed(f"delete session {session_id}: {e}") from e
        logger.info("Deleted session: %s", session_id)

    def session_exists(self, session_id: UUID) -> bool:
        try:
            return self.session_file_path(session_id).is_file()
        except (StorageError, OSError):
            return False

    # --- Samples ---

    def import_audio_file(
        self, source: str | Path, session_id: UUID, name: str | None = None
    ) -> Path:
        """Copy ``source`` into Samples/<session_id>/ and return the new path.

        The copy is stored as ``name`` (default: the source file name). An
        existing file is never overwritten: if the name is taken, the copy is
        stored as "<uuid>_<name>" instead.
        """
        source = Path(source)
        if not source.is_file():
            raise FileOperationFailed(f"source not found: {source}")
        filename = name or source.name
        if Path(filename).name != filename or filename in (".", ".."):
            raise FileOperationFailed(f"invalid file name: {filename!r}")

        self.create_session_directories(session_id)
        size = self.file_size(source)
        free = self.available_disk_space()
        if size is not None and free is not None and size > free:
            raise InsufficientDiskSpace(size, free)

        target_dir = self.session_samples_dir(session_id)
        destination = target_dir / filename
        try:
            self._copy_exclusive(source, destination)
        except FileExistsError:
            destination = target_dir / f"{uuid4()}_{filename}"
            try:
                self._copy_exclusive(source, destination)
            except FileExistsError as e:
                raise FileOperationFailed(
                    f"copy {source.name}: {destination.name} already exists"
                ) from e

        logger.info("Imported audio: %s", destination.name)
        return destination

    def delete_audio_file(self, path: str | Path):
        path = Path(path)
        try:
            if path.exists():
                path.unlink()
                logger.info("Deleted audio file: %s", path.name)
        except OSError as e:
            raise FileOperationFailed(f"delete {path.name}: {e}") from e

    # --- Recordings ---

    def recording_file_path(self, session_id: UUID, filename: str) -> Path:
        return self.session_recordings_dir(session_id) / filename

    def list_recordings(self, session_id: UUID) -> List[Path]:
        """Recording files for a session, newest first.

        Files whose creation time cannot be read come last, by name.
        """
        directory = self.session_recordings_dir(session_id)
        if not directory.is_dir():
            return []
        try:
            files = [
                p
                for p in directory.iterdir()
                if p.is_file() and not p.name.startswith(".")
            ]
        except OSError as e:
            raise FileOperationFailed(f"list {directory}: {e}") from e

        dated: list[tuple[float, Path]] = []
        undated: list[Path] = []
        for path in files:
            created = _creation_time(path)
            if created is None:
                undated.append(path)
            else:
                dated.append((created, path))
        dated.sort(key=lambda item: item[0], reverse=True)
        return [p for _, p in dated] + sorted(undated)

    # --- Filesystem probes ---

    def file_size(self, path: str | Path) -> int | None:
        try:
            return os.path.getsize(path)
        except OSError:
            return None

    def available_disk_space(self) -> int | None:
        try:
            probe = self.base_dir
            while not probe.exists() and probe != probe.parent:
                probe = probe.parent
            return shutil.disk_usage(probe).free
        except (StorageError, OSError):
            return None

    # --- Internals ---

    def _atomic_write(self, path: Path, data: bytes):
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
        except OSError as e:
            raise _wrap_os_error(e, f"write {path.name}") from e
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            if os.name == "posix":
                _fsync_directory(path.parent)
        except OSError as e:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise _wrap_os_error(e, f"write {path.name}") from e

    def _copy_exclusive(self, source: Path, destination: Path):
        """Copy without ever replacing ``destination``; FileExistsError if taken."""
        created = False
        try:
            with open(source, "rb") as src:
                with open(destination, "xb") as dst:
                    created = True
                    shutil.copyfileobj(src, dst)
        except FileExistsError:
            raise
        except OSError as e:
            if created:
                with contextlib.suppress(OSError):
                    destination.unlink()
            raise _wrap_os_error(e, f"copy {source.name}") from e
