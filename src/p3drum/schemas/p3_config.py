"""
Master configuration for P3 Drum Machine (p3drum.toml).

Search order:
  1. explicit override path (--config)
  2. $XDG_CONFIG_HOME/p3drum/p3drum.toml
  3. ./p3drum.toml  (working directory)

If not found, all defaults apply silently.
"""

import os
import tomllib
from pydantic import BaseModel, Field
from typing import List

from p3drum.schemas.session import DEFAULT_BPM, MAX_BPM, MIN_BPM


class StorageConfig(BaseModel):
    root: str = ""  # Parent of P3DrumMachine/, empty for the platform default


class SessionDefaults(BaseModel):
    name: str = "New Session"
    bpm: float = Field(default=DEFAULT_BPM, ge=MIN_BPM, le=MAX_BPM)
    rows: int = Field(default=5, ge=1)
    columns: int = Field(default=8, ge=1)


class LibraryConfig(BaseModel):
    default_collections: List[str] = ["Drums", "Bass", "Synth"]
    user_imports: str = "User Imports"  # Collection that receives imported audio


class LoggingConfig(BaseModel):
    level: str = "WARNING"


class P3Config(BaseModel):
    storage: StorageConfig = StorageConfig()
    session: SessionDefaults = SessionDefaults()
    library: LibraryConfig = LibraryConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(override_path: str | None = None) -> P3Config:
    """
    Load p3drum.toml from the override path, XDG config dir, or cwd.
    Returns defaults if no file is found.
    """
    paths: list[str] = []

    if override_path:
        paths.append(override_path)

    # XDG_CONFIG_HOME (default ~/.config)
    xdg = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    paths.append(os.path.join(xdg, "p3drum", "p3drum.toml"))

    # Current working directory
    paths.append(os.path.join(os.getcwd(), "p3drum.toml"))

    for path in paths:
        if os.path.isfile(path):
            with open(path, "rb") as f:
                data = tomllib.load(f)
            return P3Config.model_validate(data)

    return P3Config()
