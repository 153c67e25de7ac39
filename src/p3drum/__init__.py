"""P3 Drum Machine: pad grid sessions and their on-disk store."""

__version__ = "0.1.0"
