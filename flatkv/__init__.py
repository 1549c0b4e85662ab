from .backups import MAX_BACKUPS, Backup
from .config import Settings, get_settings
from .errors import (
    DecodeError,
    EncodeError,
    ErrorKind,
    StoreError,
    StoreIOError,
    TimestampParseError,
)
from .flat_file import FlatFileStore, load, prune, save

__all__ = [
    "MAX_BACKUPS",
    "Backup",
    "DecodeError",
    "EncodeError",
    "ErrorKind",
    "FlatFileStore",
    "Settings",
    "StoreError",
    "StoreIOError",
    "TimestampParseError",
    "get_settings",
    "load",
    "prune",
    "save",
]
