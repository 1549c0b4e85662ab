import logging
import os
from contextlib import suppress
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, TypeVar, Union

from flatkv.backups import (
    MAX_BACKUPS,
    Backup,
    create_backup,
    list_backups,
    parse_timestamp,
    prune_backups,
)
from flatkv.codec import decode_line, encode_record
from flatkv.config import Settings, get_settings
from flatkv.errors import DecodeError, EncodeError, StoreIOError, TimestampParseError

logger = logging.getLogger(__name__)

V = TypeVar("V")

STORE_FILENAME = "memory.db"
BACKUPS_DIRNAME = "backups"
TMP_SUFFIX = ".tmp"


def _local_now() -> datetime:
    return datetime.now().astimezone()


def read_store(path: Path) -> dict[str, Any]:
    """Read a store file into a dict. A missing file is an empty store."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except UnicodeDecodeError as exc:
        raise DecodeError(f"{path} is not valid UTF-8: {exc}") from exc
    except OSError as exc:
        raise StoreIOError(f"cannot read {path}: {exc}") from exc

    data = {}
    for lineno, line in enumerate(text.split("\n"), start=1):
        record = decode_line(line, lineno)
        if record is None:
            if line.strip():
                logger.debug("Skipping line %d of %s: no separator", lineno, path)
            continue
        key, value = record
        data[key] = value
    logger.debug(
        "Loaded %d key(s) from %s",
        len(data),
        path,
        extra={"event_type": "store_loaded", "path": str(path), "keys": len(data)},
    )
    return data


def write_store(
    path: Path,
    data: Mapping[str, Any],
    backups_dir: Path,
    max_backups: int = MAX_BACKUPS,
    moment: Optional[datetime] = None,
) -> Backup:
    """Persist ``data`` to ``path``, keeping a backup of what was there before.

    Old backups are pruned first, leaving room for the new one, so a
    failure there leaves the live file untouched. The new content is staged
    in a sibling temp file and renamed over the live file once it is complete.
    """
    prune_backups(backups_dir, max_backups, reserve=1)
    tmp_path = path.with_name(path.name + TMP_SUFFIX)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tmp_path.open("wt", encoding="utf-8", newline="") as f:
            if not path.exists():
                path.touch()
            backup = create_backup(path, backups_dir, moment or _local_now())
            for key, value in data.items():
                f.write(encode_record(key, value))
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError as exc:
        _discard(tmp_path)
        raise StoreIOError(f"cannot save {path}: {exc}") from exc
    except EncodeError:
        _discard(tmp_path)
        raise
    logger.debug(
        "Saved %d key(s) to %s",
        len(data),
        path,
        extra={"event_type": "store_saved", "path": str(path), "keys": len(data)},
    )
    return backup


def _discard(tmp_path: Path):
    # The original error is the one worth reporting
    with suppress(OSError):
        tmp_path.unlink(missing_ok=True)


def load(root: Union[str, Path]) -> dict[str, Any]:
    return read_store(Path(root) / STORE_FILENAME)


def save(
    root: Union[str, Path],
    data: Mapping[str, Any],
    max_backups: int = MAX_BACKUPS,
    moment: Optional[datetime] = None,
) -> Backup:
    root = Path(root)
    return write_store(root / STORE_FILENAME, data, root / BACKUPS_DIRNAME, max_backups, moment)


def prune(root: Union[str, Path], max_backups: int = MAX_BACKUPS) -> list[Backup]:
    return prune_backups(Path(root) / BACKUPS_DIRNAME, max_backups)


class FlatFileStore(dict[str, V]):
    """A dict that can be saved to and reloaded from a directory.

    Layout under ``path``::

        memory.db          one ``key=<json>`` line per entry
        memory.db.tmp      only present while a save is in progress
        backups/<RFC3339>  copy of memory.db taken at each save

    Nothing is written until the first :meth:`save`.
    """

    def __init__(
        self,
        path: Union[str, Path],
        max_backups: int = MAX_BACKUPS,
        clock: Optional[Callable[[], datetime]] = None,
        store_filename: str = STORE_FILENAME,
        backups_dirname: str = BACKUPS_DIRNAME,
    ):
        super().__init__()
        if max_backups < 1:
            raise ValueError("max_backups must be at least 1")
        self._path = Path(path)
        self._max_backups = max_backups
        self._clock = clock or _local_now
        self._store_filename = store_filename
        self._backups_dirname = backups_dirname
        self.reload()

    def __repr__(self) -> str:
        return f"({len(self)})<FlatFileStore@{self._path}>"

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs) -> "FlatFileStore":
        """Build a store from ``settings``; keyword arguments take precedence."""
        settings = settings or get_settings()
        options = {
            "max_backups": settings.max_backups,
            "store_filename": settings.store_filename,
            "backups_dirname": settings.backups_dirname,
        }
        options.update(kwargs)
        return cls(settings.root, **options)

    @property
    def store_path(self) -> Path:
        return self._path / self._store_filename

    @property
    def tmp_path(self) -> Path:
        return self.store_path.with_name(self._store_filename + TMP_SUFFIX)

    @property
    def backups_path(self) -> Path:
        return self._path / self._backups_dirname

    def reload(self):
        data = read_store(self.store_path)
        self.clear()
        self.update(data)

    def save(self) -> Backup:
        return write_store(
            self.store_path, self, self.backups_path, self._max_backups, self._clock()
        )

    def prune(self) -> list[Backup]:
        return prune_backups(self.backups_path, self._max_backups)

    def backups(self) -> list[Backup]:
        return list_backups(self.backups_path)

    def restore(self, backup: Union[Backup, str]):
        """Replace the in-memory content with that of a backup.

        Nothing is written; call :meth:`save` to make the restored state live.
        """
        name = backup.name if isinstance(backup, Backup) else backup
        try:
            parse_timestamp(name)
        except TimestampParseError as exc:
            raise StoreIOError(f"{name!r} is not a backup name") from exc
        backup_path = self.backups_path / name
        if not backup_path.is_file():
            raise StoreIOError(f"no backup named {name!r} in {self.backups_path}")
        data = read_store(backup_path)
        self.clear()
        self.update(data)
