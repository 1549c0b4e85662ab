"""Timestamped snapshots of the live file and their retention.

Each backup is a full copy of the live file named by the moment it was taken,
as an RFC3339 timestamp with a UTC offset. The name is the only thing retention
looks at: backups are ordered by the parsed timestamp, never by mtime.
"""
import logging
import re
import shutil
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path

from flatkv.errors import StoreIOError, TimestampParseError

logger = logging.getLogger(__name__)

MAX_BACKUPS = 10

# RFC3339 section 5.6 date-time, which is narrower than what fromisoformat takes
RFC3339 = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})")


@dataclass(frozen=True, order=True)
class Backup:
    timestamp: datetime
    path: Path

    @property
    def name(self) -> str:
        return self.path.name


def format_timestamp(moment: datetime) -> str:
    return moment.isoformat(timespec="microseconds")


def parse_timestamp(name: str) -> datetime:
    if not RFC3339.fullmatch(name):
        raise TimestampParseError(f"{name!r} is not an RFC3339 timestamp")
    try:
        moment = datetime.fromisoformat(name)
    except ValueError as exc:
        raise TimestampParseError(f"{name!r} is not an RFC3339 timestamp") from exc
    return moment


def list_backups(backups_dir: Path) -> list[Backup]:
    """Backups in ``backups_dir``, oldest first.

    Entries whose names don't parse as timestamps are left alone: they are not
    counted and never deleted.
    """
    try:
        entries = [entry for entry in backups_dir.iterdir() if entry.is_file()]
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise StoreIOError(f"cannot list backups in {backups_dir}: {exc}") from exc

    backups = []
    for entry in entries:
        try:
            backups.append(Backup(parse_timestamp(entry.name), entry))
        except TimestampParseError as exc:
            logger.warning("Ignoring %s: %s", entry, exc.message)
    return sorted(backups)


def prune_backups(
    backups_dir: Path, max_backups: int = MAX_BACKUPS, reserve: int = 0
) -> list[Backup]:
    """Delete the oldest backups until at most ``max_backups - reserve`` remain.

    Saves pass ``reserve=1`` to make room for the backup they are about to take.
    """
    if max_backups < 1:
        raise ValueError("max_backups must be at least 1")
    backups = list_backups(backups_dir)
    expired = backups[: max(len(backups) - (max_backups - reserve), 0)]
    for backup in expired:
        try:
            backup.path.unlink()
        except OSError as exc:
            raise StoreIOError(f"cannot remove backup {backup.path}: {exc}") from exc
    if expired:
        logger.info(
            "Pruned %d backup(s) from %s",
            len(expired),
            backups_dir,
            extra={
                "event_type": "backups_pruned",
                "path": str(backups_dir),
                "backups_pruned": len(expired),
            },
        )
    return expired


def create_backup(source: Path, backups_dir: Path, moment: datetime) -> Backup:
    """Copy ``source`` into ``backups_dir`` under the name of ``moment``.

    A name already taken is moved forward by a microsecond until it is free.
    """
    backups_dir.mkdir(parents=True, exist_ok=True)
    target = backups_dir / format_timestamp(moment)
    while target.exists():
        moment += timedelta(microseconds=1)
        target = backups_dir / format_timestamp(moment)
    shutil.copyfile(source, target)
    return Backup(moment, target)
