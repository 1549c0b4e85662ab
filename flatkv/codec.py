import json
from typing import Any, Optional

from flatkv.errors import DecodeError, EncodeError

SEPARATOR = "="


def encode_record(key: str, value: Any) -> str:
    """Serialize one entry as ``key=<json>`` plus a trailing newline."""
    if not isinstance(key, str):
        raise EncodeError(f"key {key!r} is not a string")
    if SEPARATOR in key or "\n" in key or "\r" in key:
        raise EncodeError(f"key {key!r} contains '=' or a line break")
    if key != key.strip():
        raise EncodeError(f"key {key!r} has surrounding whitespace")
    try:
        encoded = json.dumps(value)
    except (TypeError, ValueError) as exc:
        raise EncodeError(f"value for key {key!r} is not JSON serializable: {exc}") from exc
    return f"{key}{SEPARATOR}{encoded}\n"


def decode_line(line: str, lineno: Optional[int] = None) -> Optional[tuple[str, Any]]:
    """Parse one line of a store file.

    Returns None for lines that carry no record (blank, or no separator).
    """
    key, sep, raw = line.partition(SEPARATOR)
    if not sep:
        return None
    try:
        value = json.loads(raw.strip())
    except json.JSONDecodeError as exc:
        where = f"line {lineno}" if lineno is not None else "line"
        raise DecodeError(f"{where}: invalid value for key {key.strip()!r}: {exc}") from exc
    return key.strip(), value
