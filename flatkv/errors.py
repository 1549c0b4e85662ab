from enum import Enum


class ErrorKind(str, Enum):
    """Classification for store failures."""

    DECODE = "decode"
    ENCODE = "encode"
    IO = "io"
    TIMESTAMP = "timestamp"


class StoreError(Exception):
    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value} error: {self.message}"


class DecodeError(StoreError):
    kind = ErrorKind.DECODE


class EncodeError(StoreError):
    kind = ErrorKind.ENCODE


class StoreIOError(StoreError):
    kind = ErrorKind.IO


class TimestampParseError(StoreError):
    """Raised for backup names that aren't RFC3339 timestamps. Never leaves retention."""

    kind = ErrorKind.TIMESTAMP
