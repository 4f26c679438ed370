# src/midiforge/errors.py
from __future__ import annotations
from typing import Any, Dict, Optional


class SmfError(Exception):
    """Base class for every codec failure. Carries the byte offset when known."""
    kind = "smf"

    def __init__(self, message: str, offset: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.offset = offset

    def __str__(self) -> str:
        if self.offset is None:
            return self.message
        return f"{self.message} (at byte {self.offset})"

    def as_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message, "offset": self.offset}


class FormatError(SmfError):
    kind = "format"


class TruncatedDataError(SmfError):
    kind = "truncated"


class RangeError(SmfError):
    kind = "range"
