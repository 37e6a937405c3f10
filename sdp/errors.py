"""Typed query errors returned by every adapter operation."""

from __future__ import annotations

from enum import Enum


class ErrorType(str, Enum):
    NOTFOUND = "NOTFOUND"  # nothing there
    NOSCOPE = "NOSCOPE"  # adapter does not serve the requested scope
    OTHER = "OTHER"  # couldn't ask: API, mapping, or parsing failure
    TIMEOUT = "TIMEOUT"  # context cancelled or deadline exceeded


class QueryError(Exception):
    """Raised when a Get, List or Search cannot produce a result.

    Carries enough context (scope, type, adapter name) for a caller to tell
    "nothing there" apart from "couldn't ask".
    """

    def __init__(
        self,
        error_type: ErrorType,
        error_string: str,
        scope: str | None = None,
        source_name: str | None = None,
        item_type: str | None = None,
    ) -> None:
        super().__init__(error_string)
        self.error_type = error_type
        self.error_string = error_string
        self.scope = scope
        self.source_name = source_name
        self.item_type = item_type

    def __str__(self) -> str:
        parts = [f"{self.error_type.value}: {self.error_string}"]
        if self.scope:
            parts.append(f"scope={self.scope}")
        if self.item_type:
            parts.append(f"type={self.item_type}")
        if self.source_name:
            parts.append(f"adapter={self.source_name}")
        return " ".join(parts)

    def to_dict(self) -> dict:
        return {
            "error_type": self.error_type.value,
            "error_string": self.error_string,
            "scope": self.scope,
            "source_name": self.source_name,
            "item_type": self.item_type,
        }
