# src/pulsegrid/errors.py

from __future__ import annotations


class PulsegridError(Exception):
    """Base class for errors raised by pulsegrid."""


class ValidationError(PulsegridError, ValueError):
    """Malformed or missing input to check ingestion. Nothing was written."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class StoreError(PulsegridError):
    """A read or write against one of the SQLite stores failed."""
