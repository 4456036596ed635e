"""Engine error taxonomy."""

from __future__ import annotations


class EngineError(Exception):
    """Base class for errors raised by the analysis engine."""


class ValidationError(EngineError):
    """Malformed or empty required input."""


class NotFoundError(EngineError):
    """A referenced incident, rule, or user does not exist."""


class StorageError(EngineError):
    """A persistence call to an external store failed."""
