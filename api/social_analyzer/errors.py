"""Domain errors raised by the service layer."""

from __future__ import annotations


class AnalyzerError(Exception):
    """Base class for all errors surfaced to callers."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(AnalyzerError):
    """A referenced user, post, tag or analysis does not exist."""

    def __init__(self, entity_type: str, entity_id: object) -> None:
        super().__init__(f"{entity_type.capitalize()} {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class DuplicateKey(AnalyzerError):
    """A unique constraint (username, email, tag name) would be violated."""

    def __init__(self, entity_type: str, field: str, value: object) -> None:
        super().__init__(f"{entity_type.capitalize()} with {field} {value!r} already exists")
        self.entity_type = entity_type
        self.field = field
        self.value = value


class OutOfRange(AnalyzerError):
    """A numeric value lies outside its declared bounds."""

    def __init__(self, field: str, value: object, low: object, high: object) -> None:
        super().__init__(f"{field} must be between {low} and {high}, got {value}")
        self.field = field
        self.value = value
        self.low = low
        self.high = high


class Conflict(AnalyzerError):
    """A concurrent write won the race; the operation can be retried."""


class InvalidTransition(AnalyzerError):
    """A post's processing status cannot move to the requested state."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(f"Cannot move processing status from {current!r} to {requested!r}")
        self.current = current
        self.requested = requested


class ScorerUnavailable(AnalyzerError):
    """No scoring function is configured or it cannot be imported."""


class InvalidField(AnalyzerError):
    """A non-numeric field is empty, too long or not one of its allowed values."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"{field} {reason}")
        self.field = field
