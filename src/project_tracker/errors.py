"""Error taxonomy shared by the query, mutation and controller layers."""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for every error raised by project-tracker."""


class ValidationError(TrackerError, ValueError):
    """Missing mandatory field, empty update or a value outside an allow-list."""


class NotFoundError(TrackerError, LookupError):
    def __init__(self, entity: str, entity_id: int) -> None:
        super().__init__(f"{entity.capitalize()} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConstraintError(TrackerError):
    """Integrity violation reported by the database engine."""
