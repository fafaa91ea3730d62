"""
Application-wide exception hierarchy.

Services raise these types; blueprints register handlers against them once
and get consistent HTTP status codes everywhere.

Usage:
    from tilawah.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Group", resource_id=42)
    raise ValidationError("Period must start on a Sunday", details={"start_date": "..."})
"""


class NotFoundError(Exception):
    """Raised when a referenced group, participant, period or assignment does not exist.

    Args:
        resource: Human-readable entity name (e.g. "Group", "Period").
        resource_id: The PK (or token) that was looked up. Included in logs.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input is well-formed but violates a business rule.

    Covers wrong start weekday, a second active period, an empty participant
    list, name collisions, out-of-range slots and edits to locked periods.

    Maps to HTTP 422 in blueprint error handlers.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class AlreadyLockedError(Exception):
    """Raised when locking a period that is already locked.

    Kept apart from ValidationError so callers can present "already closed"
    instead of a generic error. Maps to HTTP 409.
    """

    def __init__(self, period_id: int | None = None) -> None:
        self.period_id = period_id
        super().__init__("This period is already locked")
