# app/core/exceptions.py
"""Application-level exceptions used across the examiner assignment services.

Every exception carries metadata useful for service-level error handling,
logging, and translation into transport responses by whatever layer sits
above the services.

Design goals:
- Each exception is serializable via ``to_dict`` for API responses and logs.
- Exceptions include an explicit ``code`` and ``status_code`` so callers can
  phrase a precise message for each named condition.
- Provide helpers to attach contextual data and to wrap underlying exceptions.
"""
from __future__ import annotations

from typing import Optional, Any, Dict, List
from datetime import datetime


class AppError(Exception):
    """Base application exception with structured metadata.

    Attributes
    ----------
    message
        Human readable message.
    code
        Machine friendly error code (snake_case).
    status_code
        Suggested HTTP status code for API responses.
    details
        Arbitrary extra data useful for debugging or UX.
    timestamp
        UTC ISO timestamp when the exception was created.
    cause
        Optional underlying exception instance or string.
    context
        Optional lightweight context dict (ids, phase names, counts).
    """

    code: str = "app_error"
    status_code: int = 500

    def __init__(
        self,
        message: str = "An application error occurred",
        *,
        details: Optional[Any] = None,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.cause = cause
        self.context = context or {}
        self.timestamp = datetime.utcnow().isoformat() + "Z"

    def __str__(self) -> str:
        base = f"{self.__class__.__name__}({self.code}): {self.message}"
        if self.context:
            base += f" | context={self.context}"
        if self.details is not None:
            base += f" | details={self.details}"
        if self.cause is not None:
            base += f" | cause={repr(self.cause)}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Return a serializable representation suitable for API responses.

        Note: Do not include large or sensitive objects inside ``details`` or
        ``cause`` when sending to untrusted clients.
        """
        return {
            "error": {
                "type": self.__class__.__name__,
                "code": self.code,
                "message": self.message,
                "status_code": self.status_code,
                "details": self.details,
                "context": self.context,
                "timestamp": self.timestamp,
            }
        }

    def with_context(self, **ctx: Any) -> "AppError":
        """Return self after extending the context dict. Useful for chaining.

        Example:
        raise err.with_context(job_id=job_id)
        """
        self.context.update({k: v for k, v in ctx.items() if v is not None})
        return self




class RequestValidationError(AppError):
    """Raised when an operation receives a malformed request.

    Carries the individual field errors so callers can point at the
    offending input.
    """

    code = "invalid_request"
    status_code = 422

    def __init__(
        self,
        message: str = "Invalid request",
        *,
        validation_errors: Optional[List[Dict[str, Any]]] = None,
        details: Optional[Any] = None,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details, cause=cause, context=context)
        self.validation_errors = validation_errors or []

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["error"].update({"validation_errors": self.validation_errors})
        return data


class InvalidCapacityDataError(AppError):
    """Raised when a stored examiner capacity is zero or negative."""

    code = "invalid_capacity_data"
    status_code = 422


# --- Lookups ---


class _EntityLookupError(AppError):
    """Shared constructor for errors that name a single missing/wrong entity."""

    entity: str = "entity"
    default_message: str = "{entity} {id} not found"

    def __init__(
        self,
        entity_id: Optional[Any] = None,
        message: Optional[str] = None,
        *,
        details: Optional[Any] = None,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        msg = message or (
            self.default_message.format(entity=self.entity.capitalize(), id=entity_id)
            if entity_id is not None
            else f"{self.entity.capitalize()} not found"
        )
        super().__init__(msg, details=details, cause=cause, context=context)
        self.entity_id = entity_id
        if entity_id is not None:
            self.context.setdefault(f"{self.entity}_id", str(entity_id))


class ExaminerNotFoundError(_EntityLookupError):
    code = "examiner_not_found"
    status_code = 404
    entity = "examiner"


class NotAnExaminerError(_EntityLookupError):
    """The id exists but belongs to a user with another role."""

    code = "not_an_examiner"
    status_code = 400
    entity = "examiner"
    default_message = "User {id} is not an examiner"


class StudentNotFoundError(_EntityLookupError):
    code = "student_not_found"
    status_code = 404
    entity = "student"


class NotAStudentError(_EntityLookupError):
    code = "not_a_student"
    status_code = 400
    entity = "student"
    default_message = "User {id} is not a student"


class AssignmentNotFoundError(_EntityLookupError):
    code = "assignment_not_found"
    status_code = 404
    entity = "assignment"


# --- Conflicts ---


class AssignmentConflictError(AppError):
    """Base for requests rejected before mutation because of current state."""

    code = "assignment_conflict"
    status_code = 409

    def __init__(
        self,
        message: str = "Assignment conflicts with current state",
        *,
        student_id: Optional[Any] = None,
        examiner_id: Optional[Any] = None,
        details: Optional[Any] = None,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details, cause=cause, context=context)
        if student_id is not None:
            self.context.setdefault("student_id", str(student_id))
        if examiner_id is not None:
            self.context.setdefault("examiner_id", str(examiner_id))


class DuplicateAssignmentError(AssignmentConflictError):
    """The store already holds an edge for this (student, examiner) pair."""

    code = "duplicate_assignment"


class AlreadyAssignedError(AssignmentConflictError):
    code = "already_assigned"

    def __init__(self, student_id: Any, examiner_id: Any, **kwargs: Any) -> None:
        super().__init__(
            "Examiner already assigned to this student",
            student_id=student_id,
            examiner_id=examiner_id,
            **kwargs,
        )


class StudentAtTargetError(AssignmentConflictError):
    code = "student_at_target"

    def __init__(self, student_id: Any, target_count: int, **kwargs: Any) -> None:
        super().__init__(
            f"Student already has {target_count} examiners",
            student_id=student_id,
            **kwargs,
        )
        self.target_count = target_count
        self.context.setdefault("target_count", target_count)


class ExaminerAtCapacityError(AssignmentConflictError):
    code = "examiner_at_capacity"

    def __init__(
        self, examiner_id: Any, capacity: int, current_load: int, **kwargs: Any
    ) -> None:
        super().__init__(
            f"Examiner already has {current_load} students "
            f"(maximum capacity {capacity})",
            examiner_id=examiner_id,
            **kwargs,
        )
        self.capacity = capacity
        self.current_load = current_load
        self.context.setdefault("capacity", capacity)
        self.context.setdefault("current_load", current_load)


class BelowCurrentLoadError(AssignmentConflictError):
    code = "below_current_load"

    def __init__(
        self, examiner_id: Any, requested_capacity: int, current_load: int, **kwargs: Any
    ) -> None:
        super().__init__(
            f"Cannot set capacity to {requested_capacity}. Examiner currently "
            f"has {current_load} students assigned.",
            examiner_id=examiner_id,
            **kwargs,
        )
        self.requested_capacity = requested_capacity
        self.current_load = current_load
        self.context.setdefault("requested_capacity", requested_capacity)
        self.context.setdefault("current_load", current_load)


class CapacityOutOfRangeError(AppError):
    code = "capacity_out_of_range"
    status_code = 422

    def __init__(
        self, requested_capacity: Any, minimum: int, maximum: int, **kwargs: Any
    ) -> None:
        super().__init__(
            f"Capacity must be between {minimum} and {maximum}", **kwargs
        )
        self.requested_capacity = requested_capacity
        self.minimum = minimum
        self.maximum = maximum
        self.context.update(
            {"requested_capacity": requested_capacity, "min": minimum, "max": maximum}
        )


# --- Run-level outcomes ---


class InsufficientExaminersError(AppError):
    """Auto-assignment refused because too few examiners have free slots.

    Nothing is created when this is raised.
    """

    code = "insufficient_examiners"
    status_code = 400

    def __init__(
        self,
        required: int,
        available: int,
        message: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message
            or f"Not enough examiners available: need at least {required} "
            f"examiners with available slots, found {available}",
            **kwargs,
        )
        self.required = required
        self.available = available
        self.context.setdefault("required", required)
        self.context.setdefault("available", available)


class NothingToUndoError(AppError):
    """No reset snapshot is held. An expected outcome, not a fault."""

    code = "nothing_to_undo"
    status_code = 400

    def __init__(
        self,
        message: str = "There is no previous assignment operation to restore",
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)


__all__ = [
    "AppError",
    "RequestValidationError",
    "InvalidCapacityDataError",
    "ExaminerNotFoundError",
    "NotAnExaminerError",
    "StudentNotFoundError",
    "NotAStudentError",
    "AssignmentNotFoundError",
    "AssignmentConflictError",
    "DuplicateAssignmentError",
    "AlreadyAssignedError",
    "StudentAtTargetError",
    "ExaminerAtCapacityError",
    "BelowCurrentLoadError",
    "CapacityOutOfRangeError",
    "InsufficientExaminersError",
    "NothingToUndoError",
]
