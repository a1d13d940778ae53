# examiner_engine/exceptions.py

"""Errors raised by the allocation core. The service layer wraps these."""

from typing import Any, Optional


class AllocationError(Exception):
    """Base class for allocation engine failures."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}


class InsufficientExaminerPoolError(AllocationError):
    """Fewer examiners have free slots than one student needs.

    Raised before any assignment is proposed, so a run either starts with a
    viable pool or produces nothing.
    """

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            f"Need at least {required} examiners with available slots, "
            f"found {available}",
            required=required,
            available=available,
        )
        self.required = required
        self.available = available


class InvalidCapacityError(AllocationError):
    """An examiner record carries a capacity that cannot be used (zero or negative)."""

    def __init__(self, examiner_id: Any, capacity: Optional[int]) -> None:
        super().__init__(
            f"Examiner {examiner_id} has invalid capacity {capacity}",
            examiner_id=str(examiner_id),
            capacity=capacity,
        )
        self.examiner_id = examiner_id
        self.capacity = capacity


__all__ = [
    "AllocationError",
    "InsufficientExaminerPoolError",
    "InvalidCapacityError",
]
