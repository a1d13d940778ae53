# backend/app/core/__init__.py

from ..config import get_settings
from .exceptions import (
    AppError,
    RequestValidationError,
    InvalidCapacityDataError,
    ExaminerNotFoundError,
    NotAnExaminerError,
    StudentNotFoundError,
    NotAStudentError,
    AssignmentNotFoundError,
    AssignmentConflictError,
    DuplicateAssignmentError,
    AlreadyAssignedError,
    StudentAtTargetError,
    ExaminerAtCapacityError,
    BelowCurrentLoadError,
    CapacityOutOfRangeError,
    InsufficientExaminersError,
    NothingToUndoError,
)


__all__ = [
    "get_settings",  # Export the function, not a settings instance
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
