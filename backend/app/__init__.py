# backend/app/__init__.py

"""Main application package for the examiner assignment backend."""

# Core
from .core import (
    AppError,
    InsufficientExaminersError,
    NothingToUndoError,
)

# Services
from .services import (
    ExaminerAssignmentService,
    RosterData,
    RosterPort,
)

__all__ = [
    # Core
    "AppError",
    "InsufficientExaminersError",
    "NothingToUndoError",
    # Services
    "ExaminerAssignmentService",
    "RosterData",
    "RosterPort",
]
