# backend/app/services/__init__.py
"""
Services package for the application.

This package contains the business logic services that sit between the
allocation engine and the database layer.
"""

from .data_retrieval import RosterData
from .examiner_assignment import ExaminerAssignmentService, RosterPort

__all__ = [
    # Data Retrieval
    "RosterData",
    # Examiner assignment
    "ExaminerAssignmentService",
    "RosterPort",
]
