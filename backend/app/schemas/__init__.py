# backend/app/schemas/__init__.py
"""Expose the Pydantic request and response models."""

from .examiner_assignment import (
    ValidateAssignmentRequest,
    ManualAssignRequest,
    RemoveAssignmentRequest,
    ResetExaminerRequest,
    UpdateCapacityRequest,
    ExaminerCapacityRead,
    CapacitySummaryRead,
    CapacityReportRead,
    CapacityUpdateResult,
    ValidationResult,
    AssignmentRead,
    CreatedAssignmentRead,
    UnfilledSlotRead,
    AutoAssignResult,
    ManualAssignResult,
    RemoveAssignmentResult,
    StudentExaminerRead,
    StudentAssignmentsRead,
    StudentAssignmentSummary,
    StudentRosterRead,
    ResetResult,
    RestoreItemRead,
    UndoResult,
)

__all__ = [
    "ValidateAssignmentRequest",
    "ManualAssignRequest",
    "RemoveAssignmentRequest",
    "ResetExaminerRequest",
    "UpdateCapacityRequest",
    "ExaminerCapacityRead",
    "CapacitySummaryRead",
    "CapacityReportRead",
    "CapacityUpdateResult",
    "ValidationResult",
    "AssignmentRead",
    "CreatedAssignmentRead",
    "UnfilledSlotRead",
    "AutoAssignResult",
    "ManualAssignResult",
    "RemoveAssignmentResult",
    "StudentExaminerRead",
    "StudentAssignmentsRead",
    "StudentAssignmentSummary",
    "StudentRosterRead",
    "ResetResult",
    "RestoreItemRead",
    "UndoResult",
]
