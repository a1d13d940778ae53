# examiner_engine/core/__init__.py

"""
Core data structures and algorithms for examiner allocation
"""

from .roster import (
    Examiner,
    Student,
    AssignmentEdge,
    loads_from_edges,
    examiners_by_student,
)
from .capacity import (
    CapacityCalculator,
    CapacityReport,
    CapacitySummary,
    ExaminerCapacity,
)
from .assignment import (
    AssignmentEngine,
    AssignmentPlan,
    ProposedAssignment,
    UnfilledSlot,
)
from .validation import ValidationGate, ValidationVerdict
from .snapshot import (
    Snapshot,
    SnapshotEntry,
    SnapshotState,
    SnapshotStore,
    RestoreResult,
    RestoreStatus,
    UndoSummary,
)

__all__ = [
    # Roster model
    "Examiner",
    "Student",
    "AssignmentEdge",
    "loads_from_edges",
    "examiners_by_student",
    # Capacity
    "CapacityCalculator",
    "CapacityReport",
    "CapacitySummary",
    "ExaminerCapacity",
    # Assignment
    "AssignmentEngine",
    "AssignmentPlan",
    "ProposedAssignment",
    "UnfilledSlot",
    # Validation
    "ValidationGate",
    "ValidationVerdict",
    # Snapshot / undo
    "Snapshot",
    "SnapshotEntry",
    "SnapshotState",
    "SnapshotStore",
    "RestoreResult",
    "RestoreStatus",
    "UndoSummary",
]
