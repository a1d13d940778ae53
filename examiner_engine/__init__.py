# examiner_engine/__init__.py

"""
Examiner Allocation Engine

Capacity-constrained assignment of examiners to students: greedy
least-loaded matching, capacity statistics, pre-flight validation and a
single-slot snapshot for undoing resets.
"""

from .config import (
    AllocationConfig,
    EXAMINERS_PER_STUDENT,
    DEFAULT_EXAMINER_CAPACITY,
    MIN_EXAMINER_CAPACITY,
    MAX_EXAMINER_CAPACITY,
    config,
    get_logger,
)
from .exceptions import (
    AllocationError,
    InsufficientExaminerPoolError,
    InvalidCapacityError,
)
from .core import (
    Examiner,
    Student,
    AssignmentEdge,
    CapacityCalculator,
    CapacityReport,
    AssignmentEngine,
    AssignmentPlan,
    ValidationGate,
    ValidationVerdict,
    SnapshotStore,
    UndoSummary,
)

__version__ = "1.0.0"

__all__ = [
    # Configuration
    "AllocationConfig",
    "EXAMINERS_PER_STUDENT",
    "DEFAULT_EXAMINER_CAPACITY",
    "MIN_EXAMINER_CAPACITY",
    "MAX_EXAMINER_CAPACITY",
    "config",
    "get_logger",
    # Errors
    "AllocationError",
    "InsufficientExaminerPoolError",
    "InvalidCapacityError",
    # Core components
    "Examiner",
    "Student",
    "AssignmentEdge",
    "CapacityCalculator",
    "CapacityReport",
    "AssignmentEngine",
    "AssignmentPlan",
    "ValidationGate",
    "ValidationVerdict",
    "SnapshotStore",
    "UndoSummary",
]

logger = get_logger("main")
logger.debug(f"Examiner allocation engine {__version__} loaded")
