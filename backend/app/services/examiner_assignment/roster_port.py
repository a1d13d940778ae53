# backend/app/services/examiner_assignment/roster_port.py

"""
Data-access port used by the examiner assignment service.

Any store that can answer these calls can back the service: the SQLAlchemy
implementation lives in ``services.data_retrieval.roster_data``. Failures are
reported with the application exceptions named on each method.
"""

from __future__ import annotations

from typing import Any, List, Optional, Protocol, runtime_checkable

from examiner_engine.core import AssignmentEdge, Examiner, Student


@runtime_checkable
class RosterPort(Protocol):
    async def list_examiners(self) -> List[Examiner]:
        """All examiners with their current load, in a stable order."""
        ...

    async def list_students(self) -> List[Student]:
        """All students with their examiners in assignment order."""
        ...

    async def list_students_needing_examiners(
        self, target_count: int
    ) -> List[Student]:
        """Students with fewer than ``target_count`` examiners."""
        ...

    async def get_examiner(self, examiner_id: Any) -> Examiner:
        """Raises ExaminerNotFoundError or NotAnExaminerError."""
        ...

    async def get_student(self, student_id: Any) -> Student:
        """Raises StudentNotFoundError or NotAStudentError."""
        ...

    async def create_edge(self, student_id: Any, examiner_id: Any) -> AssignmentEdge:
        """Raises DuplicateAssignmentError if the pair already exists, and the
        not-found errors when either endpoint is gone."""
        ...

    async def delete_edge(self, edge_id: Any) -> None:
        """Raises AssignmentNotFoundError."""
        ...

    async def delete_edges_by_examiner(self, examiner_id: Any) -> int: ...

    async def delete_all_edges(self) -> int: ...

    async def list_edges(
        self,
        student_id: Optional[Any] = None,
        examiner_id: Optional[Any] = None,
    ) -> List[AssignmentEdge]:
        """Edges matching the optional filters, oldest first."""
        ...

    async def set_examiner_capacity(self, examiner_id: Any, value: int) -> Examiner: ...
