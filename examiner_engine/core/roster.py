# examiner_engine/core/roster.py

"""
In-memory roster model: examiners with capacity and load, students with the
examiners already assigned to them, and the assignment edges between them.
The store owns the records; the engine only works on copies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Hashable, Iterable, List, Optional
from uuid import UUID
import logging

logger = logging.getLogger(__name__)


def _as_uuid(value: Any) -> Any:
    """Coerce UUID strings coming from the store; other ids pass through."""
    if isinstance(value, str):
        try:
            return UUID(value)
        except ValueError:
            return value
    return value


@dataclass
class Examiner:
    id: Hashable
    name: str = ""
    capacity: Optional[int] = None  # None means "use the system default"
    current_load: int = 0

    def effective_capacity(self, default_capacity: int) -> int:
        return default_capacity if self.capacity is None else self.capacity

    def available_slots(self, default_capacity: int) -> int:
        """Free slots, floored at zero for examiners at or above capacity."""
        return max(self.effective_capacity(default_capacity) - self.current_load, 0)

    def is_full(self, default_capacity: int) -> bool:
        return self.current_load >= self.effective_capacity(default_capacity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "capacity": self.capacity,
            "current_load": self.current_load,
        }

    @classmethod
    def from_backend_data(cls, data: Dict[str, Any]) -> "Examiner":
        capacity = data.get("capacity")
        return cls(
            id=_as_uuid(data["id"]),
            name=data.get("name", ""),
            capacity=int(capacity) if capacity is not None else None,
            current_load=int(data.get("current_load", 0)),
        )


@dataclass
class Student:
    id: Hashable
    name: str = ""
    # Insertion order is assignment order; values are unique
    assigned_examiner_ids: List[Hashable] = field(default_factory=list)

    def __post_init__(self):
        seen = set()
        unique: List[Hashable] = []
        for examiner_id in self.assigned_examiner_ids:
            if examiner_id in seen:
                logger.warning(
                    f"Student {self.id} lists examiner {examiner_id} twice; "
                    "keeping the first occurrence"
                )
                continue
            seen.add(examiner_id)
            unique.append(examiner_id)
        self.assigned_examiner_ids = unique

    @property
    def examiner_count(self) -> int:
        return len(self.assigned_examiner_ids)

    def has_examiner(self, examiner_id: Hashable) -> bool:
        return examiner_id in self.assigned_examiner_ids

    def missing(self, target_count: int) -> int:
        return max(target_count - self.examiner_count, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "assigned_examiner_ids": [str(e) for e in self.assigned_examiner_ids],
        }

    @classmethod
    def from_backend_data(cls, data: Dict[str, Any]) -> "Student":
        return cls(
            id=_as_uuid(data["id"]),
            name=data.get("name", ""),
            assigned_examiner_ids=[
                _as_uuid(e) for e in data.get("assigned_examiner_ids", [])
            ],
        )


@dataclass
class AssignmentEdge:
    id: Hashable
    student_id: Hashable
    examiner_id: Hashable
    created_at: Optional[datetime] = None

    @property
    def pair(self) -> tuple:
        return (self.student_id, self.examiner_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "student_id": str(self.student_id),
            "examiner_id": str(self.examiner_id),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


def loads_from_edges(edges: Iterable[AssignmentEdge]) -> Dict[Hashable, int]:
    """Count active edges per examiner."""
    loads: Dict[Hashable, int] = {}
    for edge in edges:
        loads[edge.examiner_id] = loads.get(edge.examiner_id, 0) + 1
    return loads


def examiners_by_student(
    edges: Iterable[AssignmentEdge],
) -> Dict[Hashable, List[Hashable]]:
    """Group examiner ids per student, keeping the order edges are given in."""
    grouped: Dict[Hashable, List[Hashable]] = {}
    for edge in edges:
        grouped.setdefault(edge.student_id, []).append(edge.examiner_id)
    return grouped
