# examiner_engine/core/assignment.py

"""
Greedy least-loaded examiner assignment.

Students below the target examiner count are processed in input order. For
each missing slot the pool is scanned, least loaded first, for an examiner
with a free slot who is not already on the student's panel. The pool is
re-sorted after every single proposal so that one student taking two
examiners from a small pool still spreads the load.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Optional, Sequence
import logging

from ..config import AllocationConfig, config as default_config
from ..exceptions import InsufficientExaminerPoolError
from .capacity import CapacityCalculator
from .roster import Examiner, Student

logger = logging.getLogger(__name__)


@dataclass
class ProposedAssignment:
    student_id: Hashable
    examiner_id: Hashable
    student_name: str = ""
    examiner_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "student_id": str(self.student_id),
            "student_name": self.student_name,
            "examiner_id": str(self.examiner_id),
            "examiner_name": self.examiner_name,
        }


@dataclass
class UnfilledSlot:
    """A student the run could not bring up to target."""

    student_id: Hashable
    student_name: str
    missing: int
    reason: str = "no_eligible_examiner"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "student_id": str(self.student_id),
            "student_name": self.student_name,
            "missing": self.missing,
            "reason": self.reason,
        }


@dataclass
class AssignmentPlan:
    assignments: List[ProposedAssignment] = field(default_factory=list)
    unfilled: List[UnfilledSlot] = field(default_factory=list)
    students_considered: int = 0

    @property
    def count(self) -> int:
        return len(self.assignments)

    @property
    def is_complete(self) -> bool:
        return not self.unfilled

    def to_dict(self) -> Dict[str, Any]:
        return {
            "assigned": self.count,
            "assignments": [a.to_dict() for a in self.assignments],
            "unfilled": [u.to_dict() for u in self.unfilled],
            "students_considered": self.students_considered,
        }


@dataclass
class _PoolEntry:
    examiner_id: Hashable
    name: str
    current_load: int
    available_slots: int


class AssignmentEngine:
    """Deterministic single-pass assignment of examiners to students."""

    def __init__(self, allocation_config: Optional[AllocationConfig] = None):
        self.config = allocation_config or default_config
        self.calculator = CapacityCalculator(self.config)

    @property
    def target_count(self) -> int:
        return self.config.target_count

    def students_needing_examiners(
        self, students: Sequence[Student]
    ) -> List[Student]:
        return [s for s in students if s.examiner_count < self.target_count]

    def build_pool(self, examiners: Sequence[Examiner]) -> List[_PoolEntry]:
        """Working copy of the examiners with free slots, least loaded first.

        The copy belongs to a single run; sort is stable so equal loads keep
        input order.
        """
        pool = []
        for examiner in examiners:
            row = self.calculator.examiner_capacity(examiner)
            if row.available_slots > 0:
                pool.append(
                    _PoolEntry(
                        examiner_id=examiner.id,
                        name=examiner.name,
                        current_load=row.current_load,
                        available_slots=row.available_slots,
                    )
                )
        pool.sort(key=lambda entry: entry.current_load)
        return pool

    def plan(
        self, examiners: Sequence[Examiner], students: Sequence[Student]
    ) -> AssignmentPlan:
        """Propose the edges needed to bring every student up to target.

        Raises InsufficientExaminerPoolError when fewer examiners than the
        target count have any free slot; in that case nothing is proposed.
        """
        needing = self.students_needing_examiners(students)
        if not needing:
            logger.info("All students already have their examiners; nothing to do")
            return AssignmentPlan()

        pool = self.build_pool(examiners)
        if len(pool) < self.target_count:
            raise InsufficientExaminerPoolError(
                required=self.target_count, available=len(pool)
            )

        plan = AssignmentPlan(students_considered=len(needing))

        for student in needing:
            panel = list(student.assigned_examiner_ids)
            needed = self.target_count - len(panel)

            for _ in range(needed):
                candidate = next(
                    (
                        entry
                        for entry in pool
                        if entry.available_slots > 0
                        and entry.examiner_id not in panel
                    ),
                    None,
                )
                if candidate is None:
                    break

                plan.assignments.append(
                    ProposedAssignment(
                        student_id=student.id,
                        examiner_id=candidate.examiner_id,
                        student_name=student.name,
                        examiner_name=candidate.name,
                    )
                )
                candidate.available_slots -= 1
                candidate.current_load += 1
                panel.append(candidate.examiner_id)

                pool.sort(key=lambda entry: entry.current_load)

            missing = self.target_count - len(panel)
            if missing > 0:
                logger.warning(
                    f"No eligible examiner left for student {student.id}; "
                    f"{missing} slot(s) unfilled"
                )
                plan.unfilled.append(
                    UnfilledSlot(
                        student_id=student.id,
                        student_name=student.name,
                        missing=missing,
                    )
                )

        logger.info(
            f"Planned {plan.count} assignments for {plan.students_considered} "
            f"students ({len(plan.unfilled)} left short)"
        )
        return plan
