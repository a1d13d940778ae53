# examiner_engine/core/capacity.py

"""
Examiner capacity statistics.
Derives per-examiner availability and the aggregate summary shown on the
administration view. Pure: nothing here mutates its input.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Hashable, List, Optional, Sequence
import logging

from ..config import AllocationConfig, config as default_config
from ..exceptions import InvalidCapacityError
from .roster import Examiner

logger = logging.getLogger(__name__)


@dataclass
class ExaminerCapacity:
    examiner_id: Hashable
    name: str
    capacity: int
    current_load: int
    available_slots: int
    is_full: bool
    load_percentage: int

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["examiner_id"] = str(self.examiner_id)
        return data


@dataclass
class CapacitySummary:
    total_examiners: int = 0
    full_examiners: int = 0
    available_examiners: int = 0
    total_capacity: int = 0
    total_assigned: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CapacityReport:
    examiners: List[ExaminerCapacity] = field(default_factory=list)
    summary: CapacitySummary = field(default_factory=CapacitySummary)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "examiners": [e.to_dict() for e in self.examiners],
            "summary": self.summary.to_dict(),
        }


class CapacityCalculator:
    """
    Computes available slots, fullness and load percentage per examiner.
    Capacity falls back to the configured default when the examiner has none;
    a zero or negative stored capacity is a data error, not a full examiner.
    """

    def __init__(self, allocation_config: Optional[AllocationConfig] = None):
        self.config = allocation_config or default_config

    def resolve_capacity(self, examiner: Examiner) -> int:
        capacity = examiner.effective_capacity(self.config.default_capacity)
        if capacity <= 0:
            raise InvalidCapacityError(examiner.id, capacity)
        return capacity

    def examiner_capacity(self, examiner: Examiner) -> ExaminerCapacity:
        capacity = self.resolve_capacity(examiner)
        load = examiner.current_load
        return ExaminerCapacity(
            examiner_id=examiner.id,
            name=examiner.name,
            capacity=capacity,
            current_load=load,
            available_slots=max(capacity - load, 0),
            is_full=load >= capacity,
            load_percentage=round(load / capacity * 100),
        )

    def summarize(self, rows: Sequence[ExaminerCapacity]) -> CapacitySummary:
        full = sum(1 for row in rows if row.is_full)
        return CapacitySummary(
            total_examiners=len(rows),
            full_examiners=full,
            available_examiners=len(rows) - full,
            total_capacity=sum(row.capacity for row in rows),
            total_assigned=sum(row.current_load for row in rows),
        )

    def build_report(
        self, examiners: Sequence[Examiner], sort_by_availability: bool = True
    ) -> CapacityReport:
        """Per-examiner rows plus totals; most available examiners first by default."""
        rows = [self.examiner_capacity(examiner) for examiner in examiners]
        if sort_by_availability:
            rows.sort(key=lambda row: row.available_slots, reverse=True)

        summary = self.summarize(rows)
        logger.debug(
            f"Capacity report: {summary.total_examiners} examiners, "
            f"{summary.full_examiners} full, "
            f"{summary.total_assigned}/{summary.total_capacity} slots used"
        )
        return CapacityReport(examiners=rows, summary=summary)
