# examiner_engine/core/validation.py

"""Read-only capacity check run before adding students to an examiner."""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Hashable, Optional
import logging

from ..config import AllocationConfig, config as default_config
from .capacity import CapacityCalculator
from .roster import Examiner

logger = logging.getLogger(__name__)


@dataclass
class ValidationVerdict:
    valid: bool
    examiner_id: Hashable
    current_load: int
    capacity: int
    available_slots: int
    requested: int
    new_total: Optional[int] = None
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["examiner_id"] = str(self.examiner_id)
        return data


class ValidationGate:
    """Answers whether `requested` more students fit under an examiner's capacity."""

    def __init__(self, allocation_config: Optional[AllocationConfig] = None):
        self.config = allocation_config or default_config
        self.calculator = CapacityCalculator(self.config)

    def check(self, examiner: Examiner, requested: int) -> ValidationVerdict:
        if requested < 0:
            raise ValueError(f"requested must be non-negative, got {requested}")

        row = self.calculator.examiner_capacity(examiner)
        new_total = row.current_load + requested

        if new_total > row.capacity:
            return ValidationVerdict(
                valid=False,
                examiner_id=examiner.id,
                current_load=row.current_load,
                capacity=row.capacity,
                available_slots=row.available_slots,
                requested=requested,
                message=(
                    f"Cannot assign {requested} students. Examiner already has "
                    f"{row.current_load} students. Maximum is {row.capacity}."
                ),
            )

        return ValidationVerdict(
            valid=True,
            examiner_id=examiner.id,
            current_load=row.current_load,
            capacity=row.capacity,
            available_slots=row.available_slots,
            requested=requested,
            new_total=new_total,
            message="Assignment is valid",
        )

    def has_room(self, examiner: Examiner) -> bool:
        """True when at least one more student fits."""
        return self.check(examiner, 1).valid
