# examiner_engine/config.py

"""
Configuration module for the examiner allocation engine.
The engine never reads the environment; callers build an AllocationConfig
from their own settings and pass it in.
"""

from dataclasses import dataclass
import logging


# Number of examiners every student is expected to have
EXAMINERS_PER_STUDENT = 2

# Capacity used for examiners without an individual limit
DEFAULT_EXAMINER_CAPACITY = 25

# Administrative bounds for capacity overrides (inclusive)
MIN_EXAMINER_CAPACITY = 1
MAX_EXAMINER_CAPACITY = 100


@dataclass(frozen=True)
class AllocationConfig:
    """Parameters shared by the capacity calculator, engine and validation gate"""

    target_count: int = EXAMINERS_PER_STUDENT
    default_capacity: int = DEFAULT_EXAMINER_CAPACITY
    min_capacity: int = MIN_EXAMINER_CAPACITY
    max_capacity: int = MAX_EXAMINER_CAPACITY

    def __post_init__(self):
        if self.target_count < 1:
            raise ValueError("target_count must be at least 1")
        if not (
            1 <= self.min_capacity <= self.default_capacity <= self.max_capacity
        ):
            raise ValueError(
                "capacity bounds must satisfy 1 <= min <= default <= max "
                f"(got min={self.min_capacity}, default={self.default_capacity}, "
                f"max={self.max_capacity})"
            )

    def capacity_in_range(self, value: int) -> bool:
        return self.min_capacity <= value <= self.max_capacity


# Global default configuration instance
config = AllocationConfig()


def get_logger(name: str) -> logging.Logger:
    """Get a logger namespaced under the engine package"""
    return logging.getLogger(f"examiner_engine.{name}")
