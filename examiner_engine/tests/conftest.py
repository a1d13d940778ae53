# examiner_engine/tests/conftest.py

"""
Pytest configuration and fixtures for allocation engine tests.
"""

import pytest
import logging
from uuid import uuid4

from examiner_engine.config import AllocationConfig
from examiner_engine.core.roster import Examiner, Student

# Configure logging for tests
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


@pytest.fixture
def allocation_config():
    """Default two-examiner, 25-student configuration"""
    return AllocationConfig(target_count=2, default_capacity=25)


@pytest.fixture
def make_examiner():
    """Factory for examiners with sequential display names"""
    counter = {"n": 0}

    def _make(capacity=25, current_load=0, name=None):
        counter["n"] += 1
        return Examiner(
            id=uuid4(),
            name=name or f"Examiner {counter['n']}",
            capacity=capacity,
            current_load=current_load,
        )

    return _make


@pytest.fixture
def make_student():
    """Factory for students with an optional existing panel"""
    counter = {"n": 0}

    def _make(assigned=None, name=None):
        counter["n"] += 1
        return Student(
            id=uuid4(),
            name=name or f"Student {counter['n']}",
            assigned_examiner_ids=list(assigned or []),
        )

    return _make
