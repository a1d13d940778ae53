# app/models/__init__.py

from .base import Base, TimestampMixin
from .users import User
from .assignments import ExaminerAssignment

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "ExaminerAssignment",
]
