# backend/app/services/examiner_assignment/__init__.py
"""Examiner allocation service and the roster port it depends on."""

from .roster_port import RosterPort
from .examiner_assignment_service import ExaminerAssignmentService, parse_request

__all__ = ["ExaminerAssignmentService", "RosterPort", "parse_request"]
