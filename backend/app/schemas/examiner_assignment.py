# backend/app/schemas/examiner_assignment.py
from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, StrictInt
from typing import Optional, List
from uuid import UUID
from datetime import datetime


MODEL_CONFIG = ConfigDict(from_attributes=True)


# --- Requests ---


class ValidateAssignmentRequest(BaseModel):
    examiner_id: UUID
    student_ids: List[UUID] = Field(default_factory=list)


class ManualAssignRequest(BaseModel):
    student_id: UUID
    examiner_id: UUID


class RemoveAssignmentRequest(BaseModel):
    assignment_id: UUID


class ResetExaminerRequest(BaseModel):
    examiner_id: UUID


class UpdateCapacityRequest(BaseModel):
    """Range bounds come from settings, so only the type is checked here."""

    examiner_id: UUID
    max_students: StrictInt


# --- Capacity ---


class ExaminerCapacityRead(BaseModel):
    model_config = MODEL_CONFIG

    examiner_id: UUID
    name: str
    capacity: int
    current_load: int
    available_slots: int
    is_full: bool
    load_percentage: int


class CapacitySummaryRead(BaseModel):
    model_config = MODEL_CONFIG

    total_examiners: int
    full_examiners: int
    available_examiners: int
    total_capacity: int
    total_assigned: int


class CapacityReportRead(BaseModel):
    model_config = MODEL_CONFIG

    examiners: List[ExaminerCapacityRead]
    summary: CapacitySummaryRead


class CapacityUpdateResult(BaseModel):
    examiner: ExaminerCapacityRead
    message: str


class ValidationResult(BaseModel):
    model_config = MODEL_CONFIG

    valid: bool
    examiner_id: UUID
    current_load: int
    capacity: int
    available_slots: int
    requested: int
    new_total: Optional[int] = None
    message: str


# --- Assignments ---


class AssignmentRead(BaseModel):
    model_config = MODEL_CONFIG

    id: UUID
    student_id: UUID
    examiner_id: UUID
    created_at: Optional[datetime] = None


class CreatedAssignmentRead(AssignmentRead):
    student_name: str = ""
    examiner_name: str = ""


class UnfilledSlotRead(BaseModel):
    model_config = MODEL_CONFIG

    student_id: UUID
    student_name: str
    missing: int
    reason: str


class AutoAssignResult(BaseModel):
    assigned_count: int
    assignments: List[CreatedAssignmentRead] = Field(default_factory=list)
    unfilled: List[UnfilledSlotRead] = Field(default_factory=list)
    students_considered: int = 0
    message: str


class ManualAssignResult(BaseModel):
    assignment: CreatedAssignmentRead
    message: str


class RemoveAssignmentResult(BaseModel):
    assignment_id: UUID
    message: str


# --- Student roster view ---


class StudentExaminerRead(BaseModel):
    assignment_id: Optional[UUID] = None
    examiner_id: UUID
    examiner_name: str = ""


class StudentAssignmentsRead(BaseModel):
    student_id: UUID
    name: str
    examiners: List[StudentExaminerRead] = Field(default_factory=list)
    examiner_count: int
    missing: int


class StudentAssignmentSummary(BaseModel):
    total_students: int
    without_examiners: int
    partially_assigned: int
    fully_assigned: int


class StudentRosterRead(BaseModel):
    students: List[StudentAssignmentsRead]
    summary: StudentAssignmentSummary


# --- Reset / undo ---


class ResetResult(BaseModel):
    reset_count: int
    can_undo: bool
    message: str
    examiner_id: Optional[UUID] = None
    examiner_name: Optional[str] = None


class RestoreItemRead(BaseModel):
    edge_id: UUID
    student_id: UUID
    examiner_id: UUID
    status: str
    reason: Optional[str] = None
    new_edge_id: Optional[UUID] = None


class UndoResult(BaseModel):
    restored_count: int
    skipped_count: int
    results: List[RestoreItemRead] = Field(default_factory=list)
    can_undo: bool = False
    message: str
