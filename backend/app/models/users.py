# app/models/users.py

import uuid
from typing import TYPE_CHECKING, List
from sqlalchemy import Boolean, Integer, String, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .assignments import ExaminerAssignment


class User(Base, TimestampMixin):
    """Any account in the system; examiners and students are told apart by role."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    login_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    # Individual examiner capacity; NULL falls back to the configured default
    max_students: Mapped[int | None] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    examining: Mapped[List["ExaminerAssignment"]] = relationship(
        back_populates="examiner",
        foreign_keys="ExaminerAssignment.examiner_id",
        cascade="all, delete-orphan",
    )
    examined_by: Mapped[List["ExaminerAssignment"]] = relationship(
        back_populates="student",
        foreign_keys="ExaminerAssignment.student_id",
        cascade="all, delete-orphan",
        order_by="ExaminerAssignment.created_at",
    )
