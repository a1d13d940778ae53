# app/models/assignments.py

import uuid
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .users import User


class ExaminerAssignment(Base, TimestampMixin):
    """One (student, examiner) edge."""

    __tablename__ = "examiner_assignments"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "examiner_id", name="uq_examiner_assignments_pair"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # Client-side stamp with microseconds; panel order follows creation order
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    examiner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    student: Mapped["User"] = relationship(
        back_populates="examined_by", foreign_keys=[student_id]
    )
    examiner: Mapped["User"] = relationship(
        back_populates="examining", foreign_keys=[examiner_id]
    )
