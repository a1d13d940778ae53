# backend/app/services/data_retrieval/roster_data.py

"""
SQLAlchemy implementation of the roster port: examiners, students and the
examiner assignment edges between them.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from examiner_engine.core import AssignmentEdge, Examiner, Student

from ...config import Settings, get_settings
from ...core.exceptions import (
    AssignmentNotFoundError,
    DuplicateAssignmentError,
    ExaminerNotFoundError,
    NotAnExaminerError,
    NotAStudentError,
    StudentNotFoundError,
)
from ...models import ExaminerAssignment, User

logger = logging.getLogger(__name__)


def _to_uuid(value: Any) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))


def _edge_from_row(row: ExaminerAssignment) -> AssignmentEdge:
    return AssignmentEdge(
        id=row.id,
        student_id=row.student_id,
        examiner_id=row.examiner_id,
        created_at=row.created_at,
    )


class RosterData:
    """Reads the roster and persists assignment edges through an AsyncSession.

    With ``autocommit`` (the default) every mutation is committed on its own,
    so a long auto-assign run leaves each created edge durable as it goes.
    Pass ``autocommit=False`` to leave transaction control to the caller.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Optional[Settings] = None,
        autocommit: bool = True,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.autocommit = autocommit
        self.examiner_role = self.settings.EXAMINER_ROLE
        self.student_role = self.settings.STUDENT_ROLE
        logger.debug("RosterData initialized with session")

    async def _finish(self) -> None:
        if self.autocommit:
            await self.session.commit()
        else:
            await self.session.flush()

    async def _get_user(self, user_id: Any) -> Optional[User]:
        try:
            key = _to_uuid(user_id)
        except ValueError:
            return None
        return await self.session.get(User, key)

    # Reads

    async def list_examiners(self) -> List[Examiner]:
        load = func.count(ExaminerAssignment.id).label("current_load")
        stmt = (
            select(User, load)
            .outerjoin(ExaminerAssignment, ExaminerAssignment.examiner_id == User.id)
            .where(func.lower(User.role) == self.examiner_role)
            .group_by(User.id)
            .order_by(User.name, User.id)
        )
        result = await self.session.execute(stmt)
        return [
            Examiner(
                id=user.id,
                name=user.name,
                capacity=user.max_students,
                current_load=int(current_load),
            )
            for user, current_load in result.all()
        ]

    async def list_students(self) -> List[Student]:
        stmt = (
            select(User)
            .where(func.lower(User.role) == self.student_role)
            .order_by(User.name, User.id)
        )
        users = (await self.session.execute(stmt)).scalars().all()

        panels: Dict[UUID, List[UUID]] = {user.id: [] for user in users}
        for edge in await self.list_edges():
            if edge.student_id in panels:
                panels[edge.student_id].append(edge.examiner_id)

        return [
            Student(id=user.id, name=user.name, assigned_examiner_ids=panels[user.id])
            for user in users
        ]

    async def list_students_needing_examiners(
        self, target_count: int
    ) -> List[Student]:
        students = await self.list_students()
        return [s for s in students if s.examiner_count < target_count]

    async def get_examiner(self, examiner_id: Any) -> Examiner:
        user = await self._get_user(examiner_id)
        if user is None:
            raise ExaminerNotFoundError(examiner_id)
        if (user.role or "").lower() != self.examiner_role:
            raise NotAnExaminerError(examiner_id)

        count_stmt = select(func.count(ExaminerAssignment.id)).where(
            ExaminerAssignment.examiner_id == user.id
        )
        current_load = (await self.session.execute(count_stmt)).scalar_one()
        return Examiner(
            id=user.id,
            name=user.name,
            capacity=user.max_students,
            current_load=int(current_load),
        )

    async def get_student(self, student_id: Any) -> Student:
        user = await self._get_user(student_id)
        if user is None:
            raise StudentNotFoundError(student_id)
        if (user.role or "").lower() != self.student_role:
            raise NotAStudentError(student_id)

        edges = await self.list_edges(student_id=user.id)
        return Student(
            id=user.id,
            name=user.name,
            assigned_examiner_ids=[edge.examiner_id for edge in edges],
        )

    async def list_edges(
        self,
        student_id: Optional[Any] = None,
        examiner_id: Optional[Any] = None,
    ) -> List[AssignmentEdge]:
        stmt = select(ExaminerAssignment)
        if student_id is not None:
            stmt = stmt.where(ExaminerAssignment.student_id == _to_uuid(student_id))
        if examiner_id is not None:
            stmt = stmt.where(ExaminerAssignment.examiner_id == _to_uuid(examiner_id))
        stmt = stmt.order_by(ExaminerAssignment.created_at, ExaminerAssignment.id)

        rows = (await self.session.execute(stmt)).scalars().all()
        return [_edge_from_row(row) for row in rows]

    # Writes

    async def create_edge(self, student_id: Any, examiner_id: Any) -> AssignmentEdge:
        student = await self._get_user(student_id)
        if student is None:
            raise StudentNotFoundError(student_id)
        examiner = await self._get_user(examiner_id)
        if examiner is None:
            raise ExaminerNotFoundError(examiner_id)

        if await self._pair_exists(student.id, examiner.id):
            raise DuplicateAssignmentError(
                "Examiner already assigned to this student",
                student_id=student.id,
                examiner_id=examiner.id,
            )

        row = ExaminerAssignment(student_id=student.id, examiner_id=examiner.id)
        try:
            # Savepoint: a lost race undoes this insert only, not the caller's work
            async with self.session.begin_nested():
                self.session.add(row)
        except IntegrityError as e:
            raise DuplicateAssignmentError(
                "Examiner already assigned to this student",
                student_id=student.id,
                examiner_id=examiner.id,
                cause=e,
            ) from e

        await self._finish()
        logger.debug(f"Created examiner assignment {row.id}")
        return _edge_from_row(row)

    async def _pair_exists(self, student_id: UUID, examiner_id: UUID) -> bool:
        existing = await self.session.execute(
            select(ExaminerAssignment.id).where(
                ExaminerAssignment.student_id == student_id,
                ExaminerAssignment.examiner_id == examiner_id,
            )
        )
        return existing.first() is not None

    async def delete_edge(self, edge_id: Any) -> None:
        row = None
        try:
            row = await self.session.get(ExaminerAssignment, _to_uuid(edge_id))
        except ValueError:
            pass
        if row is None:
            raise AssignmentNotFoundError(edge_id)

        await self.session.delete(row)
        await self._finish()

    async def delete_edges_by_examiner(self, examiner_id: Any) -> int:
        result = await self.session.execute(
            delete(ExaminerAssignment).where(
                ExaminerAssignment.examiner_id == _to_uuid(examiner_id)
            )
        )
        await self._finish()
        return int(result.rowcount or 0)

    async def delete_all_edges(self) -> int:
        result = await self.session.execute(delete(ExaminerAssignment))
        await self._finish()
        return int(result.rowcount or 0)

    async def set_examiner_capacity(self, examiner_id: Any, value: int) -> Examiner:
        user = await self._get_user(examiner_id)
        if user is None:
            raise ExaminerNotFoundError(examiner_id)
        if (user.role or "").lower() != self.examiner_role:
            raise NotAnExaminerError(examiner_id)

        user.max_students = value
        await self._finish()
        return await self.get_examiner(user.id)
