# backend/app/tests/conftest.py

import logging
import pytest
import pytest_asyncio
from typing import AsyncGenerator, Any, Dict, List, Optional
from uuid import UUID, uuid4
from datetime import datetime

from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from examiner_engine.core import AssignmentEdge, Examiner, SnapshotStore, Student

from backend.app.config import TestingSettings
from backend.app.core.exceptions import (
    AssignmentNotFoundError,
    DuplicateAssignmentError,
    ExaminerNotFoundError,
    NotAnExaminerError,
    NotAStudentError,
    StudentNotFoundError,
)
from backend.app.models import Base
from backend.app.services.examiner_assignment import ExaminerAssignmentService

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class InMemoryRoster:
    """Roster port backed by plain dicts, with helpers for arranging test data."""

    def __init__(self) -> None:
        self.users: Dict[UUID, Dict[str, Any]] = {}
        self.edges: List[AssignmentEdge] = []
        self.create_calls = 0

    # Arrangement helpers

    def add_examiner(
        self, name: str = "", capacity: Optional[int] = None, load: int = 0
    ) -> UUID:
        user_id = uuid4()
        self.users[user_id] = {
            "name": name or f"Examiner {len(self.users) + 1}",
            "role": "examiner",
            "max_students": capacity,
        }
        for _ in range(load):
            # Edges to students outside the roster, so only the load changes
            self._insert(uuid4(), user_id)
        return user_id

    def add_student(self, name: str = "", examiners: Optional[List[UUID]] = None) -> UUID:
        user_id = uuid4()
        self.users[user_id] = {
            "name": name or f"Student {len(self.users) + 1}",
            "role": "student",
            "max_students": None,
        }
        for examiner_id in examiners or []:
            self._insert(user_id, examiner_id)
        return user_id

    def remove_user(self, user_id: UUID) -> None:
        self.users.pop(user_id)
        self.edges = [
            e for e in self.edges if user_id not in (e.student_id, e.examiner_id)
        ]

    def load_of(self, examiner_id: UUID) -> int:
        return sum(1 for e in self.edges if e.examiner_id == examiner_id)

    def examiners_of(self, student_id: UUID) -> List[UUID]:
        return [e.examiner_id for e in self.edges if e.student_id == student_id]

    def pairs(self) -> set:
        return {e.pair for e in self.edges}

    def _insert(self, student_id: UUID, examiner_id: UUID) -> AssignmentEdge:
        edge = AssignmentEdge(
            id=uuid4(),
            student_id=student_id,
            examiner_id=examiner_id,
            created_at=datetime.utcnow(),
        )
        self.edges.append(edge)
        return edge

    def _user(self, user_id: Any, role: str, missing, wrong_role) -> Dict[str, Any]:
        user = self.users.get(user_id)
        if user is None:
            raise missing(user_id)
        if user["role"] != role:
            raise wrong_role(user_id)
        return user

    def _examiner(self, user_id: UUID) -> Examiner:
        user = self.users[user_id]
        return Examiner(
            id=user_id,
            name=user["name"],
            capacity=user["max_students"],
            current_load=self.load_of(user_id),
        )

    def _student(self, user_id: UUID) -> Student:
        return Student(
            id=user_id,
            name=self.users[user_id]["name"],
            assigned_examiner_ids=self.examiners_of(user_id),
        )

    # Port

    async def list_examiners(self) -> List[Examiner]:
        return [
            self._examiner(uid) for uid, u in self.users.items() if u["role"] == "examiner"
        ]

    async def list_students(self) -> List[Student]:
        return sorted(
            (
                self._student(uid)
                for uid, u in self.users.items()
                if u["role"] == "student"
            ),
            key=lambda s: s.name,
        )

    async def list_students_needing_examiners(self, target_count: int) -> List[Student]:
        return [s for s in await self.list_students() if s.examiner_count < target_count]

    async def get_examiner(self, examiner_id: Any) -> Examiner:
        self._user(examiner_id, "examiner", ExaminerNotFoundError, NotAnExaminerError)
        return self._examiner(examiner_id)

    async def get_student(self, student_id: Any) -> Student:
        self._user(student_id, "student", StudentNotFoundError, NotAStudentError)
        return self._student(student_id)

    async def create_edge(self, student_id: Any, examiner_id: Any) -> AssignmentEdge:
        self.create_calls += 1
        if student_id not in self.users:
            raise StudentNotFoundError(student_id)
        if examiner_id not in self.users:
            raise ExaminerNotFoundError(examiner_id)
        if (student_id, examiner_id) in self.pairs():
            raise DuplicateAssignmentError(
                student_id=student_id, examiner_id=examiner_id
            )
        return self._insert(student_id, examiner_id)

    async def delete_edge(self, edge_id: Any) -> None:
        for edge in self.edges:
            if edge.id == edge_id:
                self.edges.remove(edge)
                return
        raise AssignmentNotFoundError(edge_id)

    async def delete_edges_by_examiner(self, examiner_id: Any) -> int:
        before = len(self.edges)
        self.edges = [e for e in self.edges if e.examiner_id != examiner_id]
        return before - len(self.edges)

    async def delete_all_edges(self) -> int:
        count = len(self.edges)
        self.edges = []
        return count

    async def list_edges(
        self,
        student_id: Optional[Any] = None,
        examiner_id: Optional[Any] = None,
    ) -> List[AssignmentEdge]:
        return [
            e
            for e in self.edges
            if (student_id is None or e.student_id == student_id)
            and (examiner_id is None or e.examiner_id == examiner_id)
        ]

    async def set_examiner_capacity(self, examiner_id: Any, value: int) -> Examiner:
        self._user(examiner_id, "examiner", ExaminerNotFoundError, NotAnExaminerError)
        self.users[examiner_id]["max_students"] = value
        return self._examiner(examiner_id)


@pytest.fixture
def settings():
    return TestingSettings()


@pytest.fixture
def roster():
    return InMemoryRoster()


@pytest.fixture
def snapshots():
    return SnapshotStore()


@pytest.fixture
def service(roster, snapshots, settings):
    return ExaminerAssignmentService(roster, snapshots, settings=settings)


@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory SQLite database with all tables for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    async_session_maker = async_sessionmaker(
        test_engine, expire_on_commit=False, class_=AsyncSession
    )
    async with async_session_maker() as session:
        yield session
