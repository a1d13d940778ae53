# backend/app/tests/integration/test_roster_data.py

"""
RosterData against an in-memory SQLite database, plus the service running on
top of it.
"""

import pytest
import pytest_asyncio
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from examiner_engine.core import SnapshotStore

from backend.app.core.exceptions import (
    AlreadyAssignedError,
    AssignmentNotFoundError,
    DuplicateAssignmentError,
    ExaminerNotFoundError,
    NotAnExaminerError,
    NotAStudentError,
    StudentNotFoundError,
)
from backend.app.models import User
from backend.app.services import ExaminerAssignmentService, RosterData, RosterPort

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def people(db_session: AsyncSession):
    users = {
        "ann": User(name="Ann", login_id="ann", role="examiner", max_students=3),
        "ben": User(name="Ben", login_id="ben", role="Examiner"),
        "cat": User(name="Cat", login_id="cat", role="examiner", max_students=1),
        "ada": User(name="Ada", login_id="ada", role="student"),
        "bob": User(name="Bob", login_id="bob", role="student"),
        "cy": User(name="Cy", login_id="cy", role="student"),
    }
    db_session.add_all(users.values())
    await db_session.commit()
    return {key: user.id for key, user in users.items()}


@pytest.fixture
def roster_data(db_session, settings):
    return RosterData(db_session, settings=settings)


class TestRosterData:
    async def test_implements_port(self, roster_data):
        assert isinstance(roster_data, RosterPort)

    async def test_list_examiners_with_loads(self, roster_data, people):
        await roster_data.create_edge(people["ada"], people["ann"])
        await roster_data.create_edge(people["bob"], people["ann"])

        examiners = await roster_data.list_examiners()

        assert [e.name for e in examiners] == ["Ann", "Ben", "Cat"]
        by_name = {e.name: e for e in examiners}
        assert by_name["Ann"].current_load == 2
        assert by_name["Ann"].capacity == 3
        assert by_name["Ben"].capacity is None
        assert by_name["Ben"].current_load == 0

    async def test_students_keep_assignment_order(self, roster_data, people):
        await roster_data.create_edge(people["ada"], people["cat"])
        await roster_data.create_edge(people["ada"], people["ann"])

        student = await roster_data.get_student(people["ada"])
        needing = await roster_data.list_students_needing_examiners(2)

        assert student.assigned_examiner_ids == [people["cat"], people["ann"]]
        assert [s.name for s in needing] == ["Bob", "Cy"]

    async def test_duplicate_pair_is_rejected(self, roster_data, people):
        await roster_data.create_edge(people["ada"], people["ann"])

        with pytest.raises(DuplicateAssignmentError):
            await roster_data.create_edge(people["ada"], people["ann"])

        assert len(await roster_data.list_edges()) == 1

    async def test_constraint_violation_keeps_earlier_uncommitted_edges(
        self, db_session, settings, people, monkeypatch
    ):
        roster_data = RosterData(db_session, settings=settings, autocommit=False)
        await roster_data.create_edge(people["ada"], people["ann"])
        await roster_data.create_edge(people["bob"], people["ann"])

        # A concurrent insert of the same pair is invisible to the pre-check
        async def pair_not_found(student_id, examiner_id):
            return False

        monkeypatch.setattr(roster_data, "_pair_exists", pair_not_found)

        with pytest.raises(DuplicateAssignmentError):
            await roster_data.create_edge(people["bob"], people["ann"])

        pairs = {e.pair for e in await roster_data.list_edges()}
        assert pairs == {
            (people["ada"], people["ann"]),
            (people["bob"], people["ann"]),
        }

    async def test_lookups_check_role(self, roster_data, people):
        with pytest.raises(NotAnExaminerError):
            await roster_data.get_examiner(people["ada"])
        with pytest.raises(NotAStudentError):
            await roster_data.get_student(people["ann"])
        with pytest.raises(ExaminerNotFoundError):
            await roster_data.get_examiner(uuid4())
        with pytest.raises(StudentNotFoundError):
            await roster_data.create_edge(uuid4(), people["ann"])

    async def test_deletes(self, roster_data, people):
        first = await roster_data.create_edge(people["ada"], people["ann"])
        await roster_data.create_edge(people["bob"], people["ann"])
        await roster_data.create_edge(people["bob"], people["ben"])

        await roster_data.delete_edge(first.id)
        with pytest.raises(AssignmentNotFoundError):
            await roster_data.delete_edge(first.id)

        assert await roster_data.delete_edges_by_examiner(people["ann"]) == 1
        assert await roster_data.delete_all_edges() == 1
        assert await roster_data.list_edges() == []

    async def test_set_capacity(self, roster_data, people):
        examiner = await roster_data.set_examiner_capacity(people["ben"], 40)

        assert examiner.capacity == 40

    async def test_deleting_a_user_removes_its_edges(
        self, roster_data, db_session, people
    ):
        await roster_data.create_edge(people["ada"], people["ann"])
        user = await db_session.get(User, people["ada"])

        await db_session.delete(user)
        await db_session.commit()

        assert await roster_data.list_edges(examiner_id=people["ann"]) == []


class TestServiceOnDatabase:
    async def test_auto_assign_reset_and_undo(self, roster_data, people, settings):
        service = ExaminerAssignmentService(roster_data, SnapshotStore(), settings)

        assigned = await service.run_auto_assign()
        assert assigned.assigned_count == 6
        pairs = {e.pair for e in await roster_data.list_edges()}

        report = await service.get_capacity_report()
        assert all(row.current_load <= row.capacity for row in report.examiners)

        reset = await service.reset_all()
        assert reset.reset_count == 6
        assert await roster_data.list_edges() == []

        undo = await service.undo_last_reset()
        assert undo.restored_count == 6
        assert {e.pair for e in await roster_data.list_edges()} == pairs

    async def test_manual_assign_twice(self, roster_data, people, settings):
        service = ExaminerAssignmentService(roster_data, SnapshotStore(), settings)

        await service.manual_assign(people["cy"], people["ben"])
        with pytest.raises(AlreadyAssignedError):
            await service.manual_assign(people["cy"], people["ben"])

        assert len(await roster_data.list_edges(student_id=people["cy"])) == 1
