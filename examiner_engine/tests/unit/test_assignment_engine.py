# examiner_engine/tests/unit/test_assignment_engine.py

"""
Tests for greedy least-loaded examiner assignment.
"""

import pytest
from collections import Counter

from examiner_engine.config import AllocationConfig
from examiner_engine.core.assignment import AssignmentEngine
from examiner_engine.core.roster import Student
from examiner_engine.exceptions import InsufficientExaminerPoolError, InvalidCapacityError


def apply_plan(plan, examiners, students):
    """Mirror what the store does with a plan: bump loads and panels."""
    by_examiner = {e.id: e for e in examiners}
    by_student = {s.id: s for s in students}
    for proposal in plan.assignments:
        by_examiner[proposal.examiner_id].current_load += 1
        by_student[proposal.student_id].assigned_examiner_ids.append(
            proposal.examiner_id
        )


class TestBasicScenarios:
    """Concrete roster scenarios"""

    def test_single_student_gets_one_edge_per_examiner(
        self, make_examiner, make_student
    ):
        a, b = make_examiner(capacity=25), make_examiner(capacity=25)
        student = make_student()

        plan = AssignmentEngine().plan([a, b], [student])

        assert plan.count == 2
        assert {p.examiner_id for p in plan.assignments} == {a.id, b.id}
        assert all(p.student_id == student.id for p in plan.assignments)
        assert plan.is_complete

        apply_plan(plan, [a, b], [student])
        assert a.current_load == 1
        assert b.current_load == 1

    def test_full_examiner_is_skipped(self, make_examiner, make_student):
        full = make_examiner(capacity=25, current_load=25)
        light = make_examiner(capacity=25, current_load=3)
        lighter = make_examiner(capacity=25, current_load=1)
        student = make_student()

        plan = AssignmentEngine().plan([full, light, lighter], [student])

        chosen = [p.examiner_id for p in plan.assignments]
        assert chosen == [lighter.id, light.id]
        assert full.id not in chosen

    def test_insufficient_pool_creates_nothing(self, make_examiner, make_student):
        only = make_examiner(capacity=25, current_load=0)
        full = make_examiner(capacity=10, current_load=10)

        with pytest.raises(InsufficientExaminerPoolError) as exc_info:
            AssignmentEngine().plan([only, full], [make_student()])

        assert exc_info.value.required == 2
        assert exc_info.value.available == 1

    def test_everyone_at_target_is_zero_operation_success(
        self, make_examiner, make_student
    ):
        a, b = make_examiner(), make_examiner()
        students = [make_student(assigned=[a.id, b.id]) for _ in range(3)]

        plan = AssignmentEngine().plan([a, b], students)

        assert plan.count == 0
        assert plan.unfilled == []

    def test_satisfied_roster_skips_pool_guard(self, make_examiner, make_student):
        # The guard only matters when someone still needs an examiner
        a = make_examiner(capacity=1, current_load=1)
        b = make_examiner(capacity=1, current_load=1)

        plan = AssignmentEngine().plan([a, b], [make_student(assigned=[a.id, b.id])])

        assert plan.count == 0

    def test_existing_examiner_not_assigned_twice(self, make_examiner, make_student):
        a, b, c = make_examiner(), make_examiner(), make_examiner()
        student = make_student(assigned=[a.id])
        a.current_load = 1

        plan = AssignmentEngine().plan([a, b, c], [student])

        assert plan.count == 1
        assert plan.assignments[0].examiner_id == b.id

    def test_existing_examiner_skipped_even_when_least_loaded(
        self, make_examiner, make_student
    ):
        a = make_examiner(current_load=0)
        b = make_examiner(current_load=5)
        student = make_student(assigned=[a.id])

        plan = AssignmentEngine().plan([a, b], [student])

        assert [p.examiner_id for p in plan.assignments] == [b.id]

    def test_pool_exhaustion_reports_unfilled_student(
        self, make_examiner, make_student
    ):
        a = make_examiner(capacity=1)
        b = make_examiner(capacity=1)
        first, second = make_student(), make_student()

        plan = AssignmentEngine().plan([a, b], [first, second])

        assert plan.count == 2
        assert len(plan.unfilled) == 1
        assert plan.unfilled[0].student_id == second.id
        assert plan.unfilled[0].missing == 2
        assert not plan.is_complete

    def test_partial_fill_for_one_student(self, make_examiner, make_student):
        a = make_examiner(capacity=2)
        b = make_examiner(capacity=1)
        students = [make_student(), make_student()]

        plan = AssignmentEngine().plan([a, b], students)

        assert [p.student_id for p in plan.assignments] == [
            students[0].id,
            students[0].id,
            students[1].id,
        ]
        assert plan.unfilled[0].student_id == students[1].id
        assert plan.unfilled[0].missing == 1

    def test_zero_capacity_examiner_is_data_error(self, make_examiner, make_student):
        with pytest.raises(InvalidCapacityError):
            AssignmentEngine().plan(
                [make_examiner(capacity=0), make_examiner(), make_examiner()],
                [make_student()],
            )

    def test_names_carried_into_proposals(self, make_examiner, make_student):
        a = make_examiner(name="Dr. A")
        b = make_examiner(name="Dr. B")
        student = make_student(name="Sam")

        plan = AssignmentEngine().plan([a, b], [student])

        assert {p.examiner_name for p in plan.assignments} == {"Dr. A", "Dr. B"}
        assert all(p.student_name == "Sam" for p in plan.assignments)


class TestInvariants:
    """Properties that must hold for any roster"""

    def test_idempotent_on_satisfied_state(self, make_examiner, make_student):
        examiners = [make_examiner(capacity=10) for _ in range(4)]
        students = [make_student() for _ in range(7)]
        engine = AssignmentEngine()

        first = engine.plan(examiners, students)
        apply_plan(first, examiners, students)
        second = engine.plan(examiners, students)

        assert first.count == 14
        assert second.count == 0

    def test_capacity_never_exceeded(self, make_examiner, make_student):
        examiners = [
            make_examiner(capacity=3, current_load=1),
            make_examiner(capacity=2),
            make_examiner(capacity=4, current_load=4),
            make_examiner(capacity=5),
        ]
        students = [make_student() for _ in range(10)]

        plan = AssignmentEngine().plan(examiners, students)
        apply_plan(plan, examiners, students)

        for examiner in examiners:
            assert examiner.current_load <= examiner.capacity

    def test_no_duplicate_pairs_and_target_not_exceeded(
        self, make_examiner, make_student
    ):
        examiners = [make_examiner(capacity=6) for _ in range(5)]
        students = [make_student() for _ in range(8)]
        students[0].assigned_examiner_ids.append(examiners[0].id)
        examiners[0].current_load = 1

        plan = AssignmentEngine().plan(examiners, students)
        pairs = Counter((p.student_id, p.examiner_id) for p in plan.assignments)
        per_student = Counter(p.student_id for p in plan.assignments)

        assert all(count == 1 for count in pairs.values())
        assert (students[0].id, examiners[0].id) not in pairs
        assert per_student[students[0].id] == 1
        assert all(count <= 2 for count in per_student.values())

    @pytest.mark.parametrize("examiner_count,student_count", [(3, 5), (4, 9), (7, 20)])
    def test_load_balance_within_one(
        self, make_examiner, make_student, examiner_count, student_count
    ):
        examiners = [make_examiner(capacity=50) for _ in range(examiner_count)]
        students = [make_student() for _ in range(student_count)]

        plan = AssignmentEngine().plan(examiners, students)
        apply_plan(plan, examiners, students)

        loads = [e.current_load for e in examiners]
        assert plan.count == 2 * student_count
        assert max(loads) - min(loads) <= 1

    def test_deterministic_for_same_snapshot(self, make_examiner, make_student):
        examiners = [make_examiner(capacity=4, current_load=i % 3) for i in range(5)]
        students = [make_student() for _ in range(6)]
        engine = AssignmentEngine()

        first = [(p.student_id, p.examiner_id) for p in engine.plan(examiners, students).assignments]
        second = [(p.student_id, p.examiner_id) for p in engine.plan(examiners, students).assignments]

        assert first == second

    def test_plan_does_not_mutate_roster(self, make_examiner, make_student):
        examiners = [make_examiner(), make_examiner()]
        student = make_student()

        AssignmentEngine().plan(examiners, [student])

        assert [e.current_load for e in examiners] == [0, 0]
        assert student.assigned_examiner_ids == []


class TestConfigurableTarget:
    """Target count threaded through the configuration"""

    def test_three_examiner_target(self, make_examiner, make_student):
        engine = AssignmentEngine(AllocationConfig(target_count=3))
        examiners = [make_examiner() for _ in range(3)]

        plan = engine.plan(examiners, [make_student()])

        assert plan.count == 3

    def test_guard_uses_configured_target(self, make_examiner, make_student):
        engine = AssignmentEngine(AllocationConfig(target_count=3))

        with pytest.raises(InsufficientExaminerPoolError):
            engine.plan([make_examiner(), make_examiner()], [make_student()])

    def test_students_filtered_by_target(self):
        engine = AssignmentEngine(AllocationConfig(target_count=1))
        done = Student(id="s1", assigned_examiner_ids=["e1"])
        pending = Student(id="s2")

        assert engine.students_needing_examiners([done, pending]) == [pending]
