# backend/app/services/examiner_assignment/examiner_assignment_service.py

from __future__ import annotations

from typing import Any, List, Optional, Sequence, Type, TypeVar
import logging

from pydantic import BaseModel, ValidationError

from examiner_engine.core import (
    AssignmentEngine,
    CapacityCalculator,
    Examiner,
    RestoreResult,
    RestoreStatus,
    Snapshot,
    SnapshotEntry,
    SnapshotStore,
    UndoSummary,
    ValidationGate,
)
from examiner_engine.exceptions import (
    InsufficientExaminerPoolError,
    InvalidCapacityError,
)

from ...config import Settings, get_settings
from ...core.exceptions import (
    AlreadyAssignedError,
    AppError,
    AssignmentConflictError,
    BelowCurrentLoadError,
    CapacityOutOfRangeError,
    DuplicateAssignmentError,
    ExaminerAtCapacityError,
    ExaminerNotFoundError,
    InsufficientExaminersError,
    InvalidCapacityDataError,
    NotAnExaminerError,
    NotAStudentError,
    NothingToUndoError,
    RequestValidationError,
    StudentAtTargetError,
    StudentNotFoundError,
)
from ...schemas.examiner_assignment import (
    AutoAssignResult,
    CapacityReportRead,
    CapacityUpdateResult,
    CreatedAssignmentRead,
    ExaminerCapacityRead,
    ManualAssignRequest,
    ManualAssignResult,
    RemoveAssignmentRequest,
    RemoveAssignmentResult,
    ResetExaminerRequest,
    ResetResult,
    RestoreItemRead,
    StudentAssignmentSummary,
    StudentAssignmentsRead,
    StudentExaminerRead,
    StudentRosterRead,
    UndoResult,
    UnfilledSlotRead,
    UpdateCapacityRequest,
    ValidateAssignmentRequest,
    ValidationResult,
)
from ..tracking_mixin import TrackingMixin
from .roster_port import RosterPort

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT", bound=BaseModel)

# Skip reasons reported per snapshot entry during undo
SKIP_DUPLICATE = "duplicate"
SKIP_STUDENT_MISSING = "student_missing"
SKIP_EXAMINER_MISSING = "examiner_missing"
SKIP_STUDENT_AT_TARGET = "student_at_target"
SKIP_EXAMINER_AT_CAPACITY = "examiner_at_capacity"


def parse_request(model: Type[RequestT], **data: Any) -> RequestT:
    """Build a request model, reporting shape errors as RequestValidationError."""
    try:
        return model(**data)
    except ValidationError as e:
        raise RequestValidationError(
            f"Invalid {model.__name__} payload",
            validation_errors=e.errors(include_url=False, include_context=False),
            cause=e,
        ) from e


class ExaminerAssignmentService(TrackingMixin):
    """
    Examiner allocation operations over a roster store.

    The roster store and the snapshot store are both injected. Two services
    sharing one SnapshotStore share the undo slot and are serialized on its
    lock for reset and undo; separate stores are fully independent.
    """

    def __init__(
        self,
        roster: RosterPort,
        snapshots: SnapshotStore,
        settings: Optional[Settings] = None,
    ):
        super().__init__()
        self.roster = roster
        self.snapshots = snapshots
        self.settings = settings or get_settings()
        self.allocation_config = self.settings.allocation_config
        self.calculator = CapacityCalculator(self.allocation_config)
        self.engine = AssignmentEngine(self.allocation_config)
        self.gate = ValidationGate(self.allocation_config)

    @property
    def target_count(self) -> int:
        return self.allocation_config.target_count

    @property
    def can_undo(self) -> bool:
        return self.snapshots.can_undo

    def _capacity_row(self, examiner: Examiner) -> ExaminerCapacityRead:
        try:
            row = self.calculator.examiner_capacity(examiner)
        except InvalidCapacityError as e:
            raise InvalidCapacityDataError(e.message, context=e.context, cause=e) from e
        return ExaminerCapacityRead.model_validate(row)

    # Read-only views

    async def get_capacity_report(self) -> CapacityReportRead:
        """Per-examiner availability, most available first, plus totals."""
        with self._tracked_action("capacity_report") as outcome:
            examiners = await self.roster.list_examiners()
            try:
                report = self.calculator.build_report(examiners)
            except InvalidCapacityError as e:
                raise InvalidCapacityDataError(
                    e.message, context=e.context, cause=e
                ) from e

            outcome["total_examiners"] = report.summary.total_examiners
            return CapacityReportRead.model_validate(report)

    async def list_students_with_examiners(self) -> StudentRosterRead:
        with self._tracked_action("list_students_with_examiners") as outcome:
            students = await self.roster.list_students()
            examiner_names = {
                e.id: e.name for e in await self.roster.list_examiners()
            }
            edge_ids = {
                edge.pair: edge.id for edge in await self.roster.list_edges()
            }

            rows: List[StudentAssignmentsRead] = []
            without = partial = full = 0
            for student in students:
                count = student.examiner_count
                if count == 0:
                    without += 1
                elif count < self.target_count:
                    partial += 1
                else:
                    full += 1

                rows.append(
                    StudentAssignmentsRead(
                        student_id=student.id,
                        name=student.name,
                        examiners=[
                            StudentExaminerRead(
                                assignment_id=edge_ids.get((student.id, examiner_id)),
                                examiner_id=examiner_id,
                                examiner_name=examiner_names.get(examiner_id, ""),
                            )
                            for examiner_id in student.assigned_examiner_ids
                        ],
                        examiner_count=count,
                        missing=student.missing(self.target_count),
                    )
                )

            summary = StudentAssignmentSummary(
                total_students=len(students),
                without_examiners=without,
                partially_assigned=partial,
                fully_assigned=full,
            )
            outcome.update(summary.model_dump())
            return StudentRosterRead(students=rows, summary=summary)

    async def validate_assignment(
        self, examiner_id: Any, student_ids: Sequence[Any]
    ) -> ValidationResult:
        """Check whether the distinct students given would fit under capacity."""
        request = parse_request(
            ValidateAssignmentRequest,
            examiner_id=examiner_id,
            student_ids=list(student_ids),
        )
        examiner = await self.roster.get_examiner(request.examiner_id)
        requested = len(set(request.student_ids))

        try:
            verdict = self.gate.check(examiner, requested)
        except InvalidCapacityError as e:
            raise InvalidCapacityDataError(e.message, context=e.context, cause=e) from e

        self._log_operation(
            "assignment_validated",
            {
                "examiner_id": str(examiner.id),
                "requested": requested,
                "valid": verdict.valid,
            },
        )
        return ValidationResult.model_validate(verdict)

    # Assignment

    async def run_auto_assign(self) -> AutoAssignResult:
        """
        Bring every student up to the target examiner count.

        Raises InsufficientExaminersError, creating nothing, when fewer examiners
        than the target have a free slot.
        """
        with self._tracked_action(
            "auto_assign", metadata={"target_count": self.target_count}
        ) as outcome:
            examiners = await self.roster.list_examiners()
            students = await self.roster.list_students_needing_examiners(
                self.target_count
            )

            if not students:
                outcome["assigned_count"] = 0
                return AutoAssignResult(
                    assigned_count=0,
                    message=f"All students already have {self.target_count} examiners",
                )

            try:
                plan = self.engine.plan(examiners, students)
            except InsufficientExaminerPoolError as e:
                self._log_operation(
                    "auto_assign_refused", e.context, level=logging.WARNING, error=e.message
                )
                raise InsufficientExaminersError(
                    e.required, e.available, cause=e
                ) from e
            except InvalidCapacityError as e:
                raise InvalidCapacityDataError(
                    e.message, context=e.context, cause=e
                ) from e

            if not plan.is_complete:
                self._log_operation(
                    "auto_assign_unfilled",
                    {"slots": sum(u.missing for u in plan.unfilled)},
                    level=logging.WARNING,
                )

            created: List[CreatedAssignmentRead] = []
            unfilled = [UnfilledSlotRead.model_validate(u) for u in plan.unfilled]
            for proposal in plan.assignments:
                try:
                    edge = await self.roster.create_edge(
                        proposal.student_id, proposal.examiner_id
                    )
                except AssignmentConflictError as e:
                    # A concurrent edit took the pair after the roster was read
                    logger.warning(
                        f"Skipping proposed assignment {proposal.student_id} -> "
                        f"{proposal.examiner_id}: {e.message}"
                    )
                    unfilled.append(
                        UnfilledSlotRead(
                            student_id=proposal.student_id,
                            student_name=proposal.student_name,
                            missing=1,
                            reason=e.code,
                        )
                    )
                    continue

                created.append(
                    CreatedAssignmentRead(
                        id=edge.id,
                        student_id=edge.student_id,
                        examiner_id=edge.examiner_id,
                        created_at=edge.created_at,
                        student_name=proposal.student_name,
                        examiner_name=proposal.examiner_name,
                    )
                )

            message = f"Successfully assigned {len(created)} examiner assignments"
            if unfilled:
                message += (
                    f". {len(unfilled)} student slot(s) could not be filled"
                )

            outcome.update({"assigned_count": len(created), "unfilled": len(unfilled)})
            return AutoAssignResult(
                assigned_count=len(created),
                assignments=created,
                unfilled=unfilled,
                students_considered=plan.students_considered,
                message=message,
            )

    async def manual_assign(self, student_id: Any, examiner_id: Any) -> ManualAssignResult:
        """Create one edge after the duplicate, target and capacity checks."""
        request = parse_request(
            ManualAssignRequest, student_id=student_id, examiner_id=examiner_id
        )
        with self._tracked_action(
            "manual_assign",
            metadata={
                "student_id": str(request.student_id),
                "examiner_id": str(request.examiner_id),
            },
        ):
            student = await self.roster.get_student(request.student_id)
            examiner = await self.roster.get_examiner(request.examiner_id)

            if student.has_examiner(examiner.id):
                raise AlreadyAssignedError(student.id, examiner.id)
            if student.examiner_count >= self.target_count:
                raise StudentAtTargetError(student.id, self.target_count)

            row = self._capacity_row(examiner)
            if not self.gate.has_room(examiner):
                raise ExaminerAtCapacityError(
                    examiner.id, row.capacity, row.current_load
                )

            try:
                edge = await self.roster.create_edge(student.id, examiner.id)
            except DuplicateAssignmentError as e:
                raise AlreadyAssignedError(student.id, examiner.id, cause=e) from e

            return ManualAssignResult(
                assignment=CreatedAssignmentRead(
                    id=edge.id,
                    student_id=edge.student_id,
                    examiner_id=edge.examiner_id,
                    created_at=edge.created_at,
                    student_name=student.name,
                    examiner_name=examiner.name,
                ),
                message="Examiner assigned successfully",
            )

    async def remove_assignment(self, assignment_id: Any) -> RemoveAssignmentResult:
        request = parse_request(RemoveAssignmentRequest, assignment_id=assignment_id)
        with self._tracked_action(
            "remove_assignment",
            metadata={"assignment_id": str(request.assignment_id)},
        ):
            await self.roster.delete_edge(request.assignment_id)
            return RemoveAssignmentResult(
                assignment_id=request.assignment_id,
                message="Assignment removed successfully",
            )

    async def update_examiner_capacity(
        self, examiner_id: Any, new_capacity: Any
    ) -> CapacityUpdateResult:
        """Set an examiner's capacity; existing edges are left as they are."""
        request = parse_request(
            UpdateCapacityRequest, examiner_id=examiner_id, max_students=new_capacity
        )
        value = request.max_students
        cfg = self.allocation_config
        if not cfg.capacity_in_range(value):
            raise CapacityOutOfRangeError(value, cfg.min_capacity, cfg.max_capacity)

        with self._tracked_action(
            "update_examiner_capacity",
            metadata={"examiner_id": str(request.examiner_id), "capacity": value},
        ):
            examiner = await self.roster.get_examiner(request.examiner_id)
            if value < examiner.current_load:
                raise BelowCurrentLoadError(examiner.id, value, examiner.current_load)

            updated = await self.roster.set_examiner_capacity(examiner.id, value)
            return CapacityUpdateResult(
                examiner=self._capacity_row(updated),
                message=f"Examiner capacity updated to {value}",
            )

    # Reset and undo

    async def reset_all(self) -> ResetResult:
        """Delete every edge, keeping them as the single undo snapshot."""
        async with self.snapshots.operation_lock:
            with self._tracked_action("reset_all") as outcome:
                edges = await self.roster.list_edges()
                if not edges:
                    outcome["reset_count"] = 0
                    return ResetResult(
                        reset_count=0,
                        can_undo=self.snapshots.can_undo,
                        message="There are no assignments to reset",
                    )

                self.snapshots.capture(edges, scope="all")
                deleted = await self.roster.delete_all_edges()

                outcome["reset_count"] = deleted
                return ResetResult(
                    reset_count=deleted,
                    can_undo=True,
                    message=f"Reset {deleted} examiner assignments",
                )

    async def reset_examiner(self, examiner_id: Any) -> ResetResult:
        """Delete one examiner's edges, keeping them as the single undo snapshot."""
        request = parse_request(ResetExaminerRequest, examiner_id=examiner_id)
        async with self.snapshots.operation_lock:
            with self._tracked_action(
                "reset_examiner",
                metadata={"examiner_id": str(request.examiner_id)},
            ) as outcome:
                examiner = await self.roster.get_examiner(request.examiner_id)
                edges = await self.roster.list_edges(examiner_id=examiner.id)
                if not edges:
                    outcome["reset_count"] = 0
                    return ResetResult(
                        reset_count=0,
                        can_undo=self.snapshots.can_undo,
                        message=f"{examiner.name or 'Examiner'} has no assignments to reset",
                        examiner_id=examiner.id,
                        examiner_name=examiner.name,
                    )

                self.snapshots.capture(
                    edges,
                    scope=f"examiner:{examiner.id}",
                    roster_edges=await self.roster.list_edges(),
                )
                deleted = await self.roster.delete_edges_by_examiner(examiner.id)

                outcome["reset_count"] = deleted
                return ResetResult(
                    reset_count=deleted,
                    can_undo=True,
                    message=(
                        f"Reset {deleted} assignments for "
                        f"{examiner.name or 'examiner'}"
                    ),
                    examiner_id=examiner.id,
                    examiner_name=examiner.name,
                )

    async def undo_last_reset(self) -> UndoResult:
        """
        Recreate the edges removed by the last reset.

        Entries that can no longer be recreated are skipped with a reason.
        The snapshot is cleared once the pass ends, whatever the outcome.
        """
        async with self.snapshots.operation_lock:
            snapshot = self.snapshots.peek()
            if snapshot is None:
                raise NothingToUndoError()

            with self._tracked_action(
                "undo_last_reset",
                metadata={"entries": len(snapshot), "scope": snapshot.scope},
            ) as outcome:
                summary = UndoSummary(scope=snapshot.scope)
                try:
                    for entry in snapshot.entries:
                        summary.results.append(
                            await self._restore_entry(entry, snapshot)
                        )
                finally:
                    self.snapshots.clear()

                for skipped in summary.skipped:
                    logger.warning(
                        f"Could not restore assignment {skipped.entry.student_id} -> "
                        f"{skipped.entry.examiner_id}: {skipped.reason}"
                    )

                outcome.update(
                    {
                        "restored_count": summary.restored_count,
                        "skipped_count": summary.skipped_count,
                    }
                )

                message = f"Restored {summary.restored_count} examiner assignments"
                if summary.skipped_count:
                    message += f" ({summary.skipped_count} could not be restored)"

                return UndoResult(
                    restored_count=summary.restored_count,
                    skipped_count=summary.skipped_count,
                    results=[self._restore_read(r) for r in summary.results],
                    can_undo=False,
                    message=message,
                )

    async def _restore_entry(
        self, entry: SnapshotEntry, snapshot: Snapshot
    ) -> RestoreResult:
        def skipped(reason: str) -> RestoreResult:
            return RestoreResult(entry=entry, status=RestoreStatus.SKIPPED, reason=reason)

        try:
            student = await self.roster.get_student(entry.student_id)
        except (StudentNotFoundError, NotAStudentError):
            return skipped(SKIP_STUDENT_MISSING)
        try:
            examiner = await self.roster.get_examiner(entry.examiner_id)
        except (ExaminerNotFoundError, NotAnExaminerError):
            return skipped(SKIP_EXAMINER_MISSING)

        if student.has_examiner(examiner.id):
            return skipped(SKIP_DUPLICATE)

        # Limits apply only to slots taken since the reset; counts that were
        # already over a limit before it may come back in full.
        target_ceiling = max(self.target_count, snapshot.count_at_capture(student.id))
        if student.examiner_count >= target_ceiling:
            return skipped(SKIP_STUDENT_AT_TARGET)

        try:
            capacity = self.calculator.resolve_capacity(examiner)
        except InvalidCapacityError:
            capacity = 0
        load_ceiling = max(capacity, snapshot.load_at_capture(examiner.id))
        if examiner.current_load >= load_ceiling:
            return skipped(SKIP_EXAMINER_AT_CAPACITY)

        try:
            edge = await self.roster.create_edge(student.id, examiner.id)
        except DuplicateAssignmentError:
            return skipped(SKIP_DUPLICATE)
        except StudentNotFoundError:
            return skipped(SKIP_STUDENT_MISSING)
        except ExaminerNotFoundError:
            return skipped(SKIP_EXAMINER_MISSING)
        except AppError as e:
            return skipped(e.code)

        return RestoreResult(
            entry=entry, status=RestoreStatus.RESTORED, new_edge_id=edge.id
        )

    @staticmethod
    def _restore_read(result: RestoreResult) -> RestoreItemRead:
        return RestoreItemRead(
            edge_id=result.entry.edge_id,
            student_id=result.entry.student_id,
            examiner_id=result.entry.examiner_id,
            status=result.status.value,
            reason=result.reason,
            new_edge_id=result.new_edge_id,
        )


__all__ = ["ExaminerAssignmentService", "parse_request"]
