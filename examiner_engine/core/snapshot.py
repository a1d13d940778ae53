# examiner_engine/core/snapshot.py

"""
Single-slot snapshot of the edges removed by the last reset, used for a
one-shot undo.

A SnapshotStore is an explicit object: whoever composes the service owns
one and injects it, so separate stores never share undo state. Only the most
recent capture is kept.
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Hashable, Iterable, List, Optional, Tuple
import logging

from .roster import AssignmentEdge, examiners_by_student, loads_from_edges

logger = logging.getLogger(__name__)


class SnapshotState(Enum):
    EMPTY = "empty"
    HOLDING = "holding"


class RestoreStatus(Enum):
    RESTORED = "restored"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class SnapshotEntry:
    edge_id: Hashable
    student_id: Hashable
    examiner_id: Hashable

    @classmethod
    def from_edge(cls, edge: AssignmentEdge) -> "SnapshotEntry":
        return cls(
            edge_id=edge.id, student_id=edge.student_id, examiner_id=edge.examiner_id
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "edge_id": str(self.edge_id),
            "student_id": str(self.student_id),
            "examiner_id": str(self.examiner_id),
        }


@dataclass(frozen=True)
class Snapshot:
    entries: Tuple[SnapshotEntry, ...]
    scope: str = "all"
    captured_at: datetime = field(default_factory=datetime.utcnow)
    # Examiner loads and student edge counts as they stood before the reset
    examiner_loads: Dict[Hashable, int] = field(default_factory=dict)
    student_counts: Dict[Hashable, int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entries)

    def load_at_capture(self, examiner_id: Hashable) -> int:
        return self.examiner_loads.get(examiner_id, 0)

    def count_at_capture(self, student_id: Hashable) -> int:
        return self.student_counts.get(student_id, 0)


@dataclass
class RestoreResult:
    entry: SnapshotEntry
    status: RestoreStatus
    reason: Optional[str] = None
    new_edge_id: Optional[Hashable] = None

    @property
    def restored(self) -> bool:
        return self.status is RestoreStatus.RESTORED

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.entry.to_dict(),
            "status": self.status.value,
            "reason": self.reason,
            "new_edge_id": str(self.new_edge_id) if self.new_edge_id else None,
        }


@dataclass
class UndoSummary:
    results: List[RestoreResult] = field(default_factory=list)
    scope: str = "all"

    @property
    def restored_count(self) -> int:
        return sum(1 for r in self.results if r.restored)

    @property
    def skipped(self) -> List[RestoreResult]:
        return [r for r in self.results if not r.restored]

    @property
    def skipped_count(self) -> int:
        return len(self.results) - self.restored_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "restored_count": self.restored_count,
            "skipped_count": self.skipped_count,
            "scope": self.scope,
            "results": [r.to_dict() for r in self.results],
        }


class SnapshotStore:
    """
    EMPTY --capture(non-empty)--> HOLDING
    HOLDING --capture(non-empty)--> HOLDING (previous snapshot discarded)
    HOLDING --clear--> EMPTY

    `operation_lock` is held by callers around a whole reset or undo so that
    two resets sharing this store cannot interleave.
    """

    def __init__(self) -> None:
        self._snapshot: Optional[Snapshot] = None
        self._lock = threading.RLock()
        self.operation_lock = asyncio.Lock()

    @property
    def state(self) -> SnapshotState:
        with self._lock:
            if self._snapshot is None:
                return SnapshotState.EMPTY
            return SnapshotState.HOLDING

    @property
    def can_undo(self) -> bool:
        return self.state is SnapshotState.HOLDING

    def capture(
        self,
        edges: Iterable[AssignmentEdge],
        scope: str = "all",
        roster_edges: Optional[Iterable[AssignmentEdge]] = None,
    ) -> Optional[Snapshot]:
        """Replace the held snapshot with these edges.

        `roster_edges` is every edge in the store before the reset; loads and
        per-student counts are taken from it (from `edges` when omitted).
        An empty edge set leaves the store untouched and returns None.
        """
        edges = list(edges)
        entries = tuple(SnapshotEntry.from_edge(edge) for edge in edges)
        if not entries:
            return None

        counted = edges if roster_edges is None else list(roster_edges)
        examiner_loads = loads_from_edges(counted)
        student_counts = {
            student_id: len(examiner_ids)
            for student_id, examiner_ids in examiners_by_student(counted).items()
        }

        with self._lock:
            if self._snapshot is not None:
                logger.info(
                    f"Discarding previous snapshot ({len(self._snapshot)} edges, "
                    f"scope={self._snapshot.scope})"
                )
            self._snapshot = Snapshot(
                entries=entries,
                scope=scope,
                examiner_loads=examiner_loads,
                student_counts=student_counts,
            )
            logger.info(f"Captured snapshot of {len(entries)} edges (scope={scope})")
            return self._snapshot

    def peek(self) -> Optional[Snapshot]:
        with self._lock:
            return self._snapshot

    def clear(self) -> None:
        with self._lock:
            self._snapshot = None
