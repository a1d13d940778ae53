# backend/app/services/tracking_mixin.py

"""
Action tracking for service operations.

Every upward operation runs as one tracked action. Actions nest: an action
started while another is open records it as parent. Finished actions are kept
in a short history so callers and tests can see what ran and how it ended.
"""

import uuid
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Deque, Iterator, List
from datetime import datetime
import logging
import threading

logger = logging.getLogger(__name__)

ACTION_HISTORY_SIZE = 50


@dataclass
class TrackedAction:
    action_id: uuid.UUID
    action_type: str
    sequence: int
    parent_id: Optional[uuid.UUID] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    started_at: datetime = field(default_factory=datetime.utcnow)
    ended_at: Optional[datetime] = None
    status: str = "running"
    result: Any = None

    @property
    def duration_ms(self) -> Optional[float]:
        if self.ended_at is None:
            return None
        return (self.ended_at - self.started_at).total_seconds() * 1000


class TrackingMixin:
    """Gives a service nested, logged actions with ids, status and timing."""

    def __init__(self) -> None:
        self._open_actions: List[TrackedAction] = []
        self.action_history: Deque[TrackedAction] = deque(maxlen=ACTION_HISTORY_SIZE)
        self._action_lock = threading.RLock()
        self._action_sequence = 0

    @property
    def current_action_id(self) -> Optional[uuid.UUID]:
        with self._action_lock:
            return self._open_actions[-1].action_id if self._open_actions else None

    def _start_action(
        self, action_type: str, metadata: Optional[Dict[str, Any]] = None
    ) -> TrackedAction:
        with self._action_lock:
            self._action_sequence += 1
            action = TrackedAction(
                action_id=uuid.uuid4(),
                action_type=action_type,
                sequence=self._action_sequence,
                parent_id=self.current_action_id,
                metadata=metadata or {},
            )
            self._open_actions.append(action)

        logger.info(
            f"Started {action_type} [{action.action_id}] "
            f"(seq {action.sequence}, parent {action.parent_id})"
        )
        return action

    def _end_action(
        self, action: TrackedAction, status: str = "completed", result: Any = None
    ) -> TrackedAction:
        with self._action_lock:
            if action in self._open_actions:
                if self._open_actions[-1] is not action:
                    logger.warning(
                        f"Closing {action.action_type} [{action.action_id}] "
                        "before the actions nested in it"
                    )
                self._open_actions.remove(action)
            else:
                logger.error(f"Action {action.action_id} is not open")

            action.ended_at = datetime.utcnow()
            action.status = status
            action.result = result
            self.action_history.append(action)

        log = logger.info if status == "completed" else logger.warning
        log(
            f"Finished {action.action_type} [{action.action_id}]: {status} "
            f"in {action.duration_ms:.1f}ms {result or ''}".rstrip()
        )
        return action

    @contextmanager
    def _tracked_action(
        self, action_type: str, metadata: Optional[Dict[str, Any]] = None
    ) -> Iterator[Dict[str, Any]]:
        """Run a block as one action; whatever it puts in the yielded dict is
        recorded as the action's result."""
        action = self._start_action(action_type, metadata)
        outcome: Dict[str, Any] = {}
        try:
            yield outcome
        except Exception as e:
            self._end_action(
                action,
                status="failed",
                result={"error": getattr(e, "code", type(e).__name__)},
            )
            raise
        self._end_action(action, result=outcome)

    def _log_operation(
        self,
        operation: str,
        details: Optional[Dict[str, Any]] = None,
        level: int = logging.INFO,
        error: Optional[str] = None,
    ) -> None:
        """Log a step of the current action with its details."""
        message = f"{operation} (action {self.current_action_id})"
        if details:
            message += f" {details}"
        if error:
            message += f" - {error}"
        logger.log(level, message)
