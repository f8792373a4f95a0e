# =============================================================================
# core/services/active_executions.py - Running Execution Table
# =============================================================================
# Tracks executions that are currently running, keyed by execution id.
#
# Each entry holds the CancellationToken and ProgressState the engine was
# given, so another request thread can poll progress or cancel the run
# while it is still executing.
# =============================================================================

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from compute.context import CancellationToken, ProgressState
from compute.types import utcnow

logger = logging.getLogger(__name__)


@dataclass
class ActiveExecution:
    """A running execution and its shared control objects."""
    execution_id: UUID
    udf_id: str
    token: CancellationToken = field(default_factory=CancellationToken)
    progress: ProgressState = field(default_factory=ProgressState)
    started_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        percentage, message = self.progress.snapshot()
        return {
            "execution_id": self.execution_id,
            "udf_id": self.udf_id,
            "progress": percentage,
            "message": message,
            "is_cancelled": self.token.is_cancelled(),
        }


class ActiveExecutions:
    """
    Thread-safe table of running executions.

    Usage:
        token, progress = active.register(execution_id, "core:moving_average")
        try:
            engine.execute(..., cancel_token=token, progress=progress)
        finally:
            active.unregister(execution_id)
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._executions: dict[UUID, ActiveExecution] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._executions)

    def __contains__(self, execution_id: UUID) -> bool:
        with self._lock:
            return execution_id in self._executions

    def register(self, execution_id: UUID, udf_id: str) -> tuple[CancellationToken, ProgressState]:
        """Add a running execution. Returns its token and progress state."""
        entry = ActiveExecution(execution_id=execution_id, udf_id=udf_id)
        with self._lock:
            if execution_id in self._executions:
                raise ValueError(f"Execution {execution_id} is already registered")
            self._executions[execution_id] = entry
        logger.debug(f"Registered active execution {execution_id} ({udf_id})")
        return entry.token, entry.progress

    def unregister(self, execution_id: UUID) -> None:
        with self._lock:
            self._executions.pop(execution_id, None)

    def get(self, execution_id: UUID) -> ActiveExecution | None:
        with self._lock:
            return self._executions.get(execution_id)

    def progress(self, execution_id: UUID) -> dict[str, Any] | None:
        """Progress snapshot, or None if the execution is not running."""
        entry = self.get(execution_id)
        return entry.to_dict() if entry else None

    def cancel(self, execution_id: UUID) -> bool:
        """Request cancellation. Returns False if the execution is not running."""
        entry = self.get(execution_id)
        if entry is None:
            return False
        entry.token.cancel()
        logger.info(f"Cancellation requested for execution {execution_id}")
        return True

    def list(self) -> list[dict[str, Any]]:
        with self._lock:
            entries = list(self._executions.values())
        return [entry.to_dict() for entry in entries]
