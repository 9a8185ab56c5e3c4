"""
Persistence engine for Atelier.

Every accepted mutation is written to the durable store straight away. Only
the visible "saving" indicator is debounced: it goes to PENDING on each
write and back to IDLE once no write has happened for the dwell period.
"""

import logging
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Sequence

from ..errors import StoreWriteFailure
from ..models import Project
from ..models.serialization import dump_projects
from .scheduler import DeferredTask, Scheduler, ThreadingScheduler

DEFAULT_SAVING_DWELL = 1.5


class SaveState(str, Enum):
    """State of the saving indicator."""

    IDLE = "idle"
    PENDING = "pending"


class PersistenceEngine:
    """
    Writes workspace snapshots to a store and drives the saving indicator.

    The store only needs ``get(key)`` and ``set(key, value)``; ``set`` must
    raise ``StoreWriteFailure`` when a write does not complete.
    """

    def __init__(
        self,
        store,
        workspace_key: str,
        scheduler: Optional[Scheduler] = None,
        saving_dwell: float = DEFAULT_SAVING_DWELL,
        on_state_change: Optional[Callable[[SaveState], None]] = None
    ):
        """
        Initialize the persistence engine.

        Args:
            store: Key/value store adapter
            workspace_key: Key the whole workspace is stored under
            scheduler: Source of deferred tasks for the indicator dwell
            saving_dwell: Seconds without writes before the indicator settles
            on_state_change: Called with the new state whenever it changes
        """
        self.store = store
        self.workspace_key = workspace_key
        self.scheduler = scheduler or ThreadingScheduler()
        self.saving_dwell = saving_dwell
        self.on_state_change = on_state_change

        self.state = SaveState.IDLE
        self.last_failure: Optional[StoreWriteFailure] = None
        self.write_count = 0
        self.failure_count = 0

        self._timer: Optional[DeferredTask] = None
        self._generation = 0
        self._lock = threading.RLock()

    @property
    def is_saving(self) -> bool:
        return self.state == SaveState.PENDING

    def load(self) -> Optional[bytes]:
        """Read the stored workspace bytes, or None if nothing has been saved yet."""
        return self.store.get(self.workspace_key)

    def backup(self, payload: bytes) -> str:
        """
        Keep a copy of stored bytes under a timestamped key next to the workspace.

        Returns:
            The key the copy was written under

        Raises:
            StoreWriteFailure: if the copy could not be written
        """
        key = f"{self.workspace_key}.backup-{datetime.now(timezone.utc):%Y%m%dT%H%M%S%f}"
        self.store.set(key, payload)
        logging.warning(f"Saved a copy of the stored workspace under {key!r}")
        return key

    def persist(self, projects: Sequence[Project]) -> bool:
        """
        Write a full snapshot and (re)arm the indicator dwell.

        A failed write is logged and leaves the indicator PENDING with no
        timer armed; the next successful write re-arms it.

        Args:
            projects: The canonical workspace snapshot

        Returns:
            True if the write succeeded, False otherwise
        """
        payload = dump_projects(projects)

        with self._lock:
            self._generation += 1
            generation = self._generation
            self._cancel_timer()
            self._set_state(SaveState.PENDING)

            try:
                self.store.set(self.workspace_key, payload)
            except StoreWriteFailure as e:
                self.failure_count += 1
                self.last_failure = e
                logging.error(f"Workspace write failed, keeping changes in memory: {e}")
                return False

            self.write_count += 1
            self.last_failure = None
            self._timer = self.scheduler.call_later(
                self.saving_dwell, lambda: self._settle(generation)
            )
            return True

    def _settle(self, generation: int) -> None:
        with self._lock:
            # A write that raced the timer thread owns the indicator now.
            if generation != self._generation:
                return
            self._timer = None
            self._set_state(SaveState.IDLE)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _set_state(self, state: SaveState) -> None:
        if state == self.state:
            return
        self.state = state
        if self.on_state_change:
            self.on_state_change(state)

    def shutdown(self) -> None:
        """Drop the indicator timer."""
        with self._lock:
            self._cancel_timer()
