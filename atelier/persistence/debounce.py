"""
Debounced commits for high-frequency edits.

Keystroke-level edits update a draft immediately and are committed into the
workspace only after a quiet period with no further edits to the same field.
Each field has its own timer.

Pending drafts are lost if the process exits abruptly within the quiet
period of the last edit. ``flush`` commits them and is called on a graceful
close.
"""

import logging
import threading
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from .scheduler import DeferredTask, Scheduler

DEFAULT_COMMIT_QUIET = 0.5

Commit = Callable[[Any], None]


class EditDebouncer:
    """
    Holds per-field drafts and commits each one after its own quiet window.
    """

    def __init__(self, scheduler: Scheduler, quiet: float = DEFAULT_COMMIT_QUIET):
        self.scheduler = scheduler
        self.quiet = quiet
        self._pending: Dict[Hashable, Tuple[Any, Commit, DeferredTask]] = {}
        self._lock = threading.RLock()

    def edit(self, field: Hashable, value: Any, commit: Commit) -> None:
        """
        Record a new draft value for a field and restart that field's quiet window.

        Args:
            field: Key identifying the edited field
            value: The latest draft value
            commit: Called with the draft value once the field has been quiet
        """
        with self._lock:
            previous = self._pending.get(field)
            if previous is not None:
                previous[2].cancel()
            task = self.scheduler.call_later(self.quiet, lambda: self._commit(field, task))
            self._pending[field] = (value, commit, task)

    def draft(self, field: Hashable, default: Any = None) -> Any:
        """The uncommitted value for a field, or ``default`` if nothing is pending."""
        with self._lock:
            entry = self._pending.get(field)
            return entry[0] if entry is not None else default

    def has_pending(self, field: Optional[Hashable] = None) -> bool:
        with self._lock:
            if field is None:
                return bool(self._pending)
            return field in self._pending

    def _commit(self, field: Hashable, task: DeferredTask) -> None:
        with self._lock:
            entry = self._pending.get(field)
            if entry is None or entry[2] is not task:
                return
            del self._pending[field]
        value, commit, _ = entry
        logging.debug(f"Committing debounced edit for {field!r}")
        commit(value)

    def flush(self, field: Optional[Hashable] = None) -> int:
        """
        Commit pending drafts now instead of waiting for their quiet window.

        Returns:
            Number of drafts committed
        """
        with self._lock:
            fields = [field] if field is not None else list(self._pending)
            entries = []
            for key in fields:
                entry = self._pending.pop(key, None)
                if entry is not None:
                    entry[2].cancel()
                    entries.append((key, entry))

        for key, (value, commit, _) in entries:
            logging.debug(f"Flushing debounced edit for {key!r}")
            commit(value)
        return len(entries)

    def discard(self, field: Optional[Hashable] = None) -> None:
        """Drop pending drafts without committing them."""
        with self._lock:
            fields = [field] if field is not None else list(self._pending)
            for key in fields:
                entry = self._pending.pop(key, None)
                if entry is not None:
                    entry[2].cancel()
