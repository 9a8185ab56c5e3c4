"""
Tests for deferred tasks, the persistence engine and the edit debouncer.
"""

import threading
import unittest
from unittest.mock import MagicMock

from atelier.errors import StoreWriteFailure
from atelier.models import Project
from atelier.models.serialization import dump_projects
from atelier.persistence import (
    DeferredTask,
    EditDebouncer,
    ManualScheduler,
    PersistenceEngine,
    SaveState,
    ThreadingScheduler,
)


class TestSchedulers(unittest.TestCase):
    """Test deferred task handling."""

    def test_task_runs_once(self):
        calls = []
        task = DeferredTask(lambda: calls.append(1))

        self.assertTrue(task.run())
        self.assertFalse(task.run())
        self.assertFalse(task.cancel())
        self.assertEqual(calls, [1])
        self.assertTrue(task.fired)

    def test_cancelled_task_never_runs(self):
        calls = []
        task = DeferredTask(lambda: calls.append(1))

        self.assertTrue(task.cancel())
        self.assertFalse(task.run())
        self.assertEqual(calls, [])
        self.assertFalse(task.pending)

    def test_manual_scheduler_runs_due_tasks_in_order(self):
        scheduler = ManualScheduler()
        calls = []
        scheduler.call_later(2.0, lambda: calls.append("late"))
        scheduler.call_later(1.0, lambda: calls.append("early"))
        scheduler.call_later(1.0, lambda: calls.append("early-second"))

        self.assertEqual(scheduler.advance(0.5), 0)
        self.assertEqual(scheduler.next_due(), 1.0)
        self.assertEqual(scheduler.advance(1.0), 2)
        self.assertEqual(calls, ["early", "early-second"])
        self.assertEqual(scheduler.pending_count, 1)
        self.assertEqual(scheduler.advance(1.0), 1)
        self.assertEqual(calls, ["early", "early-second", "late"])
        self.assertIsNone(scheduler.next_due())
        self.assertEqual(scheduler.now, 2.5)

    def test_manual_scheduler_skips_cancelled(self):
        scheduler = ManualScheduler()
        calls = []
        task = scheduler.call_later(1.0, lambda: calls.append(1))
        task.cancel()

        self.assertEqual(scheduler.advance(5.0), 0)
        self.assertEqual(calls, [])

    def test_task_scheduled_from_callback(self):
        scheduler = ManualScheduler()
        calls = []
        scheduler.call_later(1.0, lambda: scheduler.call_later(1.0, lambda: calls.append(scheduler.now)))

        scheduler.advance(3.0)

        self.assertEqual(calls, [2.0])

    def test_threading_scheduler_fires(self):
        scheduler = ThreadingScheduler()
        fired = threading.Event()
        try:
            scheduler.call_later(0.01, fired.set)
            self.assertTrue(fired.wait(5))
        finally:
            scheduler.shutdown()

    def test_threading_scheduler_cancel(self):
        scheduler = ThreadingScheduler()
        fired = threading.Event()
        task = scheduler.call_later(0.2, fired.set)
        task.cancel()
        self.assertFalse(fired.wait(0.5))
        scheduler.shutdown()


class TestPersistenceEngine(unittest.TestCase):
    """Test immediate writes and the saving indicator."""

    def setUp(self):
        self.store = MagicMock()
        self.scheduler = ManualScheduler()
        self.states = []
        self.engine = PersistenceEngine(
            self.store,
            "atelier-projects",
            scheduler=self.scheduler,
            saving_dwell=1.5,
            on_state_change=self.states.append,
        )
        self.projects = [Project(id="p", name="P")]

    def test_write_is_immediate(self):
        self.assertTrue(self.engine.persist(self.projects))

        self.store.set.assert_called_once_with("atelier-projects", dump_projects(self.projects))
        self.assertEqual(self.engine.state, SaveState.PENDING)
        self.assertTrue(self.engine.is_saving)
        self.assertEqual(self.engine.write_count, 1)

    def test_indicator_settles_after_dwell(self):
        self.engine.persist(self.projects)

        self.scheduler.advance(1.0)
        self.assertEqual(self.engine.state, SaveState.PENDING)
        self.scheduler.advance(0.6)
        self.assertEqual(self.engine.state, SaveState.IDLE)
        self.assertEqual(self.states, [SaveState.PENDING, SaveState.IDLE])

    def test_burst_rearms_dwell(self):
        for _ in range(3):
            self.engine.persist(self.projects)
            self.scheduler.advance(1.0)

        self.assertEqual(self.store.set.call_count, 3)
        self.assertEqual(self.engine.state, SaveState.PENDING)
        self.scheduler.advance(0.4)
        self.assertEqual(self.engine.state, SaveState.PENDING)
        self.scheduler.advance(0.2)
        self.assertEqual(self.engine.state, SaveState.IDLE)
        self.assertEqual(self.states, [SaveState.PENDING, SaveState.IDLE])

    def test_failed_write_stays_pending(self):
        self.store.set.side_effect = StoreWriteFailure("disk full")

        self.assertFalse(self.engine.persist(self.projects))

        self.assertEqual(self.engine.state, SaveState.PENDING)
        self.assertEqual(self.scheduler.pending_count, 0)
        self.scheduler.advance(10.0)
        self.assertEqual(self.engine.state, SaveState.PENDING)
        self.assertEqual(self.engine.failure_count, 1)
        self.assertIsInstance(self.engine.last_failure, StoreWriteFailure)

    def test_next_successful_write_recovers(self):
        self.store.set.side_effect = [StoreWriteFailure("disk full"), None]

        self.engine.persist(self.projects)
        self.assertTrue(self.engine.persist(self.projects))

        self.assertIsNone(self.engine.last_failure)
        self.scheduler.advance(1.6)
        self.assertEqual(self.engine.state, SaveState.IDLE)

    def test_load_reads_workspace_key(self):
        self.store.get.return_value = b"[]"
        self.assertEqual(self.engine.load(), b"[]")
        self.store.get.assert_called_once_with("atelier-projects")

    def test_backup_writes_copy_under_separate_key(self):
        key = self.engine.backup(b"[broken")

        self.assertTrue(key.startswith("atelier-projects.backup-"))
        self.store.set.assert_called_once_with(key, b"[broken")
        self.assertEqual(self.engine.state, SaveState.IDLE)

    def test_backup_failure_is_raised(self):
        self.store.set.side_effect = StoreWriteFailure("disk full")
        with self.assertRaises(StoreWriteFailure):
            self.engine.backup(b"[broken")

    def test_shutdown_cancels_indicator_timer(self):
        self.engine.persist(self.projects)
        self.engine.shutdown()
        self.assertEqual(self.scheduler.pending_count, 0)


class TestEditDebouncer(unittest.TestCase):
    """Test quiet-window coalescing of edits."""

    def setUp(self):
        self.scheduler = ManualScheduler()
        self.debouncer = EditDebouncer(self.scheduler, quiet=0.5)
        self.committed = []

    def _commit(self, value):
        self.committed.append(value)

    def test_burst_commits_last_value_once(self):
        for value in ("a", "ab", "abc"):
            self.debouncer.edit("field", value, self._commit)
            self.scheduler.advance(0.2)

        self.assertEqual(self.committed, [])
        self.assertEqual(self.debouncer.draft("field"), "abc")
        self.scheduler.advance(0.4)
        self.assertEqual(self.committed, ["abc"])
        self.assertFalse(self.debouncer.has_pending())
        self.assertEqual(self.debouncer.draft("field", "stored"), "stored")

    def test_fields_have_independent_windows(self):
        self.debouncer.edit("one", 1, self._commit)
        self.scheduler.advance(0.3)
        self.debouncer.edit("two", 2, self._commit)
        self.scheduler.advance(0.3)

        self.assertEqual(self.committed, [1])
        self.assertTrue(self.debouncer.has_pending("two"))
        self.assertFalse(self.debouncer.has_pending("one"))
        self.scheduler.advance(0.3)
        self.assertEqual(self.committed, [1, 2])

    def test_flush_commits_immediately(self):
        self.debouncer.edit("one", 1, self._commit)
        self.debouncer.edit("two", 2, self._commit)

        self.assertEqual(self.debouncer.flush("one"), 1)
        self.assertEqual(self.committed, [1])
        self.assertEqual(self.debouncer.flush(), 1)
        self.assertEqual(self.committed, [1, 2])

        self.scheduler.advance(1.0)
        self.assertEqual(self.committed, [1, 2])
        self.assertEqual(self.debouncer.flush(), 0)

    def test_discard_drops_drafts(self):
        self.debouncer.edit("one", 1, self._commit)

        self.debouncer.discard("one")
        self.scheduler.advance(1.0)

        self.assertEqual(self.committed, [])
        self.assertFalse(self.debouncer.has_pending())


if __name__ == '__main__':
    unittest.main(verbosity=2)
