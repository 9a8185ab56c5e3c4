"""Persistence pipeline: store writes, saving indicator and edit debouncing."""

from .debounce import EditDebouncer
from .engine import PersistenceEngine, SaveState
from .scheduler import DeferredTask, ManualScheduler, Scheduler, ThreadingScheduler

__all__ = [
    "EditDebouncer",
    "PersistenceEngine",
    "SaveState",
    "DeferredTask",
    "ManualScheduler",
    "Scheduler",
    "ThreadingScheduler",
]
