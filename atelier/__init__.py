"""
Atelier: a personal workspace of projects, notes and code playgrounds.

Keeps a tree of projects in memory and synchronizes it with a durable store.
"""

__version__ = "0.1.0"
__author__ = "Atelier Project"

# Import main components
from .controller import WorkspaceController
from .database import DatabaseManager
from .errors import AtelierError, InvalidFormat, InvalidMove, NotFound, StoreWriteFailure
from .models import Block, BlockType, CanvasType, NoteCanvas, PlaygroundCanvas, PlaygroundContent, Project
from .persistence import ManualScheduler, PersistenceEngine, SaveState, ThreadingScheduler

__all__ = [
    "WorkspaceController",
    "DatabaseManager",
    "AtelierError",
    "InvalidFormat",
    "InvalidMove",
    "NotFound",
    "StoreWriteFailure",
    "Block",
    "BlockType",
    "CanvasType",
    "NoteCanvas",
    "PlaygroundCanvas",
    "PlaygroundContent",
    "Project",
    "ManualScheduler",
    "PersistenceEngine",
    "SaveState",
    "ThreadingScheduler",
]
