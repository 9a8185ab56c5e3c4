"""
Workspace controller for Atelier.

The controller holds the canonical workspace snapshot and the active
project/canvas selection. Every mutation computes a new snapshot with one of
the pure operations in ``atelier.operations``, swaps it in, and hands it to
the persistence engine. High-frequency edits (playground buffers, block
content) go through an ``EditDebouncer`` first and reach the snapshot only
after their quiet window.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, List, Optional, Set, Union

from pydantic import ValidationError

from .config import config
from .errors import NotFound
from .ids import IdGenerator
from .importers import JsonExportImporter, SeedImporter
from .migration import migrate_records, repair_records
from .models import Block, BlockType, Canvas, CanvasType, NoteCanvas, PlaygroundCanvas, PlaygroundContent, Project
from .models.serialization import load_projects, parse_json
from .operations import blocks as block_ops
from .operations import canvases as canvas_ops
from .operations import tree as tree_ops
from .persistence import EditDebouncer, PersistenceEngine, SaveState, Scheduler, ThreadingScheduler


@dataclass
class LoadedWorkspace:
    """Result of reading the stored workspace."""

    projects: List[Project]
    changed: bool
    damaged: bool = False


def load_workspace(raw: Optional[bytes], seed: bool = True) -> LoadedWorkspace:
    """
    Turn stored bytes into a validated, migrated project list.

    An empty store yields the welcome workspace (or nothing if ``seed`` is off).
    Bytes that are not a JSON list are replaced the same way. Otherwise each
    project record is repaired and validated on its own; a record that still
    fails is skipped and the rest of the workspace is kept. Whenever stored
    data could not be read in full, the result is marked ``damaged`` so the
    caller can keep a copy of the raw bytes before writing over them.

    Returns:
        The projects, whether they differ from what was stored, and whether
        anything stored had to be discarded
    """
    if raw is None:
        records = SeedImporter().get_records() if seed else []
        return LoadedWorkspace(load_projects(records), changed=True)

    try:
        data = parse_json(raw)
        if not isinstance(data, list):
            raise ValueError(f"expected a list of projects, got {type(data).__name__}")
    except ValueError as e:
        logging.error(f"Stored workspace is unreadable, starting from defaults: {e}")
        records = SeedImporter().get_records() if seed else []
        return LoadedWorkspace(load_projects(records), changed=True, damaged=True)

    records, migrated = migrate_records(data)
    records, fixes = repair_records(records)

    projects: List[Project] = []
    skipped = 0
    for position, record in enumerate(records):
        try:
            projects.extend(load_projects([record]))
        except ValidationError as e:
            skipped += 1
            logging.error(f"Skipping unreadable project record {position}: {e}")

    projects, relinked = tree_ops.normalize_parent_links(projects)
    return LoadedWorkspace(
        projects,
        changed=migrated or bool(fixes) or bool(skipped) or bool(relinked),
        damaged=bool(skipped),
    )


class WorkspaceController:
    """
    Facade over the workspace: selection state, mutations and persistence.
    """

    def __init__(
        self,
        engine: PersistenceEngine,
        debouncer: EditDebouncer,
        projects: Optional[List[Project]] = None
    ):
        """
        Initialize the controller.

        Args:
            engine: Persistence engine every committed snapshot is written through
            debouncer: Debouncer for high-frequency edits
            projects: Initial workspace snapshot
        """
        self.engine = engine
        self.debouncer = debouncer
        self._projects: List[Project] = list(projects or [])
        self._ids = IdGenerator(tree_ops.collect_ids(self._projects))
        self._lock = threading.RLock()

        self.active_project_id: Optional[str] = self._projects[0].id if self._projects else None
        self.active_canvas_id: Optional[str] = None

    @classmethod
    def open(
        cls,
        store,
        workspace_key: Optional[str] = None,
        scheduler: Optional[Scheduler] = None,
        saving_dwell: Optional[float] = None,
        commit_quiet: Optional[float] = None,
        seed: Optional[bool] = None
    ) -> "WorkspaceController":
        """
        Load the workspace from a store and return a controller for it.

        Unset arguments come from the global configuration. If loading had to
        seed, migrate or repair the data, the result is persisted immediately.
        Stored data that could not be read in full is first copied to a backup
        key; if that copy cannot be written, opening fails.

        Raises:
            StoreWriteFailure: if a damaged workspace could not be backed up
        """
        scheduler = scheduler or ThreadingScheduler()
        engine = PersistenceEngine(
            store,
            workspace_key or config.workspace_key,
            scheduler=scheduler,
            saving_dwell=config.saving_dwell if saving_dwell is None else saving_dwell,
        )
        debouncer = EditDebouncer(
            scheduler,
            quiet=config.commit_quiet if commit_quiet is None else commit_quiet,
        )

        raw = engine.load()
        loaded = load_workspace(raw, config.seed_on_first_run if seed is None else seed)
        if loaded.damaged:
            # Raises StoreWriteFailure, leaving the stored workspace untouched.
            engine.backup(raw)

        controller = cls(engine, debouncer, loaded.projects)
        logging.info(f"Workspace loaded with {len(loaded.projects)} project(s)")
        if loaded.changed:
            engine.persist(controller.projects)
        return controller

    # Snapshot access

    @property
    def projects(self) -> List[Project]:
        return self._projects

    @property
    def save_state(self) -> SaveState:
        return self.engine.state

    @property
    def is_saving(self) -> bool:
        return self.engine.is_saving

    @property
    def active_project(self) -> Optional[Project]:
        return tree_ops.find_project(self._projects, self.active_project_id)

    @property
    def active_canvas(self) -> Optional[Canvas]:
        return canvas_ops.find_canvas(self.active_project, self.active_canvas_id)

    def get_project(self, project_id: str) -> Project:
        project = tree_ops.find_project(self._projects, project_id)
        if project is None:
            raise NotFound("Project", project_id)
        return project

    def project_tree(self) -> List[tree_ops.ProjectNode]:
        return tree_ops.build_project_tree(self._projects)

    def list_canvases(self, project_id: Optional[str] = None, term: str = "") -> List[Canvas]:
        """Canvases of a project (the active one by default), filtered and in display order."""
        project = self.get_project(project_id) if project_id else self._require_active_project()
        return canvas_ops.sort_canvases(canvas_ops.search_canvases(project.canvases, term))

    def _commit(self, projects: List[Project]) -> bool:
        """Swap in a new snapshot and persist it. Identical snapshots are ignored."""
        if projects is self._projects:
            return False
        self._projects = projects
        self.engine.persist(projects)
        return True

    def _require_active_project(self) -> Project:
        project = self.active_project
        if project is None:
            raise NotFound("Project", str(self.active_project_id))
        return project

    # Selection

    def select_project(self, project_id: str) -> None:
        with self._lock:
            self.get_project(project_id)
            self.active_project_id = project_id
            self.active_canvas_id = None

    def select_canvas(self, canvas_id: Optional[str]) -> None:
        with self._lock:
            if canvas_id is not None and canvas_ops.find_canvas(self._require_active_project(), canvas_id) is None:
                raise NotFound("Canvas", canvas_id)
            self.active_canvas_id = canvas_id

    # Projects

    def create_project(self, parent_id: Optional[str] = None, name: str = tree_ops.DEFAULT_PROJECT_NAME) -> Project:
        """Create a project and make it active."""
        with self._lock:
            projects, project = tree_ops.create_project(self._projects, parent_id, name, ids=self._ids)
            self._commit(projects)
            self.active_project_id = project.id
            self.active_canvas_id = None
            return project

    def rename_project(self, project_id: str, new_name: str) -> None:
        with self._lock:
            self._commit(tree_ops.rename_project(self._projects, project_id, new_name))

    def move_project(self, project_id: str, new_parent_id: Optional[str]) -> None:
        with self._lock:
            self._commit(tree_ops.move_project(self._projects, project_id, new_parent_id))

    def delete_project(self, project_id: str) -> Set[str]:
        """
        Delete a project and its subtree.

        If the active project was removed, a remaining root project (else any
        remaining project) becomes active along with its first canvas.

        Returns:
            The removed project ids
        """
        with self._lock:
            projects, removed = tree_ops.delete_project_cascading(self._projects, project_id)
            self._commit(projects)
            if self.active_project_id in removed:
                fallback = tree_ops.choose_fallback_project(projects)
                self.active_project_id = fallback.id if fallback else None
                self.active_canvas_id = canvas_ops.fallback_canvas_id(fallback)
            return removed

    def export_project(self, project_id: str) -> bytes:
        """Serialized export document for a project and its descendants."""
        with self._lock:
            self.flush_edits()
            return tree_ops.export_document(self._projects, project_id)

    def import_document(self, document: Any) -> List[Project]:
        """
        Append an exported document under fresh ids.

        Raises:
            InvalidFormat: if the document is not a valid export; nothing is changed
        """
        with self._lock:
            projects, imported = tree_ops.import_document(self._projects, document, ids=self._ids)
            self._commit(projects)
            return imported

    def import_file(self, path) -> List[Project]:
        return self.import_document(JsonExportImporter(path).get_records())

    # Canvases (active project)

    def add_canvas(self, canvas_type: Union[CanvasType, str]) -> Canvas:
        """Add a canvas to the active project and make it active."""
        with self._lock:
            project = self._require_active_project()
            projects, canvas = canvas_ops.add_canvas(self._projects, project.id, CanvasType(canvas_type), ids=self._ids)
            self._commit(projects)
            self.active_canvas_id = canvas.id
            return canvas

    def delete_canvas(self, canvas_id: str) -> None:
        with self._lock:
            project = self._require_active_project()
            self._commit(canvas_ops.delete_canvas(self._projects, project.id, canvas_id))
            if self.active_canvas_id == canvas_id:
                self.active_canvas_id = canvas_ops.fallback_canvas_id(self.active_project)

    def toggle_pin(self, canvas_id: str) -> None:
        with self._lock:
            project = self._require_active_project()
            self._commit(canvas_ops.toggle_pin(self._projects, project.id, canvas_id))

    def update_canvas_title(self, canvas_id: str, title: str) -> None:
        with self._lock:
            project = self._require_active_project()
            self._commit(canvas_ops.update_title(self._projects, project.id, canvas_id, title))

    def update_playground_content(self, canvas_id: str, content: PlaygroundContent) -> None:
        with self._lock:
            project = self._require_active_project()
            self._update_playground(project.id, canvas_id, content)

    def _update_playground(self, project_id: str, canvas_id: str, content: PlaygroundContent) -> None:
        with self._lock:
            self._commit(canvas_ops.update_playground_content(self._projects, project_id, canvas_id, content))

    # Blocks (active project)

    def add_block(self, canvas_id: str, block_type: Union[BlockType, str]) -> Optional[Block]:
        with self._lock:
            project = self._require_active_project()
            projects, block = block_ops.add_block(self._projects, project.id, canvas_id, BlockType(block_type), ids=self._ids)
            self._commit(projects)
            return block

    def update_block(self, canvas_id: str, block: Block) -> None:
        with self._lock:
            project = self._require_active_project()
            # A pending draft for this block would otherwise overwrite this update later.
            self.debouncer.flush(("block", canvas_id, block.id))
            self._update_block(project.id, canvas_id, block)

    def _update_block(self, project_id: str, canvas_id: str, block: Block) -> None:
        with self._lock:
            self._commit(block_ops.update_block(self._projects, project_id, canvas_id, block))

    def delete_block(self, canvas_id: str, block_id: str) -> None:
        with self._lock:
            project = self._require_active_project()
            self.debouncer.discard(("block", canvas_id, block_id))
            self._commit(block_ops.delete_block(self._projects, project.id, canvas_id, block_id))

    def reorder_blocks(self, canvas_id: str, from_index: int, to_index: int) -> None:
        with self._lock:
            project = self._require_active_project()
            self._commit(block_ops.reorder_blocks(self._projects, project.id, canvas_id, from_index, to_index))

    # Debounced edits

    def edit_playground_content(self, canvas_id: str, content: PlaygroundContent) -> None:
        """Record a keystroke-level playground edit; it is committed after the quiet window."""
        with self._lock:
            project = self._require_active_project()
            project_id = project.id
            self.debouncer.edit(
                ("playground", canvas_id),
                content,
                lambda value: self._update_playground(project_id, canvas_id, value),
            )

    def playground_draft(self, canvas_id: str) -> Optional[PlaygroundContent]:
        """The playground buffers as the editor should show them: draft if any, else stored."""
        draft = self.debouncer.draft(("playground", canvas_id))
        if draft is not None:
            return draft
        canvas = canvas_ops.find_canvas(self.active_project, canvas_id)
        if isinstance(canvas, PlaygroundCanvas):
            return canvas.playground_content
        return None

    def edit_block(self, canvas_id: str, block: Block) -> None:
        """Record a keystroke-level block edit; it is committed after the quiet window."""
        with self._lock:
            project = self._require_active_project()
            project_id = project.id
            self.debouncer.edit(
                ("block", canvas_id, block.id),
                block,
                lambda value: self._update_block(project_id, canvas_id, value),
            )

    def block_draft(self, canvas_id: str, block_id: str) -> Optional[Block]:
        draft = self.debouncer.draft(("block", canvas_id, block_id))
        if draft is not None:
            return draft
        canvas = canvas_ops.find_canvas(self.active_project, canvas_id)
        if isinstance(canvas, NoteCanvas):
            for block in canvas.blocks:
                if block.id == block_id:
                    return block
        return None

    def flush_edits(self) -> int:
        """Commit every pending edit now."""
        return self.debouncer.flush()

    def close(self) -> None:
        """Commit pending edits and stop the indicator timer."""
        with self._lock:
            flushed = self.flush_edits()
            if flushed:
                logging.info(f"Committed {flushed} pending edit(s) on close")
            self.engine.shutdown()
