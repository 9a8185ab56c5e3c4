"""
Project tree operations.

Projects are kept as a flat list; the tree exists only through ``parent_id``.
Children are derived on demand by one scan grouped on ``parent_id``. Every
function here is pure: it takes the current project list and returns a new
one, leaving the input untouched. When nothing changes the input list itself
is returned, so callers can skip persisting no-ops with an identity check.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from pydantic import ValidationError

from ..errors import InvalidFormat, InvalidMove, NotFound
from ..ids import BLOCK_PREFIX, CANVAS_PREFIX, PROJECT_PREFIX, IdGenerator
from ..migration import migrate_records, repair_records
from ..models import NoteCanvas, Project
from ..models.serialization import dump_projects, load_projects, parse_json

DEFAULT_PROJECT_NAME = "New Project"

REQUIRED_PROJECT_FIELDS = ("id", "name", "canvases")


@dataclass
class ProjectNode:
    """A project with its derived children, for tree display."""

    project: Project
    children: List["ProjectNode"] = field(default_factory=list)


def find_project(projects: List[Project], project_id: Optional[str]) -> Optional[Project]:
    if project_id is None:
        return None
    for project in projects:
        if project.id == project_id:
            return project
    return None


def children_by_parent(projects: List[Project]) -> Dict[Optional[str], List[Project]]:
    """Group projects by parent id, preserving list order within each group."""
    groups: Dict[Optional[str], List[Project]] = {}
    for project in projects:
        groups.setdefault(project.parent_id, []).append(project)
    return groups


def collect_ids(projects: List[Project]) -> Set[str]:
    """Every project, canvas and block id in the workspace."""
    ids: Set[str] = set()
    for project in projects:
        ids.add(project.id)
        for canvas in project.canvases:
            ids.add(canvas.id)
            if isinstance(canvas, NoteCanvas):
                ids.update(block.id for block in canvas.blocks)
    return ids


def descendant_closure(projects: List[Project], project_id: str) -> Set[str]:
    """
    The project and all of its transitive descendants.

    Traversal never revisits a node, so a cycle in the parent links cannot
    prevent termination. Returns an empty set if the id is unknown.
    """
    if find_project(projects, project_id) is None:
        return set()

    groups = children_by_parent(projects)
    closure: Set[str] = set()
    stack = [project_id]
    while stack:
        current = stack.pop()
        if current in closure:
            continue
        closure.add(current)
        for child in groups.get(current, []):
            if child.id not in closure:
                stack.append(child.id)
    return closure


def create_project(
    projects: List[Project],
    parent_id: Optional[str] = None,
    name: str = DEFAULT_PROJECT_NAME,
    ids: Optional[IdGenerator] = None
) -> Tuple[List[Project], Project]:
    """
    Append a new empty project.

    A parent id that does not exist is treated as no parent.

    Returns:
        The new project list and the created project
    """
    ids = ids or IdGenerator(collect_ids(projects))
    if parent_id is not None and find_project(projects, parent_id) is None:
        logging.warning(f"Parent project {parent_id!r} not found, creating a root project")
        parent_id = None

    project = Project(id=ids.new_id(PROJECT_PREFIX), name=name, parent_id=parent_id, canvases=[])
    return [*projects, project], project


def rename_project(projects: List[Project], project_id: str, new_name: str) -> List[Project]:
    """Replace a project's name. No-op if the id is unknown."""
    target = find_project(projects, project_id)
    if target is None or target.name == new_name:
        return projects
    return [
        p.model_copy(update={"name": new_name}) if p.id == project_id else p
        for p in projects
    ]


def delete_project_cascading(projects: List[Project], project_id: str) -> Tuple[List[Project], Set[str]]:
    """
    Remove a project and its whole subtree.

    The closure is computed in full before anything is removed, so no
    remaining project can point at a removed parent.

    Returns:
        The remaining projects and the set of removed ids (empty if the id is unknown)
    """
    closure = descendant_closure(projects, project_id)
    if not closure:
        return projects, closure

    remaining = [p for p in projects if p.id not in closure]
    logging.info(f"Deleted {len(closure)} project(s) under {project_id!r}")
    return remaining, closure


def choose_fallback_project(projects: List[Project]) -> Optional[Project]:
    """Project to activate after the active one was removed: first root, else first project."""
    for project in projects:
        if project.parent_id is None:
            return project
    return projects[0] if projects else None


def move_project(projects: List[Project], project_id: str, new_parent_id: Optional[str]) -> List[Project]:
    """
    Re-parent a project.

    Raises:
        NotFound: if the project or the new parent does not exist
        InvalidMove: if the new parent is the project itself or one of its descendants
    """
    target = find_project(projects, project_id)
    if target is None:
        raise NotFound("Project", project_id)
    if new_parent_id is not None:
        if find_project(projects, new_parent_id) is None:
            raise NotFound("Project", new_parent_id)
        if new_parent_id in descendant_closure(projects, project_id):
            raise InvalidMove(f"Cannot move {project_id!r} under its own subtree ({new_parent_id!r})")

    if target.parent_id == new_parent_id:
        return projects
    return [
        p.model_copy(update={"parent_id": new_parent_id}) if p.id == project_id else p
        for p in projects
    ]


def normalize_parent_links(projects: List[Project]) -> Tuple[List[Project], int]:
    """
    Repair parent links: dangling parents and parent cycles become roots.

    Each cycle is cut at its first member in list order.

    Returns:
        The repaired project list and the number of links changed
    """
    known = {p.id for p in projects}
    parents: Dict[str, Optional[str]] = {}
    for p in projects:
        parents[p.id] = p.parent_id if p.parent_id in known else None

    for p in projects:
        visited = {p.id}
        node = parents.get(p.id)
        while node is not None and node not in visited:
            visited.add(node)
            node = parents.get(node)
        if node == p.id:
            parents[p.id] = None

    changed = 0
    result = []
    for p in projects:
        if parents[p.id] != p.parent_id:
            changed += 1
            result.append(p.model_copy(update={"parent_id": parents[p.id]}))
        else:
            result.append(p)

    if changed:
        logging.warning(f"Normalized {changed} invalid parent link(s)")
        return result, changed
    return projects, 0


def build_project_tree(projects: List[Project]) -> List[ProjectNode]:
    """
    Nested view of the forest. Projects whose parent is missing are shown as roots.
    """
    known = {p.id for p in projects}
    groups = children_by_parent(projects)
    visited: Set[str] = set()

    def build(project: Project) -> ProjectNode:
        visited.add(project.id)
        node = ProjectNode(project=project)
        for child in groups.get(project.id, []):
            if child.id not in visited:
                node.children.append(build(child))
        return node

    roots = [p for p in projects if p.parent_id is None or p.parent_id not in known]
    return [build(p) for p in roots if p.id not in visited]


def export_subtree(projects: List[Project], project_id: str) -> List[Project]:
    """
    The project and its descendants, in workspace order, with ids and parent links untouched.

    Raises:
        NotFound: if the project does not exist
    """
    closure = descendant_closure(projects, project_id)
    if not closure:
        raise NotFound("Project", project_id)
    return [p for p in projects if p.id in closure]


def export_document(projects: List[Project], project_id: str) -> bytes:
    """Serialized export document for a project subtree."""
    exported = export_subtree(projects, project_id)
    logging.info(f"Exported {len(exported)} project(s) under {project_id!r}")
    return dump_projects(exported, indent=2)


def export_filename(project: Project) -> str:
    """Suggested file name for an exported project."""
    slug = "_".join(project.name.split()).lower() or "project"
    return f"atelier-export-{slug}.json"


def validate_document(document: Any) -> List[dict]:
    """
    Minimal shape check for an import document.

    Raises:
        InvalidFormat: if the document is not a non-empty list of project-like
            records with string ids
    """
    if isinstance(document, (bytes, str)):
        try:
            document = parse_json(document)
        except ValueError as e:
            raise InvalidFormat(f"Import document is not valid JSON: {e}") from e

    if not isinstance(document, list) or not document:
        raise InvalidFormat("Import document must be a non-empty list of projects")

    for position, record in enumerate(document):
        if not isinstance(record, dict):
            raise InvalidFormat(f"Item {position} is not a project record")
        missing = [name for name in REQUIRED_PROJECT_FIELDS if name not in record]
        if missing:
            raise InvalidFormat(f"Item {position} is missing {', '.join(missing)}")
        if not isinstance(record["canvases"], list):
            raise InvalidFormat(f"Item {position} has canvases that are not a list")
        if not isinstance(record["id"], str):
            raise InvalidFormat(f"Item {position} has an id that is not a string")
        parent_id = record.get("parentId")
        if parent_id is not None and not isinstance(parent_id, str):
            raise InvalidFormat(f"Item {position} has a parentId that is not a string")

        for canvas in record["canvases"]:
            if not isinstance(canvas, dict) or not isinstance(canvas.get("id"), str):
                raise InvalidFormat(f"Item {position} has a canvas without a string id")
            blocks = canvas.get("blocks")
            if blocks is None:
                continue
            if not isinstance(blocks, list):
                raise InvalidFormat(f"Canvas {canvas['id']!r} has blocks that are not a list")
            for block in blocks:
                if not isinstance(block, dict) or not isinstance(block.get("id"), str):
                    raise InvalidFormat(f"Canvas {canvas['id']!r} has a block without a string id")
    return document


def regenerate_ids(records: Iterable[dict], ids: IdGenerator) -> List[dict]:
    """
    Give every project, canvas and block in a document a fresh id.

    Pass 1 assigns new ids, keeping a separate old-to-new map per entity kind.
    Pass 2 rewrites parent links: a parent that is part of the document gets
    its new id; any other parent (or none) becomes None.

    The input records are not modified.
    """
    regenerated = copy.deepcopy(list(records))
    project_map: Dict[Any, str] = {}
    canvas_map: Dict[Any, str] = {}
    block_map: Dict[Any, str] = {}
    original_parents: List[Any] = []

    for record in regenerated:
        original_parents.append(record.get("parentId"))
        new_project_id = ids.new_id(PROJECT_PREFIX)
        project_map.setdefault(record.get("id"), new_project_id)
        record["id"] = new_project_id

        for canvas in record.get("canvases") or []:
            if not isinstance(canvas, dict):
                continue
            new_canvas_id = ids.new_id(CANVAS_PREFIX)
            canvas_map.setdefault(canvas.get("id"), new_canvas_id)
            canvas["id"] = new_canvas_id

            for block in canvas.get("blocks") or []:
                if not isinstance(block, dict):
                    continue
                new_block_id = ids.new_id(BLOCK_PREFIX)
                block_map.setdefault(block.get("id"), new_block_id)
                block["id"] = new_block_id

    for record, parent in zip(regenerated, original_parents):
        if parent is not None and parent in project_map:
            record["parentId"] = project_map[parent]
        else:
            record["parentId"] = None

    return regenerated


def import_document(
    projects: List[Project],
    document: Any,
    ids: Optional[IdGenerator] = None
) -> Tuple[List[Project], List[Project]]:
    """
    Append a document's projects to the workspace under fresh ids.

    The whole batch is validated before anything is appended; on failure the
    workspace is unchanged. Existing projects are never modified.

    Args:
        projects: Current workspace projects
        document: Decoded records, or JSON text/bytes
        ids: Id generator aware of the ids already in use

    Returns:
        The new project list and the imported projects

    Raises:
        InvalidFormat: if the document fails validation
    """
    records = validate_document(document)
    records, _ = migrate_records(records)
    records, _ = repair_records(records)
    ids = ids or IdGenerator(collect_ids(projects))
    regenerated = regenerate_ids(records, ids)

    try:
        imported = load_projects(regenerated)
    except ValidationError as e:
        raise InvalidFormat(f"Import document does not match the workspace schema: {e}") from e

    # A self-referencing parent inside the batch would map onto itself.
    imported, _ = normalize_parent_links(imported)
    logging.info(f"Imported {len(imported)} project(s)")
    return [*projects, *imported], imported
