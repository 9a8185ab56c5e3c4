"""
Canvas operations within a single project.

Like the tree operations, these are pure functions over the project list and
return the input list unchanged when nothing applies.
"""

from typing import Callable, List, Optional, Tuple

from ..errors import NotFound
from ..ids import BLOCK_PREFIX, CANVAS_PREFIX, IdGenerator
from ..models import (
    Block,
    BlockType,
    Canvas,
    CanvasType,
    NoteCanvas,
    PlaygroundCanvas,
    PlaygroundContent,
    Project,
)
from ..models.payloads import TodoContent, decode_block, searchable_text
from .tree import collect_ids, find_project

DEFAULT_NOTE_TITLE = "Untitled Note"
DEFAULT_NOTE_HEADING = "New Note"
DEFAULT_PLAYGROUND_TITLE = "New Playground"
DEFAULT_PLAYGROUND_CONTENT = PlaygroundContent(
    html="<h1>Hello, World!</h1>",
    css="h1 { color: blue; }",
    js='console.log("Hello from the playground!");',
)

PREVIEW_LENGTH = 100


def find_canvas(project: Optional[Project], canvas_id: Optional[str]) -> Optional[Canvas]:
    if project is None or canvas_id is None:
        return None
    for canvas in project.canvases:
        if canvas.id == canvas_id:
            return canvas
    return None


def map_canvas(
    projects: List[Project],
    project_id: str,
    canvas_id: str,
    change: Callable[[Canvas], Canvas]
) -> List[Project]:
    """
    Replace one canvas with ``change(canvas)``.

    Returns the input list when the project or canvas is missing or when
    ``change`` returns the canvas it was given.
    """
    project = find_project(projects, project_id)
    canvas = find_canvas(project, canvas_id)
    if canvas is None:
        return projects

    updated = change(canvas)
    if updated is canvas:
        return projects

    new_project = project.model_copy(update={
        "canvases": [updated if c.id == canvas_id else c for c in project.canvases]
    })
    return [new_project if p.id == project_id else p for p in projects]


def new_canvas(canvas_type: CanvasType, ids: IdGenerator) -> Canvas:
    """A fresh canvas with default content for its type."""
    if canvas_type == CanvasType.NOTE:
        return NoteCanvas(
            id=ids.new_id(CANVAS_PREFIX),
            title=DEFAULT_NOTE_TITLE,
            blocks=[Block(id=ids.new_id(BLOCK_PREFIX), type=BlockType.HEADING, content=DEFAULT_NOTE_HEADING)],
        )
    return PlaygroundCanvas(
        id=ids.new_id(CANVAS_PREFIX),
        title=DEFAULT_PLAYGROUND_TITLE,
        playground_content=DEFAULT_PLAYGROUND_CONTENT,
    )


def add_canvas(
    projects: List[Project],
    project_id: str,
    canvas_type: CanvasType,
    ids: Optional[IdGenerator] = None
) -> Tuple[List[Project], Canvas]:
    """
    Prepend a new canvas to a project (newest first).

    Raises:
        NotFound: if the project does not exist
    """
    project = find_project(projects, project_id)
    if project is None:
        raise NotFound("Project", project_id)

    canvas = new_canvas(CanvasType(canvas_type), ids or IdGenerator(collect_ids(projects)))
    new_project = project.model_copy(update={"canvases": [canvas, *project.canvases]})
    return [new_project if p.id == project_id else p for p in projects], canvas


def delete_canvas(projects: List[Project], project_id: str, canvas_id: str) -> List[Project]:
    """Remove a canvas. Its blocks go with it."""
    project = find_project(projects, project_id)
    if find_canvas(project, canvas_id) is None:
        return projects
    new_project = project.model_copy(update={
        "canvases": [c for c in project.canvases if c.id != canvas_id]
    })
    return [new_project if p.id == project_id else p for p in projects]


def fallback_canvas_id(project: Optional[Project]) -> Optional[str]:
    """Canvas to activate when the active one goes away: the first remaining one."""
    if project is None or not project.canvases:
        return None
    return project.canvases[0].id


def toggle_pin(projects: List[Project], project_id: str, canvas_id: str) -> List[Project]:
    return map_canvas(
        projects, project_id, canvas_id,
        lambda c: c.model_copy(update={"is_pinned": not c.is_pinned})
    )


def update_title(projects: List[Project], project_id: str, canvas_id: str, title: str) -> List[Project]:
    return map_canvas(
        projects, project_id, canvas_id,
        lambda c: c if c.title == title else c.model_copy(update={"title": title})
    )


def update_playground_content(
    projects: List[Project],
    project_id: str,
    canvas_id: str,
    content: PlaygroundContent
) -> List[Project]:
    """Replace a playground's buffers. Note canvases are left alone."""
    def change(canvas: Canvas) -> Canvas:
        if not isinstance(canvas, PlaygroundCanvas) or canvas.playground_content == content:
            return canvas
        return canvas.model_copy(update={"playground_content": content})

    return map_canvas(projects, project_id, canvas_id, change)


def sort_canvases(canvases: List[Canvas]) -> List[Canvas]:
    """Pinned canvases first, then newest first within each group."""
    return sorted(canvases, key=lambda c: (not c.is_pinned, -c.created_at.timestamp()))


def search_canvases(canvases: List[Canvas], term: str) -> List[Canvas]:
    """
    Canvases whose title or block text contains ``term``, case-insensitively.

    An empty term matches everything. Order is preserved.
    """
    needle = term.strip().lower()
    if not needle:
        return list(canvases)

    def matches(canvas: Canvas) -> bool:
        if needle in canvas.title.lower():
            return True
        if isinstance(canvas, NoteCanvas):
            return any(needle in searchable_text(block).lower() for block in canvas.blocks)
        return False

    return [c for c in canvases if matches(c)]


def canvas_preview(canvas: Canvas) -> str:
    """One-line summary of a canvas for listings."""
    if isinstance(canvas, PlaygroundCanvas):
        return "HTML/CSS/JS Playground"
    if not canvas.blocks:
        return "No content"

    for block in canvas.blocks:
        if block.type == BlockType.HEADING:
            return f"H: {block.content}"
        if block.type == BlockType.TEXT:
            return block.content[:PREVIEW_LENGTH]

    first = canvas.blocks[0]
    marker = f"[{first.type.value.lower()} block]"
    if first.type == BlockType.TODO:
        content = decode_block(first)
        if isinstance(content, TodoContent) and content.text:
            return content.text
    return marker
