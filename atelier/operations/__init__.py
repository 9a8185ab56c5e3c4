"""Pure workspace operations over the project list."""

from .blocks import add_block, delete_block, reorder_blocks, update_block
from .canvases import (
    add_canvas,
    canvas_preview,
    delete_canvas,
    search_canvases,
    sort_canvases,
    toggle_pin,
    update_playground_content,
    update_title,
)
from .tree import (
    ProjectNode,
    build_project_tree,
    create_project,
    delete_project_cascading,
    descendant_closure,
    export_subtree,
    import_document,
    move_project,
    normalize_parent_links,
    rename_project,
)

__all__ = [
    "add_block",
    "delete_block",
    "reorder_blocks",
    "update_block",
    "add_canvas",
    "canvas_preview",
    "delete_canvas",
    "search_canvases",
    "sort_canvases",
    "toggle_pin",
    "update_playground_content",
    "update_title",
    "ProjectNode",
    "build_project_tree",
    "create_project",
    "delete_project_cascading",
    "descendant_closure",
    "export_subtree",
    "import_document",
    "move_project",
    "normalize_parent_links",
    "rename_project",
]
