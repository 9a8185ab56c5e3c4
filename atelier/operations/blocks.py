"""
Block operations within a single note canvas.

Block operations on a playground canvas are no-ops: playgrounds have no blocks.
"""

import logging
from typing import List, Optional, Sequence, Tuple, TypeVar

from ..ids import BLOCK_PREFIX, IdGenerator
from ..models import Block, BlockType, Canvas, NoteCanvas, Project
from ..models.payloads import default_content
from .canvases import find_canvas, map_canvas
from .tree import collect_ids, find_project

T = TypeVar("T")


def move_item(items: Sequence[T], from_index: int, to_index: int) -> List[T]:
    """
    Remove the item at ``from_index`` and reinsert it at ``to_index``.

    Indices outside the sequence leave it unchanged.
    """
    result = list(items)
    if not (0 <= from_index < len(result) and 0 <= to_index < len(result)):
        return result
    item = result.pop(from_index)
    result.insert(to_index, item)
    return result


def _note(canvas: Canvas) -> Optional[NoteCanvas]:
    return canvas if isinstance(canvas, NoteCanvas) else None


def add_block(
    projects: List[Project],
    project_id: str,
    canvas_id: str,
    block_type: BlockType,
    ids: Optional[IdGenerator] = None
) -> Tuple[List[Project], Optional[Block]]:
    """
    Append a block with default content for its type.

    Returns:
        The new project list and the added block (None if the canvas is not a note)
    """
    canvas = find_canvas(find_project(projects, project_id), canvas_id)
    if _note(canvas) is None:
        return projects, None

    ids = ids or IdGenerator(collect_ids(projects))
    block_type = BlockType(block_type)
    block = Block(id=ids.new_id(BLOCK_PREFIX), type=block_type, content=default_content(block_type))
    updated = map_canvas(
        projects, project_id, canvas_id,
        lambda c: c.model_copy(update={"blocks": [*c.blocks, block]})
    )
    return updated, block


def update_block(projects: List[Project], project_id: str, canvas_id: str, block: Block) -> List[Project]:
    """
    Replace a block's content in place.

    The block keeps its position, id and type; a mismatched type on the
    incoming block is ignored. Block ids are expected to be unique within a
    canvas; if hand-edited data repeats one, only the first block with that
    id is changed.
    """
    def change(canvas: Canvas) -> Canvas:
        note = _note(canvas)
        if note is None:
            return canvas
        for index, existing in enumerate(note.blocks):
            if existing.id == block.id:
                break
        else:
            return canvas

        if existing.type != block.type:
            logging.warning(f"Ignoring type change of block {block.id!r} from {existing.type.value} to {block.type.value}")
        if existing.content == block.content:
            return canvas
        blocks = list(note.blocks)
        blocks[index] = existing.model_copy(update={"content": block.content})
        return note.model_copy(update={"blocks": blocks})

    return map_canvas(projects, project_id, canvas_id, change)


def delete_block(projects: List[Project], project_id: str, canvas_id: str, block_id: str) -> List[Project]:
    def change(canvas: Canvas) -> Canvas:
        note = _note(canvas)
        if note is None or all(b.id != block_id for b in note.blocks):
            return canvas
        return note.model_copy(update={"blocks": [b for b in note.blocks if b.id != block_id]})

    return map_canvas(projects, project_id, canvas_id, change)


def reorder_blocks(
    projects: List[Project],
    project_id: str,
    canvas_id: str,
    from_index: int,
    to_index: int
) -> List[Project]:
    """
    Move one block to a new position. The result is a permutation of the same blocks.

    Equal or out-of-range indices are a no-op.
    """
    def change(canvas: Canvas) -> Canvas:
        note = _note(canvas)
        if note is None or from_index == to_index:
            return canvas
        if not (0 <= from_index < len(note.blocks) and 0 <= to_index < len(note.blocks)):
            logging.debug(f"Ignoring out-of-range block move {from_index} -> {to_index}")
            return canvas
        return note.model_copy(update={"blocks": move_item(note.blocks, from_index, to_index)})

    return map_canvas(projects, project_id, canvas_id, change)
