"""
Upgrade of stored workspaces from older shapes.

Early workspaces stored canvases without a ``type`` field; every canvas was
a note. The migration works on decoded JSON records, before they are
validated into models, and is idempotent: a workspace in which every canvas
has a ``type`` is returned unchanged.

Hand-edited or partially written data is patched up by ``repair_records``
so that one damaged block does not make a whole project unreadable.
"""

import json
import logging
from typing import Any, List, Tuple

from .ids import BLOCK_PREFIX, IdGenerator
from .models import BlockType

EMPTY_PLAYGROUND = {"html": "", "css": "", "js": ""}

BLOCK_TYPES = {block_type.value for block_type in BlockType}


def _is_legacy_canvas(canvas: Any) -> bool:
    return isinstance(canvas, dict) and "type" not in canvas


def needs_migration(records: List[Any]) -> bool:
    """True if any canvas in the records lacks a type."""
    for record in records:
        if not isinstance(record, dict):
            continue
        for canvas in record.get("canvases") or []:
            if _is_legacy_canvas(canvas):
                return True
    return False


def _migrate_canvas(canvas: dict) -> dict:
    migrated = dict(canvas)
    migrated["type"] = "NOTE"
    if migrated.get("blocks") is None:
        migrated["blocks"] = []
    if migrated.get("playgroundContent") is None:
        migrated["playgroundContent"] = dict(EMPTY_PLAYGROUND)
    return migrated


def migrate_records(records: List[Any]) -> Tuple[List[Any], bool]:
    """
    Bring legacy canvases up to the current schema.

    Untyped canvases become notes with their blocks (or an empty list) and
    empty playground buffers. The input is not modified.

    Returns:
        The migrated records and whether anything changed
    """
    if not needs_migration(records):
        return records, False

    migrated_count = 0
    result = []
    for record in records:
        if not isinstance(record, dict) or not isinstance(record.get("canvases"), list):
            result.append(record)
            continue
        canvases = []
        for canvas in record["canvases"]:
            if _is_legacy_canvas(canvas):
                canvases.append(_migrate_canvas(canvas))
                migrated_count += 1
            else:
                canvases.append(canvas)
        result.append({**record, "canvases": canvases})

    logging.info(f"Migrated {migrated_count} legacy canvas(es) to the current schema")
    return result, True


def _repair_block(block: dict, ids: IdGenerator) -> Tuple[dict, int]:
    repaired = dict(block)
    fixes = 0

    if not isinstance(repaired.get("id"), str):
        repaired["id"] = ids.new_id(BLOCK_PREFIX)
        fixes += 1

    if repaired.get("type") not in BLOCK_TYPES:
        logging.warning(f"Block {repaired['id']!r} has unknown type {repaired.get('type')!r}, treating it as TEXT")
        repaired["type"] = "TEXT"
        fixes += 1

    content = repaired.get("content")
    if content is None:
        repaired["content"] = ""
        fixes += 1
    elif isinstance(content, (dict, list)):
        repaired["content"] = json.dumps(content, separators=(",", ":"))
        fixes += 1
    elif not isinstance(content, str):
        repaired["content"] = str(content)
        fixes += 1

    return (repaired, fixes) if fixes else (block, 0)


def _repair_canvas(canvas: dict, ids: IdGenerator) -> Tuple[dict, int]:
    repaired = dict(canvas)
    fixes = 0

    if repaired.get("title") is None:
        repaired["title"] = ""
        fixes += 1

    if repaired.get("type") == "NOTE":
        blocks = repaired.get("blocks")
        if not isinstance(blocks, list):
            blocks = []
            fixes += 1
        new_blocks = []
        for block in blocks:
            if not isinstance(block, dict):
                logging.warning(f"Dropping malformed block in canvas {repaired.get('id')!r}")
                fixes += 1
                continue
            new_block, block_fixes = _repair_block(block, ids)
            new_blocks.append(new_block)
            fixes += block_fixes
        repaired["blocks"] = new_blocks

    elif repaired.get("type") == "PLAYGROUND":
        content = repaired.get("playgroundContent")
        if not isinstance(content, dict):
            content = dict(EMPTY_PLAYGROUND)
            fixes += 1
        buffers = {}
        for name in EMPTY_PLAYGROUND:
            value = content.get(name)
            if not isinstance(value, str):
                value = "" if value is None else str(value)
                fixes += 1
            buffers[name] = value
        repaired["playgroundContent"] = {**content, **buffers}

    return (repaired, fixes) if fixes else (canvas, 0)


def repair_records(records: List[Any]) -> Tuple[List[Any], int]:
    """
    Fix content-level damage so records pass validation.

    Null titles, contents and playground buffers become empty strings,
    non-string block content is re-encoded, blocks without a usable id get a
    fresh one and blocks of an unknown type become TEXT. Damage to a
    project's own fields is left for validation to report. The input is not
    modified.

    Returns:
        The repaired records and the number of fixes applied
    """
    ids = IdGenerator()
    total = 0
    result = []
    for record in records:
        if not isinstance(record, dict) or not isinstance(record.get("canvases"), list):
            result.append(record)
            continue
        canvases = []
        record_fixes = 0
        for canvas in record["canvases"]:
            if isinstance(canvas, dict):
                canvas, fixes = _repair_canvas(canvas, ids)
                record_fixes += fixes
            canvases.append(canvas)
        result.append({**record, "canvases": canvases} if record_fixes else record)
        total += record_fixes

    if not total:
        return records, 0
    logging.warning(f"Repaired {total} damaged field(s) in stored records")
    return result, total
