"""Data models for Atelier."""

from .workspace import (
    Block,
    BlockType,
    Canvas,
    CanvasType,
    NoteCanvas,
    PlaygroundCanvas,
    PlaygroundContent,
    Project,
)
from .payloads import (
    SUPPORTED_LANGUAGES,
    AssetContent,
    BlockContent,
    CodeContent,
    ConsoleEntry,
    HeadingContent,
    TextContent,
    TodoContent,
    decode_block,
    decode_code,
    decode_todo,
    display_language,
    encode_content,
)

__all__ = [
    "Block",
    "BlockType",
    "Canvas",
    "CanvasType",
    "NoteCanvas",
    "PlaygroundCanvas",
    "PlaygroundContent",
    "Project",
    "SUPPORTED_LANGUAGES",
    "AssetContent",
    "BlockContent",
    "CodeContent",
    "ConsoleEntry",
    "HeadingContent",
    "TextContent",
    "TodoContent",
    "decode_block",
    "decode_code",
    "decode_todo",
    "display_language",
    "encode_content",
]
