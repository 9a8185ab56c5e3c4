"""
Typed block content for Atelier.

Blocks store their content as a single string. This module turns that string
into one value per block kind and back again. Decoding never fails: content
that cannot be read is replaced by a safe default so that older or
hand-edited notes stay viewable.
"""

import json
import logging
from typing import Any, List, Literal, Union

from pydantic import BaseModel, Field

from .workspace import Block, BlockType

SUPPORTED_LANGUAGES = (
    "javascript",
    "python",
    "html",
    "css",
    "ruby",
    "json",
    "typescript",
    "csharp",
    "jsx",
    "tsx",
    "markdown",
)

DEFAULT_LANGUAGE = "javascript"

DEFAULT_CODE = "// Start coding..."


class TextContent(BaseModel):
    """Markdown text, used verbatim."""

    kind: Literal["TEXT"] = "TEXT"
    text: str = ""


class HeadingContent(BaseModel):
    """Heading text, used verbatim."""

    kind: Literal["HEADING"] = "HEADING"
    text: str = ""


class TodoContent(BaseModel):
    """A checklist item."""

    kind: Literal["TODO"] = "TODO"
    checked: bool = False
    text: str = ""


class CodeContent(BaseModel):
    """A static code snippet with its language."""

    kind: Literal["CODE"] = "CODE"
    language: str = DEFAULT_LANGUAGE
    code: str = ""


class AssetContent(BaseModel):
    """An embedded image or PDF as a self-contained data URL, or empty."""

    kind: Literal["IMAGE", "PDF"] = "IMAGE"
    data: str = ""

    @property
    def attached(self) -> bool:
        return bool(self.data)


BlockContent = Union[TextContent, HeadingContent, TodoContent, CodeContent, AssetContent]


class ConsoleEntry(BaseModel):
    """
    One console line captured from a running playground.

    Display-only: entries are never written into the workspace.
    """

    kind: Literal["log", "warn", "error"] = Field(..., description="Console method that produced the entry")
    payload: List[Any] = Field(default_factory=list, description="Arguments passed to the console call")

    def render(self) -> str:
        """Join the payload the way a console would print it."""
        parts = []
        for value in self.payload:
            if isinstance(value, (dict, list)):
                parts.append(json.dumps(value, indent=2))
            else:
                parts.append(str(value))
        return " ".join(parts)


def _load_object(raw: str) -> Union[dict, None]:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def decode_todo(raw: str) -> TodoContent:
    """
    Decode a TODO payload. Missing or malformed payloads give an unchecked, empty item.
    """
    data = _load_object(raw)
    if data is None:
        logging.debug("Unreadable todo payload, using empty item")
        return TodoContent()

    checked = data.get("checked")
    text = data.get("text")
    return TodoContent(
        checked=checked if isinstance(checked, bool) else False,
        text=text if isinstance(text, str) else "",
    )


def decode_code(raw: str) -> CodeContent:
    """
    Decode a CODE payload.

    Content that is not a JSON object is legacy data: the whole string is the
    code and the language is javascript. The stored language is kept as-is even
    when it is not in SUPPORTED_LANGUAGES; use ``display_language`` for display.
    """
    data = _load_object(raw)
    if data is None:
        logging.debug("Legacy code payload, treating content as javascript source")
        return CodeContent(language=DEFAULT_LANGUAGE, code=raw or "")

    language = data.get("language")
    code = data.get("code")
    return CodeContent(
        language=language if isinstance(language, str) and language else DEFAULT_LANGUAGE,
        code=code if isinstance(code, str) else "",
    )


def decode_block(block: Block) -> BlockContent:
    """Return the typed content of a block."""
    if block.type == BlockType.TODO:
        return decode_todo(block.content)
    if block.type == BlockType.CODE:
        return decode_code(block.content)
    if block.type == BlockType.HEADING:
        return HeadingContent(text=block.content)
    if block.type in (BlockType.IMAGE, BlockType.PDF):
        return AssetContent(kind=block.type.value, data=block.content)
    return TextContent(text=block.content)


def encode_content(content: BlockContent) -> str:
    """Serialize typed content back into a block's content string."""
    if isinstance(content, TodoContent):
        return json.dumps({"checked": content.checked, "text": content.text}, separators=(",", ":"))
    if isinstance(content, CodeContent):
        return json.dumps({"language": content.language, "code": content.code}, separators=(",", ":"))
    if isinstance(content, AssetContent):
        return content.data
    return content.text


def default_content(block_type: BlockType) -> str:
    """Content string for a freshly added block of the given type."""
    if block_type == BlockType.CODE:
        return encode_content(CodeContent(language=DEFAULT_LANGUAGE, code=DEFAULT_CODE))
    if block_type == BlockType.TODO:
        return encode_content(TodoContent())
    return ""


def display_language(language: str) -> str:
    """Language to show in a selector; unknown values fall back to javascript."""
    return language if language in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE


def searchable_text(block: Block) -> str:
    """Text a search term is matched against for this block."""
    content = decode_block(block)
    if isinstance(content, CodeContent):
        return content.code
    if isinstance(content, AssetContent):
        return content.data
    return content.text
