"""
Workspace data models for Atelier.

This module defines the persisted document structure: a flat collection of
projects (the tree is expressed only through ``parent_id``), each owning an
ordered list of canvases, each note canvas owning an ordered list of blocks.

Field aliases match the serialized field names (``parentId``, ``createdAt``,
``isPinned``, ``playgroundContent``) so stored workspaces and export files
round-trip unchanged.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


class BlockType(str, Enum):
    """Kinds of content block a note canvas can hold."""

    TEXT = "TEXT"
    HEADING = "HEADING"
    TODO = "TODO"
    CODE = "CODE"
    IMAGE = "IMAGE"
    PDF = "PDF"


class CanvasType(str, Enum):
    """Discriminator for the canvas union."""

    NOTE = "NOTE"
    PLAYGROUND = "PLAYGROUND"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Block(BaseModel):
    """
    One ordered unit of content inside a note canvas.

    ``content`` is always a string. Its meaning depends on ``type``; use
    ``atelier.models.payloads.decode_block`` to get a typed view of it.
    """

    id: str = Field(
        ...,
        description="Identifier, unique within the owning canvas"
    )

    type: BlockType = Field(
        ...,
        description="Block kind; fixed for the block's lifetime"
    )

    content: str = Field(
        default="",
        description="Serialized content, interpreted according to the block type"
    )

    class Config:
        frozen = True


class PlaygroundContent(BaseModel):
    """The three source buffers of a playground. Opaque to the workspace core."""

    html: str = Field(default="", description="Markup buffer")
    css: str = Field(default="", description="Style buffer")
    js: str = Field(default="", description="Script buffer")

    class Config:
        frozen = True


class CanvasBase(BaseModel):
    """Fields shared by every canvas variant."""

    id: str = Field(..., description="Unique canvas identifier")

    title: str = Field(default="", description="Display title")

    created_at: datetime = Field(
        default_factory=utc_now,
        alias="createdAt",
        description="Creation timestamp, used for ordering within a project"
    )

    is_pinned: bool = Field(
        default=False,
        alias="isPinned",
        description="Pinned canvases sort before unpinned ones"
    )

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Naive timestamps from older data would not compare with aware ones.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    class Config:
        frozen = True
        populate_by_name = True


class NoteCanvas(CanvasBase):
    """A rich-text note made of ordered blocks."""

    type: Literal["NOTE"] = Field(default="NOTE", description="Canvas kind")

    blocks: List[Block] = Field(
        default_factory=list,
        description="Ordered content blocks"
    )


class PlaygroundCanvas(CanvasBase):
    """A live code playground."""

    type: Literal["PLAYGROUND"] = Field(default="PLAYGROUND", description="Canvas kind")

    playground_content: PlaygroundContent = Field(
        default_factory=PlaygroundContent,
        alias="playgroundContent",
        description="Markup, style and script buffers"
    )


Canvas = Annotated[Union[NoteCanvas, PlaygroundCanvas], Field(discriminator="type")]


class Project(BaseModel):
    """
    A folder-like node in the project forest.

    Children are not stored; they are derived by grouping projects on
    ``parent_id`` (see ``atelier.operations.tree``).
    """

    id: str = Field(..., description="Unique project identifier")

    name: str = Field(..., description="Display name")

    parent_id: Optional[str] = Field(
        default=None,
        alias="parentId",
        description="Id of the parent project, or None for a root"
    )

    canvases: List[Canvas] = Field(
        default_factory=list,
        description="Canvases owned by this project, newest first"
    )

    class Config:
        frozen = True
        populate_by_name = True
