"""
Gallery pipeline — Pydantic V2 models for stage inputs and artifacts.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _Base(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
    )


# ── Upload ───────────────────────────────────────────────────────────────────

class UploadedFile(_Base):
    """Metadata of a freshly staged upload. Never mutated after upload."""
    id: str
    size: int = Field(ge=1, description="Byte length of the upload")
    type: str = Field(description="Sniffed MIME type")
    name: str = Field(description="<id>.<ext>")


class UploadResult(UploadedFile):
    path: str = Field(description="Key of the staged blob")


# ── Resize ───────────────────────────────────────────────────────────────────

class ResizedVariant(_Base):
    breakpoint_width: int
    derived_key: str


class GalleryImage(_Base):
    """Per-image metadata descriptor consumed by the directory index.

    Serialised with camelCase keys, e.g.
    ``{"src", "srcSet", "width", "height", "linkTo"}``.
    """
    src: str
    src_set: list[str] = Field(alias="srcSet")
    width: int
    height: int
    link_to: str = Field(alias="linkTo")


class ProcessedImage(_Base):
    filename: str
    directory: str
    bucket: str
    payload: GalleryImage


# ── Publish ──────────────────────────────────────────────────────────────────

class PublishedAsset(_Base):
    id: str
    href: str


class QueuedPublication(_Base):
    message_id: str = Field(alias="messageId")
