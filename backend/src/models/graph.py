"""Graph document models."""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class RawNote(BaseModel):
    """A single note record as emitted by the graph export tool."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    path: str = Field(..., min_length=1, description="Unique identifier (Note Path)")
    title: str = Field(default="", description="Display title of the note")
    lead: str = Field(default="", description="Short excerpt shown alongside the title")
    tags: List[str] = Field(default_factory=list, description="Tag names carried by the note")
    abs_path: Optional[str] = Field(
        default=None, alias="absPath", description="Absolute file path used by the open request"
    )


class RawLink(BaseModel):
    """A directed reference between two notes, by path."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    source_path: str = Field(..., alias="sourcePath", description="Path of the referencing note")
    target_path: str = Field(..., alias="targetPath", description="Path of the referenced note")


class TagDescriptor(BaseModel):
    """An entry of the optional tag document."""
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, description="Tag name, also the tag node identity")


class GraphDocument(BaseModel):
    """The top-level payload produced by the export tool."""
    model_config = ConfigDict(extra="ignore")

    notes: List[RawNote]
    links: List[RawLink] = Field(default_factory=list)


class DocumentVersion(BaseModel):
    """Monotonic version of the served graph document, bumped on refresh."""
    version: int = Field(..., ge=0)


__all__ = ["RawNote", "RawLink", "TagDescriptor", "GraphDocument", "DocumentVersion"]
