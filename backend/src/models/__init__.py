"""Pydantic models for data validation and serialization."""

from .graph import DocumentVersion, GraphDocument, RawLink, RawNote, TagDescriptor
from .view import PROFILES, ViewConfig, get_profile

__all__ = [
    "RawNote",
    "RawLink",
    "TagDescriptor",
    "GraphDocument",
    "DocumentVersion",
    "ViewConfig",
    "PROFILES",
    "get_profile",
]
