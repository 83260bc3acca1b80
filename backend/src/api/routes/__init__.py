"""HTTP API route handlers."""

from . import graph, open_file

__all__ = ["graph", "open_file"]
