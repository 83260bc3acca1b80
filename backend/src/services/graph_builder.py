"""Graph builder: raw note/tag/link records into a validated node/link model.

The builder is a pure transformation. Links whose endpoints are not among the
loaded notes are dropped, tag nodes and their synthetic links are optionally
added, and node degrees are computed from the final link set.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..models.graph import GraphDocument, RawLink, RawNote, TagDescriptor

logger = logging.getLogger(__name__)


class NodeKind(str, Enum):
    """Kinds of graph vertices."""
    NOTE = "note"
    TAG = "tag"


class ModelError(Exception):
    """Raised when raw records cannot form a consistent graph snapshot."""

    def __init__(self, error: str, message: str, *, identity: Optional[str] = None) -> None:
        super().__init__(message)
        self.error = error
        self.message = message
        self.identity = identity


@dataclass
class Node:
    """Graph vertex (identity is ``path``; tag nodes use the tag name)."""
    path: str
    kind: NodeKind
    title: str
    lead: str = ""
    abs_path: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    connections: int = 0

    @property
    def open_target(self) -> Optional[str]:
        """File path handed to the open request; tag nodes have none."""
        if self.kind is NodeKind.TAG:
            return None
        return self.abs_path or self.path


@dataclass(frozen=True)
class Link:
    """Edge between two node identities, stored directed."""
    source: str
    target: str


def build(
    raw_notes: Sequence[RawNote],
    raw_links: Sequence[RawLink],
    tags: Optional[Sequence[TagDescriptor]] = None,
    *,
    expand_tags: bool = True,
) -> Tuple[List[Node], List[Link]]:
    """Build the node and link lists for one snapshot.

    Args:
        raw_notes: Note records, each with a unique ``path``
        raw_links: References between notes by ``sourcePath``/``targetPath``
        tags: Tag descriptors; when None and ``expand_tags`` is set, the tags
            carried by the notes are used
        expand_tags: Add one node per tag plus a link to every tagged note

    Returns:
        Tuple of (nodes, links); notes keep input order, tag nodes follow

    Raises:
        ModelError: On duplicate note paths or a tag name equal to a note path
    """
    nodes: List[Node] = []
    note_paths: Set[str] = set()

    for note in raw_notes:
        if note.path in note_paths:
            raise ModelError(
                "duplicate_identity",
                f"Duplicate note path: {note.path}",
                identity=note.path,
            )
        note_paths.add(note.path)
        nodes.append(
            Node(
                path=note.path,
                kind=NodeKind.NOTE,
                title=note.title or note.path,
                lead=note.lead,
                abs_path=note.abs_path,
                tags=list(note.tags),
            )
        )

    links: List[Link] = [
        Link(source=raw.source_path, target=raw.target_path)
        for raw in raw_links
        if raw.source_path in note_paths and raw.target_path in note_paths
    ]
    dropped = len(raw_links) - len(links)
    if dropped:
        logger.debug("Dropped %d links with unknown endpoints", dropped)

    if expand_tags:
        tag_nodes, tag_links = _expand_tags(raw_notes, note_paths, tags)
        nodes.extend(tag_nodes)
        links.extend(tag_links)

    counts = count_connections((node.path for node in nodes), links)
    for node in nodes:
        node.connections = counts[node.path]

    return nodes, links


def _expand_tags(
    raw_notes: Sequence[RawNote],
    note_paths: Set[str],
    tags: Optional[Sequence[TagDescriptor]],
) -> Tuple[List[Node], List[Link]]:
    if tags is None:
        names = sorted({name for note in raw_notes for name in note.tags})
    else:
        # Duplicate tag names collapse to the first occurrence.
        names = list(dict.fromkeys(tag.name for tag in tags))

    carriers: Dict[str, List[str]] = defaultdict(list)
    for note in raw_notes:
        for name in dict.fromkeys(note.tags):
            carriers[name].append(note.path)

    nodes: List[Node] = []
    links: List[Link] = []
    for name in names:
        if name in note_paths:
            raise ModelError(
                "duplicate_identity",
                f"Tag '{name}' collides with a note path",
                identity=name,
            )
        tagged = carriers.get(name, [])
        nodes.append(Node(path=name, kind=NodeKind.TAG, title=name))
        links.extend(Link(source=name, target=path) for path in tagged)
    return nodes, links


def count_connections(paths: Iterable[str], links: Iterable[Link]) -> Dict[str, int]:
    """Degree per node path; each link counts once for each of its endpoints."""
    counts: Dict[str, int] = {path: 0 for path in paths}
    for link in links:
        counts[link.source] += 1
        counts[link.target] += 1
    return counts


class GraphSnapshot:
    """Immutable-by-convention view of one built graph with adjacency lookups."""

    def __init__(self, nodes: Sequence[Node], links: Sequence[Link]) -> None:
        self.nodes: List[Node] = list(nodes)
        self.links: List[Link] = list(links)
        self._by_path: Dict[str, Node] = {node.path: node for node in self.nodes}
        self._neighbors: Dict[str, Set[str]] = defaultdict(set)
        self._incident: Dict[str, List[int]] = defaultdict(list)
        for index, link in enumerate(self.links):
            self._neighbors[link.source].add(link.target)
            self._neighbors[link.target].add(link.source)
            self._incident[link.source].append(index)
            if link.target != link.source:
                self._incident[link.target].append(index)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, path: object) -> bool:
        return path in self._by_path

    def node(self, path: str) -> Node:
        return self._by_path[path]

    @property
    def paths(self) -> List[str]:
        return [node.path for node in self.nodes]

    @property
    def max_connections(self) -> int:
        return max((node.connections for node in self.nodes), default=0)

    def neighbors(self, path: str) -> Set[str]:
        """Nodes linked to ``path`` in either direction."""
        return set(self._neighbors.get(path, ()))

    def incident_links(self, path: str) -> Set[int]:
        """Indexes (into ``links``) of the links touching ``path``."""
        return set(self._incident.get(path, ()))

    @classmethod
    def empty(cls) -> "GraphSnapshot":
        return cls([], [])


def build_snapshot(
    document: GraphDocument,
    tags: Optional[Sequence[TagDescriptor]] = None,
    *,
    expand_tags: bool = True,
) -> GraphSnapshot:
    """Build a snapshot from a validated graph document."""
    nodes, links = build(document.notes, document.links, tags, expand_tags=expand_tags)
    logger.info("Built graph snapshot: %d nodes, %d links", len(nodes), len(links))
    return GraphSnapshot(nodes, links)


__all__ = [
    "NodeKind",
    "ModelError",
    "Node",
    "Link",
    "build",
    "count_connections",
    "GraphSnapshot",
    "build_snapshot",
]
