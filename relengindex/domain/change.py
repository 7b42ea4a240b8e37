"""
Change records for relengindex.

Each mutation batch is delivered as a tree of ResourceDelta records rooted
at the workspace root. Intermediate nodes (projects, folders) carry CHANGED
with no flags; leaves carry the real change:
- ADDED / REMOVED
- CHANGED with CONTENT (file contents edited)
- CHANGED with OPEN (project opened or closed)
"""

from dataclasses import dataclass, field
from enum import Enum, Flag, auto
from pathlib import PurePosixPath
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from .resource import Resource, ResourceType


class ChangeKind(Enum):
    """What happened to a resource."""
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


class DeltaFlag(Flag):
    """Detail flags for CHANGED deltas."""
    NONE = 0
    CONTENT = auto()
    OPEN = auto()


@dataclass
class ResourceDelta:
    """
    One node of a change tree.

    Attributes:
        resource: The resource that changed
        kind: ADDED, REMOVED or CHANGED
        flags: Detail flags (content edit, open state flip)
        children: Deltas for affected members of this resource
    """

    resource: Resource
    kind: ChangeKind = ChangeKind.CHANGED
    flags: DeltaFlag = DeltaFlag.NONE
    children: List['ResourceDelta'] = field(default_factory=list)

    def find_member(self, path) -> Optional['ResourceDelta']:
        """
        Find the delta for a workspace path inside this subtree.

        Args:
            path: Workspace-relative path of the resource

        Returns:
            The matching delta, or None if that resource did not change
        """
        target = PurePosixPath(path).parts
        own = self.resource.path.parts
        if target[:len(own)] != own:
            return None

        node = self
        for depth in range(len(own) + 1, len(target) + 1):
            prefix = target[:depth]
            node = next(
                (c for c in node.children if c.resource.path.parts == prefix),
                None
            )
            if node is None:
                return None
        return node

    def affected_children(self) -> List['ResourceDelta']:
        return list(self.children)

    def accept(self, visitor: Callable[['ResourceDelta'], bool]) -> None:
        """
        Depth-first traversal; children are only visited when the
        visitor returns True for their parent.
        """
        if visitor(self):
            for child in self.children:
                child.accept(visitor)

    def walk(self) -> Iterator['ResourceDelta']:
        yield self
        for child in self.children:
            yield from child.walk()

    def __repr__(self) -> str:
        flags = f", flags={self.flags}" if self.flags else ""
        return f"ResourceDelta({self.resource}, {self.kind.value}{flags})"


Change = Tuple[Resource, ChangeKind, DeltaFlag]


def build_delta(changes: Iterable[Change]) -> ResourceDelta:
    """
    Assemble a delta tree from flat (resource, kind, flags) records.

    Missing ancestors are created as CHANGED nodes: the first path segment
    becomes a PROJECT, the rest FOLDERs. A later record for a resource that
    already has a node overrides that node's kind and merges its flags.

    Args:
        changes: Flat change records in any order

    Returns:
        Root delta for the workspace
    """
    root = ResourceDelta(Resource.root())
    index = {(): root}

    for resource, kind, flags in changes:
        parts = resource.path.parts
        if not parts:
            root.flags |= flags
            continue

        parent = root
        for depth in range(1, len(parts)):
            prefix = parts[:depth]
            node = index.get(prefix)
            if node is None:
                type_ = ResourceType.PROJECT if depth == 1 else ResourceType.FOLDER
                node = ResourceDelta(Resource(PurePosixPath(*prefix), type_))
                parent.children.append(node)
                index[prefix] = node
            parent = node

        leaf = index.get(parts)
        if leaf is None:
            leaf = ResourceDelta(resource, kind, flags)
            parent.children.append(leaf)
            index[parts] = leaf
        else:
            leaf.resource = resource
            leaf.kind = kind
            leaf.flags |= flags

    return root
