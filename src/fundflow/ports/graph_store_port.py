from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from fundflow.core.models import Direction, Node, NodeKind, Relationship, RelType


class GraphStorePort(ABC):
    """
    Read-only view over the persisted account/transaction graph.

    Implementations must tolerate concurrent reads from expansion threads.
    """

    # --- exact-match lookup ---

    @abstractmethod
    def find_node(self, kind: NodeKind, key: str, value: Any) -> Optional[Node]:
        raise NotImplementedError

    # --- total incident relationships ---

    @abstractmethod
    def degree(self, node: Node) -> int:
        raise NotImplementedError

    # --- relationships of one type on one side of a node ---

    @abstractmethod
    def relationships(self, node: Node, direction: Direction, rel_type: RelType) -> List[Relationship]:
        raise NotImplementedError
