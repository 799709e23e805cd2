from typing import Any, Dict, Iterable, List, Optional, Tuple

from fundflow.core.models import Direction, Node, NodeKind, Relationship, RelType
from fundflow.ports.graph_store_port import GraphStorePort


class StaticGraphAdapter(GraphStorePort):
    def __init__(self,
                 nodes: Optional[Iterable[Node]] = None,
                 relationships: Optional[Iterable[Relationship]] = None,
                 degrees: Optional[Dict[str, int]] = None,
                 ):
        self._nodes: Dict[str, Node] = {n.id: n for n in (nodes or [])}
        self._rels: List[Relationship] = list(relationships or [])
        self._degrees = dict(degrees or {})

        # adjacency: (node id, direction, type) -> relationships in insertion order
        self._adj: Dict[Tuple[str, Direction, RelType], List[Relationship]] = {}
        self._counted: Dict[str, int] = {}
        for r in self._rels:
            self._nodes.setdefault(r.start.id, r.start)
            self._nodes.setdefault(r.end.id, r.end)
            self._adj.setdefault((r.start.id, Direction.OUTGOING, r.type), []).append(r)
            self._adj.setdefault((r.end.id, Direction.INCOMING, r.type), []).append(r)
            self._counted[r.start.id] = self._counted.get(r.start.id, 0) + 1
            if r.end.id != r.start.id:
                self._counted[r.end.id] = self._counted.get(r.end.id, 0) + 1

    def find_node(self, kind: NodeKind, key: str, value: Any) -> Optional[Node]:
        for n in self._nodes.values():
            if n.kind is kind and n.get(key) == value:
                return n
        return None

    def degree(self, node: Node) -> int:
        if node.id in self._degrees:
            return self._degrees[node.id]
        return self._counted.get(node.id, 0)

    def relationships(self, node: Node, direction: Direction, rel_type: RelType) -> List[Relationship]:
        return list(self._adj.get((node.id, direction, rel_type), []))
