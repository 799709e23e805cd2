from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

from fundflow.config import settings



# Graph vocabulary

class NodeKind(str, Enum):
    ACCOUNT = settings.ACCOUNT_LABEL
    TRANSACTION = settings.TRANSACTION_LABEL


class RelType(str, Enum):
    INPUT = settings.INPUT_TYPE      # account -> transaction
    OUTPUT = settings.OUTPUT_TYPE    # transaction -> account


class Direction(str, Enum):
    OUTGOING = "outgoing"
    INCOMING = "incoming"



# Graph views (read-only, query-time)

@dataclass(frozen=True)
class Node:

    id: str
    kind: NodeKind
    properties: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False, repr=False)

    def get(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    @property
    def is_account(self) -> bool:
        return self.kind is NodeKind.ACCOUNT

    @property
    def is_transaction(self) -> bool:
        return self.kind is NodeKind.TRANSACTION


@dataclass(frozen=True)
class Relationship:

    id: str
    type: RelType
    start: Node
    end: Node
    properties: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False, repr=False)

    def get(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    def other_node(self, node: Node) -> Node:
        if node == self.start:
            return self.end
        if node == self.end:
            return self.start
        raise ValueError(f"{node.id} is not attached to relationship {self.id}")


@dataclass(frozen=True)
class Path:
    """
    Alternating Account / Transaction chain grown one relationship at a time.

    ``length`` counts relationships, so a path holding only the start node has
    length 0.
    """

    nodes: Tuple[Node, ...]
    relationships: Tuple[Relationship, ...] = ()

    @classmethod
    def start_at(cls, node: Node) -> "Path":
        return cls(nodes=(node,))

    @property
    def start_node(self) -> Optional[Node]:
        return self.nodes[0] if self.nodes else None

    @property
    def end_node(self) -> Optional[Node]:
        return self.nodes[-1] if self.nodes else None

    @property
    def last_relationship(self) -> Optional[Relationship]:
        return self.relationships[-1] if self.relationships else None

    @property
    def length(self) -> int:
        return len(self.relationships)

    def append(self, rel: Relationship) -> "Path":
        nxt = rel.other_node(self.nodes[-1])
        return Path(nodes=self.nodes + (nxt,), relationships=self.relationships + (rel,))

    def tokens(self) -> Tuple[str, ...]:
        # node, rel, node, rel, ..., node
        out: List[str] = []
        for i, node in enumerate(self.nodes):
            out.append(f"n:{node.id}")
            if i < len(self.relationships):
                out.append(f"r:{self.relationships[i].id}")
        return tuple(out)

    def describe(self) -> str:
        if not self.nodes:
            return ""
        parts = [f"({self.nodes[0].id})"]
        for rel, node in zip(self.relationships, self.nodes[1:]):
            if rel.start == node:
                parts.append(f"<-[{rel.type.value},{rel.id}]-({node.id})")
            else:
                parts.append(f"-[{rel.type.value},{rel.id}]->({node.id})")
        return "".join(parts)



# Query configuration

@dataclass(frozen=True)
class TraceQuery:
    """
    User input for a single fund-flow query.
    """

    address: str
    timespan: int = settings.DEFAULT_TIMESPAN_SEC          # seconds per hop window
    max_relationship_count: int = settings.DEFAULT_MAX_RELATIONSHIP_COUNT
    min_timestamp: int = 0                                 # start of the first window
    min_value: int = settings.DEFAULT_MIN_VALUE
    max_value: int = settings.DEFAULT_MAX_VALUE
    reverse: bool = False                                  # True = trace funding sources


@dataclass(frozen=True)
class Window:

    min_timestamp: int
    max_timestamp: int
    min_value: int
    max_value: Optional[int] = None    # None = unbounded

    def contains_timestamp(self, ts: int) -> bool:
        return self.min_timestamp <= ts <= self.max_timestamp

    def contains_value(self, value: int) -> bool:
        if value < self.min_value:
            return False
        return self.max_value is None or value <= self.max_value



# Results

@dataclass(frozen=True)
class InputEntry:

    from_address: str
    value: str


@dataclass(frozen=True)
class OutputEntry:

    to_address: str
    value: str


@dataclass
class TransactionRecord:

    hash: str
    timestamp: int
    inputs: Set[InputEntry] = field(default_factory=set)
    outputs: Set[OutputEntry] = field(default_factory=set)


@dataclass
class TransactionsAndLabels:

    transactions: Dict[str, TransactionRecord] = field(default_factory=dict)
    labels: Dict[str, Set[str]] = field(default_factory=dict)


@dataclass
class PathResult:

    nodes: List[Dict[str, Any]] = field(default_factory=list)
    relationships: List[Dict[str, Any]] = field(default_factory=list)
