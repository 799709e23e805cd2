from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from neo4j import Driver, GraphDatabase, RoutingControl
from neo4j.exceptions import DriverError, Neo4jError, ServiceUnavailable

from fundflow.config.settings import (
    NEO4J_DATABASE,
    NEO4J_PASSWORD,
    NEO4J_URI,
    NEO4J_USERNAME,
)
from fundflow.core.errors import GraphStoreError
from fundflow.core.models import Direction, Node, NodeKind, Relationship, RelType
from fundflow.ports.graph_store_port import GraphStorePort

logger = logging.getLogger(__name__)


class Neo4jGraphAdapter(GraphStorePort):
    """
    Graph store backed by a Neo4j database over the bolt driver.

    The driver is thread-safe; every call runs in its own auto-commit read
    transaction, so expansion threads can share one adapter.
    """

    def __init__(
        self,
        uri: str = NEO4J_URI,
        username: str = NEO4J_USERNAME,
        password: Optional[str] = NEO4J_PASSWORD,
        database: str = NEO4J_DATABASE,
        driver: Optional[Driver] = None,
    ) -> None:
        self._database = database
        try:
            self._driver = driver or GraphDatabase.driver(uri, auth=(username, password or ""))
        except (ValueError, DriverError) as e:
            raise GraphStoreError(f"Cannot create Neo4j driver for {uri}: {e}") from e
        self._degree_cache: Dict[str, int] = {}
        self._lock = threading.Lock()
        logger.info("Neo4jGraphAdapter using %s (database=%s)", uri, database)

    def close(self) -> None:
        self._driver.close()

    def __enter__(self) -> "Neo4jGraphAdapter":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ---------- internal ----------

    def _read(self, query: str, **params: Any) -> list:
        try:
            result = self._driver.execute_query(
                query,
                params,
                routing_=RoutingControl.READ,
                database_=self._database,
            )
        except (Neo4jError, ServiceUnavailable) as e:
            raise GraphStoreError(f"Neo4j read failed: {e}") from e
        return list(result.records)

    @staticmethod
    def _to_node(raw: Any) -> Node:
        labels = set(raw.labels)
        if NodeKind.TRANSACTION.value in labels:
            kind = NodeKind.TRANSACTION
        elif NodeKind.ACCOUNT.value in labels:
            kind = NodeKind.ACCOUNT
        else:
            raise GraphStoreError(f"Unexpected labels {sorted(labels)} on node {raw.element_id}")
        return Node(id=raw.element_id, kind=kind, properties=dict(raw.items()))

    # ---------- port methods ----------

    def find_node(self, kind: NodeKind, key: str, value: Any) -> Optional[Node]:
        # labels and property keys cannot be parameterised
        if not key.isidentifier():
            raise GraphStoreError(f"Invalid property key: {key!r}")
        rows = self._read(
            f"MATCH (n:`{kind.value}` {{`{key}`: $value}}) RETURN n LIMIT 1",
            value=value,
        )
        if not rows:
            return None
        return self._to_node(rows[0]["n"])

    def degree(self, node: Node) -> int:
        with self._lock:
            if node.id in self._degree_cache:
                return self._degree_cache[node.id]

        rows = self._read(
            "MATCH (n) WHERE elementId(n) = $id RETURN COUNT { (n)--() } AS degree",
            id=node.id,
        )
        deg = int(rows[0]["degree"]) if rows else 0
        with self._lock:
            self._degree_cache[node.id] = deg
        return deg

    def relationships(self, node: Node, direction: Direction, rel_type: RelType) -> List[Relationship]:
        if direction is Direction.OUTGOING:
            pattern = f"(n)-[r:`{rel_type.value}`]->(m)"
        else:
            pattern = f"(n)<-[r:`{rel_type.value}`]-(m)"

        rows = self._read(
            f"MATCH {pattern} WHERE elementId(n) = $id RETURN r, m",
            id=node.id,
        )

        out: List[Relationship] = []
        for row in rows:
            other = self._to_node(row["m"])
            start, end = (node, other) if direction is Direction.OUTGOING else (other, node)
            raw = row["r"]
            out.append(
                Relationship(
                    id=raw.element_id,
                    type=rel_type,
                    start=start,
                    end=end,
                    properties=dict(raw.items()),
                )
            )
        return out
