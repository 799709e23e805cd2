from __future__ import annotations

from typing import Any, Dict, List

from fundflow.adapters.graph.static_graph_adapter import StaticGraphAdapter
from fundflow.core.convert import to_int
from fundflow.core.models import (
    Node,
    NodeKind,
    PathResult,
    Relationship,
    RelType,
    TransactionsAndLabels,
)


def path_result_to_dict(p: PathResult) -> Dict[str, Any]:
    return {"nodes": list(p.nodes), "relationships": list(p.relationships)}


def transactions_to_dict(result: TransactionsAndLabels) -> Dict[str, Any]:
    # sets -> sorted lists so the JSON is stable
    return {
        "transactions": {
            txn_id: {
                "hash": rec.hash,
                "timestamp": rec.timestamp,
                "inputs": [
                    {"from": i.from_address, "value": i.value}
                    for i in sorted(rec.inputs, key=lambda x: (x.from_address, x.value))
                ],
                "outputs": [
                    {"to": o.to_address, "value": o.value}
                    for o in sorted(rec.outputs, key=lambda x: (x.to_address, x.value))
                ],
            }
            for txn_id, rec in result.transactions.items()
        },
        "labels": {addr: sorted(tags) for addr, tags in result.labels.items()},
    }


def graph_from_dict(data: Dict[str, Any]) -> StaticGraphAdapter:
    """
    Build an in-memory store from a JSON fixture:

        {
          "accounts":     [{"address": "A", "degree": 3}],
          "transactions": [{"hash": "T1", "timestamp": 1000, "input_value": 50}],
          "inputs":       [{"from": "A", "tx": "T1", "value": 50}],
          "outputs":      [{"tx": "T1", "to": "B", "value": 45}]
        }

    ``degree`` is optional and overrides the degree computed from the fixture.
    """
    accounts: Dict[str, Node] = {}
    txns: Dict[str, Node] = {}
    degrees: Dict[str, int] = {}

    for a in data.get("accounts", []):
        addr = str(a["address"])
        node_id = f"account:{addr}"
        props = {k: v for k, v in a.items() if k != "degree"}
        accounts[addr] = Node(id=node_id, kind=NodeKind.ACCOUNT, properties=props)
        if a.get("degree") is not None:
            degrees[node_id] = to_int(a["degree"], 0)

    for t in data.get("transactions", []):
        h = str(t["hash"])
        txns[h] = Node(id=f"transaction:{h}", kind=NodeKind.TRANSACTION, properties=dict(t))

    def account(addr: str) -> Node:
        if addr not in accounts:
            accounts[addr] = Node(id=f"account:{addr}", kind=NodeKind.ACCOUNT, properties={"address": addr})
        return accounts[addr]

    def transaction(h: str) -> Node:
        if h not in txns:
            raise ValueError(f"Unknown transaction in fixture: {h}")
        return txns[h]

    rels: List[Relationship] = []
    for i, r in enumerate(data.get("inputs", [])):
        rels.append(
            Relationship(
                id=str(r.get("id", f"input:{i}")),
                type=RelType.INPUT,
                start=account(str(r["from"])),
                end=transaction(str(r["tx"])),
                properties={"value": r.get("value")},
            )
        )
    for i, r in enumerate(data.get("outputs", [])):
        rels.append(
            Relationship(
                id=str(r.get("id", f"output:{i}")),
                type=RelType.OUTPUT,
                start=transaction(str(r["tx"])),
                end=account(str(r["to"])),
                properties={"value": r.get("value")},
            )
        )

    nodes = list(accounts.values()) + list(txns.values())
    return StaticGraphAdapter(nodes=nodes, relationships=rels, degrees=degrees)
