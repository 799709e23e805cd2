from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from fundflow.config.settings import DEPOSIT_LABEL, EXCHANGE_THRESHOLD
from fundflow.core.convert import to_int, to_str
from fundflow.core.models import (
    InputEntry,
    Node,
    OutputEntry,
    Path,
    PathResult,
    Relationship,
    TransactionRecord,
    TransactionsAndLabels,
)
from fundflow.ports.graph_store_port import GraphStorePort


class ResultAssembler:
    """
    Turns maximal paths into either a path listing or a per-transaction
    summary with address labels.
    """

    def __init__(self, store: GraphStorePort) -> None:
        self.store = store

    # -------------------------
    # Path listing
    # -------------------------

    def to_path_results(self, paths: Iterable[Path]) -> List[PathResult]:
        return [
            PathResult(
                nodes=[self._describe_node(n) for n in p.nodes],
                relationships=[self._describe_rel(r) for r in p.relationships],
            )
            for p in paths
        ]

    @staticmethod
    def _describe_node(node: Node) -> Dict[str, Any]:
        if node.is_account:
            return {"id": node.id, "kind": node.kind.value, "address": to_str(node.get("address"))}
        return {
            "id": node.id,
            "kind": node.kind.value,
            "hash": to_str(node.get("hash")),
            "timestamp": to_int(node.get("timestamp"), 0),
            "input_value": to_int(node.get("input_value"), 0),
        }

    @staticmethod
    def _describe_rel(rel: Relationship) -> Dict[str, Any]:
        return {
            "id": rel.id,
            "type": rel.type.value,
            "start": rel.start.id,
            "end": rel.end.id,
            "value": to_int(rel.get("value"), 0),
        }

    # -------------------------
    # Transaction / label aggregation
    # -------------------------

    def aggregate(self, paths: Iterable[Path], reverse: bool) -> TransactionsAndLabels:
        out = TransactionsAndLabels()

        for path in paths:
            end = path.end_node
            if end is None or not end.is_account:
                continue
            self._collect_labels(path, out.labels)
            for pair in self._edge_pairs(path):
                self._merge_pair(pair, reverse, out.transactions)

        return out

    def _collect_labels(self, path: Path, labels: Dict[str, set]) -> None:
        for node in path.nodes:
            if not node.is_account:
                continue
            # strictly above the threshold, unlike the hub cut-off in expansion
            if self.store.degree(node) <= EXCHANGE_THRESHOLD:
                continue
            address = to_str(node.get("address"), "")
            labels.setdefault(address, set()).add(DEPOSIT_LABEL)

    @staticmethod
    def _edge_pairs(path: Path) -> List[Tuple[Relationship, Relationship]]:
        rels = path.relationships
        # trailing unpaired relationship is dropped
        return [(rels[i], rels[i + 1]) for i in range(0, len(rels) - 1, 2)]

    @staticmethod
    def _merge_pair(
        pair: Tuple[Relationship, Relationship],
        reverse: bool,
        transactions: Dict[str, TransactionRecord],
    ) -> None:
        first, second = pair
        if reverse:
            sender, receiver, txn = second.start, first.end, first.start
            input_rel, output_rel = second, first
        else:
            sender, receiver, txn = first.start, second.end, first.end
            input_rel, output_rel = first, second

        record: Optional[TransactionRecord] = transactions.get(txn.id)
        if record is None:
            record = TransactionRecord(
                hash=to_str(txn.get("hash"), ""),
                timestamp=to_int(txn.get("timestamp"), 0),
            )
            transactions[txn.id] = record

        record.inputs.add(
            InputEntry(
                from_address=to_str(sender.get("address"), ""),
                value=to_str(input_rel.get("value"), "0"),
            )
        )
        record.outputs.add(
            OutputEntry(
                to_address=to_str(receiver.get("address"), ""),
                value=to_str(output_rel.get("value"), "0"),
            )
        )
