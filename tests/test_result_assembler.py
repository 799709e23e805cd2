import unittest

from fundflow.core.models import (
    Direction,
    InputEntry,
    NodeKind,
    OutputEntry,
    Path,
    RelType,
)
from fundflow.io.schemas import graph_from_dict
from fundflow.services.result_assembler import ResultAssembler


def _chain_store(b_degree=None):
    b = {"address": "B"}
    if b_degree is not None:
        b["degree"] = b_degree
    return graph_from_dict({
        "accounts": [{"address": "A"}, b, {"address": "C"}, {"address": "X"}],
        "transactions": [
            {"hash": "0xt1", "timestamp": 1000, "input_value": 5},
            {"hash": "0xt2", "timestamp": 2000, "input_value": 7},
        ],
        "inputs": [
            {"id": "a-t1", "from": "A", "tx": "0xt1", "value": 5},
            {"id": "b-t2", "from": "B", "tx": "0xt2", "value": 7},
            {"id": "x-t1", "from": "X", "tx": "0xt1"},
        ],
        "outputs": [
            {"id": "t1-b", "tx": "0xt1", "to": "B", "value": 4},
            {"id": "t1-c", "tx": "0xt1", "to": "C", "value": 1},
            {"id": "t2-c", "tx": "0xt2", "to": "C", "value": 6},
        ],
    })


def _walk(store, address, rel_ids):
    path = Path.start_at(store.find_node(NodeKind.ACCOUNT, "address", address))
    for rid in rel_ids:
        attached = [
            r
            for direction in Direction
            for rel_type in RelType
            for r in store.relationships(path.end_node, direction, rel_type)
        ]
        path = path.append(next(r for r in attached if r.id == rid))
    return path


class ResultAssemblerTests(unittest.TestCase):
    def test_forward_pairs_become_transaction_records(self) -> None:
        store = _chain_store()
        path = _walk(store, "A", ["a-t1", "t1-b", "b-t2", "t2-c"])

        out = ResultAssembler(store).aggregate([path], reverse=False)

        self.assertEqual(set(out.transactions), {"transaction:0xt1", "transaction:0xt2"})
        t1 = out.transactions["transaction:0xt1"]
        self.assertEqual((t1.hash, t1.timestamp), ("0xt1", 1000))
        self.assertEqual(t1.inputs, {InputEntry("A", "5")})
        self.assertEqual(t1.outputs, {OutputEntry("B", "4")})
        self.assertEqual(out.transactions["transaction:0xt2"].outputs, {OutputEntry("C", "6")})
        self.assertEqual(out.labels, {})

    def test_shared_transaction_is_merged_without_duplicates(self) -> None:
        store = _chain_store()
        to_b = _walk(store, "A", ["a-t1", "t1-b"])
        to_c = _walk(store, "A", ["a-t1", "t1-c"])

        out = ResultAssembler(store).aggregate([to_b, to_c, to_b], reverse=False)

        t1 = out.transactions["transaction:0xt1"]
        self.assertEqual(t1.inputs, {InputEntry("A", "5")})
        self.assertEqual(t1.outputs, {OutputEntry("B", "4"), OutputEntry("C", "1")})

    def test_reverse_pairs_swap_orientation(self) -> None:
        store = _chain_store()
        # C <-(t2-c)- T2 <-(b-t2)- B
        path = _walk(store, "C", ["t2-c", "b-t2"])

        out = ResultAssembler(store).aggregate([path], reverse=True)

        t2 = out.transactions["transaction:0xt2"]
        self.assertEqual(t2.inputs, {InputEntry("B", "7")})
        self.assertEqual(t2.outputs, {OutputEntry("C", "6")})

    def test_missing_edge_value_defaults_to_zero_string(self) -> None:
        store = _chain_store()
        path = _walk(store, "X", ["x-t1", "t1-b"])

        out = ResultAssembler(store).aggregate([path], reverse=False)

        self.assertEqual(out.transactions["transaction:0xt1"].inputs, {InputEntry("X", "0")})

    def test_paths_ending_on_a_transaction_are_ignored(self) -> None:
        store = _chain_store()
        path = _walk(store, "A", ["a-t1", "t1-b", "b-t2"])

        out = ResultAssembler(store).aggregate([path], reverse=False)

        self.assertEqual(out.transactions, {})

    def test_trailing_unpaired_relationship_is_dropped(self) -> None:
        store = _chain_store()
        path = _walk(store, "A", ["a-t1", "t1-b", "b-t2"])

        pairs = ResultAssembler._edge_pairs(path)

        self.assertEqual([(a.id, b.id) for a, b in pairs], [("a-t1", "t1-b")])

    def test_high_degree_accounts_are_labelled_deposit(self) -> None:
        for degree, expected in ((6000, {"B": {"deposit"}}), (5000, {})):
            with self.subTest(degree=degree):
                store = _chain_store(b_degree=degree)
                paths = [_walk(store, "A", ["a-t1", "t1-b"]), _walk(store, "A", ["a-t1", "t1-b", "b-t2", "t2-c"])]

                out = ResultAssembler(store).aggregate(paths, reverse=False)

                self.assertEqual(out.labels, expected)

    def test_path_listing_describes_nodes_and_relationships(self) -> None:
        store = _chain_store()
        path = _walk(store, "A", ["a-t1", "t1-b"])

        [result] = ResultAssembler(store).to_path_results([path])

        self.assertEqual([n["kind"] for n in result.nodes], ["account", "transaction", "account"])
        self.assertEqual(result.nodes[0]["address"], "A")
        self.assertEqual(result.nodes[1]["hash"], "0xt1")
        self.assertEqual(result.nodes[1]["timestamp"], 1000)
        self.assertEqual([r["type"] for r in result.relationships], ["input", "output"])
        self.assertEqual(result.relationships[1]["value"], 4)


if __name__ == "__main__":
    unittest.main()
