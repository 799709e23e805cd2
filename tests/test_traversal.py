import unittest
from collections import Counter

from fundflow.core.models import Direction, NodeKind, Path, RelType
from fundflow.io.schemas import graph_from_dict
from fundflow.services.traversal import BreadthFirstTraversal, including_depths, to_depth


def _diamond():
    # A -> T1 -> {B, C} -> T2 -> D
    return graph_from_dict({
        "accounts": [{"address": a} for a in "ABCD"],
        "transactions": [
            {"hash": "T1", "timestamp": 1},
            {"hash": "T2", "timestamp": 2},
        ],
        "inputs": [
            {"id": "a-t1", "from": "A", "tx": "T1"},
            {"id": "b-t2", "from": "B", "tx": "T2"},
            {"id": "c-t2", "from": "C", "tx": "T2"},
        ],
        "outputs": [
            {"id": "t1-b", "tx": "T1", "to": "B"},
            {"id": "t1-c", "tx": "T1", "to": "C"},
            {"id": "t2-d", "tx": "T2", "to": "D"},
        ],
    })


def _follow_everything(store, calls=None):
    def expand(path: Path):
        if calls is not None:
            calls.append(path.length)
        node = path.end_node
        rel_type = RelType.INPUT if node.kind is NodeKind.ACCOUNT else RelType.OUTPUT
        return store.relationships(node, Direction.OUTGOING, rel_type)
    return expand


class DepthEvaluatorTests(unittest.TestCase):
    def test_including_depths_bounds(self) -> None:
        ev = including_depths(2, 14)
        store = _diamond()
        start = Path.start_at(store.find_node(NodeKind.ACCOUNT, "address", "A"))

        self.assertFalse(ev(start).include)
        self.assertTrue(ev(start).keep_going)

    def test_to_depth_includes_start(self) -> None:
        ev = to_depth(2)
        store = _diamond()
        start = Path.start_at(store.find_node(NodeKind.ACCOUNT, "address", "A"))

        self.assertTrue(ev(start).include)
        self.assertEqual((ev.min_depth, ev.max_depth), (0, 2))


class BreadthFirstTraversalTests(unittest.TestCase):
    def test_relationships_are_globally_unique(self) -> None:
        store = _diamond()
        start = store.find_node(NodeKind.ACCOUNT, "address", "A")

        paths = list(BreadthFirstTraversal(_follow_everything(store), including_depths(0, 14)).traverse(start))

        last_rels = Counter(p.last_relationship.id for p in paths if p.last_relationship)
        self.assertEqual(len(paths), 7)
        self.assertTrue(all(count == 1 for count in last_rels.values()))
        # only one branch reaches D; the second arrival at T2 cannot reuse t2-d
        self.assertEqual(sum(1 for p in paths if p.end_node.get("address") == "D"), 1)

    def test_breadth_first_order(self) -> None:
        store = _diamond()
        start = store.find_node(NodeKind.ACCOUNT, "address", "A")

        lengths = [p.length for p in BreadthFirstTraversal(_follow_everything(store), including_depths(0, 14)).traverse(start)]

        self.assertEqual(lengths, sorted(lengths))

    def test_stops_expanding_at_max_depth(self) -> None:
        store = _diamond()
        start = store.find_node(NodeKind.ACCOUNT, "address", "A")
        calls = []

        paths = list(BreadthFirstTraversal(_follow_everything(store, calls), to_depth(2)).traverse(start))

        self.assertEqual(sorted(p.length for p in paths), [0, 1, 2, 2])
        self.assertTrue(all(depth < 2 for depth in calls))

    def test_cycle_terminates(self) -> None:
        store = graph_from_dict({
            "accounts": [{"address": "A"}],
            "transactions": [{"hash": "T1", "timestamp": 1}],
            "inputs": [{"id": "a-t1", "from": "A", "tx": "T1"}],
            "outputs": [{"id": "t1-a", "tx": "T1", "to": "A"}],
        })
        start = store.find_node(NodeKind.ACCOUNT, "address", "A")

        paths = list(BreadthFirstTraversal(_follow_everything(store), including_depths(0, 14)).traverse(start))

        self.assertEqual([p.length for p in paths], [0, 1, 2])

    def test_paths_alternate_node_kinds(self) -> None:
        store = _diamond()
        start = store.find_node(NodeKind.ACCOUNT, "address", "A")

        for p in BreadthFirstTraversal(_follow_everything(store), including_depths(0, 14)).traverse(start):
            kinds = [n.kind for n in p.nodes]
            expected = [NodeKind.ACCOUNT if i % 2 == 0 else NodeKind.TRANSACTION for i in range(len(kinds))]
            self.assertEqual(kinds, expected)


if __name__ == "__main__":
    unittest.main()
