import io
import json
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

from fundflow.cli import main as cli
from fundflow.core.errors import GraphStoreError


_FIXTURE = {
    "accounts": [{"address": "A"}, {"address": "B"}],
    "transactions": [{"hash": "T1", "timestamp": 1000, "input_value": 10}],
    "inputs": [{"from": "A", "tx": "T1", "value": 10}],
    "outputs": [{"tx": "T1", "to": "B", "value": 9}],
}


class CliTests(unittest.TestCase):
    def _run(self, *argv: str) -> int:
        with mock.patch("sys.argv", ["fundflow", *argv]), redirect_stdout(io.StringIO()), redirect_stderr(io.StringIO()):
            return cli.main()

    def test_static_graph_transactions_mode(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            graph_file = Path(tmp) / "graph.json"
            graph_file.write_text(json.dumps(_FIXTURE), encoding="utf-8")
            out_dir = Path(tmp) / "out"

            code = self._run("--address", "A", "--min-timestamp", "1000", "--static-graph", str(graph_file), "--out", str(out_dir))

            saved = json.loads((out_dir / "transactions.json").read_text(encoding="utf-8"))
            self.assertTrue((out_dir / "summary.md").exists())

        self.assertEqual(code, 0)
        [tx] = saved["transactions"].values()
        self.assertEqual(tx["inputs"], [{"from": "A", "value": "10"}])
        self.assertEqual(tx["outputs"], [{"to": "B", "value": "9"}])

    def test_static_graph_paths_mode(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            graph_file = Path(tmp) / "graph.json"
            graph_file.write_text(json.dumps(_FIXTURE), encoding="utf-8")
            out_dir = Path(tmp) / "out"

            code = self._run(
                "--address", "A", "--min-timestamp", "1000", "--mode", "paths",
                "--static-graph", str(graph_file), "--out", str(out_dir),
            )
            saved = json.loads((out_dir / "paths.json").read_text(encoding="utf-8"))

        self.assertEqual(code, 0)
        self.assertEqual([n["kind"] for n in saved[0]["nodes"]], ["account", "transaction", "account"])

    def test_missing_address_is_a_usage_error(self) -> None:
        self.assertEqual(self._run(), 2)

    def test_unreadable_fixture_is_a_usage_error(self) -> None:
        self.assertEqual(self._run("--address", "A", "--static-graph", "/nonexistent/graph.json"), 2)

    def test_bad_neo4j_uri_is_reported_as_usage_error(self) -> None:
        err = io.StringIO()
        with mock.patch.object(cli.settings, "NEO4J_PASSWORD", "secret"), mock.patch.object(
            cli, "Neo4jGraphAdapter", side_effect=GraphStoreError("Cannot create Neo4j driver for ::bad")
        ), mock.patch("sys.argv", ["fundflow", "--address", "A"]), redirect_stdout(io.StringIO()), redirect_stderr(err):
            code = cli.main()

        self.assertEqual(code, 2)
        self.assertIn("Cannot create Neo4j driver", err.getvalue())


if __name__ == "__main__":
    unittest.main()
