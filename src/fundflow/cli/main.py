from __future__ import annotations

import argparse
import datetime as dt
import json
import logging
import sys
import time

from fundflow.config import settings
from fundflow.core.errors import GraphStoreError
from fundflow.core.models import TraceQuery
from fundflow.io.output_writer import write_paths_json, write_summary_md, write_transactions_json
from fundflow.io.schemas import graph_from_dict
from fundflow.services.fundflow_service import FundFlowService

from fundflow.adapters.graph.neo4j_graph_adapter import Neo4jGraphAdapter


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="fundflow", description="Fund-flow tracer over an account/transaction graph")
    p.add_argument("--address", required=False, help="Seed account address")
    p.add_argument("--timespan", type=int, default=settings.DEFAULT_TIMESPAN_SEC, help="Window width per hop (seconds)")
    p.add_argument("--max-relationship-count", type=int, default=settings.DEFAULT_MAX_RELATIONSHIP_COUNT, help="Max edges followed per step")
    p.add_argument("--min-timestamp", type=int, default=0, help="Start of the first hop's window (unix seconds)")
    p.add_argument("--min-value", type=int, default=settings.DEFAULT_MIN_VALUE, help="Minimum value on the first hop")
    p.add_argument("--max-value", type=int, default=settings.DEFAULT_MAX_VALUE, help="Maximum value on the first hop")
    p.add_argument("--reverse", action="store_true", help="Trace funding sources instead of destinations")
    p.add_argument("--mode", choices=["paths", "transactions"], default="transactions", help="Output shape")
    p.add_argument("--out", default="out", help="Output folder")
    p.add_argument("--static-graph", help="JSON graph fixture to query instead of Neo4j (dev/testing)")
    return p


def _make_progress_reporter(query: TraceQuery):
    start_time = time.time()
    last_print = 0.0
    is_tty = sys.stdout.isatty()

    def _ts() -> str:
        return dt.datetime.now().strftime("%H:%M:%S")

    def _print_line(message: str) -> None:
        if is_tty:
            sys.stdout.write("\r" + message.ljust(88))
            sys.stdout.flush()
        else:
            print(message)

    def _clear_line() -> None:
        if is_tty:
            sys.stdout.write("\r" + (" " * 88) + "\r")
            sys.stdout.flush()

    def progress(event: str, data: dict) -> None:
        nonlocal last_print
        now = time.time()
        if event == "start":
            direction = "backward" if query.reverse else "forward"
            print(f"[{_ts()}] Tracing {query.address} • {direction} • {query.timespan}s/hop")
            return
        if event == "visit":
            if not is_tty and data["paths"] % 100 != 0:
                return
            if is_tty and now - last_print < 0.2:
                return
            _print_line(f"Depth {data['depth']} • paths {data['paths']}")
            last_print = now
            return
        if event == "done":
            _clear_line()
            elapsed = time.time() - start_time
            print(f"[{_ts()}] Done in {elapsed:.1f}s • {data['paths']} paths • {data['maximal']} maximal")
            return
        if event == "error":
            _clear_line()
            print(f"[{_ts()}] Error: {data.get('message', 'Unknown error')}", file=sys.stderr)

    return progress


def main() -> int:
    args = build_arg_parser().parse_args()
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.address:
        print("Missing --address for tracing", file=sys.stderr)
        return 2

    query = TraceQuery(
        address=args.address,
        timespan=args.timespan,
        max_relationship_count=args.max_relationship_count,
        min_timestamp=args.min_timestamp,
        min_value=args.min_value,
        max_value=args.max_value,
        reverse=args.reverse,
    )
    progress = _make_progress_reporter(query)

    # Ports
    if args.static_graph:
        try:
            with open(args.static_graph, encoding="utf-8") as f:
                store = graph_from_dict(json.load(f))
        except (OSError, ValueError, KeyError) as exc:
            progress("error", {"message": f"Cannot load {args.static_graph}: {exc}"})
            return 2
        adapter_label = f"StaticGraphAdapter ({args.static_graph})"
    else:
        if not settings.NEO4J_PASSWORD:
            progress("error", {"message": "Missing NEO4J_PASSWORD environment variable"})
            return 2
        try:
            store = Neo4jGraphAdapter()
        except GraphStoreError as exc:
            progress("error", {"message": str(exc)})
            return 2
        adapter_label = f"Neo4jGraphAdapter ({settings.NEO4J_URI})"

    svc = FundFlowService(store=store)
    print(f"Adapter: {adapter_label}")
    try:
        if args.mode == "paths":
            paths = svc.find_paths(query, on_progress=progress)
            print("Writing outputs...")
            data_path = write_paths_json(paths, args.out)
            summary_path = write_summary_md(args.out, query, paths=paths)
        else:
            result = svc.find_transactions(query, on_progress=progress)
            print("Writing outputs...")
            data_path = write_transactions_json(result, args.out)
            summary_path = write_summary_md(args.out, query, result=result)
    except Exception as exc:
        progress("error", {"message": f"{exc.__class__.__name__}: {exc}"})
        return 1
    finally:
        close = getattr(store, "close", None)
        if close is not None:
            close()

    print(f"Wrote: {data_path}")
    print(f"Wrote: {summary_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
