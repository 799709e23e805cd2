from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

from fundflow.config.settings import (
    ACCOUNT_KEY,
    EXPANDER_WORKERS,
    FORWARD_MAX_DEPTH,
    FORWARD_MIN_DEPTH,
    MAX_SEARCH_TIME_MS,
    REVERSE_MAX_DEPTH,
)
from fundflow.core.errors import StartNodeNotFoundError
from fundflow.core.models import (
    Node,
    NodeKind,
    Path,
    PathResult,
    TraceQuery,
    TransactionsAndLabels,
)
from fundflow.ports.graph_store_port import GraphStorePort
from fundflow.services.expander import Clock, FundFlowExpander, now_ms
from fundflow.services.path_selector import select_unique_longest_paths
from fundflow.services.result_assembler import ResultAssembler
from fundflow.services.traversal import (
    BreadthFirstTraversal,
    DepthEvaluator,
    including_depths,
    to_depth,
)

logger = logging.getLogger(__name__)

ProgressFn = Callable[[str, Dict[str, Any]], None]


def _noop_progress(event: str, data: Dict[str, Any]) -> None:
    return None


class FundFlowService:
    """
    Answers fund-flow questions from a seed account.

    - Forward traces follow disbursements up to 14 hops deep
    - Reverse traces only look for the immediate funding transaction
    - Any failure yields an empty result instead of an exception
    """

    def __init__(
        self,
        store: GraphStorePort,
        clock: Optional[Clock] = None,
        workers: int = EXPANDER_WORKERS,
    ) -> None:
        self.store = store
        self.clock = clock or now_ms
        self.workers = workers
        self.assembler = ResultAssembler(store)

    def find_paths(self, query: TraceQuery, on_progress: Optional[ProgressFn] = None) -> List[PathResult]:
        try:
            paths = self.collect_paths(query, on_progress=on_progress)
            return self.assembler.to_path_results(paths)
        except Exception as e:
            logger.error("Path query for %s failed: %s", query.address, e)
            return []

    def find_transactions(
        self,
        query: TraceQuery,
        on_progress: Optional[ProgressFn] = None,
    ) -> TransactionsAndLabels:
        try:
            paths = self.collect_paths(query, on_progress=on_progress)
            return self.assembler.aggregate(paths, reverse=query.reverse)
        except Exception as e:
            logger.error("Transaction query for %s failed: %s", query.address, e)
            return TransactionsAndLabels()

    def collect_paths(self, query: TraceQuery, on_progress: Optional[ProgressFn] = None) -> List[Path]:
        """
        Run the traversal and reduce it to unique maximal paths.

        Returns an empty list when the start account does not exist.
        """
        progress = on_progress or _noop_progress
        try:
            start = self._resolve_start(query.address)
        except StartNodeNotFoundError:
            logger.info("Start account %s not found", query.address)
            return []

        deadline = self.clock() + MAX_SEARCH_TIME_MS
        progress("start", {"address": query.address, "reverse": query.reverse})

        all_paths: List[Path] = []
        if self.workers > 1:
            with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="fundflow-expand") as pool:
                expander = FundFlowExpander(self.store, query, deadline, clock=self.clock, executor=pool)
                all_paths.extend(self._traverse(start, expander, query, progress))
        else:
            expander = FundFlowExpander(self.store, query, deadline, clock=self.clock)
            all_paths.extend(self._traverse(start, expander, query, progress))

        unique = select_unique_longest_paths(all_paths)
        logger.debug("Traversal from %s: %d paths, %d maximal", query.address, len(all_paths), len(unique))
        progress("done", {"paths": len(all_paths), "maximal": len(unique)})
        return unique

    # -------------------------
    # Helpers
    # -------------------------

    def _resolve_start(self, address: str) -> Node:
        node = self.store.find_node(NodeKind.ACCOUNT, ACCOUNT_KEY, address)
        if node is None:
            raise StartNodeNotFoundError(address)
        return node

    @staticmethod
    def depth_evaluator(reverse: bool) -> DepthEvaluator:
        if reverse:
            return to_depth(REVERSE_MAX_DEPTH)
        return including_depths(FORWARD_MIN_DEPTH, FORWARD_MAX_DEPTH)

    def _traverse(
        self,
        start: Node,
        expander: FundFlowExpander,
        query: TraceQuery,
        progress: ProgressFn,
    ) -> List[Path]:
        traversal = BreadthFirstTraversal(expander.expand, self.depth_evaluator(query.reverse))
        out: List[Path] = []
        for path in traversal.traverse(start):
            out.append(path)
            progress("visit", {"depth": path.length, "paths": len(out)})
        return out
