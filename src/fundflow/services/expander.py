from __future__ import annotations

import logging
import time
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from fundflow.config.settings import (
    DAY_RANGE_SEC,
    EXCHANGE_THRESHOLD,
    VALUE_RETENTION_DIVISOR,
)
from fundflow.core.convert import to_int
from fundflow.core.models import (
    Direction,
    Node,
    NodeKind,
    Path,
    Relationship,
    RelType,
    TraceQuery,
    Window,
)
from fundflow.ports.graph_store_port import GraphStorePort

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class _Candidate:
    rel: Relationship
    passes: bool
    sort_key: int


def _retained(value: int) -> int:
    # truncates toward zero, also for negative values
    q = abs(value) // VALUE_RETENTION_DIVISOR
    return q if value >= 0 else -q


def next_window(path: Path, query: TraceQuery) -> Window:
    """
    Time/value window for the hop leaving ``path.end_node``.

    The first hop uses the query's own bounds with a one-day time range.
    Later hops are anchored on the transaction adjacent to the frontier and
    only admit values of at least a tenth of the previous hop, unbounded above.
    """
    last_rel = path.last_relationship
    if last_rel is None:
        return Window(
            min_timestamp=query.min_timestamp,
            max_timestamp=query.min_timestamp + DAY_RANGE_SEC,
            min_value=query.min_value,
            max_value=query.max_value,
        )

    last_txn = last_rel.start if last_rel.type is RelType.OUTPUT else path.end_node
    anchor = to_int(last_txn.get("timestamp"), 0)
    if query.reverse:
        min_ts, max_ts = anchor - query.timespan, anchor
    else:
        min_ts, max_ts = anchor, anchor + query.timespan

    return Window(
        min_timestamp=min_ts,
        max_timestamp=max_ts,
        min_value=_retained(to_int(last_rel.get("value"), 0)),
        max_value=None,
    )


class FundFlowExpander:
    """
    Expansion callback for the breadth-first traversal.

    ``expand`` is a pure function of the path so far, the query and the clock:
    nothing is carried between calls, and edge de-duplication is left to the
    traversal.
    """

    def __init__(
        self,
        store: GraphStorePort,
        query: TraceQuery,
        deadline_ms: int,
        clock: Optional[Clock] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self.store = store
        self.query = query
        self.deadline_ms = deadline_ms
        self.clock = clock or now_ms
        self.executor = executor

    def expand(self, path: Path) -> List[Relationship]:
        if self.clock() > self.deadline_ms:
            logger.debug("Search deadline passed; not expanding %s", path.end_node)
            return []

        frontier = path.end_node
        if frontier is None:
            return []

        try:
            window = next_window(path, self.query)
            if frontier.kind is NodeKind.ACCOUNT:
                return self._expand_account(frontier, window)
            if frontier.kind is NodeKind.TRANSACTION:
                return self._expand_transaction(frontier, window)
            return []
        except Exception as e:
            logger.warning("Expansion failed at %s: %s", frontier.id, e)
            return []

    # -------------------------
    # Per-kind candidate selection
    # -------------------------

    def _expand_account(self, account: Node, window: Window) -> List[Relationship]:
        # hubs (exchanges etc.) are terminal
        if self.store.degree(account) >= EXCHANGE_THRESHOLD:
            return []

        if self.query.reverse:
            rels = self.store.relationships(account, Direction.INCOMING, RelType.OUTPUT)
        else:
            rels = self.store.relationships(account, Direction.OUTGOING, RelType.INPUT)

        def evaluate(rel: Relationship) -> _Candidate:
            txn = rel.other_node(account)
            ts = to_int(txn.get("timestamp"), 0)
            value = to_int(txn.get("input_value"), 0)
            return _Candidate(
                rel=rel,
                passes=window.contains_timestamp(ts) and window.contains_value(value),
                sort_key=ts,
            )

        return self._select(rels, evaluate)

    def _expand_transaction(self, txn: Node, window: Window) -> List[Relationship]:
        # same transaction, same instant: value filter only
        if self.query.reverse:
            rels = self.store.relationships(txn, Direction.INCOMING, RelType.INPUT)
        else:
            rels = self.store.relationships(txn, Direction.OUTGOING, RelType.OUTPUT)

        def evaluate(rel: Relationship) -> _Candidate:
            value = to_int(rel.get("value"), 0)
            return _Candidate(rel=rel, passes=window.contains_value(value), sort_key=value)

        return self._select(rels, evaluate)

    def _select(
        self,
        rels: List[Relationship],
        evaluate: Callable[[Relationship], _Candidate],
    ) -> List[Relationship]:
        if self.executor is not None and len(rels) > 1:
            evaluated = list(self.executor.map(evaluate, rels))
        else:
            evaluated = [evaluate(r) for r in rels]

        kept: List[Tuple[int, Relationship]] = [(c.sort_key, c.rel) for c in evaluated if c.passes]
        # stable sort keeps store order on ties
        kept.sort(key=lambda item: item[0])

        limit = max(int(self.query.max_relationship_count), 0)
        return [rel for _, rel in kept[:limit]]
