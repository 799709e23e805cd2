from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Iterator, List, Set

from fundflow.core.models import Node, Path, Relationship

ExpandFn = Callable[[Path], List[Relationship]]


@dataclass(frozen=True)
class Evaluation:
    include: bool
    keep_going: bool


@dataclass(frozen=True)
class DepthEvaluator:
    """
    Depth bounds on path length (relationship count).

    Paths inside ``[min_depth, max_depth]`` are emitted; paths shorter than
    ``max_depth`` are expanded further.
    """

    min_depth: int
    max_depth: int

    def __call__(self, path: Path) -> Evaluation:
        return Evaluation(
            include=self.min_depth <= path.length <= self.max_depth,
            keep_going=path.length < self.max_depth,
        )


def including_depths(min_depth: int, max_depth: int) -> DepthEvaluator:
    return DepthEvaluator(min_depth, max_depth)


def to_depth(depth: int) -> DepthEvaluator:
    return DepthEvaluator(0, depth)


class BreadthFirstTraversal:
    """
    Breadth-first search that never follows the same relationship twice in one
    run, across all branches.
    """

    def __init__(self, expand: ExpandFn, evaluator: DepthEvaluator) -> None:
        self.expand = expand
        self.evaluator = evaluator

    def traverse(self, start: Node) -> Iterator[Path]:
        q: Deque[Path] = deque([Path.start_at(start)])
        visited: Set[str] = set()

        while q:
            path = q.popleft()
            verdict = self.evaluator(path)

            if verdict.include:
                yield path

            if not verdict.keep_going:
                continue

            for rel in self.expand(path):
                if rel.id in visited:
                    continue
                visited.add(rel.id)
                q.append(path.append(rel))
