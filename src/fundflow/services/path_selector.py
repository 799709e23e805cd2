from __future__ import annotations

from typing import List, Sequence, Tuple

from fundflow.core.models import Path


def _contains_run(haystack: Tuple[str, ...], needle: Tuple[str, ...]) -> bool:
    n = len(needle)
    if n == 0:
        return True
    if n > len(haystack):
        return False
    for i in range(len(haystack) - n + 1):
        if haystack[i:i + n] == needle:
            return True
    return False


def select_unique_longest_paths(all_paths: Sequence[Path]) -> List[Path]:
    """
    Keep only maximal paths.

    A path is dropped when a strictly longer path holds its node/relationship
    id sequence as a contiguous run, or when an identical path was already
    kept. Paths without a start or end node are dropped outright. Pairwise,
    so quadratic in the number of paths.
    """
    candidates = [p for p in all_paths if p.start_node is not None and p.end_node is not None]
    token_cache = [p.tokens() for p in candidates]

    kept: List[Path] = []
    seen = set()
    for i, this_path in enumerate(candidates):
        this_tokens = token_cache[i]
        if this_tokens in seen:
            continue

        is_subpath = False
        for j, other_path in enumerate(candidates):
            if i == j or other_path.length <= this_path.length:
                continue
            if _contains_run(token_cache[j], this_tokens):
                is_subpath = True
                break

        if not is_subpath:
            seen.add(this_tokens)
            kept.append(this_path)

    return kept
