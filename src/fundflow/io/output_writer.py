from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

from fundflow.core.convert import to_int
from fundflow.core.models import PathResult, TraceQuery, TransactionsAndLabels
from fundflow.io.schemas import path_result_to_dict, transactions_to_dict


def _write_json(payload, out_dir: str, filename: str) -> str:
    p = Path(out_dir)
    p.mkdir(parents=True, exist_ok=True)

    out_path = p / filename
    with out_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    return str(out_path)


def write_paths_json(paths: List[PathResult], out_dir: str, filename: str = "paths.json") -> str:
    return _write_json([path_result_to_dict(p) for p in paths], out_dir, filename)


def write_transactions_json(
    result: TransactionsAndLabels,
    out_dir: str,
    filename: str = "transactions.json",
) -> str:
    return _write_json(transactions_to_dict(result), out_dir, filename)


def write_summary_md(
    out_dir: str,
    query: TraceQuery,
    paths: Optional[List[PathResult]] = None,
    result: Optional[TransactionsAndLabels] = None,
    filename: str = "summary.md",
) -> str:
    """
    Minimal, investigator-friendly summary of one query.
    """
    p = Path(out_dir)
    p.mkdir(parents=True, exist_ok=True)

    out_path = p / filename

    def short(addr: str) -> str:
        return addr if len(addr) <= 14 else f"{addr[:10]}..."

    lines = []
    lines.append("# Fund Flow Summary\n")
    lines.append(f"- Seed: **{query.address}**\n")
    lines.append(f"- Direction: **{'backward (sources)' if query.reverse else 'forward (destinations)'}**\n")
    lines.append(f"- Hop window: **{query.timespan}s** from **{query.min_timestamp}**\n")
    lines.append(f"- Fan-out cap: **{query.max_relationship_count}** per step\n")
    lines.append("\n")

    if paths is not None:
        lines.append("## Paths\n\n")
        if not paths:
            lines.append("_No fund-flow paths found in the selected window._\n\n")
        else:
            lines.append(f"- Maximal paths: **{len(paths)}**\n")
            longest = max(len(x.relationships) for x in paths)
            lines.append(f"- Longest path: **{longest}** hop(s)\n\n")
            for x in sorted(paths, key=lambda x: len(x.relationships), reverse=True)[:10]:
                chain = " -> ".join(
                    short(n.get("address") or n.get("hash") or n.get("id", "")) for n in x.nodes
                )
                lines.append(f"- {chain}\n")
            lines.append("\n")

    if result is not None:
        lines.append("## Transactions\n\n")
        if not result.transactions:
            lines.append("_No transactions found in the selected window._\n\n")
        else:
            def moved(rec) -> int:
                return sum(to_int(o.value, 0) for o in rec.outputs)

            top = sorted(result.transactions.values(), key=moved, reverse=True)[:15]
            lines.append(f"- Transactions: **{len(result.transactions)}**\n\n")
            for rec in top:
                lines.append(
                    f"- **{moved(rec)}** out | {len(rec.inputs)} in / {len(rec.outputs)} out "
                    f"| ts {rec.timestamp} | tx: {rec.hash}\n"
                )
            lines.append("\n")

        lines.append("## Labelled Addresses\n\n")
        if not result.labels:
            lines.append("_No high-degree (deposit) addresses were reached._\n\n")
        else:
            for addr, tags in sorted(result.labels.items()):
                lines.append(f"- {addr}: {', '.join(sorted(tags))}\n")
            lines.append("\n")

    lines.append("## Limitations\n\n")
    lines.append("- Hub accounts (exchanges, large services) are treated as dead ends.\n")
    lines.append("- Each hop only keeps transactions moving at least a tenth of the previous hop.\n")
    lines.append("- Searches stop expanding after the time budget; results may be partial.\n")

    with out_path.open("w", encoding="utf-8") as f:
        f.writelines(lines)

    return str(out_path)
