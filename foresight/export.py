"""
foresight/export.py - Branch Export and Reporting

Ranked branch analysis as JSON, and the human-readable summary.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence

from receipts import append_receipts, dual_hash, emit_receipt

from .aggregation import rank_branches
from .constants import DEFAULT_TENANT
from .types_result import WhatIfBranch


def export_branches(branches: Sequence[WhatIfBranch], path: Optional[str] = None,
                    tenant_id: str = DEFAULT_TENANT, receipts_path: Optional[str] = None,
                    ledger: Optional[List[dict]] = None) -> dict:
    """
    Build (and optionally write) the ranked branch analysis.

    Args:
        branches: Branches to export; ranked by desirability here
        path: Optional JSON file to write
        tenant_id: Tenant for the export receipt
        receipts_path: Optional JSONL file the export receipt is appended to
        ledger: Optional receipt ledger the export receipt is appended to

    Returns:
        dict: {"generated", "branches", "dual_hash"}
    """
    ranked = rank_branches(branches)
    analysis = {
        "generated": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "branches": [b.to_dict() for b in ranked],
    }
    analysis["dual_hash"] = dual_hash(json.dumps(analysis["branches"], sort_keys=True))

    if path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            json.dump(analysis, f, indent=2)

    receipt = emit_receipt("branches_exported", {
        "tenant_id": tenant_id,
        "branch_count": len(ranked),
        "dual_hash": analysis["dual_hash"],
        "output_path": path,
    })
    if ledger is not None:
        ledger.append(receipt)
    if receipts_path:
        append_receipts([receipt], receipts_path)

    return analysis


def generate_report(branches: Sequence[WhatIfBranch]) -> str:
    """
    Human-readable summary of ranked branches.

    Per branch: hypothesis, probability and desirability as percentages,
    final glyph count and love, up to three key events, first warning.
    """
    lines = ["=== FUTURE BRANCHES ==="]
    for rank, branch in enumerate(rank_branches(branches), start=1):
        lines.append("")
        lines.append(f"{rank}. {branch.hypothesis}")
        lines.append(f"   Probability: {branch.probability * 100:.1f}%")
        lines.append(f"   Desirability: {branch.desirability * 100:.1f}%")
        if branch.truncated:
            lines.append(f"   Truncated: {branch.runs_completed} runs contributed")

        final = branch.final_outcome
        if final is None:
            lines.append("   No outcomes within the horizon")
            continue
        lines.append(f"   Final glyphs: {final.state.glyph_count:.0f}")
        lines.append(f"   Total love: {final.state.total_love:.2f}")

        key_events = list(dict.fromkeys(e for outcome in branch.outcomes for e in outcome.events))
        if key_events:
            lines.append(f"   Key events: {', '.join(key_events[:3])}")
        if final.warnings:
            lines.append(f"   Warning: {final.warnings[0]}")

    return "\n".join(lines)
