#!/usr/bin/env python3
"""
PHPLAN — plan.py

Build a deduplicated curricular study plan from selected practice activities.

Steps
-----
1. Walk the curricular rows of each selected PA (unknown PA ids are skipped).
2. Key every row by its normalized text (lowercase, whitespace collapsed, trimmed).
3. Merge rows sharing a key:
     - text       first-seen original
     - checkmarks max over contributors
     - pas        ordered unique contributing PA ids
     - row_ids    ordered unique original row identifiers
4. Split merged rows into "core" and "specialized" with a BucketPolicy:
     - CHECKMARK_THRESHOLD (default): core iff checkmarks >= 5, buckets sorted by text
     - CROSS_PA_FREQUENCY:            core iff >= 2 contributing PAs, sorted by PA count desc

The builder returns complete lists; capping for display belongs to the UI.

CLI
---
python src/phplan/plan.py --data-dir data --pa pa01 pa02 [--policy cross_pa_frequency]
"""

from __future__ import annotations

import argparse
import json
import logging
import re
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

LOG = logging.getLogger(__name__)

MAX_CHECKMARKS = 5
CORE_CHECKMARKS = 5
CORE_MIN_PAS = 2

_WS = re.compile(r"\s+")


def normalize_text(s: Any) -> str:
    """Dedup key: lowercase, all whitespace/newlines collapsed to one space, trimmed."""
    return _WS.sub(" ", str(s or "").lower()).strip()


def checkmark_count(value: Any) -> int:
    """Checkmarks as a count in 0..5: ints pass through, profile→bool maps count their truthy entries."""
    if isinstance(value, Mapping):
        n = sum(1 for v in value.values() if v)
    else:
        try:
            n = int(value or 0)
        except (TypeError, ValueError):
            return 0
    return max(0, min(MAX_CHECKMARKS, n))


@dataclass
class MergedRow:
    key: str
    text: str
    checkmarks: int
    pas: List[str] = field(default_factory=list)
    row_ids: List[str] = field(default_factory=list)


def _alpha(row: MergedRow) -> Tuple[str, str]:
    return (row.text.casefold(), row.text)


class BucketPolicy(str, Enum):
    CHECKMARK_THRESHOLD = "checkmark_threshold"
    CROSS_PA_FREQUENCY = "cross_pa_frequency"

    def is_core(self, row: MergedRow) -> bool:
        if self is BucketPolicy.CROSS_PA_FREQUENCY:
            return len(row.pas) >= CORE_MIN_PAS
        return row.checkmarks >= CORE_CHECKMARKS

    def sort_key(self, row: MergedRow):
        if self is BucketPolicy.CROSS_PA_FREQUENCY:
            return (-len(row.pas),) + _alpha(row)
        return _alpha(row)


@dataclass
class Plan:
    core: List[MergedRow]
    specialized: List[MergedRow]
    total: int
    policy: BucketPolicy = BucketPolicy.CHECKMARK_THRESHOLD

    def to_dict(self) -> Dict:
        return {
            "policy": self.policy.value,
            "total": self.total,
            "core": [asdict(r) for r in self.core],
            "specialized": [asdict(r) for r in self.specialized],
        }


def _append_unique(items: List[str], seen: set, value: str) -> None:
    if value not in seen:
        seen.add(value)
        items.append(value)


def _selected_rows(pa_ids: Iterable[str], pa_index: Mapping) -> Iterable[Tuple[str, Any]]:
    for pa_id in dict.fromkeys(pa_ids or []):
        pa = pa_index.get(pa_id)
        if pa is None:
            LOG.debug("Skipping unknown PA id %r", pa_id)
            continue
        for row in pa.curricular_rows:
            yield pa_id, row


def merge_rows(rows: Iterable[Tuple[str, Any]]) -> List[MergedRow]:
    """Merge (pa_id, CurricularRow) pairs by normalized text, in first-seen order."""
    merged: Dict[str, MergedRow] = {}
    seen_pas: Dict[str, set] = {}
    seen_ids: Dict[str, set] = {}
    for pa_id, row in rows:
        key = normalize_text(row.text)
        checks = checkmark_count(row.checkmarks)
        cur = merged.get(key)
        if cur is None:
            merged[key] = MergedRow(key=key, text=row.text, checkmarks=checks,
                                    pas=[pa_id], row_ids=[row.row_id])
            seen_pas[key] = {pa_id}
            seen_ids[key] = {row.row_id}
            continue
        cur.checkmarks = max(cur.checkmarks, checks)
        _append_unique(cur.pas, seen_pas[key], pa_id)
        _append_unique(cur.row_ids, seen_ids[key], row.row_id)
    return list(merged.values())


def build_plan(
    pa_ids: Iterable[str],
    pa_index: Mapping,
    policy: Union[BucketPolicy, str] = BucketPolicy.CHECKMARK_THRESHOLD,
) -> Plan:
    """
    Deduplicate the curricular rows of the selected PAs and bucket them.

    pa_index: {pa_id: PracticeActivity} (e.g. Catalog.pas)
    Returns Plan(core, specialized, total) with total == len(core) + len(specialized).
    """
    policy = BucketPolicy(policy)
    rows = merge_rows(_selected_rows(pa_ids, pa_index))

    core = sorted((r for r in rows if policy.is_core(r)), key=policy.sort_key)
    specialized = sorted((r for r in rows if not policy.is_core(r)), key=policy.sort_key)
    LOG.debug("Plan (%s): %d core, %d specialized", policy.value, len(core), len(specialized))
    return Plan(core=core, specialized=specialized, total=len(rows), policy=policy)


def profile_tasks(pa_ids: Iterable[str], pa_index: Mapping, profile_id: str) -> List[Dict[str, str]]:
    """Tasks listed for one workforce profile across the selected PAs, deduplicated by text."""
    out: List[Dict[str, str]] = []
    seen: set = set()
    if not profile_id:
        return out
    for pa_id in dict.fromkeys(pa_ids or []):
        pa = pa_index.get(pa_id)
        if pa is None:
            continue
        for task in pa.tasks_by_profile.get(profile_id, []):
            key = normalize_text(task)
            if key and key not in seen:
                seen.add(key)
                out.append({"pa": pa_id, "task": task})
    return out


def _argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Build a deduplicated study plan from selected PAs.")
    p.add_argument("--data-dir", dest="data_dir", required=True, type=Path, help="Catalog directory")
    p.add_argument("--pa", nargs="+", required=True, help="Selected PA ids")
    p.add_argument("--policy", default=BucketPolicy.CHECKMARK_THRESHOLD.value,
                   choices=[b.value for b in BucketPolicy], help="Bucketing policy")
    return p


if __name__ == "__main__":
    from phplan.catalog import load_catalog

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = _argparser().parse_args()
    plan = build_plan(args.pa, load_catalog(args.data_dir).pas, policy=args.policy)
    print(json.dumps(plan.to_dict(), indent=2))
