#!/usr/bin/env python3
"""
PHPLAN — catalog.py

Load the program-builder catalog (EPHFs, practice activities, roles, the
EPHF→PA mapping and the scoring configuration) into one canonical, frozen
in-memory shape.

Highlights
----------
• Files (under the data directory):
    - pa_index.json        {pa01: {title, curricular_rows, tasks_by_profile}}  (required)
    - mappings.json        {ephf_labels, pa_labels, ephf_to_pas}              (required)
    - roles.json           [role, ...] or {"roles": [...]}                   (optional)
    - scoring_config.json  {weights, skip_weights}                           (optional)
• Schema drift is resolved here, never in the scorer:
    - pa_weights ← practice_activity_weights
    - weights.practice ← weights.practice_activity
    - ephf_to_pas ← ephf_to_pa
• Every weight is floored to a finite, non-negative float (garbage → 0).
• Curricular checkmarks are kept as given (int count or profile→bool map);
  the plan builder understands both.

CLI
---
python src/phplan/catalog.py --data-dir data
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np

LOG = logging.getLogger(__name__)

WEIGHT_KEYS = ("ephf", "practice", "competency", "context_bonus", "profile")

# ephf/practice match the historical scorer defaults
DEFAULT_WEIGHTS: Dict[str, float] = {
    "ephf": 0.6,
    "practice": 0.3,
    "competency": 0.0,
    "context_bonus": 0.1,
    "profile": 0.1,
}

# ---------------- Canonical shapes ----------------

@dataclass(frozen=True)
class Ephf:
    id: str
    label: str


@dataclass(frozen=True)
class CurricularRow:
    row_id: str
    text: str
    checkmarks: Union[int, Dict[str, bool]] = 0


@dataclass(frozen=True)
class PracticeActivity:
    id: str
    title: str
    curricular_rows: List[CurricularRow] = field(default_factory=list)
    tasks_by_profile: Dict[str, List[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class Role:
    id: str
    title: str
    ephf_weights: Dict[str, float] = field(default_factory=dict)
    pa_weights: Dict[str, float] = field(default_factory=dict)
    competency_requirements: Dict[str, float] = field(default_factory=dict)
    profiles: List[str] = field(default_factory=list)
    role_style: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ScoringConfig:
    weights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    # None means "no skip policy": the regular weights apply even without PAs
    skip_weights: Optional[Dict[str, float]] = None


@dataclass(frozen=True)
class Catalog:
    ephfs: Dict[str, Ephf]
    pas: Dict[str, PracticeActivity]
    roles: List[Role]
    ephf_to_pas: Dict[str, List[str]]
    scoring: ScoringConfig = field(default_factory=ScoringConfig)

    def pa_title(self, pa_id: str) -> str:
        pa = self.pas.get(pa_id)
        return pa.title if pa else pa_id

    def ephf_label(self, ephf_id: str) -> str:
        e = self.ephfs.get(ephf_id)
        return e.label if e else ephf_id

    def role(self, role_id: str) -> Optional[Role]:
        for r in self.roles:
            if r.id == role_id:
                return r
        return None


# ---------------- Coercions ----------------

def coerce_weight(val: Any) -> float:
    """Finite, non-negative float; anything else is 0."""
    try:
        w = float(val)
    except (TypeError, ValueError):
        return 0.0
    if not np.isfinite(w) or w < 0:
        return 0.0
    return w


def _weight_map(raw: Any) -> Dict[str, float]:
    if not isinstance(raw, dict):
        return {}
    out: Dict[str, float] = {}
    for k, v in raw.items():
        w = coerce_weight(v)
        if w == 0.0 and v not in (0, 0.0):
            LOG.debug("Floored weight %r=%r to 0", k, v)
        out[str(k)] = w
    return out


def _str_list(raw: Any) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw] if raw.strip() else []
    out: List[str] = []
    for x in raw:
        s = str(x).strip()
        if s and s not in out:
            out.append(s)
    return out


# ---------------- Normalizers ----------------

def normalize_scoring_config(raw: Optional[Dict]) -> ScoringConfig:
    """Canonical ScoringConfig; `practice_activity` is accepted for `practice`."""
    raw = raw or {}

    def _canon(ws: Dict) -> Dict[str, float]:
        ws = dict(ws)
        if "practice" not in ws and "practice_activity" in ws:
            ws["practice"] = ws.pop("practice_activity")
        ws.pop("practice_activity", None)
        return _weight_map(ws)

    weights = {**DEFAULT_WEIGHTS, **_canon(raw.get("weights") or {})}
    skip_raw = raw.get("skip_weights")
    skip = _canon(skip_raw) if isinstance(skip_raw, dict) else None
    return ScoringConfig(weights=weights, skip_weights=skip)


def normalize_role(raw: Dict, idx: int = 0) -> Role:
    """Canonical Role; `practice_activity_weights` is accepted for `pa_weights`."""
    rid = str(raw.get("id") or f"role{idx + 1:02d}")
    context = raw.get("context") if isinstance(raw.get("context"), dict) else {}
    pa_raw = raw.get("pa_weights") or raw.get("practice_activity_weights") or {}
    return Role(
        id=rid,
        title=str(raw.get("title") or rid),
        ephf_weights=_weight_map(raw.get("ephf_weights")),
        pa_weights=_weight_map(pa_raw),
        competency_requirements=_weight_map(raw.get("competency_requirements")),
        profiles=_str_list(raw.get("profiles")),
        role_style=_str_list(context.get("role_style")),
    )


def normalize_pa(pa_id: str, raw: Dict, label: Optional[str] = None) -> PracticeActivity:
    rows: List[CurricularRow] = []
    for row in raw.get("curricular_rows") or []:
        rid = row.get("n", row.get("id", ""))
        checks = row.get("checkmarks", 0)
        if not isinstance(checks, dict):
            checks = int(coerce_weight(checks))
        rows.append(CurricularRow(
            row_id="" if rid is None else str(rid),
            text=str(row.get("text") or ""),
            checkmarks=checks,
        ))
    tasks = {
        str(prof): [str(t) for t in (items or [])]
        for prof, items in (raw.get("tasks_by_profile") or {}).items()
    }
    return PracticeActivity(
        id=pa_id,
        title=str(label or raw.get("title") or pa_id),
        curricular_rows=rows,
        tasks_by_profile=tasks,
    )


def _normalize_mapping(raw: Dict) -> Dict[str, List[str]]:
    src = raw.get("ephf_to_pas") or raw.get("ephf_to_pa") or {}
    return {str(e): _str_list(pas) for e, pas in src.items()}


def _pa_entries(pa_index: Union[Dict, List]) -> Dict[str, Dict]:
    if isinstance(pa_index, list):
        return {str(p.get("id")): p for p in pa_index if p.get("id")}
    return {str(k): (v or {}) for k, v in pa_index.items()}


def catalog_from_dicts(
    pa_index: Union[Dict, List],
    mappings: Dict,
    roles: Optional[Union[Dict, List]] = None,
    scoring: Optional[Dict] = None,
) -> Catalog:
    """Build a Catalog from already-parsed JSON documents."""
    mappings = mappings or {}
    pa_labels = mappings.get("pa_labels") or {}
    pas = {
        pa_id: normalize_pa(pa_id, entry, label=pa_labels.get(pa_id))
        for pa_id, entry in _pa_entries(pa_index or {}).items()
    }

    ephfs = {
        str(k): Ephf(id=str(k), label=str(v or k))
        for k, v in (mappings.get("ephf_labels") or {}).items()
    }
    for e in mappings.get("ephfs") or []:
        ephfs.setdefault(str(e["id"]), Ephf(id=str(e["id"]), label=str(e.get("label") or e["id"])))

    if isinstance(roles, dict):
        roles = roles.get("roles") or []
    role_list = [normalize_role(r, i) for i, r in enumerate(roles or [])]

    return Catalog(
        ephfs=ephfs,
        pas=pas,
        roles=role_list,
        ephf_to_pas=_normalize_mapping(mappings),
        scoring=normalize_scoring_config(scoring),
    )


# ---------------- Loading ----------------

def _read_json(path: Path, expect: tuple, required: bool = True) -> Any:
    if not path.exists():
        if required:
            raise FileNotFoundError(f"Catalog file not found: {path}")
        LOG.warning("Optional catalog file missing: %s (using defaults)", path)
        return None
    with path.open(encoding="utf-8") as f:
        js = json.load(f)
    if not isinstance(js, expect):
        raise ValueError(f"{path.name}: expected {' or '.join(t.__name__ for t in expect)}, got {type(js).__name__}")
    return js


def load_catalog(data_dir: Union[str, Path]) -> Catalog:
    d = Path(data_dir)
    LOG.info("Loading catalog from %s", d)
    pa_index = _read_json(d / "pa_index.json", (dict, list))
    mappings = _read_json(d / "mappings.json", (dict,))
    roles = _read_json(d / "roles.json", (dict, list), required=False)
    scoring = _read_json(d / "scoring_config.json", (dict,), required=False)
    cat = catalog_from_dicts(pa_index, mappings, roles, scoring)
    LOG.info(
        "Catalog loaded (ephfs=%d, pas=%d, roles=%d, mapped ephfs=%d)",
        len(cat.ephfs), len(cat.pas), len(cat.roles), len(cat.ephf_to_pas),
    )
    return cat


def _argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Load and summarize a program-builder catalog.")
    p.add_argument("--data-dir", dest="data_dir", required=True, type=Path, help="Directory with the catalog JSON files")
    return p


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = _argparser().parse_args()
    load_catalog(args.data_dir)
