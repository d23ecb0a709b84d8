#!/usr/bin/env python3
"""
PHPLAN — synthetic.py

Generate realistic synthetic program-builder catalogs for demos and testing.

The generated catalog mimics the real content:
- EPHFs with labels, PAs linked to 1–4 EPHFs
- Curricular rows drawn from a shared pool, so the same item shows up in
  several PAs with different casing/whitespace (exercises dedup)
- Both checkmark shapes (int count and per-profile boolean map)
- Roles weighting a few EPHFs/PAs, with competencies, profiles and styles

CLI
---
python src/phplan/synthetic.py --pas 40 --out data/synthetic
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Dict, List

import numpy as np

from phplan.catalog import Catalog, catalog_from_dicts

PROFILES = ["p1", "p2", "p3", "p4", "p5"]
ROLE_STYLES = ["field", "analytic", "policy", "leadership", "community"]
COMPETENCIES = ["epi_methods", "communication", "data_analysis", "management", "law_policy"]

EPHF_LABELS = [
    "Public health surveillance and monitoring",
    "Public health emergency management",
    "Public health stewardship",
    "Multisectoral planning, financing and management for public health",
    "Health protection",
    "Disease prevention and early detection",
    "Health promotion",
    "Community engagement and social participation",
    "Public health workforce development",
    "Health service quality and equity",
    "Public health research, evaluation and knowledge",
    "Access to and utilization of health products, supplies, equipment and technologies",
]

ITEM_VERBS = ["Draft", "Plan", "Evaluate", "Coordinate", "Communicate", "Analyse", "Monitor", "Design"]
ITEM_OBJECTS = [
    "a surveillance protocol", "outbreak response", "risk communication messages",
    "community health needs", "intersectoral partnerships", "vaccination coverage data",
    "laboratory referral pathways", "health equity indicators", "an emergency operations plan",
    "food safety inspections", "a workforce training needs assessment", "program budgets",
]


def _vary_text(text: str, rng: np.random.Generator) -> str:
    """Same item, different formatting (case / inner spaces / trailing newline)."""
    choice = rng.integers(0, 4)
    if choice == 1:
        return text.lower()
    if choice == 2:
        return text.replace(" ", "   ", 1)
    if choice == 3:
        return text + "\n"
    return text


def _checkmarks(rng: np.random.Generator, as_map: bool):
    n = int(rng.integers(1, len(PROFILES) + 1))
    if not as_map:
        return n
    on = set(rng.choice(PROFILES, size=n, replace=False).tolist())
    return {p: p in on for p in PROFILES}


def generate_synthetic_documents(
    n_ephfs: int = 12,
    n_pas: int = 40,
    n_roles: int = 8,
    rows_per_pa: int = 6,
    seed: int = 42,
) -> Dict[str, object]:
    """Return the four JSON documents (pa_index, mappings, roles, scoring_config)."""
    rng = np.random.default_rng(seed)
    n_ephfs = min(n_ephfs, len(EPHF_LABELS))

    ephf_ids = [f"ephf{i:02d}" for i in range(1, n_ephfs + 1)]
    pa_ids = [f"pa{i:02d}" for i in range(1, n_pas + 1)]
    pool = [f"{v} {o}" for v in ITEM_VERBS for o in ITEM_OBJECTS]

    pa_index: Dict[str, Dict] = {}
    ephf_to_pas: Dict[str, List[str]] = {e: [] for e in ephf_ids}
    for pa in pa_ids:
        picks = rng.choice(len(pool), size=min(rows_per_pa, len(pool)), replace=False)
        as_map = bool(rng.random() < 0.3)
        rows = [
            {"n": str(k + 1), "text": _vary_text(pool[int(i)], rng), "checkmarks": _checkmarks(rng, as_map)}
            for k, i in enumerate(picks)
        ]
        tasks = {
            p: [f"{pool[int(rng.integers(0, len(pool)))]} ({p})"]
            for p in PROFILES if rng.random() < 0.5
        }
        pa_index[pa] = {"title": f"Practice activity {pa[2:]}", "curricular_rows": rows, "tasks_by_profile": tasks}

        for e in rng.choice(ephf_ids, size=int(rng.integers(1, 5)), replace=False).tolist():
            ephf_to_pas[e].append(pa)

    roles = []
    for i in range(1, n_roles + 1):
        e_pick = rng.choice(ephf_ids, size=min(3, n_ephfs), replace=False).tolist()
        p_pick = rng.choice(pa_ids, size=min(4, n_pas), replace=False).tolist()
        c_pick = rng.choice(COMPETENCIES, size=2, replace=False).tolist()
        roles.append({
            "id": f"role{i:02d}",
            "title": f"Synthetic role {i}",
            "ephf_weights": {e: round(float(rng.uniform(0.2, 1.0)), 2) for e in e_pick},
            # older catalogs used the long key; keep both shapes in play
            ("pa_weights" if i % 2 else "practice_activity_weights"):
                {p: round(float(rng.uniform(0.2, 1.0)), 2) for p in p_pick},
            "competency_requirements": {c: int(rng.integers(1, 4)) for c in c_pick},
            "profiles": rng.choice(PROFILES, size=2, replace=False).tolist(),
            "context": {"role_style": rng.choice(ROLE_STYLES, size=2, replace=False).tolist()},
        })

    mappings = {
        "ephf_labels": dict(zip(ephf_ids, EPHF_LABELS)),
        "pa_labels": {pa: pa_index[pa]["title"] for pa in pa_ids},
        "ephf_to_pas": ephf_to_pas,
    }
    scoring_config = {
        "weights": {"ephf": 0.5, "practice": 0.3, "competency": 0.1, "context_bonus": 0.1, "profile": 0.1},
        "skip_weights": {"ephf": 0.8, "practice": 0.0, "competency": 0.1, "context_bonus": 0.1},
    }
    return {"pa_index": pa_index, "mappings": mappings, "roles": roles, "scoring_config": scoring_config}


def generate_synthetic_catalog(**kwargs) -> Catalog:
    docs = generate_synthetic_documents(**kwargs)
    return catalog_from_dicts(docs["pa_index"], docs["mappings"], docs["roles"], docs["scoring_config"])


def write_synthetic_catalog(outdir: Path, **kwargs) -> List[Path]:
    outdir.mkdir(parents=True, exist_ok=True)
    paths = []
    for name, doc in generate_synthetic_documents(**kwargs).items():
        p = outdir / f"{name}.json"
        p.write_text(json.dumps(doc, indent=2), encoding="utf-8")
        paths.append(p)
    return paths


def _argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Generate a synthetic program-builder catalog.")
    p.add_argument("--ephfs", type=int, default=12, help="Number of EPHFs (max 12)")
    p.add_argument("--pas", type=int, default=40, help="Number of practice activities")
    p.add_argument("--roles", type=int, default=8, help="Number of roles")
    p.add_argument("--seed", type=int, default=42, help="Random seed")
    p.add_argument("--out", type=Path, required=True, help="Output directory")
    return p


if __name__ == "__main__":
    args = _argparser().parse_args()
    written = write_synthetic_catalog(
        args.out, n_ephfs=args.ephfs, n_pas=args.pas, n_roles=args.roles, seed=args.seed,
    )
    print(f"Generated synthetic catalog ({args.pas} PAs) → {args.out} ({len(written)} files)")
