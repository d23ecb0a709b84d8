# src/phplan/recommend.py
import re
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

from phplan.plan import normalize_text

_NUM_SUFFIX = re.compile(r"(\d+)$")


def recommend_pas(ephf_ids: Iterable[str], ephf_to_pas: Mapping[str, List[str]]) -> List[Dict]:
    """
    Rank PAs by how many of the selected EPHFs point at them.

    Each EPHF adds exactly 1 per associated PA. Ordering: score desc, then PA id asc.
    Returns [{"id": pa_id, "score": int}, ...]; [] when nothing is selected.
    """
    counts: Dict[str, int] = {}
    for ephf in dict.fromkeys(ephf_ids or []):
        for pa in dict.fromkeys(ephf_to_pas.get(ephf) or []):
            counts[pa] = counts.get(pa, 0) + 1
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return [{"id": pa, "score": score} for pa, score in ranked]


def _suffix_key(pa_id: str):
    m = _NUM_SUFFIX.search(pa_id)
    # numbered ids first (pa2 < pa10), then the rest lexically
    return (0, int(m.group(1)), pa_id) if m else (1, 0, pa_id)


def all_pas(pa_ids: Iterable[str]) -> List[Dict]:
    """Listing for the show-all mode: every PA with score 0, ordered by numeric id suffix."""
    return [{"id": pa, "score": 0} for pa in sorted(set(pa_ids), key=_suffix_key)]


def search_pas(query: str, items: List[Dict], titles: Mapping[str, str]) -> List[Dict]:
    """Keep items whose title contains the query (case/whitespace-insensitive)."""
    q = normalize_text(query)
    if not q:
        return list(items)
    return [it for it in items if q in normalize_text(titles.get(it["id"], it["id"]))]


def recommendation_frame(items: List[Dict], titles: Optional[Mapping[str, str]] = None) -> pd.DataFrame:
    titles = titles or {}
    df = pd.DataFrame(items, columns=["id", "score"])
    df.insert(1, "title", [titles.get(i, i) for i in df["id"]])
    return df
