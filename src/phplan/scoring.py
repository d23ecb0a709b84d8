# src/phplan/scoring.py

from typing import Dict, Iterable, List, Mapping, Optional

import numpy as np

from phplan.catalog import DEFAULT_WEIGHTS, WEIGHT_KEYS, Role, ScoringConfig, coerce_weight
from phplan.profile import UserProfile


def active_weights(profile: UserProfile, config: ScoringConfig) -> Dict[str, float]:
    """
    Weight set for this profile: `weights` when the user picked PAs, otherwise
    `skip_weights` so an empty PA step is not penalized. Missing keys fall back
    to `weights`, then to DEFAULT_WEIGHTS. Every value is floored to a finite,
    non-negative float.
    """
    base = {**DEFAULT_WEIGHTS, **(config.weights or {})}
    if profile.practice_affinity or not config.skip_weights:
        return {k: coerce_weight(base[k]) for k in WEIGHT_KEYS}
    return {k: coerce_weight(config.skip_weights.get(k, base[k])) for k in WEIGHT_KEYS}


def _overlap_ratio(role_weights: Mapping[str, float], selected: Iterable[str]) -> float:
    """Weight of the selected keys over the total declared weight; 0 when nothing is declared."""
    num = 0.0
    den = 0.0
    for k, w in (role_weights or {}).items():
        w = coerce_weight(w)
        den += w
        if k in selected:
            num += w
    return num / den if den > 0 else 0.0


def competency_score(requirements: Mapping[str, float], levels: Mapping[str, float]) -> float:
    """Mean of min(have/need, 1) over required competencies; 0 when none are declared."""
    if not requirements:
        return 0.0
    parts = []
    for comp, need in requirements.items():
        need = coerce_weight(need)
        have = coerce_weight(levels.get(comp, 0.0))
        parts.append(1.0 if need <= 0 else min(have / need, 1.0))
    return float(np.mean(parts))


def context_bonus(role: Role, profile: UserProfile) -> float:
    style = profile.role_style
    return 1.0 if style and style in role.role_style else 0.0


def score_breakdown(profile: UserProfile, role: Role, config: ScoringConfig) -> Dict:
    """Sub-scores, active weights and the clamped fit score for one role."""
    w = active_weights(profile, config)
    parts = {
        "ephf": _overlap_ratio(role.ephf_weights, profile.ephf_selected),
        "practice": _overlap_ratio(role.pa_weights, profile.practice_affinity),
        "competency": competency_score(role.competency_requirements, profile.comp_level),
        "context_bonus": context_bonus(role, profile),
    }
    fit = sum(w[k] * v for k, v in parts.items())
    if not np.isfinite(fit):
        fit = 0.0
    return {
        "weights": w,
        "parts": parts,
        "score": float(max(0.0, min(1.0, fit))),
    }


def score_role(profile: UserProfile, role: Role, config: ScoringConfig) -> float:
    """Fit of a profile to a role, in [0, 1]. The profile bonus is added by the caller."""
    return score_breakdown(profile, role, config)["score"]


def profile_bonus(profile: UserProfile, role: Role, config: ScoringConfig) -> float:
    pid = profile.profile_id
    if not pid or pid not in role.profiles:
        return 0.0
    return active_weights(profile, config)["profile"] * 1.0


def explain_role(profile: UserProfile, role: Role) -> List[str]:
    """EPHFs the user selected that the role also weights (display only)."""
    return [e for e, w in role.ephf_weights.items() if coerce_weight(w) > 0 and e in profile.ephf_selected]


def fit_label(score: float) -> str:
    if score >= 0.75:
        return "Strong fit"
    if score >= 0.50:
        return "Possible fit"
    if score >= 0.35:
        return "Leaning no"
    return "Not a fit"


def rank_roles(
    profile: UserProfile,
    roles: List[Role],
    config: ScoringConfig,
    top: Optional[int] = None,
) -> List[Dict]:
    """
    Score every role and order by score desc (stable: ties keep catalog order).

    Returns rows:
      role_id, title, base_score, profile_bonus, score (clamped base+bonus),
      fit, matched_ephfs

    Ordering uses the unrounded totals; the rounding is for display only.
    """
    scored: List[tuple] = []
    for role in roles or []:
        base = score_role(profile, role, config)
        bonus = profile_bonus(profile, role, config)
        total = base + bonus
        if not np.isfinite(total):
            total = 0.0
        total = max(0.0, min(1.0, total))
        scored.append((total, {
            "role_id": role.id,
            "title": role.title,
            "base_score": round(base, 4),
            "profile_bonus": round(bonus, 4),
            "score": round(total, 4),
            "fit": fit_label(total),
            "matched_ephfs": explain_role(profile, role),
        }))

    scored.sort(key=lambda t: t[0], reverse=True)
    rows = [row for _, row in scored]
    return rows[:top] if top is not None else rows
