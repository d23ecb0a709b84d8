# src/phplan/profile.py
import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Union


def _id_set(raw: Any) -> frozenset:
    """Accept a list/set of ids or an {id: bool} map (wizard state shape)."""
    if not raw:
        return frozenset()
    if isinstance(raw, Mapping):
        return frozenset(str(k) for k, v in raw.items() if v)
    if isinstance(raw, str):
        return frozenset([raw])
    return frozenset(str(x) for x in raw)


def _levels(raw: Optional[Mapping]) -> Mapping[str, float]:
    out = {}
    for k, v in (raw or {}).items():
        try:
            out[str(k)] = float(v)
        except (TypeError, ValueError):
            out[str(k)] = 0.0
    return MappingProxyType(out)


@dataclass(frozen=True)
class UserProfile:
    """Selections made in the wizard; read-only to scoring and planning."""

    ephf_selected: frozenset = frozenset()
    practice_affinity: frozenset = frozenset()
    comp_level: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
    criteria: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def profile_id(self) -> Optional[str]:
        return self.criteria.get("profile") or None

    @property
    def role_style(self) -> Optional[str]:
        return self.criteria.get("role_style") or None


def build_profile(
    ephf_selected: Union[Iterable[str], Mapping, None] = None,
    practice_affinity: Union[Iterable[str], Mapping, None] = None,
    comp_level: Optional[Mapping] = None,
    criteria: Optional[Mapping] = None,
) -> UserProfile:
    return UserProfile(
        ephf_selected=_id_set(ephf_selected),
        practice_affinity=_id_set(practice_affinity),
        comp_level=_levels(comp_level),
        criteria=MappingProxyType(dict(criteria or {})),
    )


def profile_from_dict(js: Mapping) -> UserProfile:
    # `pa_selected` is the wizard's name for practice_affinity
    pas = js.get("practice_affinity")
    if pas is None:
        pas = js.get("pa_selected")
    return build_profile(
        ephf_selected=js.get("ephf_selected"),
        practice_affinity=pas,
        comp_level=js.get("comp_level"),
        criteria=js.get("criteria"),
    )


def load_profile(profile_path: Union[str, Path]) -> UserProfile:
    p = Path(profile_path)
    with p.open() as f:
        js = json.load(f)
    return profile_from_dict(js)
