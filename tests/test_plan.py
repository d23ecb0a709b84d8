"""
Tests for the curriculum plan builder.
"""

import itertools

import pytest

from phplan.catalog import catalog_from_dicts
from phplan.plan import (
    BucketPolicy,
    build_plan,
    checkmark_count,
    merge_rows,
    normalize_text,
    profile_tasks,
)


def _keys(rows):
    return [r.key for r in rows]


class TestNormalization:
    """Test dedup keys and checkmark counting."""

    def test_normalize_text_collapses_case_and_whitespace(self):
        assert normalize_text("  Plan\n  outbreak\tResponse ") == "plan outbreak response"

    def test_normalize_text_handles_none(self):
        assert normalize_text(None) == ""

    def test_checkmark_count_int(self):
        assert checkmark_count(3) == 3
        assert checkmark_count("5") == 5

    def test_checkmark_count_profile_map(self):
        assert checkmark_count({"p1": True, "p2": False, "p3": 1}) == 2

    def test_checkmark_count_garbage(self):
        assert checkmark_count(None) == 0
        assert checkmark_count("many") == 0
        assert checkmark_count(-2) == 0

    def test_checkmark_count_capped_at_five(self):
        many = {f"p{i}": True for i in range(1, 8)}
        assert checkmark_count(many) == 5
        assert checkmark_count(9) == 5


class TestBuildPlan:
    """Test merge, bucketing and ordering."""

    def test_case_variants_merge_into_core(self):
        cat = catalog_from_dicts(
            {
                "pa01": {"curricular_rows": [{"n": "1", "text": "Draft a surveillance protocol", "checkmarks": 5}]},
                "pa02": {"curricular_rows": [{"n": "1", "text": "draft a surveillance protocol", "checkmarks": 3}]},
            },
            {},
        )
        plan = build_plan(["pa01", "pa02"], cat.pas)
        assert plan.total == 1
        assert plan.specialized == []
        row = plan.core[0]
        assert row.text == "Draft a surveillance protocol"
        assert row.checkmarks == 5
        assert row.pas == ["pa01", "pa02"]

    def test_checkmark_threshold_buckets(self, sample_catalog):
        plan = build_plan(["pa01", "pa02"], sample_catalog.pas)
        assert plan.policy is BucketPolicy.CHECKMARK_THRESHOLD
        assert [r.text for r in plan.core] == ["Draft a surveillance protocol"]
        assert [r.text for r in plan.specialized] == ["Collect specimens", "Plan outbreak response"]
        assert plan.total == len(plan.core) + len(plan.specialized) == 3

    def test_whitespace_variants_merge_with_max_checkmarks(self, sample_catalog):
        plan = build_plan(["pa01", "pa02"], sample_catalog.pas)
        row = next(r for r in plan.specialized if r.key == "plan outbreak response")
        assert row.pas == ["pa01", "pa02"]
        assert row.checkmarks == 4
        assert row.row_ids == ["2", "4"]

    def test_row_ids_are_ordered_unique(self, sample_catalog):
        plan = build_plan(["pa01", "pa02"], sample_catalog.pas)
        assert plan.core[0].row_ids == ["1"]

    def test_profile_map_checkmarks(self, sample_catalog):
        plan = build_plan(["pa02"], sample_catalog.pas)
        row = next(r for r in plan.specialized if r.key == "collect specimens")
        assert row.checkmarks == 2

    def test_cross_pa_frequency_policy(self, sample_catalog):
        plan = build_plan(["pa01", "pa02", "pa10"], sample_catalog.pas, policy="cross_pa_frequency")
        assert plan.policy is BucketPolicy.CROSS_PA_FREQUENCY
        assert _keys(plan.core) == ["draft a surveillance protocol", "plan outbreak response"]
        assert _keys(plan.specialized) == ["collect specimens", "develop risk messages"]

    def test_frequency_policy_orders_by_contributor_count(self):
        cat = catalog_from_dicts(
            {
                "pa01": {"curricular_rows": [{"n": "1", "text": "Alpha"}, {"n": "2", "text": "Zulu"}]},
                "pa02": {"curricular_rows": [{"n": "1", "text": "alpha"}, {"n": "2", "text": "zulu"}]},
                "pa03": {"curricular_rows": [{"n": "1", "text": "ZULU"}]},
            },
            {},
        )
        plan = build_plan(["pa01", "pa02", "pa03"], cat.pas, policy=BucketPolicy.CROSS_PA_FREQUENCY)
        assert _keys(plan.core) == ["zulu", "alpha"]

    def test_unknown_pa_is_skipped(self, sample_catalog):
        plan = build_plan(["nope", "pa10"], sample_catalog.pas)
        assert plan.total == 1
        assert plan.core[0].pas == ["pa10"]

    def test_empty_selection(self, sample_catalog):
        plan = build_plan([], sample_catalog.pas)
        assert plan.core == [] and plan.specialized == [] and plan.total == 0

    def test_duplicate_selection_counts_once(self, sample_catalog):
        once = build_plan(["pa01"], sample_catalog.pas)
        twice = build_plan(["pa01", "pa01"], sample_catalog.pas)
        assert once.to_dict() == twice.to_dict()

    def test_invalid_policy_raises(self, sample_catalog):
        with pytest.raises(ValueError):
            build_plan(["pa01"], sample_catalog.pas, policy="by_vibes")

    @pytest.mark.parametrize("policy", list(BucketPolicy))
    def test_permutation_invariant_buckets(self, sample_catalog, policy):
        ids = ["pa01", "pa02", "pa10"]
        results = []
        for perm in itertools.permutations(ids):
            plan = build_plan(list(perm), sample_catalog.pas, policy=policy)
            results.append((
                {(r.key, frozenset(r.pas), r.checkmarks) for r in plan.core},
                {(r.key, frozenset(r.pas), r.checkmarks) for r in plan.specialized},
                plan.total,
            ))
        assert all(res == results[0] for res in results)

    def test_synthetic_catalog_dedups(self, synthetic_catalog):
        ids = list(synthetic_catalog.pas)
        n_rows = sum(len(synthetic_catalog.pas[p].curricular_rows) for p in ids)
        plan = build_plan(ids, synthetic_catalog.pas)
        assert plan.total == len(plan.core) + len(plan.specialized)
        assert plan.total < n_rows
        assert len({r.key for r in plan.core + plan.specialized}) == plan.total
        assert all(r.checkmarks >= 5 for r in plan.core)
        assert all(r.checkmarks < 5 for r in plan.specialized)
        assert [r.text.casefold() for r in plan.specialized] == sorted(r.text.casefold() for r in plan.specialized)


class TestMergeRows:
    """Test the merge step on its own."""

    def test_first_seen_text_wins(self, sample_catalog):
        pairs = [("pa02", r) for r in sample_catalog.pas["pa02"].curricular_rows]
        pairs += [("pa01", r) for r in sample_catalog.pas["pa01"].curricular_rows]
        merged = merge_rows(pairs)
        first = merged[0]
        assert first.text == "draft a surveillance protocol"
        assert first.pas == ["pa02", "pa01"]
        assert first.checkmarks == 5


class TestProfileTasks:
    """Test profile-specific task collection."""

    def test_tasks_deduplicated_in_selection_order(self, sample_catalog):
        tasks = profile_tasks(["pa01", "pa02"], sample_catalog.pas, "p1")
        assert tasks == [
            {"pa": "pa01", "task": "Compile weekly reports"},
            {"pa": "pa02", "task": "Join field teams"},
        ]

    def test_no_profile_no_tasks(self, sample_catalog):
        assert profile_tasks(["pa01"], sample_catalog.pas, None) == []

    def test_unknown_pa_and_profile(self, sample_catalog):
        assert profile_tasks(["nope", "pa10"], sample_catalog.pas, "p9") == []
