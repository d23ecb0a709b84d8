"""
Shared test fixtures for the program-builder test suite.
"""

import json
import tempfile
from pathlib import Path

import pytest

from phplan.catalog import catalog_from_dicts
from phplan.profile import build_profile
from phplan.synthetic import generate_synthetic_catalog


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_docs():
    """Catalog documents in the JSON shapes the loader reads."""
    pa_index = {
        "pa01": {
            "title": "Surveillance systems",
            "curricular_rows": [
                {"n": "1", "text": "Draft a surveillance protocol", "checkmarks": 5},
                {"n": "2", "text": "Plan outbreak response", "checkmarks": 2},
            ],
            "tasks_by_profile": {"p1": ["Compile weekly reports"]},
        },
        "pa02": {
            "title": "Outbreak investigation",
            "curricular_rows": [
                {"n": "1", "text": "draft a surveillance protocol", "checkmarks": 3},
                {"n": "4", "text": "plan   outbreak response\n", "checkmarks": 4},
                {"n": "5", "text": "Collect specimens", "checkmarks": {"p1": True, "p2": False, "p3": True}},
            ],
            "tasks_by_profile": {"p1": ["compile   weekly reports", "Join field teams"]},
        },
        "pa10": {
            "title": "Risk communication",
            "curricular_rows": [
                {"n": "1", "text": "Develop risk messages", "checkmarks": 5},
            ],
        },
    }
    mappings = {
        "ephf_labels": {"ephf01": "Surveillance", "ephf02": "Emergencies", "ephf07": "Health promotion"},
        "pa_labels": {"pa01": "Establish surveillance systems"},
        "ephf_to_pas": {
            "ephf01": ["pa01", "pa02"],
            "ephf02": ["pa02", "pa10"],
            "ephf07": ["pa10"],
        },
    }
    roles = [
        {
            "id": "role01",
            "title": "Surveillance officer",
            "ephf_weights": {"ephf01": 1.0, "ephf02": 1.0},
            "pa_weights": {"pa01": 1.0},
            "competency_requirements": {"data_analysis": 2},
            "profiles": ["p1"],
            "context": {"role_style": ["analytic"]},
        },
        {
            "id": "role02",
            "title": "Communicator",
            "ephf_weights": {"ephf07": 1.0},
            "practice_activity_weights": {"pa10": 1.0},
            "profiles": ["p4"],
            "context": {"role_style": ["community"]},
        },
    ]
    scoring = {
        "weights": {"ephf": 0.6, "practice_activity": 0.3, "competency": 0.0, "context_bonus": 0.1, "profile": 0.1},
        "skip_weights": {"ephf": 1.0, "practice": 0.0},
    }
    return {"pa_index": pa_index, "mappings": mappings, "roles": roles, "scoring_config": scoring}


@pytest.fixture
def sample_catalog(sample_docs):
    return catalog_from_dicts(
        sample_docs["pa_index"], sample_docs["mappings"], sample_docs["roles"], sample_docs["scoring_config"],
    )


@pytest.fixture
def data_dir(temp_dir, sample_docs):
    """Catalog written to disk as the four JSON files."""
    for name, doc in sample_docs.items():
        (temp_dir / f"{name}.json").write_text(json.dumps(doc))
    return temp_dir


@pytest.fixture
def sample_profile():
    return build_profile(
        ephf_selected=["ephf01"],
        practice_affinity=["pa01"],
        comp_level={"data_analysis": 1},
        criteria={"profile": "p1", "role_style": "analytic"},
    )


@pytest.fixture
def synthetic_catalog():
    return generate_synthetic_catalog(n_pas=20, n_roles=6, seed=123)
