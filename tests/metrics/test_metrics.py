from __future__ import annotations

import json

import pytest

from alchemist.errors import DataError
from alchemist.metrics.metrics import collect_metrics
from alchemist.schemas.models import Client, Task, Worker
from alchemist.validator.validator import CHECKS, validate_all


@pytest.fixture()
def dataset():
    clients = [
        Client(client_id="C1", client_name="Acme", priority_level=5, requested_task_ids=["T1"]),
        Client(client_id="C2", client_name="Globex", priority_level=2),
        Client(client_id="C3", client_name="Initech", priority_level=9),
    ]
    workers = [
        Worker(
            worker_id="W1",
            worker_name="Alice",
            skills=["a", "b"],
            available_slots=[1, 2],
            max_load_per_phase=1,
        ),
        Worker(
            worker_id="W2",
            worker_name="Bob",
            skills=["a"],
            available_slots=[1],
            max_load_per_phase=3,
        ),
    ]
    tasks = [
        Task(
            task_id="T1",
            task_name="Report",
            duration=1,
            required_skills=["a"],
            preferred_phases=[1],
            max_concurrent=1,
        ),
        Task(
            task_id="T2",
            task_name="Design",
            duration=1,
            required_skills=["a", "c"],
            preferred_phases=[2],
            max_concurrent=1,
        ),
    ]
    return clients, workers, tasks


def test_collect_metrics_profiles_dataset(dataset):
    """
    @brief
    Verifies counts, skill coverage and means on a small dataset.

    @details
    C3 has an out-of-range priority, T2 needs an uncovered skill "c" (and
    therefore has no qualified worker), W2 is overloaded.
    """
    # --- Arrange ---
    clients, workers, tasks = dataset
    summary = validate_all(clients, workers, tasks)

    # --- Act ---
    m = collect_metrics(clients, workers, tasks, summary)

    # --- Assert ---
    assert m["valid"] is False
    assert (m["num_clients"], m["num_workers"], m["num_tasks"]) == (3, 2, 2)
    assert m["num_errors"] == len(summary.errors)
    assert m["num_warnings"] == 1
    assert m["num_distinct_skills"] == 2
    assert m["uncovered_skills"] == ["c"]
    # T1: 2 qualified, T2: 0 qualified
    assert m["mean_qualified_workers"] == 1.0
    # Only the valid levels 5 and 2 count
    assert m["mean_client_priority"] == 3.5
    assert m["issues_per_check"]["OutOfRange"] == {"error": 1, "warning": 0}
    assert m["issues_per_check"]["SkillCoverage"] == {"error": 1, "warning": 0}
    assert m["issues_per_check"]["ConcurrencyFeasibility"] == {"error": 1, "warning": 0}
    assert m["issues_per_check"]["Overload"] == {"error": 0, "warning": 1}
    assert m["timestamp"].endswith("Z")
    json.dumps(m)


def test_collect_metrics_on_empty_dataset():
    # --- Arrange ---
    summary = validate_all([], [], [])

    # --- Act ---
    m = collect_metrics([], [], [], summary)

    # --- Assert ---
    assert m["valid"] is True
    assert m["mean_qualified_workers"] == 0.0
    assert m["mean_client_priority"] == 0.0
    assert set(m["issues_per_check"]) == set(CHECKS)
    assert all(v == {"error": 0, "warning": 0} for v in m["issues_per_check"].values())


def test_collect_metrics_rejects_wrong_summary_type():
    with pytest.raises(DataError):
        collect_metrics([], [], [], {"valid": True})
