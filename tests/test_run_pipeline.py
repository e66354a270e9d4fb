import json
from pathlib import Path

import pytest
import yaml

from scripts.run import main, run_pipeline

SAMPLE_DIR = Path(__file__).resolve().parents[1] / "data" / "input" / "sample"


def _write_config(tmp_path: Path, **overrides) -> Path:
    """
    @brief
    Writes a config.yaml pointing at the bundled sample data.

    @details
    Paths are absolute so the test does not depend on the working directory.
    Keyword arguments replace top-level keys.
    """
    cfg = {
        "clients_file": str(SAMPLE_DIR / "clients.csv"),
        "workers_file": str(SAMPLE_DIR / "workers.csv"),
        "tasks_file": str(SAMPLE_DIR / "tasks.csv"),
        "rules_file": str(SAMPLE_DIR / "rules.yaml"),
        "output_dir": str(tmp_path / "out"),
        "priority_profile": "Fair Distribution",
    }
    cfg.update(overrides)
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(cfg), encoding="utf-8")
    return path


def _write_csv(path: Path, text: str) -> str:
    path.write_text(text, encoding="utf-8")
    return str(path)


# ----------------------------------------------------------------------------------
# Sample dataset end to end
# ----------------------------------------------------------------------------------
def test_run_pipeline_on_sample_data(tmp_path: Path):
    """
    @brief
    Full pipeline over the bundled sample data.

    @details
    The sample is clean, so the run is valid and writes the validation
    report, metrics and export document but no suggestions.
    """
    # --- Arrange ---
    cfg_path = _write_config(tmp_path)

    # --- Act ---
    result = run_pipeline(cfg_path)
    arts = result["artifacts"]

    # --- Assert ---
    assert result["valid"] is True
    assert result["passed"] is True
    assert result["num_errors"] == 0
    assert arts["suggestions"] is None
    assert arts["validation_report"].exists()
    assert arts["metrics"].exists()

    doc = json.loads(arts["export"].read_text(encoding="utf-8"))
    assert list(doc) == ["clients", "workers", "tasks", "rules", "prioritization"]
    assert [c["ClientID"] for c in doc["clients"]] == ["C1", "C2", "C3", "C4"]
    assert doc["tasks"][0]["PreferredPhases"] == [1, 2, 3]
    assert [r["id"] for r in doc["rules"]] == ["r-corun-1", "r-load-1", "r-window-1"]
    fair = next(w for w in doc["prioritization"] if w["name"] == "fairDistribution")
    assert fair["weight"] == 5


def test_output_argument_overrides_config(tmp_path: Path):
    cfg_path = _write_config(tmp_path)
    other = tmp_path / "elsewhere"

    result = run_pipeline(cfg_path, output_dir=other)

    assert result["artifacts"]["export"].parent == other


# ----------------------------------------------------------------------------------
# Invalid data
# ----------------------------------------------------------------------------------
@pytest.fixture()
def broken_tasks(tmp_path: Path) -> str:
    # T2 needs a skill nobody has and asks for more workers than exist
    return _write_csv(
        tmp_path / "tasks.csv",
        "TaskID,TaskName,Duration,RequiredSkills,PreferredPhases,MaxConcurrent\n"
        'T1,Quarterly report,2,"analysis,reporting",1-3,1\n'
        "T2,Dashboard design,1,desig,2,1\n"
        "T3,Regression tests,2,testing,2-5,1\n"
        "T4,Customer onboarding,1,support,4,1\n",
    )


def test_invalid_data_writes_suggestions_and_export(tmp_path: Path, broken_tasks: str):
    # --- Arrange ---
    cfg_path = _write_config(tmp_path, tasks_file=broken_tasks)

    # --- Act ---
    result = run_pipeline(cfg_path)

    # --- Assert ---
    assert result["valid"] is False
    assert result["passed"] is False
    assert result["num_errors"] > 0
    suggestions = json.loads(result["artifacts"]["suggestions"].read_text(encoding="utf-8"))
    fix = next(s for s in suggestions if s["field"] == "RequiredSkills")
    assert fix["entityId"] == "T2"
    assert fix["suggestedValue"] == ["design"]
    # allow_invalid defaults to True
    assert result["artifacts"]["export"].exists()


def test_invalid_data_without_allow_invalid_skips_export(tmp_path: Path, broken_tasks: str):
    cfg_path = _write_config(
        tmp_path, tasks_file=broken_tasks, export={"allow_invalid": False}
    )

    result = run_pipeline(cfg_path)

    assert result["artifacts"]["export"] is None
    assert not (tmp_path / "out" / "allocation_config.json").exists()


def test_fail_on_warnings_fails_the_run_only(tmp_path: Path):
    """
    @brief
    Warnings never make data invalid, but can fail the run.
    """
    # --- Arrange ---
    workers = _write_csv(
        tmp_path / "workers.csv",
        "WorkerID,WorkerName,Skills,AvailableSlots,MaxLoadPerPhase,WorkerGroup\n"
        'W1,Alice,"analysis,reporting","[1, 2, 3]",2,GroupA\n'
        'W2,Bob,"analysis,design","[2, 3, 4]",1,GroupA\n'
        'W3,Carol,"design,testing","[1]",3,GroupB\n'
        'W4,Dan,"reporting,support",[4],1,GroupB\n',
    )
    cfg_path = _write_config(
        tmp_path, workers_file=workers, validation={"fail_on_warnings": True}
    )

    # --- Act ---
    result = run_pipeline(cfg_path)

    # --- Assert ---
    assert result["valid"] is True
    assert result["num_warnings"] == 1
    assert result["passed"] is False
    assert main(["--config", str(cfg_path)]) == 1


# ----------------------------------------------------------------------------------
# CLI exit codes
# ----------------------------------------------------------------------------------
def test_main_returns_zero_for_clean_data(tmp_path: Path):
    assert main(["--config", str(_write_config(tmp_path))]) == 0


def test_main_returns_one_on_missing_config(tmp_path: Path):
    assert main(["--config", str(tmp_path / "missing.yaml")]) == 1


def test_main_returns_one_and_writes_load_report_on_bad_rows(tmp_path: Path):
    # --- Arrange ---
    clients = _write_csv(
        tmp_path / "clients.csv",
        "ClientID,ClientName,PriorityLevel\nC1,Acme,high\n",
    )
    cfg_path = _write_config(tmp_path, clients_file=clients)

    # --- Act ---
    code = main(["--config", str(cfg_path)])

    # --- Assert ---
    assert code == 1
    report = json.loads((tmp_path / "out" / "load_errors_clients.json").read_text("utf-8"))
    assert report["issues"][0]["line_no"] == 2


def test_main_returns_two_on_unexpected_error(tmp_path: Path, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr("scripts.run.collect_metrics", boom)

    assert main(["--config", str(_write_config(tmp_path))]) == 2
