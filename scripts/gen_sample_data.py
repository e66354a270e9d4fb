# scripts/gen_sample_data.py
from __future__ import annotations

import csv
import json
import random
import sys
from collections.abc import Iterable, Sequence
from pathlib import Path

"""
Sample dataset generator (single run → clients.csv, workers.csv, tasks.csv).

Design:
- Parameters are hard-coded as constants below (no CLI args).
- Workers draw skills from a fixed pool; every task requires skills that at
  least MIN_QUALIFIED workers have, so a clean dataset validates without errors.
- With DEFECT_RATE > 0, a share of rows receives one typical data problem
  (misspelled skill, unknown task reference, broken JSON, priority out of
  range, MaxConcurrent above the qualified-worker count). Useful for
  exercising the validator and the correction suggestions.
- Output columns use the canonical names (ClientID, RequestedTaskIDs...).

Edit the constants in the "CONFIG" section to produce different datasets.
"""

# =========================
# CONFIG: EDIT THESE
# =========================
NUM_CLIENTS: int = 30
NUM_WORKERS: int = 20
NUM_TASKS: int = 25
NUM_PHASES: int = 6
OUTPUT_DIR: str = "data/input/sample"

SKILLS: tuple[str, ...] = (
    "data-entry",
    "analysis",
    "reporting",
    "design",
    "testing",
    "review",
    "support",
)
WORKER_GROUPS: tuple[str, ...] = ("GroupA", "GroupB", "GroupC")
CLIENT_GROUPS: tuple[str, ...] = ("Enterprise", "SMB", "Startup")
CATEGORIES: tuple[str, ...] = ("Analytics", "Engineering", "Operations")

MIN_QUALIFIED: int = 2
DEFECT_RATE: float = 0.0  # in [0, 1]

# Deterministic generation
RANDOM_SEED: int = 42
# =========================


def _ids(prefix: str, n: int) -> list[str]:
    return [f"{prefix}{i + 1}" for i in range(n)]


def _gen_workers() -> list[dict[str, str]]:
    rows: list[dict[str, str]] = []
    for wid in _ids("W", NUM_WORKERS):
        skills = random.sample(SKILLS, k=random.randint(2, 4))
        slots = sorted(random.sample(range(1, NUM_PHASES + 1), k=random.randint(2, NUM_PHASES)))
        rows.append(
            {
                "WorkerID": wid,
                "WorkerName": f"Worker {wid[1:]}",
                "Skills": ",".join(skills),
                "AvailableSlots": json.dumps(slots),
                "MaxLoadPerPhase": str(random.randint(1, len(slots))),
                "WorkerGroup": random.choice(WORKER_GROUPS),
                "QualificationLevel": str(random.randint(1, 5)),
            }
        )
    return rows


def _qualified(required: Sequence[str], workers: Sequence[dict[str, str]]) -> int:
    return sum(1 for w in workers if set(required).issubset(w["Skills"].split(",")))


def _gen_tasks(workers: Sequence[dict[str, str]]) -> list[dict[str, str]]:
    rows: list[dict[str, str]] = []
    for tid in _ids("T", NUM_TASKS):
        # Redraw until enough workers can take the task
        while True:
            required = random.sample(SKILLS, k=random.randint(1, 2))
            qualified = _qualified(required, workers)
            if qualified >= MIN_QUALIFIED:
                break
        start = random.randint(1, NUM_PHASES - 1)
        end = random.randint(start, NUM_PHASES)
        rows.append(
            {
                "TaskID": tid,
                "TaskName": f"Task {tid[1:]}",
                "Category": random.choice(CATEGORIES),
                "Duration": str(random.randint(1, 3)),
                "RequiredSkills": ",".join(required),
                "PreferredPhases": f"{start}-{end}",
                "MaxConcurrent": str(random.randint(1, qualified)),
            }
        )
    return rows


def _gen_clients(task_ids: Sequence[str]) -> list[dict[str, str]]:
    rows: list[dict[str, str]] = []
    for cid in _ids("C", NUM_CLIENTS):
        requested = random.sample(list(task_ids), k=random.randint(1, 4))
        rows.append(
            {
                "ClientID": cid,
                "ClientName": f"Client {cid[1:]}",
                "PriorityLevel": str(random.randint(1, 5)),
                "RequestedTaskIDs": ",".join(requested),
                "GroupTag": random.choice(CLIENT_GROUPS),
                "AttributesJSON": json.dumps({"location": random.choice(("North", "South"))}),
            }
        )
    return rows


def _inject_defects(
    clients: list[dict[str, str]], tasks: list[dict[str, str]], workers: list[dict[str, str]]
) -> int:
    """Apply one defect to a DEFECT_RATE share of client and task rows; returns the count."""
    injected = 0
    for row in clients:
        if random.random() >= DEFECT_RATE:
            continue
        kind = random.choice(("unknown_task", "broken_json", "priority"))
        if kind == "unknown_task":
            # TaskID with a suffix: the suggestion heuristic finds the original
            row["RequestedTaskIDs"] += f",{random.choice(tasks)['TaskID']}X"
        elif kind == "broken_json":
            row["AttributesJSON"] = '{"location": "North"'
        else:
            row["PriorityLevel"] = str(random.choice((0, 6, 9)))
        injected += 1
    for row in tasks:
        if random.random() >= DEFECT_RATE:
            continue
        if random.random() < 0.5:
            # Misspelled skill containing a real one
            skills = row["RequiredSkills"].split(",")
            skills[0] = f"{skills[0]}-senior"
            row["RequiredSkills"] = ",".join(skills)
        else:
            row["MaxConcurrent"] = str(_qualified(row["RequiredSkills"].split(","), workers) + 1)
        injected += 1
    return injected


def _write_csv(path: Path, rows: Iterable[dict[str, str]], columns: Sequence[str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(columns))
        writer.writeheader()
        for r in rows:
            writer.writerow(r)


def _validate_config_or_die() -> None:
    problems: list[str] = []
    if min(NUM_CLIENTS, NUM_WORKERS, NUM_TASKS) < 1:
        problems.append("NUM_CLIENTS, NUM_WORKERS and NUM_TASKS must be >= 1")
    if NUM_PHASES < 2:
        problems.append("NUM_PHASES must be >= 2")
    if not 0.0 <= DEFECT_RATE <= 1.0:
        problems.append("DEFECT_RATE must be in [0, 1]")
    if MIN_QUALIFIED < 1 or MIN_QUALIFIED > NUM_WORKERS:
        problems.append("MIN_QUALIFIED must be in [1, NUM_WORKERS]")
    if problems:
        msg = "Invalid generator configuration:\n- " + "\n- ".join(problems)
        print(msg, file=sys.stderr)
        sys.exit(2)


def main() -> int:
    _validate_config_or_die()
    random.seed(RANDOM_SEED)

    workers = _gen_workers()
    tasks = _gen_tasks(workers)
    clients = _gen_clients([t["TaskID"] for t in tasks])
    defects = _inject_defects(clients, tasks, workers) if DEFECT_RATE > 0 else 0

    out = Path(OUTPUT_DIR)
    _write_csv(out / "clients.csv", clients, list(clients[0]))
    _write_csv(out / "workers.csv", workers, list(workers[0]))
    _write_csv(out / "tasks.csv", tasks, list(tasks[0]))

    print(
        f"[GEN] clients={len(clients)}, workers={len(workers)}, tasks={len(tasks)}, "
        f"defects={defects}"
    )
    print(f"[GEN] wrote: {out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
