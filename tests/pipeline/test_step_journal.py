import json
from pathlib import Path

from feedback_insights.pipeline import DurableRun, InMemoryStepJournal, JsonStepJournal


def test_step_runs_once_per_run_id() -> None:
    journal = InMemoryStepJournal()
    calls = []

    def step():
        calls.append(1)
        return {"value": len(calls)}

    first = DurableRun("run-a", journal)
    assert first.do("fetch", step) == {"value": 1}
    assert first.do("fetch", step) == {"value": 1}
    assert first.replayed == 1

    other = DurableRun("run-b", journal)
    assert other.do("fetch", step) == {"value": 2}
    assert len(calls) == 2


def test_rejected_results_are_not_journaled() -> None:
    journal = InMemoryStepJournal()
    run = DurableRun("run", journal)

    run.do("embed-1", lambda: {"success": False}, should_record=lambda value: value["success"])

    assert journal.get("run", "embed-1") is None


def test_raising_step_is_retried() -> None:
    journal = InMemoryStepJournal()
    run = DurableRun("run", journal)

    def boom():
        raise RuntimeError("temporary")

    try:
        run.do("flaky", boom)
    except RuntimeError:
        pass
    assert run.do("flaky", lambda: "ok") == "ok"


def test_empty_result_is_replayed() -> None:
    journal = InMemoryStepJournal()
    DurableRun("run", journal).do("fetch", lambda: [])

    assert DurableRun("run", journal).do("fetch", lambda: ["late"]) == []


def test_json_journal_survives_restart(tmp_path: Path) -> None:
    path = tmp_path / "state" / "journal.json"
    DurableRun("run-1", JsonStepJournal(path)).do("fetch-feedback", lambda: [{"id": 1, "content": "hi"}])

    reopened = JsonStepJournal(path)

    assert reopened.get("run-1", "fetch-feedback") == [{"id": 1, "content": "hi"}]
    assert reopened.steps("run-1") == {"fetch-feedback": [{"id": 1, "content": "hi"}]}


def test_journal_keeps_only_recent_runs() -> None:
    journal = InMemoryStepJournal(max_runs=2)
    for run_id in ("run-1", "run-2", "run-3"):
        journal.record(run_id, "fetch-feedback", [])

    assert journal.run_ids() == ["run-2", "run-3"]
    assert journal.get("run-1", "fetch-feedback") is None


def test_writing_to_a_run_keeps_it_recent() -> None:
    journal = InMemoryStepJournal(max_runs=2)
    journal.record("old", "fetch-feedback", [])
    journal.record("newer", "fetch-feedback", [])
    journal.record("old", "clear-cache", {"cleared": True})
    journal.record("newest", "fetch-feedback", [])

    assert journal.run_ids() == ["old", "newest"]


def test_json_journal_is_pruned_on_disk(tmp_path: Path) -> None:
    path = tmp_path / "journal.json"
    journal = JsonStepJournal(path, max_runs=3)
    for idx in range(10):
        DurableRun(f"run-{idx}", journal).do("fetch-feedback", lambda: [])

    assert sorted(json.loads(path.read_text(encoding="utf-8"))) == ["run-7", "run-8", "run-9"]
    assert not path.with_suffix(".json.tmp").exists()
    assert JsonStepJournal(path, max_runs=2).run_ids() == ["run-8", "run-9"]


def test_unreadable_journal_starts_empty(tmp_path: Path) -> None:
    path = tmp_path / "journal.json"
    path.write_text('{"run-1": {"fetch-feed', encoding="utf-8")

    journal = JsonStepJournal(path)
    assert journal.run_ids() == []

    journal.record("run-2", "fetch-feedback", [])
    assert json.loads(path.read_text(encoding="utf-8")) == {"run-2": {"fetch-feedback": []}}
