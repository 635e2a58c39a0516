"""Step journal for durable, resumable batch runs."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol

from feedback_insights.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class StepJournal(Protocol):
    """Checkpoint store keyed by run id and step name."""

    def get(self, run_id: str, step: str) -> Optional[Any]:
        ...

    def record(self, run_id: str, step: str, value: Any) -> None:
        ...


class InMemoryStepJournal:
    """Keeps the steps of the ``max_runs`` most recently written runs."""

    def __init__(self, max_runs: int = 50) -> None:
        if max_runs <= 0:
            raise ValueError("max_runs must be positive")
        self.max_runs = max_runs
        self._runs: Dict[str, Dict[str, Any]] = {}

    def get(self, run_id: str, step: str) -> Optional[Any]:
        return self._runs.get(run_id, {}).get(step)

    def record(self, run_id: str, step: str, value: Any) -> None:
        steps = self._runs.pop(run_id, {})
        steps[step] = value
        # insertion order doubles as recency
        self._runs[run_id] = steps
        while len(self._runs) > self.max_runs:
            oldest = next(iter(self._runs))
            logger.debug("Pruning journal entries for run %s", oldest)
            del self._runs[oldest]

    def steps(self, run_id: str) -> Dict[str, Any]:
        return dict(self._runs.get(run_id, {}))

    def run_ids(self) -> List[str]:
        return list(self._runs)


class JsonStepJournal(InMemoryStepJournal):
    """Journal persisted to a JSON file after every recorded step."""

    def __init__(self, path: Path, max_runs: int = 50) -> None:
        super().__init__(max_runs=max_runs)
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as exc:
            logger.warning("Ignoring unreadable step journal %s: %s", self.path, exc)
            return
        if not isinstance(raw, dict):
            logger.warning("Ignoring step journal %s: expected an object", self.path)
            return
        # keep only the newest runs if the cap shrank since the file was written
        self._runs = dict(list(raw.items())[-self.max_runs :])

    def record(self, run_id: str, step: str, value: Any) -> None:
        super().record(run_id, step, value)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(self._runs, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as exc:
            raise PersistenceError(f"Failed to write {self.path}: {exc}") from exc


class DurableRun:
    """Runs named steps once per run id, replaying journaled results.

    Step results must be JSON-serialisable. A step whose callable raises is
    not journaled, and neither is a result rejected by ``should_record``, so
    a resumed run executes those steps again.
    """

    def __init__(self, run_id: str, journal: StepJournal) -> None:
        self.run_id = run_id
        self.journal = journal
        self.replayed = 0

    def do(
        self,
        step: str,
        fn: Callable[[], Any],
        should_record: Callable[[Any], bool] = lambda value: True,
    ) -> Any:
        previous = self.journal.get(self.run_id, step)
        if previous is not None:
            logger.debug("Replaying journaled step %s/%s", self.run_id, step)
            self.replayed += 1
            return previous

        value = fn()
        if should_record(value):
            self.journal.record(self.run_id, step, value)
        return value
