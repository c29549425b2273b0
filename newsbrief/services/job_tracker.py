"""Job Tracker

Keeps a bounded history of recent job runs with timestamped log lines,
served through the debug snapshot for operational visibility.
"""

import uuid
from collections import deque
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Optional, List

import structlog

logger = structlog.get_logger()


@dataclass
class JobRun:
    """One execution of the briefing job"""
    id: str
    started: str
    logs: List[str] = field(default_factory=list)
    finished: bool = False
    success: Optional[bool] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dict for JSON serialization"""
        return asdict(self)


class JobTracker:
    """
    Ring buffer of the most recent job runs, newest first.

    Usage:
        tracker = JobTracker()

        tracker.begin("Job Started: Morning")
        tracker.log("Fetched Hugging Face (12 items)")
        tracker.finish(success=True)
    """

    def __init__(self, max_runs: int = 5):
        self.max_runs = max_runs
        self._runs: deque[JobRun] = deque(maxlen=max_runs)

    def begin(self, label: str) -> JobRun:
        """Push a new unfinished run to the front, evicting the oldest"""
        run = JobRun(
            id=str(uuid.uuid4())[:8],
            started=datetime.now(timezone.utc).isoformat(),
        )
        self._runs.appendleft(run)
        self._append(run, label)
        return run

    def log(self, message: str):
        """Append a line to the open run; starts an implicit run if none is open"""
        run = self.current()
        if run is None:
            run = JobRun(
                id=str(uuid.uuid4())[:8],
                started=datetime.now(timezone.utc).isoformat(),
            )
            self._runs.appendleft(run)
        self._append(run, message)

    def finish(self, success: bool = True, error: Optional[str] = None) -> Optional[JobRun]:
        """Seal the open run; later calls on a sealed run are no-ops"""
        run = self.current()
        if run is None:
            return None

        run.finished = True
        run.success = success
        run.error = str(error) if error else None
        run.logs.append(">>> COMPLETED SUCCESS" if success else f">>> FAILED: {error}")
        logger.info("job_finished", job_id=run.id, success=success, error=run.error)
        return run

    def current(self) -> Optional[JobRun]:
        """The front run if it is still open"""
        if self._runs and not self._runs[0].finished:
            return self._runs[0]
        return None

    def history(self) -> List[JobRun]:
        return list(self._runs)

    def to_list(self) -> List[dict]:
        return [run.to_dict() for run in self._runs]

    def _append(self, run: JobRun, message: str):
        stamp = datetime.now(timezone.utc).strftime("%H:%M:%S")
        run.logs.append(f"[{stamp}] {message}")
        logger.info("job_log", job_id=run.id, message=message)
