import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class RunMetrics:
    """
    Lightweight run metrics tracker.

    Counts lookup attempts and outcomes across one CLI run.
    """

    started_at_iso: str = field(default_factory=_utc_now_iso)
    started_at_monotonic: float = field(default_factory=time.monotonic)
    ended_at_iso: Optional[str] = None
    duration_seconds: Optional[float] = None
    counters: Dict[str, int] = field(default_factory=dict)

    def inc(self, key: str, amount: int = 1) -> None:
        if not key:
            return
        self.counters[key] = int(self.counters.get(key, 0)) + int(amount)

    def get(self, key: str) -> int:
        return int(self.counters.get(key, 0))

    def finish(self) -> None:
        """Mark the run as finished and record end time."""
        if self.ended_at_iso is None:
            self.ended_at_iso = _utc_now_iso()
            self.duration_seconds = max(time.monotonic() - self.started_at_monotonic, 0.0)

    def summary(self) -> str:
        duration = self.duration_seconds
        if duration is None:
            duration = max(time.monotonic() - self.started_at_monotonic, 0.0)
        return (
            f"{self.get('domains')} domains, {self.get('succeeded')} succeeded, "
            f"{self.get('failed')} failed, {self.get('attempts')} attempts "
            f"in {duration:.1f}s"
        )
