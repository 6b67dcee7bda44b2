"""
Provider Health - failure memory and cooldown for the primary provider
"""
from enum import Enum
from typing import Any, Callable, Dict, Optional
from datetime import datetime, timezone
import time


class ProviderStatus(str, Enum):
    WORKING = "working"
    FAILED = "failed"
    UNKNOWN = "unknown"


class ProviderHealthTracker:
    """
    Remembers the last failure and suppresses attempts during the cooldown

    The clock returns epoch seconds and is injectable for tests.
    """

    def __init__(self, cooldown_seconds: float = 60.0, clock: Optional[Callable[[], float]] = None):
        self.cooldown_seconds = cooldown_seconds
        self.clock = clock or time.time
        self.status = ProviderStatus.UNKNOWN
        self.last_failure_at: Optional[float] = None

    def cooldown_remaining(self) -> float:
        if self.status != ProviderStatus.FAILED or self.last_failure_at is None:
            return 0.0
        return max(0.0, self.cooldown_seconds - (self.clock() - self.last_failure_at))

    def should_attempt(self) -> bool:
        """False only while a recent failure is cooling down"""
        return self.cooldown_remaining() <= 0

    def record_success(self):
        self.status = ProviderStatus.WORKING
        self.last_failure_at = None

    def record_failure(self):
        self.status = ProviderStatus.FAILED
        self.last_failure_at = self.clock()

    def snapshot(self) -> Dict[str, Any]:
        last_failure = (
            datetime.fromtimestamp(self.last_failure_at, tz=timezone.utc).isoformat()
            if self.last_failure_at is not None else None
        )
        return {
            "status": self.status.value,
            "last_failure": last_failure,
            "cooldown_remaining": round(self.cooldown_remaining(), 1),
            "available": self.should_attempt(),
        }
