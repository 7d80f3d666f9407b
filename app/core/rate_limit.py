import threading
import time
from typing import Callable, Dict, Optional
from app.core.logging import get_logger
from app.domain.models.rate_limit import ClientRateRecord, RateLimitInfo

logger = get_logger("rate_limit")

class FixedWindowRateLimiter:
    """
    In-memory fixed-window rate limiter keyed by client identifier.

    Advisory only: state lives for the process lifetime and identifiers
    are taken from headers the client controls.
    """

    def __init__(
        self,
        max_requests: int = 30,
        window_seconds: float = 60,
        sweep_windows: int = 5,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.sweep_windows = sweep_windows
        self._clock = clock
        self._records: Dict[str, ClientRateRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def check(self, identifier: str) -> bool:
        """
        Count one request for identifier and report whether it is allowed.
        """
        now = self._clock()
        with self._lock:
            record = self._records.get(identifier)
            if record is None or now >= record.window_expires_at:
                self._records[identifier] = ClientRateRecord(
                    count=1,
                    window_expires_at=now + self.window_seconds
                )
                return True

            # Keeps counting past the ceiling; every call over it is rejected
            record.count += 1
            allowed = record.count <= self.max_requests

        if not allowed:
            logger.warning(
                f"Rate limit exceeded for {identifier}: "
                f"{self.max_requests} requests per {self.window_seconds:g} seconds"
            )
        return allowed

    def get_info(self, identifier: str) -> RateLimitInfo:
        """
        Get remaining requests and seconds until the window resets.
        """
        now = self._clock()
        with self._lock:
            record = self._records.get(identifier)
            if record is None or now >= record.window_expires_at:
                return RateLimitInfo(
                    remaining=self.max_requests,
                    reset=0,
                    total=self.max_requests
                )
            remaining = max(0, self.max_requests - record.count)
            reset = max(1, int(round(record.window_expires_at - now)))

        return RateLimitInfo(remaining=remaining, reset=reset, total=self.max_requests)

    def sweep(self, now: Optional[float] = None) -> int:
        """
        Drop records whose window expired more than `sweep_windows` windows ago.
        """
        if now is None:
            now = self._clock()
        cutoff = now - self.sweep_windows * self.window_seconds
        with self._lock:
            stale = [key for key, record in self._records.items() if record.window_expires_at <= cutoff]
            for key in stale:
                del self._records[key]

        if stale:
            logger.info(f"Cleaned up {len(stale)} expired rate limit records")
        return len(stale)
