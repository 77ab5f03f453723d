"""
Login throttling for email/password authentication.

Tracks login attempts per identifier (email) inside a fixed window that
starts at the first attempt. Every attempt, successful or not, consumes one
slot of the budget before the credentials are checked. Once the budget is
used up, further attempts are rejected without touching the credential store
until the window expires. A successful login clears the identifier.

State is in-memory and owned by a single ``LoginThrottle`` instance that the
application builds at startup. It is not shared between processes and does
not survive restarts.
"""

import math
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from clientdesk.core.exceptions import InvalidCredentialsError, TooManyAttemptsError
from clientdesk.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_WINDOW_SECONDS = 30 * 60
# Upper bound on how often an attempt sweeps expired records
SWEEP_INTERVAL_SECONDS = 60

T = TypeVar("T")


@dataclass
class AttemptRecord:
    count: int
    window_start: float


@dataclass(frozen=True)
class AttemptCheck:
    """Result of the pre-verification check."""

    allowed: bool
    attempt_number: int


@dataclass(frozen=True)
class AttemptStatus:
    """Snapshot of an identifier's throttle state."""

    identifier: str
    locked: bool
    attempts: int
    retry_after_seconds: int | None


class GuardOutcome(str, Enum):
    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"
    TOO_MANY_ATTEMPTS = "too_many_attempts"


def normalize_identifier(identifier: str) -> str:
    return identifier.strip().lower()


class LoginThrottle:
    """Per-identifier login attempt budget.

    The check-and-increment step and the result bookkeeping each run under
    ``self._lock``. The lock is never held while credentials are verified.
    Expired records are swept during attempts at most once per sweep
    interval, so failing traffic alone cannot grow the table without bound.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._records: dict[str, AttemptRecord] = {}
        self._sweep_interval = min(self.window_seconds, SWEEP_INTERVAL_SECONDS)
        self._last_sweep = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _is_expired(self, record: AttemptRecord, now: float) -> bool:
        return now - record.window_start >= self.window_seconds

    def _sweep(self, now: float) -> int:
        """Delete expired records. Caller holds ``self._lock``."""
        expired = [key for key, record in self._records.items() if self._is_expired(record, now)]
        for key in expired:
            del self._records[key]
        self._last_sweep = now
        return len(expired)

    def check_and_record_attempt(self, identifier: str) -> AttemptCheck:
        """Reserve one attempt for ``identifier``.

        Returns ``allowed=False`` when the budget for the current window is
        already spent; the caller must then skip credential verification.
        """
        key = normalize_identifier(identifier)
        now = self._clock()

        with self._lock:
            if now - self._last_sweep >= self._sweep_interval:
                self._sweep(now)

            record = self._records.get(key)
            if record is None or self._is_expired(record, now):
                record = AttemptRecord(count=0, window_start=now)
                self._records[key] = record

            if record.count >= self.max_attempts:
                return AttemptCheck(allowed=False, attempt_number=record.count)

            record.count += 1
            return AttemptCheck(allowed=True, attempt_number=record.count)

    def record_result(self, identifier: str, success: bool) -> GuardOutcome:
        """Book the verification result of an attempt already reserved."""
        key = normalize_identifier(identifier)

        with self._lock:
            if success:
                self._records.pop(key, None)
                return GuardOutcome.SUCCESS

            record = self._records.get(key)
            if record is not None and record.count >= self.max_attempts:
                return GuardOutcome.TOO_MANY_ATTEMPTS
            return GuardOutcome.INVALID_CREDENTIALS

    async def authenticate(
        self,
        identifier: str,
        verify: Callable[[int], Awaitable[T | None]],
    ) -> T:
        """Run ``verify`` inside the attempt budget for ``identifier``.

        ``verify`` receives the attempt number and returns the login result,
        or None when the credentials are wrong.

        Raises:
            TooManyAttemptsError: the budget was spent before this attempt, or
                this failed attempt spent the last slot
            InvalidCredentialsError: verification failed with budget left
        """
        check = self.check_and_record_attempt(identifier)
        if not check.allowed:
            logger.warning(
                "login rejected, attempt budget exhausted",
                identifier=identifier,
                attempts=check.attempt_number,
            )
            raise TooManyAttemptsError(identifier, check.attempt_number, just_reached=False)

        result = await verify(check.attempt_number)
        outcome = self.record_result(identifier, result is not None)

        if outcome is GuardOutcome.SUCCESS:
            return result

        if outcome is GuardOutcome.TOO_MANY_ATTEMPTS:
            logger.warning(
                "login failed, attempt budget now exhausted",
                identifier=identifier,
                attempts=check.attempt_number,
            )
            raise TooManyAttemptsError(identifier, check.attempt_number, just_reached=True)

        logger.info(
            "login failed",
            identifier=identifier,
            attempts=check.attempt_number,
            max_attempts=self.max_attempts,
        )
        raise InvalidCredentialsError(identifier, check.attempt_number)

    def status(self, identifier: str) -> AttemptStatus:
        """Report whether ``identifier`` is currently locked out."""
        key = normalize_identifier(identifier)
        now = self._clock()

        with self._lock:
            record = self._records.get(key)
            if record is None or self._is_expired(record, now):
                return AttemptStatus(key, locked=False, attempts=0, retry_after_seconds=None)

            if record.count >= self.max_attempts:
                remaining = self.window_seconds - (now - record.window_start)
                return AttemptStatus(
                    key,
                    locked=True,
                    attempts=record.count,
                    retry_after_seconds=max(0, math.ceil(remaining)),
                )

            return AttemptStatus(key, locked=False, attempts=record.count, retry_after_seconds=None)

    def reset(self, identifier: str) -> bool:
        """Forget ``identifier``. Returns True if a record was removed."""
        key = normalize_identifier(identifier)
        with self._lock:
            return self._records.pop(key, None) is not None

    def prune(self) -> int:
        """Drop records whose window has expired. Returns the number removed."""
        now = self._clock()
        with self._lock:
            removed = self._sweep(now)
        if removed:
            logger.debug("pruned expired login attempt records", removed=removed)
        return removed
