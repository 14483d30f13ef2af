"""
Per-item save state machine.

    pending -> saving -> saved
                      -> rejected (permanent client error, no retry)
                      -> backoff -> saving -> ...
                                 -> parked   (attempts exhausted)

The machine only tracks state and computes delays; the caller performs the
save and the wait.
"""
from enum import Enum
from typing import Any, Dict, Optional

MAX_ATTEMPTS = 3
BASE_DELAY_SECONDS = 1.0

# 4xx answers that may succeed later (session refresh, rate limiting, timeouts)
RETRYABLE_CLIENT_ERRORS = {401, 408, 429}


class SaveState(str, Enum):
    PENDING = "pending"
    SAVING = "saving"
    SAVED = "saved"
    REJECTED = "rejected"
    BACKOFF = "backoff"
    PARKED = "parked"


class InvalidTransition(RuntimeError):
    pass


def backoff_delay(attempt: int, base: float = BASE_DELAY_SECONDS) -> float:
    """Wait after failed attempt number ``attempt`` (1-based): 1s, 2s, 4s..."""
    return base * (2 ** (attempt - 1))


def is_permanent_failure(error: Optional[BaseException]) -> bool:
    status = getattr(error, "status_code", None)
    return status is not None and 400 <= status < 500 and status not in RETRYABLE_CLIENT_ERRORS


class PendingSave:
    def __init__(self, media_id: str, item: Dict[str, Any], max_attempts: int = MAX_ATTEMPTS):
        self.media_id = str(media_id)
        self.item = item
        self.max_attempts = max_attempts
        self.state = SaveState.PENDING
        self.attempts = 0
        self.last_error: Optional[BaseException] = None

    def _require(self, *states: SaveState) -> None:
        if self.state not in states:
            raise InvalidTransition(f"{self.media_id}: cannot leave {self.state.value} here")

    def start(self) -> None:
        self._require(SaveState.PENDING, SaveState.BACKOFF)
        if self.attempts >= self.max_attempts:
            raise InvalidTransition(f"{self.media_id}: no attempts left")
        self.state = SaveState.SAVING
        self.attempts += 1

    def succeed(self) -> None:
        self._require(SaveState.SAVING)
        self.state = SaveState.SAVED
        self.last_error = None

    def reject(self, error: Optional[BaseException] = None) -> None:
        self._require(SaveState.SAVING)
        self.state = SaveState.REJECTED
        self.last_error = error

    def fail(self, error: Optional[BaseException] = None) -> float:
        """Record a failed attempt; returns the delay to wait before moving on."""
        self._require(SaveState.SAVING)
        self.state = SaveState.BACKOFF
        self.last_error = error
        return backoff_delay(self.attempts)

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts

    def park(self) -> None:
        self._require(SaveState.BACKOFF)
        if not self.exhausted:
            raise InvalidTransition(f"{self.media_id}: parked with attempts left")
        self.state = SaveState.PARKED
