# blueprint_coach/session/connection.py
"""
Connection health tracking.

One ConnectionMonitor is created per session and passed in explicitly;
components report successes and failures to it instead of consulting a
process-wide singleton.
"""

import logging
import time
from collections.abc import Callable
from enum import Enum

logger = logging.getLogger(__name__)


class ConnectionStatus(Enum):
    ONLINE = "online"
    DEGRADED = "degraded"  # model unreachable or storage failing, still usable
    OFFLINE = "offline"


Listener = Callable[[ConnectionStatus], None]


class ConnectionMonitor:
    """
    Tracks relay and storage health for a session.

    The model is considered unavailable after `failure_threshold`
    consecutive relay errors, or immediately when created with offline=True.
    Once `recovery_cooldown` seconds have passed since the last error,
    `should_try_llm()` lets a single trial through; a success resets the
    count and a failure starts a new cooldown.
    """

    def __init__(
        self,
        failure_threshold: int = 3,
        offline: bool = False,
        recovery_cooldown: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.forced_offline = offline
        self.recovery_cooldown = recovery_cooldown
        self._clock = clock
        self.llm_failures = 0
        self.last_failure_at: float | None = None
        self.storage_ok = True
        self.last_error: str | None = None
        self._listeners: list[Listener] = []
        self._status = self._compute()

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def llm_available(self) -> bool:
        return not self.forced_offline and self.llm_failures < self.failure_threshold

    def should_try_llm(self) -> bool:
        """True when the relay is healthy or due for a recovery check."""
        if self.forced_offline:
            return False
        if self.llm_available:
            return True
        if self.last_failure_at is None:
            return True
        return self._clock() - self.last_failure_at >= self.recovery_cooldown

    def _compute(self) -> ConnectionStatus:
        if not self.llm_available and not self.storage_ok:
            return ConnectionStatus.OFFLINE
        if not self.llm_available or not self.storage_ok:
            return ConnectionStatus.DEGRADED
        return ConnectionStatus.ONLINE

    def _update(self) -> None:
        status = self._compute()
        if status is not self._status:
            logger.info(f"Connection status {self._status.value} -> {status.value}")
            self._status = status
            for listener in list(self._listeners):
                listener(status)

    def on_change(self, listener: Listener) -> Callable[[], None]:
        """Register a status listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def report_llm_success(self) -> None:
        if not self.llm_available and not self.forced_offline:
            logger.info("Relay recovered")
        self.llm_failures = 0
        self.last_failure_at = None
        self._update()

    def report_llm_error(self, error: BaseException | str) -> None:
        self.llm_failures += 1
        self.last_failure_at = self._clock()
        self.last_error = str(error) or type(error).__name__
        logger.warning(f"Relay error {self.llm_failures}/{self.failure_threshold}: {self.last_error}")
        self._update()

    def report_storage_success(self) -> None:
        self.storage_ok = True
        self._update()

    def report_storage_error(self, error: BaseException | str) -> None:
        self.storage_ok = False
        self.last_error = str(error) or type(error).__name__
        self._update()

    def reset(self) -> None:
        self.llm_failures = 0
        self.last_failure_at = None
        self.storage_ok = True
        self.last_error = None
        self._update()
