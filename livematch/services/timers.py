"""Cancellable repeating timer used for the clock tick and the save heartbeat."""
import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RepeatingTimer:
    """
    Call ``callback`` every ``interval`` seconds on a daemon thread until cancelled.

    A timer is single use: once cancelled it cannot be restarted, a new one
    has to be created. Exceptions raised by the callback are logged and the
    timer keeps running.
    """

    def __init__(self, interval: float, callback: Callable[[], None], name: Optional[str] = None):
        if interval <= 0:
            raise ValueError("Timer interval must be positive")
        self.interval = interval
        self.callback = callback
        self.name = name or "repeating-timer"
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> "RepeatingTimer":
        if self._thread is not None:
            raise RuntimeError(f"Timer {self.name} already started")
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        return self

    def cancel(self) -> None:
        self._stopped.set()

    @property
    def cancelled(self) -> bool:
        return self._stopped.is_set()

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def _run(self) -> None:
        while not self._stopped.wait(self.interval):
            if self._stopped.is_set():
                break
            try:
                self.callback()
            except Exception:
                logger.exception("Timer %s callback failed", self.name)
