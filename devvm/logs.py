"""Restarting log stream for the services running in the VM."""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from devvm.constants import LOG_RETRY_DELAY
from devvm.utils import log, timestamp


class LogStreamer:
    """Follow ``docker compose logs`` and restart whenever the stream ends.

    There is no retry limit; the loop only stops when ``cancel`` is set or the
    operator interrupts the process.
    """

    def __init__(
        self,
        executor,
        tail: int = 100,
        cancel: Optional[threading.Event] = None,
        sleep: Callable[[float], None] = time.sleep,
        delay: float = LOG_RETRY_DELAY,
    ) -> None:
        self.executor = executor
        self.tail = tail
        self.cancel = cancel or threading.Event()
        self.sleep = sleep
        self.delay = delay

    @property
    def command(self) -> str:
        return f"docker compose logs -f --tail={self.tail}"

    def run(self) -> int:
        iterations = 0
        while not self.cancel.is_set():
            rc = self.executor.remote(self.command)
            iterations += 1
            log("WARN", f"[{timestamp()}] Log stream ended (status {rc}); retrying in {self.delay:g}s")
            self.sleep(self.delay)
        return iterations
