"""Process handle — ask the owning process to shut down."""

from __future__ import annotations

import logging
import os
import signal

import psutil

logger = logging.getLogger(__name__)


class ProcessHandle:
    """Signals the process captured at construction to begin shutdown.

    The pid is taken when the handle is created, so a handle built at
    startup keeps pointing at the top-level process even when used from a
    worker thread.
    """

    def __init__(self, pid: int | None = None, sig: int = signal.SIGUSR1) -> None:
        self.pid = pid if pid is not None else os.getpid()
        self.sig = sig

    def terminate(self) -> bool:
        """Send the shutdown signal. Returns True if it was delivered."""
        logger.debug(
            "Signalling process %d with %s", self.pid, signal.Signals(self.sig).name
        )
        try:
            psutil.Process(self.pid).send_signal(self.sig)
            return True
        except psutil.NoSuchProcess:
            logger.warning("Process %d already exited", self.pid)
            return False
        except psutil.AccessDenied:
            logger.error("Permission denied signalling process %d", self.pid)
            return False
