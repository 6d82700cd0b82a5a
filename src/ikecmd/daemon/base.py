"""Daemon-facing protocols — what ikecmd needs from the IKE daemon."""

from __future__ import annotations

import enum
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from ikecmd.connection.models import ChildConfig, PeerConfig


class Status(enum.Enum):
    """Outcome of a controller operation."""

    SUCCESS = "success"
    FAILED = "failed"


class JobPriority(enum.IntEnum):
    """Scheduling priority; lower values run first."""

    CRITICAL = 0
    HIGH = 1
    MEDIUM = 2
    LOW = 3


# Receives the daemon's log lines while an operation is in progress
ControllerCallback = Callable[[str], None]


@runtime_checkable
class Controller(Protocol):
    """Protocol for the daemon's connection controller."""

    def initiate(
        self,
        peer_cfg: PeerConfig,
        child_cfg: ChildConfig,
        callback: ControllerCallback | None = None,
        timeout: int = 0,
    ) -> Status:
        """Initiate the CHILD_SA, blocking until it is up or has failed.

        A timeout of 0 waits indefinitely.
        """
        ...


@runtime_checkable
class PortQuery(Protocol):
    """Protocol for looking up the daemon's bound IKE source port."""

    def get_port(self, nat_t: bool = False) -> int:
        """Return the bound port, the NAT-T one if ``nat_t``."""
        ...


@runtime_checkable
class JobScheduler(Protocol):
    """Protocol for queueing deferred work."""

    def queue_job(self, job: Callable[[], object], priority: JobPriority) -> None:
        """Queue ``job`` to run once on a worker."""
        ...
