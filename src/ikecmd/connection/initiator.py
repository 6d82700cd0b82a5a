"""Initiation workflow — the one-shot job that builds and initiates the connection."""

from __future__ import annotations

import logging
import threading

from ikecmd.connection.assembler import create_child_cfg, create_peer_cfg
from ikecmd.connection.builder import ConnectionOptions
from ikecmd.connection.models import ChildConfig, PeerConfig
from ikecmd.connection.profiles import build_auth_cfgs, resolve_profile
from ikecmd.daemon.base import Controller, JobPriority, JobScheduler, PortQuery, Status
from ikecmd.daemon.process import ProcessHandle
from ikecmd.errors import ControllerFailure, IkeCmdError, MissingRequiredOption

logger = logging.getLogger(__name__)


class Initiator:
    """Builds the connection from ``options`` and initiates it exactly once.

    Any failure, from a missing option to a failed negotiation, is logged
    and escalated to ``process``. The options are released after the run
    whatever the outcome.
    """

    def __init__(
        self,
        options: ConnectionOptions,
        controller: Controller,
        socket: PortQuery,
        process: ProcessHandle,
    ) -> None:
        self._options = options
        self._controller = controller
        self._socket = socket
        self._process = process
        self._lock = threading.Lock()
        self._scheduled = False
        self._ran = False
        self._done = threading.Event()
        self.status: Status | None = None
        self.error: IkeCmdError | None = None
        self.peer_cfg: PeerConfig | None = None

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the workflow has run. Returns False on timeout."""
        return self._done.wait(timeout)

    def schedule(self, scheduler: JobScheduler) -> bool:
        """Queue the workflow at critical priority. Only the first call queues."""
        with self._lock:
            if self._scheduled:
                logger.debug("Initiation already scheduled")
                return False
            self._scheduled = True
        scheduler.queue_job(self.initiate, JobPriority.CRITICAL)
        return True

    def initiate(self) -> Status | None:
        """Run the workflow. Later calls are no-ops returning the first outcome."""
        with self._lock:
            if self._ran:
                logger.debug("Initiation already ran")
                return self.status
            self._ran = True
        try:
            self.status = self._initiate()
        except IkeCmdError as e:
            logger.error("%s", e)
            self.status = Status.FAILED
            self.error = e
            self._process.terminate()
        except Exception as e:
            logger.exception("Initiation failed unexpectedly")
            self.status = Status.FAILED
            self.error = ControllerFailure(f"initiation failed: {e}")
            self._process.terminate()
        finally:
            self._options.release()
            self._done.set()
        return self.status

    def _initiate(self) -> Status:
        opts = self._options
        if not opts.host:
            raise MissingRequiredOption("host")
        if not opts.identity:
            raise MissingRequiredOption("identity")

        peer_cfg = create_peer_cfg(
            opts.host, self._socket.get_port(nat_t=False), opts.profile.version
        )
        profile = resolve_profile(opts.profile, opts.key_seen)
        remote_id = opts.remote_identity or opts.host
        for auth in build_auth_cfgs(profile, opts.identity, remote_id):
            peer_cfg.add_auth_cfg(auth)
        logger.info("Using profile %s (IKEv%d)", profile, peer_cfg.version.value)

        child_cfg = create_child_cfg(opts.local_ts, opts.remote_ts)
        peer_cfg.add_child_cfg(child_cfg)
        self.peer_cfg = peer_cfg

        return self._call_controller(peer_cfg, child_cfg)

    def _call_controller(self, peer_cfg: PeerConfig, child_cfg: ChildConfig) -> Status:
        status = self._controller.initiate(peer_cfg, child_cfg, callback=None, timeout=0)
        if status is not Status.SUCCESS:
            raise ControllerFailure(
                f"initiating connection to {peer_cfg.ike.remote_addr} failed"
            )
        return status
