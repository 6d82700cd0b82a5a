"""VICI controller — load the assembled connection into charon and initiate it.

The peer and child configs are translated into a ``load-conn`` message in
swanctl.conf vocabulary, then ``initiate`` is called for the child. charon's
control log is streamed back while the request is pending.
"""

from __future__ import annotations

import logging
import socket
from pathlib import Path
from typing import Any

import vici
from vici.exception import CommandException, SessionException

from ikecmd.connection.models import (
    AuthClass,
    AuthConfig,
    ChildAction,
    ChildConfig,
    PeerConfig,
)
from ikecmd.daemon.base import ControllerCallback, Status
from ikecmd.errors import ControllerFailure

logger = logging.getLogger(__name__)

DEFAULT_VICI_SOCKET = Path("/var/run/charon.vici")

# swanctl has no "none" DPD action; "clear" only closes the CHILD_SA
_DPD_ACTIONS = {
    ChildAction.NONE: "clear",
    ChildAction.TRAP: "trap",
    ChildAction.RESTART: "restart",
}


def _yes_no(value: bool) -> str:
    return "yes" if value else "no"


def _auth_section(auth: AuthConfig) -> dict[str, Any]:
    section: dict[str, Any] = {"id": auth.identity}
    # No auth keyword accepts any method the peer uses
    if auth.auth_class is not AuthClass.ANY:
        section["auth"] = auth.auth_class.value
    return section


def child_to_vici(child: ChildConfig) -> dict[str, Any]:
    """Render a child config as a swanctl ``children.<name>`` section."""
    section: dict[str, Any] = {
        "mode": child.mode.value,
        "life_time": str(child.lifetime.life),
        "rekey_time": str(child.lifetime.rekey),
        "rand_time": str(child.lifetime.jitter),
        "esp_proposals": [p.algorithms for p in child.proposals],
        "local_ts": [str(ts) for ts in child.local_ts],
        "remote_ts": [str(ts) for ts in child.remote_ts],
        "hostaccess": _yes_no(child.hostaccess),
        "start_action": child.start_action.value,
        "dpd_action": _DPD_ACTIONS[child.dpd_action],
        "close_action": child.close_action.value,
    }
    if child.updown:
        section["updown"] = child.updown
    return section


def peer_to_vici(peer: PeerConfig) -> dict[str, Any]:
    """Render a peer config (with its children) as a ``load-conn`` message."""
    ike = peer.ike
    conn: dict[str, Any] = {
        "version": str(ike.version.value),
        "local_addrs": [ike.local_addr],
        "local_port": str(ike.local_port),
        "remote_addrs": [ike.remote_addr],
        "remote_port": str(ike.remote_port),
        "proposals": [p.algorithms for p in ike.proposals],
        "fragmentation": _yes_no(ike.fragmentation),
        "vips": list(peer.virtual_ips),
        "send_cert": peer.send_cert,
        "unique": peer.unique,
        "keyingtries": str(peer.keyingtries),
        "rekey_time": str(peer.rekey_time),
        "reauth_time": str(peer.reauth_time),
        "rand_time": str(peer.jitter_time),
        "over_time": str(peer.over_time),
        "mobike": _yes_no(peer.mobike),
        "aggressive": _yes_no(peer.aggressive),
        "dpd_delay": str(peer.dpd_delay),
        "dpd_timeout": str(peer.dpd_timeout),
    }
    for i, auth in enumerate(peer.local_auth, start=1):
        conn[f"local-{i}"] = _auth_section(auth)
    for i, auth in enumerate(peer.remote_auth, start=1):
        conn[f"remote-{i}"] = _auth_section(auth)
    conn["children"] = {child.name: child_to_vici(child) for child in peer.children}
    return {peer.name: conn}


def _decode(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


class ViciController:
    """Controller backed by charon's VICI socket."""

    def __init__(self, socket_path: str | Path = DEFAULT_VICI_SOCKET) -> None:
        self._socket_path = Path(socket_path)
        self._session: vici.Session | None = None
        self._sock: socket.socket | None = None
        self._loaded: str | None = None

    def _get_session(self) -> vici.Session:
        if self._session is None:
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            try:
                sock.connect(str(self._socket_path))
            except OSError:
                sock.close()
                raise
            self._sock = sock
            self._session = vici.Session(sock)
            logger.debug("Connected to VICI at %s", self._socket_path)
        return self._session

    def load_key(self, data: bytes, key_type: str = "rsa") -> None:
        """Hand a PEM or DER encoded private key to charon's credential store."""
        try:
            self._get_session().load_key({"type": key_type, "data": data})
        except (CommandException, SessionException, OSError) as e:
            raise ControllerFailure(f"loading {key_type} private key failed: {e}") from e
        logger.info("Loaded %s private key", key_type)

    def initiate(
        self,
        peer_cfg: PeerConfig,
        child_cfg: ChildConfig,
        callback: ControllerCallback | None = None,
        timeout: int = 0,
    ) -> Status:
        try:
            session = self._get_session()
            session.load_conn(peer_to_vici(peer_cfg))
            self._loaded = peer_cfg.name
            logger.info("Loaded connection '%s'", peer_cfg.name)

            request = {
                "ike": peer_cfg.name,
                "child": child_cfg.name,
                "timeout": str(timeout),
            }
            for log in session.initiate(request):
                line = _decode(log.get("msg", b""))
                logger.debug("charon: %s", line)
                if callback:
                    callback(line)
        except CommandException as e:
            logger.error("Initiating '%s' failed: %s", peer_cfg.name, e)
            return Status.FAILED
        except (SessionException, OSError) as e:
            logger.error("VICI communication with %s failed: %s", self._socket_path, e)
            return Status.FAILED

        logger.info("Connection '%s' established", peer_cfg.name)
        return Status.SUCCESS

    def close(self) -> None:
        """Terminate and unload the connection loaded by initiate(), if any."""
        if self._session is None:
            return
        if self._loaded is not None:
            name = self._loaded
            self._loaded = None
            try:
                for log in self._session.terminate({"ike": name, "timeout": "-1"}):
                    logger.debug("charon: %s", _decode(log.get("msg", b"")))
            except CommandException as e:
                logger.debug("Terminate of '%s': %s", name, e)
            except (SessionException, OSError) as e:
                logger.warning("Could not terminate '%s': %s", name, e)
            try:
                self._session.unload_conn({"name": name})
                logger.info("Unloaded connection '%s'", name)
            except (CommandException, SessionException, OSError) as e:
                logger.warning("Could not unload '%s': %s", name, e)
        if self._sock is not None:
            self._sock.close()
            self._sock = None
        self._session = None
