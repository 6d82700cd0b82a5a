"""Look up the UDP port the charon daemon bound for IKE."""

from __future__ import annotations

import logging

import psutil

from ikecmd.connection.models import IKEV2_NATT_PORT, IKEV2_UDP_PORT

logger = logging.getLogger(__name__)

_DAEMON_NAMES = ("charon", "charon-systemd", "charon-cmd")


class CharonSocket:
    """Inspects the daemon's UDP sockets through psutil.

    Falls back to ``default_port`` when no daemon process is visible or its
    sockets cannot be read (typically without root).
    """

    def __init__(
        self,
        default_port: int = IKEV2_UDP_PORT,
        process_names: tuple[str, ...] = _DAEMON_NAMES,
    ) -> None:
        self._default_port = default_port
        self._process_names = process_names

    def get_port(self, nat_t: bool = False) -> int:
        ports = self._bound_ports()
        if not ports:
            logger.debug(
                "No charon UDP sockets visible, assuming port %d", self._default_port
            )
            return IKEV2_NATT_PORT if nat_t else self._default_port

        if nat_t:
            if IKEV2_NATT_PORT in ports:
                return IKEV2_NATT_PORT
            return max(ports)
        if IKEV2_UDP_PORT in ports:
            return IKEV2_UDP_PORT
        # Standard port taken by someone else; the daemon bound a random one
        candidates = sorted(p for p in ports if p != IKEV2_NATT_PORT)
        return candidates[0] if candidates else self._default_port

    def _bound_ports(self) -> set[int]:
        ports: set[int] = set()
        for proc in psutil.process_iter(["name"]):
            try:
                if proc.info.get("name") not in self._process_names:
                    continue
                conns = proc.net_connections(kind="udp")
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue
            for conn in conns:
                if conn.laddr:
                    ports.add(conn.laddr.port)
        return ports
