"""Traffic selector sets — parse --local-ts/--remote-ts and drain into a child config."""

from __future__ import annotations

import ipaddress
import logging
from collections import deque
from collections.abc import Iterator

from ikecmd.connection.models import ChildConfig, TrafficSelector, TsType
from ikecmd.errors import InvalidSelector

logger = logging.getLogger(__name__)

# Used for the remote side when no --remote-ts is given
DEFAULT_REMOTE_TS = TrafficSelector(
    ts_type=TsType.IPV4_ADDR_RANGE,
    from_addr="0.0.0.0",
    to_addr="255.255.255.255",
    from_port=0,
    to_port=65535,
)


def parse_selector(
    text: str, protocol: int = 0, from_port: int = 0, to_port: int = 65535
) -> TrafficSelector:
    """Parse a CIDR subnet, single address or ``from-to`` address range.

    Raises InvalidSelector if the text is none of these.
    """
    text = text.strip()
    try:
        if "-" in text and "/" not in text:
            first, _, last = text.partition("-")
            start = ipaddress.ip_address(first.strip())
            end = ipaddress.ip_address(last.strip())
            if start.version != end.version or start > end:
                raise InvalidSelector(text)
        else:
            net = ipaddress.ip_network(text, strict=False)
            start, end = net.network_address, net.broadcast_address
    except ValueError:
        raise InvalidSelector(text) from None

    ts_type = TsType.IPV4_ADDR_RANGE if start.version == 4 else TsType.IPV6_ADDR_RANGE
    return TrafficSelector(
        ts_type=ts_type,
        from_addr=str(start),
        to_addr=str(end),
        from_port=from_port,
        to_port=to_port,
        protocol=protocol,
    )


class TrafficSelectorSet:
    """Ordered selectors for one side of the connection.

    Draining moves every selector into a child config and leaves the set
    empty. If ``fallback`` is given and the set is empty when drained, the
    fallback is drained in its place.
    """

    def __init__(
        self,
        initial: tuple[TrafficSelector, ...] = (),
        fallback: TrafficSelector | None = None,
    ) -> None:
        self._selectors: deque[TrafficSelector] = deque(initial)
        self._fallback = fallback

    @classmethod
    def local(cls) -> TrafficSelectorSet:
        """Local set, always scoped to the assigned virtual IP."""
        return cls(initial=(TrafficSelector.create_dynamic(0, 0, 65535),))

    @classmethod
    def remote(cls) -> TrafficSelectorSet:
        return cls(fallback=DEFAULT_REMOTE_TS)

    def __len__(self) -> int:
        return len(self._selectors)

    def __iter__(self) -> Iterator[TrafficSelector]:
        return iter(tuple(self._selectors))

    def add(self, text: str) -> TrafficSelector:
        """Parse ``text`` into a selector for all ports and append it."""
        ts = parse_selector(text, 0, 0, 65535)
        self._selectors.append(ts)
        logger.debug("Added traffic selector %s", ts)
        return ts

    def drain(self) -> list[TrafficSelector]:
        """Remove and return all selectors in insertion order."""
        if not self._selectors and self._fallback is not None:
            self._selectors.append(self._fallback)
        drained: list[TrafficSelector] = []
        while self._selectors:
            drained.append(self._selectors.popleft())
        return drained

    def drain_into(self, child: ChildConfig, local: bool) -> int:
        """Move all selectors into ``child`` for the given side."""
        drained = self.drain()
        for ts in drained:
            child.add_traffic_selector(local, ts)
        return len(drained)

    def clear(self) -> None:
        self._selectors.clear()
