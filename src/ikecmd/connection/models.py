"""Connection data models — selectors, auth rounds, IKE/peer/child configs."""

from __future__ import annotations

import enum
import ipaddress
from dataclasses import dataclass, field

IKEV2_UDP_PORT = 500
IKEV2_NATT_PORT = 4500


class IkeVersion(enum.Enum):
    """IKE protocol major version."""

    IKEV1 = 1
    IKEV2 = 2


class Side(enum.Enum):
    """Which end of the connection an auth round or selector belongs to."""

    LOCAL = "local"
    REMOTE = "remote"


class AuthClass(enum.Enum):
    """Authentication method family used in one auth round."""

    ANY = "any"
    PUBKEY = "pubkey"
    PSK = "psk"
    EAP = "eap"
    XAUTH = "xauth"


class TsType(enum.Enum):
    """Address family of a traffic selector range."""

    IPV4_ADDR_RANGE = 4
    IPV6_ADDR_RANGE = 6


class Mode(enum.Enum):
    """IPsec encapsulation mode."""

    TUNNEL = "tunnel"
    TRANSPORT = "transport"


class ChildAction(enum.Enum):
    """Action taken on start, dead peer or close of a CHILD_SA."""

    NONE = "none"
    TRAP = "trap"
    RESTART = "restart"


@dataclass(frozen=True)
class TrafficSelector:
    """An address range, port range and protocol for one direction.

    A dynamic selector stands for the virtual IP assigned to us during
    negotiation; its addresses are placeholders until then.
    """

    ts_type: TsType
    from_addr: str
    to_addr: str
    from_port: int = 0
    to_port: int = 65535
    protocol: int = 0
    dynamic: bool = False

    @classmethod
    def create_dynamic(
        cls, protocol: int = 0, from_port: int = 0, to_port: int = 65535
    ) -> TrafficSelector:
        return cls(
            ts_type=TsType.IPV4_ADDR_RANGE,
            from_addr="0.0.0.0",
            to_addr="255.255.255.255",
            from_port=from_port,
            to_port=to_port,
            protocol=protocol,
            dynamic=True,
        )

    @property
    def covers_all_ports(self) -> bool:
        return self.from_port == 0 and self.to_port == 65535

    def __str__(self) -> str:
        if self.dynamic:
            return "dynamic"
        start = ipaddress.ip_address(self.from_addr)
        end = ipaddress.ip_address(self.to_addr)
        nets = list(ipaddress.summarize_address_range(start, end))
        if len(nets) == 1:
            return str(nets[0])
        return f"{start}-{end}"


@dataclass(frozen=True)
class Proposal:
    """A cryptographic proposal; only the daemon's defaults are used here."""

    protocol: str
    algorithms: str = "default"


@dataclass(frozen=True)
class AuthConfig:
    """One authentication round: method plus the identity to use or expect."""

    auth_class: AuthClass
    identity: str
    side: Side


@dataclass(frozen=True)
class LifetimeConfig:
    """CHILD_SA lifetime, rekey and jitter, in seconds."""

    life: int
    rekey: int
    jitter: int


@dataclass
class IkeConfig:
    """IKE_SA endpoints and proposals."""

    version: IkeVersion
    local_addr: str
    local_port: int
    remote_addr: str
    remote_port: int
    proposals: list[Proposal] = field(default_factory=list)
    fragmentation: bool = False

    def add_proposal(self, proposal: Proposal) -> None:
        self.proposals.append(proposal)


@dataclass
class ChildConfig:
    """CHILD_SA traffic policy: which traffic is protected, and how."""

    name: str
    lifetime: LifetimeConfig
    mode: Mode = Mode.TUNNEL
    updown: str | None = None
    hostaccess: bool = False
    start_action: ChildAction = ChildAction.NONE
    dpd_action: ChildAction = ChildAction.NONE
    close_action: ChildAction = ChildAction.NONE
    proposals: list[Proposal] = field(default_factory=list)
    local_ts: list[TrafficSelector] = field(default_factory=list)
    remote_ts: list[TrafficSelector] = field(default_factory=list)

    def add_proposal(self, proposal: Proposal) -> None:
        self.proposals.append(proposal)

    def add_traffic_selector(self, local: bool, ts: TrafficSelector) -> None:
        if local:
            self.local_ts.append(ts)
        else:
            self.remote_ts.append(ts)


@dataclass
class PeerConfig:
    """Everything needed to negotiate and maintain an IKE_SA with one peer."""

    name: str
    ike: IkeConfig
    send_cert: str = "ifasked"
    unique: str = "replace"
    keyingtries: int = 1
    rekey_time: int = 0
    reauth_time: int = 0
    jitter_time: int = 0
    over_time: int = 0
    mobike: bool = True
    aggressive: bool = False
    dpd_delay: int = 0
    dpd_timeout: int = 0
    virtual_ips: list[str] = field(default_factory=list)
    local_auth: list[AuthConfig] = field(default_factory=list)
    remote_auth: list[AuthConfig] = field(default_factory=list)
    children: list[ChildConfig] = field(default_factory=list)

    @property
    def version(self) -> IkeVersion:
        return self.ike.version

    def add_virtual_ip(self, address: str) -> None:
        self.virtual_ips.append(address)

    def add_auth_cfg(self, auth: AuthConfig) -> None:
        if auth.side is Side.LOCAL:
            self.local_auth.append(auth)
        else:
            self.remote_auth.append(auth)

    def add_child_cfg(self, child: ChildConfig) -> None:
        self.children.append(child)

    @property
    def auth_rounds(self) -> list[AuthConfig]:
        """All auth rounds, local ones first, each side in insertion order."""
        return [*self.local_auth, *self.remote_auth]
