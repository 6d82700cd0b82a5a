"""Assemble peer and child configs from resolved options."""

from __future__ import annotations

import logging

from ikecmd.connection.models import (
    IKEV2_NATT_PORT,
    IKEV2_UDP_PORT,
    ChildAction,
    ChildConfig,
    IkeConfig,
    IkeVersion,
    LifetimeConfig,
    Mode,
    PeerConfig,
    Proposal,
)
from ikecmd.connection.traffic import TrafficSelectorSet

logger = logging.getLogger(__name__)

CONNECTION_NAME = "cmd"

# IKE_SA timers, seconds
REKEY_TIME = 36000  # 10h
REAUTH_TIME = 0
JITTER_TIME = 600
OVER_TIME = 600
DPD_DELAY = 30
DPD_TIMEOUT = 0

# CHILD_SA lifetime, seconds
CHILD_LIFETIME = LifetimeConfig(life=10800, rekey=10200, jitter=300)


def select_remote_port(local_port: int) -> int:
    """Talk to the NAT-T port if we could not bind the standard IKE port."""
    if local_port != IKEV2_UDP_PORT:
        return IKEV2_NATT_PORT
    return IKEV2_UDP_PORT


def create_peer_cfg(host: str, local_port: int, version: IkeVersion) -> PeerConfig:
    """Build the IKE-level config for ``host``, without auth or children."""
    remote_port = select_remote_port(local_port)
    ike = IkeConfig(
        version=version,
        local_addr="0.0.0.0",
        local_port=local_port,
        remote_addr=host,
        remote_port=remote_port,
        fragmentation=False,
    )
    ike.add_proposal(Proposal("ike"))

    peer = PeerConfig(
        name=CONNECTION_NAME,
        ike=ike,
        send_cert="ifasked",
        unique="replace",
        keyingtries=1,
        rekey_time=REKEY_TIME,
        reauth_time=REAUTH_TIME,
        jitter_time=JITTER_TIME,
        over_time=OVER_TIME,
        mobike=True,
        aggressive=False,
        dpd_delay=DPD_DELAY,
        dpd_timeout=DPD_TIMEOUT,
    )
    # Request any virtual IP
    peer.add_virtual_ip("0.0.0.0")
    logger.debug(
        "IKEv%d config %s:%d -> %s:%d",
        version.value,
        ike.local_addr,
        local_port,
        host,
        remote_port,
    )
    return peer


def create_child_cfg(
    local_ts: TrafficSelectorSet, remote_ts: TrafficSelectorSet
) -> ChildConfig:
    """Build the CHILD_SA config, draining both selector sets into it."""
    child = ChildConfig(
        name=CONNECTION_NAME,
        lifetime=CHILD_LIFETIME,
        mode=Mode.TUNNEL,
        updown=None,
        hostaccess=False,
        start_action=ChildAction.NONE,
        dpd_action=ChildAction.NONE,
        close_action=ChildAction.NONE,
    )
    child.add_proposal(Proposal("esp"))
    local_ts.drain_into(child, local=True)
    remote_ts.drain_into(child, local=False)
    return child
