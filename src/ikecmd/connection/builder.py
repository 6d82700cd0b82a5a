"""Connection options — builder state filled in from command-line options."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field

from ikecmd.connection.profiles import Profile
from ikecmd.connection.traffic import TrafficSelectorSet

logger = logging.getLogger(__name__)


class CmdOption(enum.Enum):
    """Command-line options that feed the connection."""

    HOST = "host"
    REMOTE_IDENTITY = "remote-identity"
    IDENTITY = "identity"
    RSA = "rsa"
    LOCAL_TS = "local-ts"
    REMOTE_TS = "remote-ts"
    PROFILE = "profile"


@dataclass
class ConnectionOptions:
    """Everything the initiation job needs, populated before it is queued.

    ``server`` overrides the remote identity, which otherwise is ``host``.
    ``key_seen`` records that a private key was supplied, not the key itself.
    """

    host: str | None = None
    server: str | None = None
    identity: str | None = None
    key_seen: bool = False
    profile: Profile = Profile.UNDEF
    local_ts: TrafficSelectorSet = field(default_factory=TrafficSelectorSet.local)
    remote_ts: TrafficSelectorSet = field(default_factory=TrafficSelectorSet.remote)

    @property
    def remote_identity(self) -> str | None:
        return self.server or self.host

    def handle(self, opt: CmdOption, arg: str | None = None) -> bool:
        """Apply one option. Returns False for options not handled here.

        Invalid selectors and unknown profile names raise immediately.
        """
        if opt is CmdOption.HOST:
            self.host = arg
        elif opt is CmdOption.REMOTE_IDENTITY:
            self.server = arg
        elif opt is CmdOption.IDENTITY:
            self.identity = arg
        elif opt is CmdOption.RSA:
            self.key_seen = True
        elif opt is CmdOption.LOCAL_TS:
            self.local_ts.add(arg or "")
        elif opt is CmdOption.REMOTE_TS:
            self.remote_ts.add(arg or "")
        elif opt is CmdOption.PROFILE:
            self.profile = Profile.from_name(arg or "")
        else:
            return False
        logger.debug("Option --%s = %s", opt.value, arg)
        return True

    def release(self) -> None:
        """Drop any selectors that were not consumed."""
        self.local_ts.clear()
        self.remote_ts.clear()
