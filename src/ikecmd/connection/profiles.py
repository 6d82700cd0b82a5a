"""Connection profiles — IKE version and ordered auth rounds per profile."""

from __future__ import annotations

import enum
import logging

from ikecmd.connection.models import AuthClass, AuthConfig, IkeVersion, Side
from ikecmd.errors import MissingCredential, UnknownProfile

logger = logging.getLogger(__name__)

_L, _R = Side.LOCAL, Side.REMOTE


class Profile(enum.Enum):
    """Supported connection profiles.

    Each member carries its command-line name, IKE version, whether it
    authenticates with a local private key, and its (side, method) rounds in
    the order they are presented to the peer.
    """

    UNDEF = ("", IkeVersion.IKEV2, False, ())
    V2_PUB = (
        "ikev2-pub",
        IkeVersion.IKEV2,
        True,
        ((_L, AuthClass.PUBKEY), (_R, AuthClass.ANY)),
    )
    V2_EAP = (
        "ikev2-eap",
        IkeVersion.IKEV2,
        False,
        ((_L, AuthClass.EAP), (_R, AuthClass.ANY)),
    )
    V2_PUB_EAP = (
        "ikev2-pub-eap",
        IkeVersion.IKEV2,
        True,
        ((_L, AuthClass.PUBKEY), (_L, AuthClass.EAP), (_R, AuthClass.ANY)),
    )
    V1_PUB = (
        "ikev1-pub",
        IkeVersion.IKEV1,
        True,
        ((_L, AuthClass.PUBKEY), (_R, AuthClass.PUBKEY)),
    )
    V1_XAUTH = (
        "ikev1-xauth",
        IkeVersion.IKEV1,
        True,
        ((_L, AuthClass.PUBKEY), (_L, AuthClass.XAUTH), (_R, AuthClass.PUBKEY)),
    )
    V1_XAUTH_PSK = (
        "ikev1-xauth-psk",
        IkeVersion.IKEV1,
        False,
        ((_L, AuthClass.PSK), (_L, AuthClass.XAUTH), (_R, AuthClass.PSK)),
    )
    V1_HYBRID = (
        "ikev1-hybrid",
        IkeVersion.IKEV1,
        False,
        ((_L, AuthClass.XAUTH), (_R, AuthClass.PUBKEY)),
    )

    def __init__(
        self,
        label: str,
        version: IkeVersion,
        requires_key: bool,
        rounds: tuple[tuple[Side, AuthClass], ...],
    ) -> None:
        self.label = label
        self.version = version
        self.requires_key = requires_key
        self.rounds = rounds

    def __str__(self) -> str:
        return self.label or "undefined"

    @classmethod
    def from_name(cls, name: str) -> Profile:
        """Look up a profile by its command-line name (case-insensitive)."""
        wanted = name.strip().lower()
        for profile in cls:
            if profile.label and profile.label == wanted:
                return profile
        raise UnknownProfile(name)

    @classmethod
    def names(cls) -> list[str]:
        return [p.label for p in cls if p.label]


def resolve_profile(profile: Profile, key_seen: bool) -> Profile:
    """Infer a profile if none was requested, then check its credential.

    Without an explicit profile, a configured private key selects
    ``ikev2-pub`` and its absence selects ``ikev2-eap``.
    """
    if profile is Profile.UNDEF:
        profile = Profile.V2_PUB if key_seen else Profile.V2_EAP
        logger.debug("No profile given, using %s", profile)
    if profile.requires_key and not key_seen:
        raise MissingCredential(str(profile))
    return profile


def build_auth_cfgs(
    profile: Profile, identity: str, remote_identity: str
) -> list[AuthConfig]:
    """Expand a resolved profile into auth configs, in presentation order."""
    if not profile.rounds:
        raise UnknownProfile(str(profile))
    auths: list[AuthConfig] = []
    for side, auth_class in profile.rounds:
        ident = identity if side is Side.LOCAL else remote_identity
        auths.append(AuthConfig(auth_class=auth_class, identity=ident, side=side))
    return auths
