"""Error hierarchy — every error here is fatal to the ikecmd process."""

from __future__ import annotations


class IkeCmdError(Exception):
    """Base class for configuration and initiation failures."""


class MissingRequiredOption(IkeCmdError):
    """A mandatory option (host or identity) was not supplied."""

    def __init__(self, option: str) -> None:
        super().__init__(f"unable to initiate, missing --{option} option")
        self.option = option


class InvalidSelector(IkeCmdError):
    """Traffic selector text could not be parsed."""

    def __init__(self, text: str) -> None:
        super().__init__(f"invalid traffic selector: {text}")
        self.text = text


class UnknownProfile(IkeCmdError):
    """Profile name is not one of the supported connection profiles."""

    def __init__(self, name: str) -> None:
        super().__init__(f"unknown connection profile: {name}")
        self.name = name


class MissingCredential(IkeCmdError):
    """Profile authenticates with a local private key but none was given."""

    def __init__(self, profile: str) -> None:
        super().__init__(f"missing private key for profile {profile}")
        self.profile = profile


class ControllerFailure(IkeCmdError):
    """The daemon's controller did not establish the connection."""
