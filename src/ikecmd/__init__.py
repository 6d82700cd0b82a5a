"""ikecmd — command-line IKE connection initiator for strongSwan's charon."""

__version__ = "0.1.0"
