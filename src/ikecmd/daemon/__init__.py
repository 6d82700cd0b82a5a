"""Interfaces to the IKE daemon and the hosting process."""
