"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from ikecmd.connection.builder import CmdOption, ConnectionOptions
from ikecmd.daemon.base import Status


@pytest.fixture
def options() -> ConnectionOptions:
    opts = ConnectionOptions()
    opts.handle(CmdOption.HOST, "vpn.example.com")
    opts.handle(CmdOption.IDENTITY, "alice@example.com")
    return opts


@pytest.fixture
def controller() -> MagicMock:
    ctrl = MagicMock()
    ctrl.initiate.return_value = Status.SUCCESS
    return ctrl


@pytest.fixture
def port_query() -> MagicMock:
    query = MagicMock()
    query.get_port.return_value = 500
    return query


@pytest.fixture
def process() -> MagicMock:
    return MagicMock()


@pytest.fixture
def defaults_path(tmp_path: Path) -> Path:
    path = tmp_path / "defaults.yaml"
    path.write_text(
        "host: vpn.example.com\n"
        "identity: alice@example.com\n"
        "local-ts: 10.1.0.0/16\n"
        "remote_ts:\n"
        "  - 10.2.0.0/16\n"
        "  - 10.3.0.0/16\n"
    )
    return path
