"""Tests for the initiation workflow."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from ikecmd.connection.builder import CmdOption, ConnectionOptions
from ikecmd.connection.initiator import Initiator
from ikecmd.connection.models import AuthClass, IkeVersion, Side
from ikecmd.daemon.base import JobPriority, Status
from ikecmd.daemon.processor import JobProcessor
from ikecmd.errors import (
    ControllerFailure,
    MissingCredential,
    MissingRequiredOption,
)


def _initiator(
    options: ConnectionOptions,
    controller: MagicMock,
    port_query: MagicMock,
    process: MagicMock,
) -> Initiator:
    return Initiator(
        options=options, controller=controller, socket=port_query, process=process
    )


def _sent_peer(controller: MagicMock):
    controller.initiate.assert_called_once()
    peer_cfg, child_cfg = controller.initiate.call_args.args
    return peer_cfg, child_cfg


def test_scenario_default_profile_without_key(options, controller, port_query, process):
    initiator = _initiator(options, controller, port_query, process)

    assert initiator.initiate() is Status.SUCCESS

    peer_cfg, child_cfg = _sent_peer(controller)
    assert peer_cfg.version == IkeVersion.IKEV2
    assert [(a.side, a.auth_class) for a in peer_cfg.auth_rounds] == [
        (Side.LOCAL, AuthClass.EAP),
        (Side.REMOTE, AuthClass.ANY),
    ]
    assert peer_cfg.local_auth[0].identity == "alice@example.com"
    assert peer_cfg.remote_auth[0].identity == "vpn.example.com"
    assert peer_cfg.children == [child_cfg]
    process.terminate.assert_not_called()


def test_scenario_xauth_psk_with_key(options, controller, port_query, process):
    options.handle(CmdOption.RSA)
    options.handle(CmdOption.PROFILE, "ikev1-xauth-psk")
    initiator = _initiator(options, controller, port_query, process)

    assert initiator.initiate() is Status.SUCCESS

    peer_cfg, _ = _sent_peer(controller)
    assert peer_cfg.version == IkeVersion.IKEV1
    assert [(a.side, a.auth_class) for a in peer_cfg.auth_rounds] == [
        (Side.LOCAL, AuthClass.PSK),
        (Side.LOCAL, AuthClass.XAUTH),
        (Side.REMOTE, AuthClass.PSK),
    ]


def test_scenario_pub_without_key(options, controller, port_query, process):
    options.handle(CmdOption.PROFILE, "ikev2-pub")
    initiator = _initiator(options, controller, port_query, process)

    assert initiator.initiate() is Status.FAILED

    assert isinstance(initiator.error, MissingCredential)
    controller.initiate.assert_not_called()
    process.terminate.assert_called_once()


def test_explicit_remote_identity(options, controller, port_query, process):
    options.handle(CmdOption.REMOTE_IDENTITY, "CN=gw.example.com")
    _initiator(options, controller, port_query, process).initiate()
    peer_cfg, _ = _sent_peer(controller)
    assert peer_cfg.remote_auth[0].identity == "CN=gw.example.com"


@pytest.mark.parametrize("missing", [CmdOption.HOST, CmdOption.IDENTITY])
def test_missing_required_option(missing, controller, port_query, process):
    options = ConnectionOptions()
    for opt, value in (
        (CmdOption.HOST, "vpn.example.com"),
        (CmdOption.IDENTITY, "alice@example.com"),
    ):
        if opt is not missing:
            options.handle(opt, value)
    initiator = _initiator(options, controller, port_query, process)

    assert initiator.initiate() is Status.FAILED

    assert isinstance(initiator.error, MissingRequiredOption)
    assert initiator.error.option == missing.value
    controller.initiate.assert_not_called()
    process.terminate.assert_called_once()


def test_controller_failure_terminates(options, controller, port_query, process):
    controller.initiate.return_value = Status.FAILED
    initiator = _initiator(options, controller, port_query, process)

    assert initiator.initiate() is Status.FAILED

    assert isinstance(initiator.error, ControllerFailure)
    process.terminate.assert_called_once()


def test_controller_called_without_callback_or_timeout(
    options, controller, port_query, process
):
    _initiator(options, controller, port_query, process).initiate()
    kwargs = controller.initiate.call_args.kwargs
    assert kwargs == {"callback": None, "timeout": 0}


def test_remote_port_from_local_port(options, controller, port_query, process):
    port_query.get_port.return_value = 40000
    _initiator(options, controller, port_query, process).initiate()
    peer_cfg, _ = _sent_peer(controller)
    port_query.get_port.assert_called_once_with(nat_t=False)
    assert peer_cfg.ike.local_port == 40000
    assert peer_cfg.ike.remote_port == 4500


def test_selectors_drained_into_child(options, controller, port_query, process):
    options.handle(CmdOption.LOCAL_TS, "10.1.0.0/16")
    options.handle(CmdOption.REMOTE_TS, "10.2.0.0/16")
    _initiator(options, controller, port_query, process).initiate()
    _, child_cfg = _sent_peer(controller)
    assert [str(ts) for ts in child_cfg.local_ts] == ["dynamic", "10.1.0.0/16"]
    assert [str(ts) for ts in child_cfg.remote_ts] == ["10.2.0.0/16"]
    assert len(options.local_ts) == 0
    assert len(options.remote_ts) == 0


def test_selectors_released_on_failure(controller, port_query, process):
    options = ConnectionOptions()
    options.handle(CmdOption.REMOTE_TS, "10.2.0.0/16")
    _initiator(options, controller, port_query, process).initiate()
    assert len(options.local_ts) == 0
    assert len(options.remote_ts) == 0


def test_runs_only_once(options, controller, port_query, process):
    initiator = _initiator(options, controller, port_query, process)
    assert initiator.initiate() is Status.SUCCESS
    assert initiator.initiate() is Status.SUCCESS
    controller.initiate.assert_called_once()
    assert initiator.done


def test_schedule_queues_once_at_critical_priority(
    options, controller, port_query, process
):
    scheduler = MagicMock()
    initiator = _initiator(options, controller, port_query, process)

    assert initiator.schedule(scheduler) is True
    assert initiator.schedule(scheduler) is False

    scheduler.queue_job.assert_called_once_with(
        initiator.initiate, JobPriority.CRITICAL
    )


def test_runs_on_worker(options, controller, port_query, process):
    processor = JobProcessor()
    processor.start()
    initiator = _initiator(options, controller, port_query, process)
    initiator.schedule(processor)

    assert initiator.wait(timeout=5)
    processor.stop(timeout=5)

    assert initiator.status is Status.SUCCESS
    controller.initiate.assert_called_once()


def test_unexpected_controller_error_terminates(
    options, controller, port_query, process
):
    controller.initiate.side_effect = RuntimeError("vici protocol error")
    initiator = _initiator(options, controller, port_query, process)

    assert initiator.initiate() is Status.FAILED

    assert isinstance(initiator.error, ControllerFailure)
    assert "vici protocol error" in str(initiator.error)
    process.terminate.assert_called_once()
    assert initiator.done
    assert len(options.remote_ts) == 0


def test_port_query_error_terminates(options, controller, port_query, process):
    port_query.get_port.side_effect = OSError("no such process")
    initiator = _initiator(options, controller, port_query, process)

    assert initiator.initiate() is Status.FAILED

    controller.initiate.assert_not_called()
    process.terminate.assert_called_once()
