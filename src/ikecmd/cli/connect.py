"""CLI command: ikecmd connect — initiate one connection and hold it until stopped."""

from __future__ import annotations

import signal
import sys
import threading
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from ikecmd.config import IkeCmdConfig, load_defaults
from ikecmd.connection.builder import CmdOption, ConnectionOptions
from ikecmd.connection.initiator import Initiator
from ikecmd.connection.models import PeerConfig
from ikecmd.daemon.base import Status
from ikecmd.daemon.process import ProcessHandle
from ikecmd.daemon.processor import JobProcessor
from ikecmd.daemon.socket_ import CharonSocket
from ikecmd.daemon.vici_ import ViciController
from ikecmd.errors import IkeCmdError

console = Console(stderr=True)

# How often the main thread checks on the initiation job
_POLL_INTERVAL = 0.2


def build_options(
    defaults: dict[str, Any],
    host: str | None = None,
    identity: str | None = None,
    remote_identity: str | None = None,
    rsa: bool = False,
    local_ts: tuple[str, ...] = (),
    remote_ts: tuple[str, ...] = (),
    profile: str | None = None,
) -> ConnectionOptions:
    """Feed defaults, then command-line values, into a fresh ConnectionOptions.

    Selectors from the defaults file come before those given on the command
    line. Raises InvalidSelector or UnknownProfile on bad input.
    """
    options = ConnectionOptions()

    def _pick(value: str | None, key: str) -> str | None:
        if value is not None:
            return value
        default = defaults.get(key)
        return str(default) if default is not None else None

    scalars = (
        (CmdOption.HOST, _pick(host, "host")),
        (CmdOption.REMOTE_IDENTITY, _pick(remote_identity, "remote_identity")),
        (CmdOption.IDENTITY, _pick(identity, "identity")),
        (CmdOption.PROFILE, _pick(profile, "profile")),
    )
    for opt, value in scalars:
        if value is not None:
            options.handle(opt, value)
    if rsa:
        options.handle(CmdOption.RSA)

    for ts in [*defaults.get("local_ts", ()), *local_ts]:
        options.handle(CmdOption.LOCAL_TS, ts)
    for ts in [*defaults.get("remote_ts", ()), *remote_ts]:
        options.handle(CmdOption.REMOTE_TS, ts)
    return options


@click.command()
@click.option("--host", help="DNS name or address to connect to.")
@click.option("--identity", help="Identity the client uses for authentication.")
@click.option(
    "--remote-identity",
    help="Server identity to expect, defaults to --host.",
)
@click.option(
    "--rsa",
    type=click.Path(exists=True, dir_okay=False),
    help="RSA private key to authenticate with.",
)
@click.option(
    "--local-ts",
    multiple=True,
    help="Additional traffic selector to propose for our side.",
)
@click.option(
    "--remote-ts",
    multiple=True,
    help="Traffic selector to propose for the remote side, defaults to 0.0.0.0/0.",
)
@click.option("--profile", help="Authentication profile, see 'ikecmd profiles'.")
@click.option(
    "--vici-socket",
    type=click.Path(dir_okay=False),
    help="charon VICI socket path.",
)
@click.option(
    "--defaults",
    "defaults_path",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with default option values.",
)
@click.pass_context
def connect(
    ctx: click.Context,
    host: str | None,
    identity: str | None,
    remote_identity: str | None,
    rsa: str | None,
    local_ts: tuple[str, ...],
    remote_ts: tuple[str, ...],
    profile: str | None,
    vici_socket: str | None,
    defaults_path: str | None,
) -> None:
    """Initiate a connection and keep it up until interrupted."""
    config: IkeCmdConfig = ctx.obj.get("config") or IkeCmdConfig.load()

    try:
        path = defaults_path or config.defaults_path
        defaults = load_defaults(path) if path else {}
        options = build_options(
            defaults,
            host=host,
            identity=identity,
            remote_identity=remote_identity,
            rsa=rsa is not None,
            local_ts=local_ts,
            remote_ts=remote_ts,
            profile=profile,
        )
    except (IkeCmdError, ValueError, OSError) as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    controller = ViciController(vici_socket or config.vici_socket)
    if rsa is not None:
        try:
            controller.load_key(Path(rsa).read_bytes())
        except (IkeCmdError, OSError) as e:
            console.print(f"[red]Error:[/red] {e}")
            sys.exit(1)

    # Captured now so the worker signals this process, not itself
    process = ProcessHandle()
    initiator = Initiator(
        options=options,
        controller=controller,
        socket=CharonSocket(default_port=config.local_port),
        process=process,
    )

    shutdown = threading.Event()
    failed = threading.Event()

    def _on_failure(signum: int, frame: object) -> None:
        failed.set()
        shutdown.set()

    def _on_stop(signum: int, frame: object) -> None:
        console.print("\n[dim]Stopping...[/dim]")
        shutdown.set()

    previous = {
        sig: signal.signal(sig, handler)
        for sig, handler in (
            (process.sig, _on_failure),
            (signal.SIGINT, _on_stop),
            (signal.SIGTERM, _on_stop),
        )
    }

    processor = JobProcessor(threads=1)
    processor.start()
    initiator.schedule(processor)

    reported = False
    try:
        while not shutdown.wait(timeout=_POLL_INTERVAL):
            if not initiator.done or reported:
                continue
            reported = True
            if initiator.status is not Status.SUCCESS:
                failed.set()
                break
            if initiator.peer_cfg is not None:
                _print_connection(initiator.peer_cfg)
            console.print("  Press Ctrl+C to disconnect.")
    finally:
        # A still-running job owns the VICI session; leave it and the
        # failure handler in place until the process exits
        initiator.wait(timeout=1)
        if initiator.done:
            controller.close()
            processor.stop(timeout=1)
            for sig, handler in previous.items():
                signal.signal(sig, handler)

    if failed.is_set():
        if initiator.error is not None:
            console.print(f"[red]Error:[/red] {initiator.error}")
        sys.exit(1)
    sys.exit(0)


def _print_connection(peer: PeerConfig) -> None:
    console.print("\n[bold]Connection established[/bold]")
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="dim")
    table.add_column()

    ike = peer.ike
    table.add_row("Remote", f"{ike.remote_addr}:{ike.remote_port}")
    table.add_row("Local port", str(ike.local_port))
    table.add_row("Version", f"IKEv{ike.version.value}")
    for auth in peer.auth_rounds:
        table.add_row(
            f"{auth.side.value} auth", f"{auth.auth_class.value} ({auth.identity})"
        )
    for child in peer.children:
        table.add_row("Local TS", ", ".join(str(ts) for ts in child.local_ts))
        table.add_row("Remote TS", ", ".join(str(ts) for ts in child.remote_ts))
    console.print(table)
