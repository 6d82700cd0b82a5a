"""CLI command: ikecmd profiles — list the supported connection profiles."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from ikecmd.connection.profiles import Profile

console = Console()


@click.command()
def profiles() -> None:
    """List connection profiles and the authentication they use."""
    table = Table(title="Connection profiles")
    table.add_column("Profile", style="cyan", no_wrap=True)
    table.add_column("IKE")
    table.add_column("Key required")
    table.add_column("Authentication rounds")

    for name in Profile.names():
        profile = Profile.from_name(name)
        rounds = ", ".join(
            f"{side.value}: {auth.value}" for side, auth in profile.rounds
        )
        table.add_row(
            profile.label,
            f"v{profile.version.value}",
            "yes" if profile.requires_key else "no",
            rounds,
        )
    console.print(table)
    console.print(
        "\n[dim]Without --profile, ikev2-pub is used if --rsa is given, "
        "ikev2-eap otherwise.[/dim]"
    )
