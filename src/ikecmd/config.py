"""Global configuration — XDG paths, env vars, YAML option defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# Option keys a defaults file may set
_DEFAULT_KEYS = frozenset(
    {"host", "identity", "remote_identity", "profile", "local_ts", "remote_ts"}
)
_LIST_KEYS = frozenset({"local_ts", "remote_ts"})


def _default_config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "ikecmd"
    return Path.home() / ".config" / "ikecmd"


@dataclass
class IkeCmdConfig:
    """Application-wide configuration."""

    config_dir: Path = field(default_factory=_default_config_dir)
    vici_socket: Path = Path("/var/run/charon.vici")
    local_port: int = 500  # Used when the daemon's socket cannot be inspected
    defaults_path: Path | None = None
    verbose: bool = False

    @classmethod
    def load(cls) -> IkeCmdConfig:
        """Load config from environment variables with XDG defaults."""
        config = cls()

        env_socket = os.environ.get("IKECMD_VICI_SOCKET")
        if env_socket:
            config.vici_socket = Path(env_socket)

        env_port = os.environ.get("IKECMD_LOCAL_PORT")
        if env_port:
            try:
                config.local_port = int(env_port)
            except ValueError:
                raise ValueError(
                    f"IKECMD_LOCAL_PORT must be an integer, got {env_port!r}"
                ) from None

        env_defaults = os.environ.get("IKECMD_DEFAULTS")
        if env_defaults:
            config.defaults_path = Path(env_defaults)
        else:
            # Pick up defaults.yaml from the config dir if it exists
            candidate = config.config_dir / "defaults.yaml"
            if candidate.is_file():
                config.defaults_path = candidate

        return config


def load_defaults(path: str | Path) -> dict[str, Any]:
    """Read option defaults from a YAML file."""
    text = Path(path).read_text(encoding="utf-8")
    return parse_defaults(text)


def parse_defaults(text: str) -> dict[str, Any]:
    """Parse a YAML defaults document into option values.

    Keys use the option names with dashes or underscores (``local-ts`` and
    ``local_ts`` are equivalent). Selector keys accept a single string or a
    list of strings.
    """
    data = yaml.safe_load(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Defaults YAML must be a mapping")

    defaults: dict[str, Any] = {}
    for raw_key, value in data.items():
        key = str(raw_key).replace("-", "_")
        if key not in _DEFAULT_KEYS:
            raise ValueError(f"Unknown option in defaults: {raw_key}")
        if key in _LIST_KEYS:
            if isinstance(value, str):
                value = [value]
            defaults[key] = [str(v) for v in value or ()]
        elif value is not None:
            defaults[key] = str(value)
    return defaults
