"""
Global configuration and defaults.

The internal binding prefix is a contract with the engine: join variables the
engine synthesizes while compiling rules are named with this prefix, and are
hidden from every explanation we produce. Engines that can tag synthesized
bindings explicitly do so through `Token.synthesized`; the prefix is honoured
in addition.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .core.errors import ConfigError

# Reserved prefix for engine-generated binding names
INTERNAL_BINDING_PREFIX = "?__gen__"

# Snapshot file looked up when a command is given no explicit path
DEFAULT_SNAPSHOT_FILE = "session.json"

CONFIG_FILE_NAME = "retrace.toml"


@dataclass(frozen=True)
class RetraceConfig:
    """
    Settings read from retrace.toml or [tool.retrace] in pyproject.toml.

    Attributes:
        internal_binding_prefix: Bindings whose name starts with this are
            treated as engine-synthesized.
        snapshot: Default snapshot path for CLI commands.
    """

    internal_binding_prefix: str = INTERNAL_BINDING_PREFIX
    snapshot: str = DEFAULT_SNAPSHOT_FILE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RetraceConfig":
        prefix = data.get("internal_binding_prefix", INTERNAL_BINDING_PREFIX)
        snapshot = data.get("snapshot", DEFAULT_SNAPSHOT_FILE)
        if not isinstance(prefix, str) or not prefix:
            raise ConfigError("internal_binding_prefix must be a non-empty string")
        if not isinstance(snapshot, str):
            raise ConfigError("snapshot must be a string path")
        return cls(internal_binding_prefix=prefix, snapshot=snapshot)

    @classmethod
    def load(cls, project_dir: Optional[Path] = None) -> "RetraceConfig":
        """
        Load configuration for a project directory.

        retrace.toml wins over pyproject.toml. A directory with neither
        yields the defaults.
        """
        root = Path(project_dir) if project_dir else Path.cwd()

        own_file = root / CONFIG_FILE_NAME
        if own_file.exists():
            return cls.from_dict(_read_toml(own_file))

        pyproject = root / "pyproject.toml"
        if pyproject.exists():
            table = _read_toml(pyproject).get("tool", {}).get("retrace", {})
            return cls.from_dict(table)

        return cls()


def _read_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e
