"""Configuration model for the static asset server runtime."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional


class ServerConfigurationError(Exception):
    """Raised when static asset server configuration is invalid."""


DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
DEFAULT_CHUNK_SIZE = 64 * 1024
PUBLIC_DIR_NAME = "public"
PORT_ENV = "PORT"

_LEADING_INTEGER = re.compile(r"^\s*([+-]?[0-9]+)")


def default_root_dir() -> Path:
    return Path(getattr(sys, "_MEIPASS", Path(__file__).resolve().parents[2]))


def parse_port(raw: Optional[str], default: int = DEFAULT_PORT) -> int:
    """Parse leading integer digits; absent, non-numeric or zero yields ``default``."""
    if raw is None:
        return default
    match = _LEADING_INTEGER.match(raw)
    if match is None:
        return default
    return int(match.group(1)) or default


@dataclass(frozen=True)
class StaticServerConfig:
    """Validated server configuration built once at startup."""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    public_dir: str = ""
    root_dir: str = ""
    confine_to_base_dirs: bool = True
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self) -> None:
        if not self.host.strip():
            raise ServerConfigurationError("server.host cannot be empty")

        # Port 0 asks the OS for an ephemeral port.
        if not 0 <= self.port <= 65535:
            raise ServerConfigurationError(
                f"PORT must be in [0, 65535], got: {self.port}"
            )

        if self.chunk_size <= 0:
            raise ServerConfigurationError(
                f"server.chunk_size must be positive, got: {self.chunk_size}"
            )

        for label, raw in (("public_dir", self.public_dir), ("root_dir", self.root_dir)):
            if not raw:
                raise ServerConfigurationError(f"server.{label} cannot be empty")
            path = Path(raw)
            if path.exists() and not path.is_dir():
                raise ServerConfigurationError(
                    f"server.{label} is not a directory: {path}"
                )

    @property
    def base_dirs(self) -> tuple[Path, ...]:
        """Base directories in search priority order."""
        return (Path(self.public_dir), Path(self.root_dir))

    @classmethod
    def from_settings(
        cls,
        settings,
        *,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "StaticServerConfig":
        env = environ if environ is not None else {}
        root_dir = settings.root_dir.strip() if settings.root_dir else ""
        if not root_dir:
            root_dir = str(default_root_dir())
        public_dir = settings.public_dir.strip() if settings.public_dir else ""
        if not public_dir:
            public_dir = str(Path(root_dir) / PUBLIC_DIR_NAME)
        return cls(
            host=settings.host,
            port=parse_port(env.get(PORT_ENV), default=settings.port),
            public_dir=public_dir,
            root_dir=root_dir,
            confine_to_base_dirs=bool(settings.confine_to_base_dirs),
            chunk_size=settings.chunk_size,
        )
