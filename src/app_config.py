from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional


DEFAULT_CONFIG_FILE = "config.toml"
CONFIG_FILE_ENV = "APP_CONFIG_FILE"


class AppConfigurationError(Exception):
    """Raised when application configuration fails."""


@dataclass(frozen=True)
class ServerSettings:
    """Listener and base-directory settings from `[server]`."""
    host: str = "0.0.0.0"
    port: int = 3000
    public_dir: str = ""
    root_dir: str = ""
    confine_to_base_dirs: bool = True
    chunk_size: int = 64 * 1024


@dataclass(frozen=True)
class AppConfig:
    server: ServerSettings
    source_file: Optional[str]


def resolve_config_path(
    config_path: str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> Path:
    env = environ if environ is not None else os.environ
    raw = config_path or env.get(CONFIG_FILE_ENV) or DEFAULT_CONFIG_FILE
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = (Path.cwd() / path).resolve()
    return path


def load_app_config(
    config_path: str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load `config.toml`; the default file is optional, explicit paths are not."""
    env = environ if environ is not None else os.environ
    explicit = bool(config_path or env.get(CONFIG_FILE_ENV))
    path = resolve_config_path(config_path, environ=env)

    if not path.exists():
        if explicit:
            raise AppConfigurationError(f"Config file not found: {path}")
        return AppConfig(server=ServerSettings(), source_file=None)
    if not path.is_file():
        raise AppConfigurationError(f"Config path is not a file: {path}")

    try:
        with open(path, "rb") as fh:
            raw = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as error:
        raise AppConfigurationError(f"Failed to parse config TOML: {error}") from error

    base_dir = path.parent
    server_raw = _section(raw, "server")
    defaults = ServerSettings()
    server = ServerSettings(
        host=_as_str(server_raw.get("host", defaults.host), "server.host"),
        port=_as_int(server_raw.get("port", defaults.port), "server.port"),
        public_dir=_resolve_path(
            base_dir,
            _as_str(server_raw.get("public_dir", ""), "server.public_dir"),
        ),
        root_dir=_resolve_path(
            base_dir,
            _as_str(server_raw.get("root_dir", ""), "server.root_dir"),
        ),
        confine_to_base_dirs=_as_bool(
            server_raw.get("confine_to_base_dirs", defaults.confine_to_base_dirs),
            "server.confine_to_base_dirs",
        ),
        chunk_size=_as_int(
            server_raw.get("chunk_size", defaults.chunk_size),
            "server.chunk_size",
        ),
    )

    return AppConfig(server=server, source_file=str(path))


def _section(root: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    raw = root.get(name, {})
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise AppConfigurationError(f"[{name}] must be a table.")
    return raw


def _as_str(value: Any, field: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    raise AppConfigurationError(f"{field} must be a string.")


def _as_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    raise AppConfigurationError(f"{field} must be a boolean.")


def _as_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise AppConfigurationError(f"{field} must be an integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as error:
            raise AppConfigurationError(f"{field} must be an integer.") from error
    raise AppConfigurationError(f"{field} must be an integer.")


def _resolve_path(base_dir: Path, raw: str) -> str:
    if not raw:
        return ""
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    return str(path)
