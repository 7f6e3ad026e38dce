"""Static asset server: path resolution and streaming file responses."""

from .config import ServerConfigurationError, StaticServerConfig
from .service import StaticAssetServer
from .static_files import BadRequestPathError, guess_content_type, resolve_static_file

__all__ = [
    "BadRequestPathError",
    "ServerConfigurationError",
    "StaticAssetServer",
    "StaticServerConfig",
    "guess_content_type",
    "resolve_static_file",
]
