"""Standalone launcher for the static asset server."""

import logging
import os
import signal
import time

from app_config import AppConfigurationError, load_app_config
from asset_server import ServerConfigurationError, StaticAssetServer, StaticServerConfig


def main() -> int:
    """Run the asset server process until interrupted."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger("asset_server")

    try:
        app_config = load_app_config()
        config = StaticServerConfig.from_settings(app_config.server, environ=os.environ)
    except (AppConfigurationError, ServerConfigurationError) as error:
        logger.error("Asset server configuration error: %s", error)
        return 1

    server = StaticAssetServer(config=config, logger=logger)

    try:
        server.start()
    except RuntimeError as error:
        logger.error("%s", error)
        server.stop()
        return 1

    try:
        shutdown = False

        def handle_signal(signum, frame) -> None:
            del frame
            nonlocal shutdown
            logger.info("Signal %s received, stopping.", signal.Signals(signum).name)
            shutdown = True

        signal.signal(signal.SIGINT, handle_signal)
        signal.signal(signal.SIGTERM, handle_signal)

        while not shutdown and server.is_running:
            time.sleep(0.2)

    except KeyboardInterrupt:
        logger.info("Stopping by user request.")
    finally:
        server.stop()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
