from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from typing import Optional

from aiohttp import web

from .config import StaticServerConfig
from .handler import StaticFileHandler


class StaticAssetServer:
    """Threaded asyncio server streaming static assets over HTTP."""

    def __init__(
        self,
        config: StaticServerConfig,
        logger: Optional[logging.Logger] = None,
    ):
        self._config = config
        self._logger = logger or logging.getLogger("asset_server")
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop_async: Optional[asyncio.Event] = None
        self._started = threading.Event()
        self._startup_error: Optional[Exception] = None
        self._bound_port: Optional[int] = None

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def port(self) -> int:
        """Listening port; the OS-assigned one once started with port 0."""
        if self._bound_port is not None:
            return self._bound_port
        return self._config.port

    @property
    def is_running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and self._startup_error is None
        )

    def build_app(self) -> web.Application:
        """Route every method and path to a single static file handler."""
        handler = StaticFileHandler(self._config, logger=self._logger)
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", handler.handle)
        return app

    def start(self, timeout_seconds: float = 5.0) -> None:
        """Bind the listener on a background loop; block until it accepts requests.

        Raises:
            RuntimeError: binding failed or took longer than ``timeout_seconds``.
        """
        if self.is_running:
            self._logger.warning(
                "start() ignored, already listening on port %d",
                self.port,
            )
            return

        self._startup_error = None
        self._started.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            daemon=True,
            name="asset-server",
        )
        self._thread.start()

        if not self._started.wait(timeout_seconds):
            raise RuntimeError(
                f"Listener on port {self._config.port} was not ready "
                f"within {timeout_seconds:.1f}s"
            )

        if self._startup_error is not None:
            raise RuntimeError(
                f"Could not serve on port {self._config.port}: {self._startup_error}"
            )

    def stop(self, timeout_seconds: float = 5.0) -> None:
        """Close the listener and wait for in-flight responses to finish."""
        if self._thread is None:
            return

        if self._loop and self._stop_async:
            self._loop.call_soon_threadsafe(self._stop_async.set)

        self._thread.join(timeout=timeout_seconds)
        if self._thread.is_alive():
            self._logger.error(
                "Listener thread still alive %.1fs after shutdown request",
                timeout_seconds,
            )

        self._thread = None
        self._loop = None
        self._stop_async = None
        self._bound_port = None

    def _run_loop(self) -> None:
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)
        self._stop_async = asyncio.Event()

        try:
            self._loop.run_until_complete(self._serve())
        except Exception as error:
            self._startup_error = error
            self._logger.error(
                "Static file listener stopped on error: %s",
                error,
                exc_info=True,
            )
            self._started.set()
        finally:
            if self._loop is not None:
                pending = asyncio.all_tasks(self._loop)
                for task in pending:
                    task.cancel()
                with contextlib.suppress(Exception):
                    self._loop.run_until_complete(
                        asyncio.gather(*pending, return_exceptions=True)
                    )
                self._loop.close()

    async def _serve(self) -> None:
        runner = web.AppRunner(self.build_app(), access_log=None)
        await runner.setup()
        try:
            site = web.TCPSite(runner, host=self._config.host, port=self._config.port)
            await site.start()
            self._bound_port = _first_bound_port(runner, self._config.port)
            self._logger.info("Server listening on port %d", self.port)
            self._logger.info(
                "Serving %s",
                ", ".join(str(base) for base in self._config.base_dirs),
            )
            self._started.set()
            await self._stop_async.wait()
        finally:
            await runner.cleanup()


def _first_bound_port(runner: web.AppRunner, fallback: int) -> int:
    for address in runner.addresses:
        if isinstance(address, tuple) and len(address) >= 2:
            return int(address[1])
    return fallback
