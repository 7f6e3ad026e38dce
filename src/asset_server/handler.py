"""aiohttp request handler that streams resolved static files."""

from __future__ import annotations

import asyncio
import functools
import logging
import os
from pathlib import Path
from typing import BinaryIO, Optional

from aiohttp import hdrs, web

from .config import StaticServerConfig
from .static_files import BadRequestPathError, guess_content_type, resolve_static_file

_PLAIN_TEXT = "text/plain"


class StaticFileHandler:
    """Maps each request to exactly one response from the configured base dirs.

    Filesystem calls (probing, opening, reading) run in the loop's default
    executor so a slow disk never stalls other connections.
    """

    def __init__(
        self,
        config: StaticServerConfig,
        logger: Optional[logging.Logger] = None,
    ):
        self._config = config
        self._logger = logger or logging.getLogger("asset_server")

    async def handle(self, request: web.Request) -> web.StreamResponse:
        request_path = request.raw_path
        if not request_path:
            return _plain_response(400, "Bad Request")

        loop = asyncio.get_running_loop()
        try:
            file_path = await loop.run_in_executor(
                None,
                functools.partial(
                    resolve_static_file,
                    request_path,
                    self._config.base_dirs,
                    confine=self._config.confine_to_base_dirs,
                ),
            )
        except BadRequestPathError:
            return _plain_response(400, "Bad Request")
        except OSError as error:
            self._logger.error("Failed to resolve %r: %s", request_path, error)
            return _plain_response(500, "Internal Server Error")

        if file_path is None:
            return _plain_response(404, "Not Found")

        return await self._stream_file(request, file_path)

    async def _stream_file(
        self,
        request: web.Request,
        file_path: Path,
    ) -> web.StreamResponse:
        loop = asyncio.get_running_loop()
        try:
            fh, size = await loop.run_in_executor(None, _open_sized, file_path)
        except OSError as error:
            self._logger.error("Failed to open %s: %s", file_path, error)
            return _plain_response(500, "Internal Server Error")

        with fh:
            response = web.StreamResponse(
                status=200,
                headers={hdrs.CONTENT_TYPE: guess_content_type(file_path)},
            )
            response.content_length = size
            await response.prepare(request)
            if request.method == hdrs.METH_HEAD:
                return response

            try:
                while True:
                    chunk = await loop.run_in_executor(
                        None, fh.read, self._config.chunk_size
                    )
                    if not chunk:
                        break
                    await response.write(chunk)
            except ConnectionResetError:
                self._logger.debug("Client disconnected while streaming %s", file_path)
                return response
            except OSError as error:
                # Headers are already on the wire; the status cannot change.
                self._logger.error(
                    "Read of %s failed after headers were sent: %s",
                    file_path,
                    error,
                )
                if request.transport is not None:
                    request.transport.close()
                return response

        await response.write_eof()
        return response


def _open_sized(file_path: Path) -> tuple[BinaryIO, int]:
    fh = open(file_path, "rb")
    try:
        size = os.fstat(fh.fileno()).st_size
    except OSError:
        fh.close()
        raise
    return fh, size


def _plain_response(status: int, text: str) -> web.Response:
    return web.Response(status=status, text=text, content_type=_PLAIN_TEXT, charset="utf-8")
