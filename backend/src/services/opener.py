"""File-open requests: the view side that asks, and the server side that opens."""

from __future__ import annotations

import asyncio
import logging
import shlex
from typing import List, Optional, Set

import httpx

logger = logging.getLogger(__name__)


class OpenRequester:
    """
    Sends click-triggered open requests to the viewer server.

    Called from the frame loop, a request is scheduled as a task so a slow
    server never stalls layout steps. Requests use a short timeout and never
    raise; the outcome of opening the file is the server's concern.
    """

    REQUEST_TIMEOUT = 2.0

    def __init__(
        self,
        url: str = "http://127.0.0.1:3000",
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url.rstrip("/")
        self._transport = transport
        self._pending: Set[asyncio.Task] = set()

    def __call__(self, file_path: str) -> Optional[asyncio.Task]:
        """
        Request that ``file_path`` be opened.

        Inside a running event loop the request is scheduled and its task
        returned; otherwise it runs to completion and None is returned.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self.request(file_path))
            return None
        task = loop.create_task(self.request(file_path))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def request(self, file_path: str) -> bool:
        """Send the open request; returns True on a 2xx answer."""
        try:
            async with httpx.AsyncClient(
                timeout=self.REQUEST_TIMEOUT, transport=self._transport
            ) as client:
                response = await client.get(f"{self.url}/open", params={"file": file_path})
            if not response.is_success:
                logger.warning("Open request for %s answered %s", file_path, response.status_code)
            return response.is_success
        except httpx.HTTPError as exc:
            logger.warning("Open request for %s failed: %s", file_path, exc)
            return False


class FileOpener:
    """Runs the configured open command (e.g. ``nvr``) on a file path."""

    def __init__(self, command: str = "nvr") -> None:
        self.argv: List[str] = shlex.split(command)
        if not self.argv:
            raise ValueError("Open command must not be empty")

    async def open(self, file_path: str) -> bool:
        """
        Launch the command with ``file_path`` as its last argument.

        The path is passed as a single argv entry, never through a shell.
        Failures are logged and reported as False.
        """
        logger.info("Opening %s", file_path)
        try:
            process = await asyncio.create_subprocess_exec(
                *self.argv,
                file_path,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await process.communicate()
        except OSError as exc:
            logger.warning("Open command %s failed to start: %s", self.argv[0], exc)
            return False
        if stdout:
            logger.debug("Open command output: %s", stdout.decode(errors="replace").strip())
        if process.returncode != 0:
            logger.warning(
                "Open command exited with %s: %s",
                process.returncode,
                stderr.decode(errors="replace").strip(),
            )
            return False
        return True


__all__ = ["OpenRequester", "FileOpener"]
