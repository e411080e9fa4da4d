from __future__ import annotations

import asyncio
import contextlib
from typing import Optional

import uvicorn
from fastapi import FastAPI

from health_sidecar.models.errors import ListenerCloseError
from health_sidecar.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.API)


class APIServerWrapper:
    """
    Runs Uvicorn inside the application's event loop without Uvicorn's
    signal handlers interfering with the shutdown sequencer.

    Behaviour:
      - start() launches uvicorn.Server.serve() as a background task and
        returns once the sockets are bound.
      - close_listeners() stops accepting new connections.
      - wait_drained() lets uvicorn finish in-flight requests and returns
        when the serve task has completed. It has no timeout of its own.
      - stop() is the teardown path: forces uvicorn out and releases the port.
    """

    def __init__(
        self,
        app: FastAPI,
        host: str = "0.0.0.0",
        port: int = 80,
    ):
        self.app = app
        self.host = host
        self.port = port
        self._server: Optional[uvicorn.Server] = None
        self._serve_task: Optional[asyncio.Task] = None
        self._listeners_closed = False

    # ----------------------------------------------------------------------
    # INTERNAL
    # ----------------------------------------------------------------------
    def _create_server(self) -> uvicorn.Server:
        """Create a uvicorn.Server with its own signal handling disabled."""
        config = uvicorn.Config(
            app=self.app,
            host=self.host,
            port=self.port,
            loop="asyncio",
            log_level="warning",
            access_log=False,
            server_header=False,
        )

        server = uvicorn.Server(config)

        # Older uvicorn installs handlers here, newer ones in capture_signals()
        server.install_signal_handlers = lambda: None  # type: ignore
        server.capture_signals = contextlib.nullcontext  # type: ignore

        return server

    # ----------------------------------------------------------------------
    # PUBLIC API
    # ----------------------------------------------------------------------
    async def start(self, *, wait_started_timeout: float = 5.0) -> asyncio.Task:
        """
        Start uvicorn in the background and wait until it is listening.

        Returns:
            The serve task; it finishes when the server has shut down.

        Raises:
            RuntimeError: already started, or uvicorn exited during startup
        """
        if self._serve_task is not None and not self._serve_task.done():
            raise RuntimeError("API server already started")

        self._server = self._create_server()
        self._listeners_closed = False

        log.info(f"🌐 Launching API server on http://{self.host}:{self.port}")
        self._serve_task = asyncio.create_task(self._server.serve(), name="UvicornServe")

        deadline = asyncio.get_running_loop().time() + wait_started_timeout
        while asyncio.get_running_loop().time() < deadline:
            if self._serve_task.done():
                # bind failure: uvicorn logs and exits serve()
                self._serve_task.result()
                raise RuntimeError(f"API server exited during startup (port {self.port})")
            if getattr(self._server, "started", False):
                log.info("🌐 API server started")
                break
            await asyncio.sleep(0.05)
        else:
            log.warn(f"🌐 API server not reported started after {wait_started_timeout}s")

        return self._serve_task

    def close_listeners(self) -> None:
        """
        Stop accepting new connections; in-flight requests continue.

        Raises:
            ListenerCloseError: server is not running or a socket failed to close
        """
        if self._server is None or not self.is_running:
            raise ListenerCloseError("API server is not running")
        if self._listeners_closed:
            raise ListenerCloseError("listeners already closed")

        servers = getattr(self._server, "servers", None) or []
        try:
            for s in servers:
                s.close()
        except OSError as e:
            raise ListenerCloseError(f"failed to close listener: {e}") from e

        self._listeners_closed = True
        log.info(f"🌐 Listener closed on port {self.port}", sockets=len(servers))

    async def wait_drained(self) -> None:
        """
        Ask uvicorn to finish and wait for in-flight requests.

        Uvicorn's shutdown closes idle keep-alive connections, lets active
        requests complete, then runs the lifespan shutdown.
        """
        if self._server is None or self._serve_task is None:
            return

        self._server.should_exit = True
        # a cancelled waiter must not cancel uvicorn itself; stop() owns that
        await asyncio.shield(self._serve_task)
        log.info("🌐 API server drained")

    async def stop(self, *, shutdown_timeout: float = 2.0) -> None:
        """
        Force the server down and release the port (teardown only).

        Steps:
          1. set should_exit + force_exit so uvicorn skips waiting on connections
          2. close sockets
          3. cancel the serve task if it is still running
        """
        if self._server is None:
            log.debug("API server stop() called but server was not running")
            return

        self._server.should_exit = True
        self._server.force_exit = True

        for s in getattr(self._server, "servers", None) or []:
            s.close()

        if self._serve_task is not None and not self._serve_task.done():
            try:
                await asyncio.wait_for(asyncio.shield(self._serve_task), timeout=shutdown_timeout)
            except asyncio.TimeoutError:
                log.debug("Uvicorn serve task did not stop in time, cancelling")
                self._serve_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._serve_task

        self._server = None
        self._serve_task = None
        log.info("🌐 API server stopped and port released")

    # ----------------------------------------------------------------------
    # PROPERTIES
    # ----------------------------------------------------------------------
    @property
    def is_running(self) -> bool:
        """Return whether a uvicorn serve task is active."""
        return self._serve_task is not None and not self._serve_task.done()

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._serve_task

    @property
    def server(self) -> Optional[uvicorn.Server]:
        return self._server
