"""
Drainable server protocol.

The shutdown sequencer does not know about uvicorn; it only needs a server
that can stop accepting connections and report when in-flight requests have
finished. APIServerWrapper implements this for the real listener, tests use
in-memory fakes.
"""

from typing import Protocol


class IDrainableServer(Protocol):
    """
    Protocol for the listening server owned by the process.

    Example:
        class FakeServer:
            def close_listeners(self) -> None:
                self.closed = True

            async def wait_drained(self) -> None:
                await self.in_flight_done.wait()
    """

    def close_listeners(self) -> None:
        """
        Stop accepting new connections. Called exactly once.

        Raises:
            ListenerCloseError: the listener could not be closed
        """
        ...

    async def wait_drained(self) -> None:
        """
        Return once every in-flight connection has finished.

        No timeout of its own; the sequencer's force-exit timer bounds it.
        """
        ...
