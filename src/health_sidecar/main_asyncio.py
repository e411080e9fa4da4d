"""
main_asyncio.py — Application entry point for the health sidecar
------------------------------------------------------------------

Responsible for:
- loading configuration and configuring the logger
- wiring services (Dependency Injection)
- starting the API server inside the event loop
- waiting for the shutdown sequencer to decide the exit code
"""

import asyncio
import os
import sys
from pathlib import Path
from typing import Optional, Union

from health_sidecar.api.main import create_app
from health_sidecar.lifecycle.api_server_wrapper import APIServerWrapper
from health_sidecar.lifecycle.shutdown_sequencer import ShutdownSequencer
from health_sidecar.managers.config_manager import ConfigManager
from health_sidecar.models.enums import ExitCode
from health_sidecar.models.errors import ConfigError
from health_sidecar.services.metadata_service import MetadataCache, MetadataClient
from health_sidecar.services.service_container import ServiceContainer
from health_sidecar.utils.logger import get_logger, configure_logger, parse_level, LogCategory

log = get_logger().for_category(LogCategory.SYSTEM)


async def wait_for_exit(sequencer: ShutdownSequencer, serve_task: asyncio.Task) -> ExitCode:
    """
    Wait for the shutdown sequencer's verdict or an API server failure.

    The serve task also finishes during a normal drain; that only counts as
    a failure when no shutdown was triggered.
    """
    exit_waiter = asyncio.create_task(sequencer.wait_for_exit(), name="ShutdownExitWaiter")
    try:
        done, _ = await asyncio.wait(
            {exit_waiter, serve_task},
            return_when=asyncio.FIRST_COMPLETED
        )
        if exit_waiter in done:
            return exit_waiter.result()

        if sequencer.is_triggered:
            return await exit_waiter

        if serve_task.cancelled():
            log.error("❌ API server task was cancelled unexpectedly")
        elif serve_task.exception() is not None:
            log.error(f"❌ API server task failed: {serve_task.exception()}")
        else:
            log.error("❌ API server exited without a shutdown request")
        return ExitCode.FAILURE
    finally:
        if not exit_waiter.done():
            exit_waiter.cancel()


async def main(config_path: Optional[Union[str, Path]] = None) -> ExitCode:
    """Main async entry point (dependency injection and event loop startup)."""

    # ========================================================================
    # 1. CONFIGURATION
    # ========================================================================

    config = ConfigManager(config_path).load()
    configure_logger(parse_level(config.log_level))

    log.info("Starting instance health sidecar...", pid=os.getpid())

    # ========================================================================
    # 2. SERVICES
    # ========================================================================

    metadata = MetadataCache(
        MetadataClient(config.metadata.base_url, timeout=config.metadata.timeout),
        ttl=config.metadata.ttl,
    )
    services = ServiceContainer.build(config, metadata)

    # ========================================================================
    # 3. API SERVER
    # ========================================================================

    app = create_app(services)
    api_wrapper = APIServerWrapper(app, host=config.host, port=config.port)
    services.sequencer.attach_server(api_wrapper)

    # ========================================================================
    # 4. SIGNALS
    # ========================================================================

    loop = asyncio.get_running_loop()
    services.triggers.setup_signal_handlers(loop)

    try:
        serve_task = await api_wrapper.start()
        log.info(f"🏁 Health-check sidecar listening on port {config.port} (pid={os.getpid()})")

        exit_code = await wait_for_exit(services.sequencer, serve_task)
    finally:
        services.triggers.remove_signal_handlers(loop)
        services.sequencer.cancel()
        await api_wrapper.stop()
        await metadata.aclose()

    if services.sequencer.failure is not None:
        log.error(f"Shutdown failed: {services.sequencer.failure}")
    log.info(f"👋 Exiting with code {int(exit_code)}")
    return exit_code


def run() -> None:
    """Console entry point: run the sidecar and exit with its status."""
    try:
        exit_code = asyncio.run(main())
    except ConfigError as e:
        log.error(f"Invalid configuration: {e}")
        exit_code = ExitCode.FAILURE
    except KeyboardInterrupt:
        log.info("Keyboard interrupt received before startup completed")
        exit_code = ExitCode.FAILURE
    except Exception as e:
        log.error(f"Fatal error: {e}", exc_info=True)
        exit_code = ExitCode.FAILURE

    sys.exit(int(exit_code))


if __name__ == "__main__":
    run()
