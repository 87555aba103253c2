"""
Dual-edition AFK client.

This module wires configuration, the connection supervisor and the operator
console together and provides the command line entry point.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import AsyncIterator, Dict, Optional

from rich.console import Console

from .config import AppConfig, load_config
from .editions import Edition
from .exceptions import ConfigError
from .protocol import TransportFactory
from .router import CommandRouter, stdin_lines
from .supervisor import ConnectionSupervisor
from ..utils.logging import configure_debug_logging, setup_logger, silence_external_loggers


logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class AFKClient:
    """
    Keeps the enabled editions connected and relays operator chat.
    """

    def __init__(self, config: AppConfig,
                 factories: Optional[Dict[Edition, TransportFactory]] = None,
                 console: Optional[Console] = None):
        self.config = config
        self.console = console or Console()
        self.supervisor = ConnectionSupervisor.from_config(config, factories)
        self.router = CommandRouter(self.supervisor, self.console)
        self._shutdown_task: Optional[asyncio.Task] = None

    async def run(self, lines: Optional[AsyncIterator[str]] = None) -> int:
        """
        Run until the operator quits, input ends, or a shutdown signal arrives.

        Args:
            lines: Operator input; standard input when omitted

        Returns:
            int: Process exit code
        """
        loop = asyncio.get_event_loop()
        installed = self._install_signal_handlers(loop)

        self.supervisor.start()
        input_task = asyncio.ensure_future(
            self.router.run(lines if lines is not None else stdin_lines())
        )
        input_task.add_done_callback(self._on_input_done)

        try:
            await self.router.quit_requested.wait()
        finally:
            if not input_task.done():
                input_task.cancel()
                try:
                    await input_task
                except asyncio.CancelledError:
                    pass
            await self.supervisor.stop_all()
            for sig in installed:
                loop.remove_signal_handler(sig)
        return 0

    def request_shutdown(self) -> None:
        """Begin the clean shutdown path used by signals."""
        if self.router.quit_requested.is_set() or self._shutdown_task is not None:
            return
        self._shutdown_task = asyncio.ensure_future(self.router.shutdown())

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> list:
        installed = []
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.request_shutdown)
            except (NotImplementedError, RuntimeError, ValueError):
                # Not available on this platform or thread; KeyboardInterrupt still works
                continue
            installed.append(sig)
        return installed

    def _on_input_done(self, task: "asyncio.Future") -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Console input unavailable ({error}); running until interrupted")


def main():
    """Main entry point for the AFK client."""
    parser = argparse.ArgumentParser(description="Dual-edition Minecraft AFK client")
    parser.add_argument("--env-file", help="Path to a .env file with client settings")
    parser.add_argument("--loopback", action="store_true",
                        help="Use the offline loopback transport for every edition")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = parser.parse_args()

    setup_logger("src.afkbot")
    silence_external_loggers()
    if args.verbose:
        configure_debug_logging()

    console = Console()

    try:
        config = load_config(args.env_file, loopback=args.loopback)
        client = AFKClient(config, console=console)
    except ConfigError as e:
        console.print(f"Configuration error: {e}", style="red", markup=False)
        return 1

    console.print("=" * 60)
    console.print("MINECRAFT AFK CLIENT")
    enabled = ", ".join(edition.tag for edition in client.supervisor.startup_order) or "none"
    console.print(f"Enabled editions: {enabled}", markup=False)
    console.print("=" * 60)

    try:
        return asyncio.run(client.run())
    except KeyboardInterrupt:
        console.print("\nDisconnected")
        return 0


if __name__ == "__main__":
    sys.exit(main())
