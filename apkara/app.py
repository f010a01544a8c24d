"""Main application - wires the queue, the command handler and the HTTP surface."""
import signal
import sys

import uvicorn

from apkara.logging_conf import logger
from apkara import settings
from apkara.api import create_app
from apkara.command import CommandHandler
from apkara.context_store import ContextStore
from apkara.control import ControlService
from apkara.dispatcher import Dispatcher
from apkara.processor_client import ProcessorClient
from apkara.queue.controller import QueueController
from apkara.sweeper import ContextSweeper
from apkara.transport import GatewayClient


class Application:
    """Owns every long-lived object of the bot."""

    def __init__(self):
        self.contexts = ContextStore()
        self.gateway = GatewayClient()
        self.processor = ProcessorClient()
        self.dispatcher = Dispatcher(self.processor, self.gateway, self.contexts)
        self.queue = QueueController(self.dispatcher)
        self.commands = CommandHandler(self.gateway, self.queue, self.contexts)
        self.control = ControlService(self.gateway, self.queue, self.contexts)
        self.sweeper = ContextSweeper(self.contexts)
        self.api = create_app(self.control, self.commands)
        self.running = False

    def start(self):
        """Start the application."""
        logger.info("=" * 50)
        logger.info("Ap Kara Dispatch Bot")
        logger.info("=" * 50)
        logger.info(f"Processor: {settings.PROCESSOR_URL}")
        logger.info(f"Watched group: {settings.WATCHED_GROUP}")
        logger.info(f"Queue pacing: {settings.QUEUE_PACING_SECONDS}s")
        logger.info(f"Screenshot recipient: {settings.SCREENSHOT_RECIPIENT}")
        logger.info("=" * 50)

        settings.validate_config()
        self.sweeper.start()
        self.running = True
        logger.info(f"Started - control server on port {settings.PORT}")

    def stop(self):
        """Stop the application."""
        if not self.running:
            return
        self.running = False
        self.sweeper.stop()
        cleared = self.queue.clear()
        if cleared:
            logger.warning(f"Dropped {cleared} queued requests on shutdown")
        logger.info("Stopped")

    def run(self):
        """Serve until interrupted."""
        self.start()
        try:
            uvicorn.run(self.api, host=settings.HOST, port=settings.PORT, log_config=None)
        finally:
            self.stop()


def main():
    """Entry point."""
    app = Application()

    def signal_handler(sig, frame):
        logger.info(f"Received signal {sig}")
        app.stop()
        sys.exit(0)

    signal.signal(signal.SIGTERM, signal_handler)

    try:
        app.run()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
