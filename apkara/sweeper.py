"""Background expiry of stale reply contexts."""
import threading
import time

from apkara.logging_conf import logger
from apkara import settings
from apkara.context_store import ContextStore


class ContextSweeper:
    """Runs ContextStore.sweep() on a fixed interval."""

    def __init__(self, store: ContextStore, interval: int = None):
        self.store = store
        self.running = False
        self.thread = None
        self.interval = interval if interval is not None else settings.CONTEXT_SWEEP_INTERVAL

    def start(self):
        """Start the sweeper in a background thread."""
        if self.running:
            logger.warning("Context sweeper is already running")
            return

        self.running = True
        self.thread = threading.Thread(target=self._run, name="apkara-sweeper", daemon=True)
        self.thread.start()
        logger.info(f"Context sweeper started (interval: {self.interval}s)")

    def stop(self):
        """Stop the sweeper."""
        if not self.running:
            return

        self.running = False
        if self.thread:
            self.thread.join(timeout=10)
        logger.info("Context sweeper stopped")

    def _run(self):
        """Main sweeper loop."""
        while self.running:
            # Sleep for the interval, waking every second to notice stop()
            for _ in range(self.interval):
                if not self.running:
                    break
                time.sleep(1)

            if not self.running:
                break

            try:
                self.store.sweep()
            except Exception as e:
                logger.error(f"Context sweep error: {e}", exc_info=True)
