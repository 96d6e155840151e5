"""Background thread that drains an event queue into a handler."""
import threading
from typing import Callable, Optional

from zulip_client.errors import ZulipError
from zulip_client.logging_conf import logger
from zulip_client.queue.event_queue import Queue
from zulip_client.queue.models import Event


class Poller:
    """Polls a queue in a background thread and hands every event to ``handler``.

    A failed poll stops the thread; the error is kept in ``error`` and the
    caller decides whether to register a new queue. ``running`` is False
    once the thread has exited, whatever ended it.
    """

    def __init__(self, queue: Queue, handler: Callable[[Event], None]):
        self.queue = queue
        self.handler = handler
        self.running = False
        self.thread: Optional[threading.Thread] = None
        self.error: Optional[Exception] = None

    def start(self):
        """Start the poller in a background thread."""
        if self.running or (self.thread is not None and self.thread.is_alive()):
            logger.warning("Poller is already running")
            return

        self.running = True
        self.error = None
        self.thread = threading.Thread(target=self._run, name=f"poller-{self.queue.id}", daemon=True)
        self.thread.start()
        logger.info(f"Poller started for queue {self.queue.id}")

    def stop(self, timeout: float = 10) -> bool:
        """
        Ask the poller to stop and wait up to ``timeout`` seconds for the thread.

        A poll already waiting on the server is not interrupted; the thread
        exits once it returns.

        Returns:
            True if the thread has exited, False if a poll is still in flight
        """
        self.running = False
        self.join(timeout)

        if self.thread is not None and self.thread.is_alive():
            logger.warning(f"Poller for queue {self.queue.id} still waiting on the server after {timeout}s")
            return False
        logger.info("Poller stopped")
        return True

    def join(self, timeout: Optional[float] = None):
        if self.thread and self.thread is not threading.current_thread():
            self.thread.join(timeout=timeout)

    def _run(self):
        """Main poller loop."""
        logger.info("Poller thread started")

        try:
            while self.running:
                try:
                    events = self.queue.poll()
                except ZulipError as e:
                    logger.error(f"Polling queue {self.queue.id} failed: {e}")
                    self.error = e
                    break
                except Exception as e:
                    logger.exception(f"Unexpected error polling queue {self.queue.id}: {e}")
                    self.error = e
                    break

                for event in events:
                    if not self.running:
                        break
                    try:
                        self.handler(event)
                    except Exception as e:
                        logger.error(f"Handler failed for event {event.id}: {e}", exc_info=True)
        finally:
            self.running = False
            logger.info("Poller thread stopped")
