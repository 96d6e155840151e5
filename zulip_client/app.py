"""Command line entry point - registers a queue and logs incoming events."""
import signal
import sys
import threading

from zulip_client import settings
from zulip_client.client import Client
from zulip_client.errors import ZulipError
from zulip_client.logging_conf import logger, setup_logging
from zulip_client.poller import Poller
from zulip_client.queue.models import Event

# Zulip answers a held poll with a heartbeat within about a minute
STOP_TIMEOUT = 90


def build_client() -> Client:
    """Create a client from the environment configuration."""
    builder = Client.build(settings.ZULIP_URI).with_timeout(settings.REQUEST_TIMEOUT)
    if settings.ZULIP_API_KEY:
        builder.with_key(settings.ZULIP_USERNAME, settings.ZULIP_API_KEY)
    elif settings.ZULIP_USERNAME:
        builder.with_credentials(settings.ZULIP_USERNAME, settings.ZULIP_PASSWORD)
    return builder.init()


def log_event(event: Event):
    op = f" ({event.op.value})" if event.op else ""
    logger.info(f"Event {event.id}: {event.type}{op}")


class Application:
    """Registers one event queue and logs its events until stopped."""

    def __init__(self):
        self.client = None
        self.queue = None
        self.poller = None
        self.running = False
        self.stop_requested = threading.Event()

    def start(self):
        """Start the application."""
        logger.info("=" * 50)
        logger.info("Zulip event listener")
        logger.info("=" * 50)
        logger.info(f"Server: {settings.ZULIP_URI}")
        logger.info(f"Event types: {', '.join(settings.ZULIP_EVENT_TYPES) or 'all'}")
        logger.info("=" * 50)

        settings.validate_config()
        self.running = True
        self.client = build_client()

        builder = self.client.queue()
        for event_type in settings.ZULIP_EVENT_TYPES:
            builder.for_event(event_type)
        self.queue = builder.register()

        self.poller = Poller(self.queue, log_event)
        self.poller.start()

    def stop(self):
        """Stop polling, then delete the queue and close the client once no poll is in flight."""
        if not self.running:
            return
        self.running = False

        if self.poller and not self.poller.stop(STOP_TIMEOUT):
            logger.warning(f"Leaving queue {self.queue.id} to expire on the server; a poll is still in flight")
            return
        if self.queue:
            try:
                self.queue.unregister()
            except ZulipError as e:
                logger.warning(f"Failed to unregister queue {self.queue.id}: {e}")
        if self.client:
            self.client.close()
        logger.info("Stopped")

    def run(self):
        """Main loop."""
        self.start()

        while not self.stop_requested.is_set() and self.poller.running:
            self.stop_requested.wait(1)

        error = self.poller.error
        self.stop()
        if error:
            raise error


def main():
    """Entry point."""
    setup_logging()
    app = Application()

    def signal_handler(sig, frame):
        logger.info(f"Received signal {sig}")
        app.stop_requested.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        app.run()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)
    except ZulipError as e:
        logger.error(f"Zulip error: {e}")
        app.stop()
        sys.exit(1)


if __name__ == "__main__":
    main()
