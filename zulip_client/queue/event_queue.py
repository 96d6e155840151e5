"""A registered server-side event queue."""
from typing import List

from zulip_client.endpoint import Endpoint
from zulip_client.logging_conf import logger
from zulip_client.queue.models import Event, EventsResponse, RegisterQueueResponse


class Queue:
    """
    Polls one registered event queue and tracks its cursor.

    Calls must be made from one thread at a time. After ``unregister()`` the
    queue must not be used again; this is not checked.
    """

    def __init__(self, client, response: RegisterQueueResponse):
        self.client = client
        self._queue_id = response.queue_id
        self._last_event_id = response.last_event_id

    @property
    def id(self) -> str:
        return self._queue_id

    @property
    def last_event_id(self) -> int:
        """Id of the last event received, or the id the queue was registered at."""
        return self._last_event_id

    def _fetch_events(self) -> List[Event]:
        params = {"queue_id": self._queue_id, "last_event_id": self._last_event_id}
        return self.client.send("GET", Endpoint.EVENTS_QUEUE, params, into=EventsResponse.from_dict).events

    def poll(self) -> List[Event]:
        """
        Wait for the next batch of events.

        Batches that end in a heartbeat are consumed and polled again, so the
        result is either empty or ends in a real event.

        Raises:
            ZulipError: the cursor keeps the last value the server acknowledged
        """
        while True:
            events = self._fetch_events()
            if not events:
                return events

            # Batches arrive in ascending id order; the last event is the cursor
            self._last_event_id = events[-1].id
            if not events[-1].is_heartbeat:
                logger.debug(f"Queue {self._queue_id}: {len(events)} events, last_event_id={self._last_event_id}")
                return events

            logger.debug(f"Queue {self._queue_id}: heartbeat {self._last_event_id}")

    def unregister(self) -> None:
        """Delete the queue on the server."""
        self.client.send("DELETE", Endpoint.EVENTS_QUEUE, {"queue_id": self._queue_id})
        logger.info(f"Unregistered event queue {self._queue_id}")

    def __repr__(self) -> str:
        return f"Queue(id={self._queue_id!r}, last_event_id={self._last_event_id})"
