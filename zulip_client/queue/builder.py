"""Builder for registering event queues."""
from zulip_client.endpoint import Endpoint
from zulip_client.logging_conf import logger
from zulip_client.queue.event_queue import Queue
from zulip_client.queue.models import RegisterQueueRequest, RegisterQueueResponse


class QueueBuilder:
    """
    Accumulates queue options, then registers the queue with one request.

    Flag setters overwrite earlier values. ``for_event`` and ``narrow`` keep
    the first occurrence of each value, in the order they were added.
    """

    def __init__(self, client):
        self.client = client
        self.request = RegisterQueueRequest()

    def _open(self) -> RegisterQueueRequest:
        if self.request is None:
            raise RuntimeError("queue builder was already registered")
        return self.request

    def apply_markdown(self, value: bool) -> "QueueBuilder":
        self._open().apply_markdown = value
        return self

    def client_gravatar(self, value: bool) -> "QueueBuilder":
        self._open().client_gravatar = value
        return self

    def slim_presence(self, value: bool) -> "QueueBuilder":
        self._open().slim_presence = value
        return self

    def all_public_streams(self, value: bool) -> "QueueBuilder":
        self._open().all_public_streams = value
        return self

    def include_subscribers(self, value: bool) -> "QueueBuilder":
        self._open().include_subscribers = value
        return self

    def for_event(self, event: str) -> "QueueBuilder":
        """Only receive events of this type (may be called repeatedly)."""
        request = self._open()
        if request.event_types is None:
            request.event_types = []
        if event not in request.event_types:
            request.event_types.append(event)
        return self

    def narrow(self, condition: str, value: str) -> "QueueBuilder":
        """Restrict message events, e.g. ``narrow("stream", "general")``."""
        request = self._open()
        if request.narrow is None:
            request.narrow = []
        pair = (condition, value)
        if pair not in request.narrow:
            request.narrow.append(pair)
        return self

    def register(self) -> Queue:
        """
        Register the queue on the server.

        Raises:
            ZulipError: the builder may be registered again after a failure
            RuntimeError: if this builder already produced a queue; the
                request is discarded once the queue is registered
        """
        response = self.client.send(
            "POST",
            Endpoint.REGISTER_EVENT_QUEUE,
            self._open().to_params(),
            into=RegisterQueueResponse.from_dict,
        )
        self.request = None

        logger.info(f"Registered event queue {response.queue_id} (last_event_id={response.last_event_id})")
        return Queue(self.client, response)
