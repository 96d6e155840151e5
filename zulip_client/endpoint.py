"""Endpoints used by the client, relative to the API root."""


class Endpoint:
    BASE_API = "/api/v1/"

    # Authorization
    FETCH_API_KEY = "fetch_api_key"
    FETCH_DEV_API_KEY = "dev_fetch_api_key"

    # Real-time events
    REGISTER_EVENT_QUEUE = "register"
    EVENTS_QUEUE = "events"
