"""Zulip API client: base address, credentials and the request path."""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import urljoin, urlsplit

import requests

from zulip_client.endpoint import Endpoint
from zulip_client.errors import ZulipError, check_response, error_from_request_exception
from zulip_client.logging_conf import logger
from zulip_client.queue.builder import QueueBuilder

# Verbs whose parameters go in the query string; everything else sends a form body
QUERY_METHODS = {"GET", "HEAD"}


@dataclass(frozen=True)
class Credentials:
    """Username and API key (or password, during the key handshake)."""

    username: str
    password: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Credentials":
        """Build credentials from a fetch_api_key response."""
        return cls(username=data["email"], password=data.get("api_key"))

    def basic_auth(self) -> Tuple[str, str]:
        return self.username, self.password or ""

    def to_params(self) -> Dict[str, str]:
        params = {"username": self.username}
        if self.password is not None:
            params["password"] = self.password
        return params

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password={'***' if self.password else None})"


def normalize_base_uri(uri: str) -> str:
    """Replace any path on ``uri`` with the API root, keeping scheme, host and port."""
    try:
        parts = urlsplit(uri)
        parts.port  # raises ValueError on a malformed port
    except (TypeError, ValueError) as e:
        raise ZulipError.build(e) from e

    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise ZulipError.build(ValueError(f"invalid base URI: {uri!r}"))

    return urljoin(f"{parts.scheme}://{parts.netloc}", Endpoint.BASE_API)


class Client:
    """Sends requests to one Zulip server.

    The client is read-only once initialized and may be shared by any number
    of queues and threads.
    """

    def __init__(self, base_uri: str, http: Optional[requests.Session] = None, timeout: Optional[float] = None):
        self.base_uri = normalize_base_uri(base_uri)
        self._owns_http = http is None
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout
        self._credentials: Optional[Credentials] = None

    @classmethod
    def build(cls, uri: str) -> "ClientBuilder":
        return ClientBuilder(uri)

    @property
    def credentials(self) -> Optional[Credentials]:
        return self._credentials

    def _set_credentials(self, credentials: Credentials) -> None:
        if self._credentials is not None:
            raise RuntimeError("client credentials are already set")
        self._credentials = credentials

    def queue(self) -> QueueBuilder:
        """Start configuring a new event queue."""
        return QueueBuilder(self)

    def send(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        into: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        """
        Send one request and return its decoded body.

        Args:
            method: HTTP verb
            endpoint: Path relative to the API root
            params: Query parameters for GET, form fields otherwise
            into: Optional decoder applied to the JSON body

        Raises:
            ZulipError on any failure
        """
        method = method.upper()
        url = urljoin(self.base_uri, endpoint)

        kwargs: Dict[str, Any] = {"timeout": self.timeout, "headers": {"Accept": "application/json"}}
        if method in QUERY_METHODS:
            kwargs["params"] = params
        else:
            kwargs["data"] = params
        if self._credentials is not None:
            kwargs["auth"] = self._credentials.basic_auth()

        logger.debug(f"{method} {url}")
        try:
            response = self.http.request(method=method, url=url, **kwargs)
        except requests.RequestException as e:
            error = error_from_request_exception(e)
            logger.debug(f"{method} {endpoint} failed: {error}")
            raise error from e

        body = check_response(response)
        if into is None:
            return body
        try:
            return into(body)
        except (KeyError, TypeError, ValueError) as e:
            raise ZulipError.transport(e, status_code=response.status_code) from e

    def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_http:
            self.http.close()


class ClientBuilder:
    """Collects the base URI and credentials, then initializes a Client."""

    def __init__(self, uri: str):
        self.uri = uri
        self.user: Optional[str] = None
        self.password: Optional[str] = None
        self.api_key: Optional[str] = None
        self.http: Optional[requests.Session] = None
        self.timeout: Optional[float] = None

    def with_credentials(self, user: str, password: Optional[str] = None) -> "ClientBuilder":
        """Fetch an API key at init, with a password (production) or without (dev server)."""
        self.user = user
        self.password = password
        return self

    def with_key(self, user: str, key: str) -> "ClientBuilder":
        self.user = user
        self.api_key = key
        return self

    def with_http(self, http: requests.Session) -> "ClientBuilder":
        self.http = http
        return self

    def with_timeout(self, timeout: Optional[float]) -> "ClientBuilder":
        self.timeout = timeout
        return self

    def init(self) -> Client:
        """
        Create the client, fetching an API key first if needed.

        Raises:
            ZulipError: BUILD for an unusable URI, or any failure of the key handshake
        """
        client = Client(self.uri, http=self.http, timeout=self.timeout)

        if self.api_key is not None:
            client._set_credentials(Credentials(self.user, self.api_key))
        elif self.password is not None:
            credentials = client.send(
                "POST",
                Endpoint.FETCH_API_KEY,
                Credentials(self.user, self.password).to_params(),
                into=Credentials.from_dict,
            )
            client._set_credentials(credentials)
            logger.info(f"Fetched API key for {credentials.username}")
        elif self.user is not None:
            credentials = client.send(
                "POST",
                Endpoint.FETCH_DEV_API_KEY,
                Credentials(self.user).to_params(),
                into=Credentials.from_dict,
            )
            client._set_credentials(credentials)
            logger.info(f"Fetched development API key for {credentials.username}")

        return client
