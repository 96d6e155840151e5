"""Pytest fixtures, a fake HTTP adapter and Hypothesis profiles."""

import json
from collections import defaultdict, deque
from urllib.parse import parse_qs, urlsplit

import pytest
import requests
from hypothesis import settings
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from zulip_client.client import Client

settings.register_profile("ci", max_examples=100)
settings.register_profile("dev", max_examples=20)
settings.load_profile("dev")

SERVER = "https://chat.example.com"

USERNAME = "api_user"
PASSWORD = "arandompassword"
API_KEY = "arandomapikey"


class MockAdapter(BaseAdapter):
    """Serves canned responses per (method, path) and records every request.

    Responses registered for a route are returned in order; the last one is
    repeated once the others are used up.
    """

    def __init__(self):
        super().__init__()
        self.routes = defaultdict(deque)
        self.requests = []

    def add(self, method, path, status=200, json_body=None, body=None, exc=None, reason="", headers=None):
        self.routes[(method.upper(), path)].append((status, json_body, body, exc, reason, headers or {}))

    def send(self, request, **kwargs):
        self.requests.append(request)
        path = urlsplit(request.url).path
        queue = self.routes.get((request.method, path))
        if not queue:
            raise AssertionError(f"unexpected request {request.method} {request.url}")

        entry = queue.popleft() if len(queue) > 1 else queue[0]
        status, json_body, body, exc, reason, headers = entry
        if exc is not None:
            raise exc

        response = requests.Response()
        response.status_code = status
        response.reason = reason
        response.url = request.url
        response.request = request
        response.encoding = "utf-8"
        response.headers = CaseInsensitiveDict(headers)
        if json_body is not None:
            response._content = json.dumps(json_body).encode()
            response.headers.setdefault("Content-Type", "application/json")
        else:
            response._content = (body or "").encode()
        return response

    def close(self):
        pass

    def requests_to(self, method, path):
        return [r for r in self.requests if r.method == method and urlsplit(r.url).path == path]

    def last_query(self):
        return {k: v[0] for k, v in parse_qs(urlsplit(self.requests[-1].url).query).items()}

    def last_form(self):
        body = self.requests[-1].body or ""
        if isinstance(body, bytes):
            body = body.decode()
        return {k: v[0] for k, v in parse_qs(body).items()}


@pytest.fixture
def adapter():
    return MockAdapter()


@pytest.fixture
def http(adapter):
    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


@pytest.fixture
def client(http):
    return Client.build(SERVER).with_key(USERNAME, API_KEY).with_http(http).init()


def error_body(message, code=None, **extra):
    body = {"result": "error", "msg": message, "message": message}
    if code is not None:
        body["code"] = code
    body.update(extra)
    return body
