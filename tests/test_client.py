"""Tests for the client: base URI, credentials and request encoding."""

import base64

import pytest

from conftest import API_KEY, PASSWORD, SERVER, USERNAME
from zulip_client.client import Client, Credentials, normalize_base_uri
from zulip_client.errors import ZulipError


def auth_response():
    return {"result": "success", "msg": "", "email": USERNAME, "api_key": API_KEY}


def basic_auth(username, password):
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return f"Basic {token}"


class TestBaseUri:
    @pytest.mark.parametrize(
        "uri",
        [
            "https://hello.zulipchat.com",
            "https://hello.zulipchat.com/",
            "https://hello.zulipchat.com/diff/path",
            "https://hello.zulipchat.com/diff/path?x=1#frag",
        ],
    )
    def test_path_is_replaced(self, uri):
        assert normalize_base_uri(uri) == "https://hello.zulipchat.com/api/v1/"

    def test_port_is_kept(self):
        assert normalize_base_uri("http://localhost:9991/some/path") == "http://localhost:9991/api/v1/"

    @pytest.mark.parametrize("uri", ["invalid_uri", "", "ftp://host/", "https://", "http://host:notaport/"])
    def test_invalid(self, uri):
        with pytest.raises(ZulipError) as exc_info:
            normalize_base_uri(uri)
        assert exc_info.value.is_build()

    def test_client_base_uri(self):
        client = Client.build("https://hello.zulipchat.com/diff/path").init()
        assert client.base_uri == "https://hello.zulipchat.com/api/v1/"


class TestCredentials:
    def test_prod_auth(self, adapter, http):
        adapter.add("POST", "/api/v1/fetch_api_key", json_body=auth_response())
        client = Client.build(SERVER).with_credentials(USERNAME, PASSWORD).with_http(http).init()

        # Username and password sent as a form, without basic auth
        request = adapter.requests[-1]
        assert request.body == f"username={USERNAME}&password={PASSWORD}"
        assert "Authorization" not in request.headers

        assert client.credentials == Credentials(USERNAME, API_KEY)

    def test_dev_auth(self, adapter, http):
        adapter.add("POST", "/api/v1/dev_fetch_api_key", json_body=auth_response())
        client = Client.build(SERVER).with_credentials(USERNAME).with_http(http).init()

        assert adapter.requests[-1].body == f"username={USERNAME}"
        assert client.credentials.username == USERNAME
        assert client.credentials.password == API_KEY

    def test_with_key_skips_handshake(self, adapter, http):
        client = Client.build(SERVER).with_key(USERNAME, API_KEY).with_http(http).init()
        assert adapter.requests == []
        assert client.credentials == Credentials(USERNAME, API_KEY)

    def test_unauthenticated(self, http):
        client = Client.build("https://hello.zulipchat.com").with_http(http).init()
        assert client.credentials is None

    def test_handshake_failure_propagates(self, adapter, http):
        adapter.add(
            "POST", "/api/v1/fetch_api_key", status=401,
            json_body={"message": "Your username or password is incorrect", "code": "AUTHENTICATION_FAILED"},
        )
        with pytest.raises(ZulipError) as exc_info:
            Client.build(SERVER).with_credentials(USERNAME, PASSWORD).with_http(http).init()
        assert exc_info.value.application.is_auth_failed()

    def test_handshake_response_without_email(self, adapter, http):
        adapter.add("POST", "/api/v1/fetch_api_key", json_body={"result": "success", "api_key": API_KEY})
        with pytest.raises(ZulipError) as exc_info:
            Client.build(SERVER).with_credentials(USERNAME, PASSWORD).with_http(http).init()
        assert exc_info.value.is_transport()

    def test_credentials_set_once(self, client):
        with pytest.raises(RuntimeError):
            client._set_credentials(Credentials("other", "key"))

    def test_repr_hides_password(self):
        assert API_KEY not in repr(Credentials(USERNAME, API_KEY))


class TestSend:
    def test_get_uses_query_string(self, adapter, client):
        adapter.add("GET", "/api/v1/events", json_body={"events": []})
        client.send("GET", "events", {"queue_id": "abc", "last_event_id": -1})

        request = adapter.requests[-1]
        assert request.body is None
        assert adapter.last_query() == {"queue_id": "abc", "last_event_id": "-1"}

    @pytest.mark.parametrize("method", ["POST", "DELETE", "PATCH", "PUT"])
    def test_other_verbs_use_form_body(self, adapter, client, method):
        adapter.add(method, "/api/v1/events", json_body={"result": "success"})
        client.send(method.lower(), "events", {"queue_id": "abc"})

        request = adapter.requests[-1]
        assert request.method == method
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert adapter.last_form() == {"queue_id": "abc"}
        assert "?" not in request.url

    def test_basic_auth_attached(self, adapter, client):
        adapter.add("GET", "/api/v1/events", json_body={"events": []})
        client.send("GET", "events")
        assert adapter.requests[-1].headers["Authorization"] == basic_auth(USERNAME, API_KEY)

    def test_accept_header_on_injected_session(self, adapter, http):
        http.headers["Accept"] = "text/html"
        adapter.add("GET", "/api/v1/events", json_body={"events": []})
        Client(SERVER, http=http).send("GET", "events")
        assert adapter.requests[-1].headers["Accept"] == "application/json"
        assert http.headers["Accept"] == "text/html"

    def test_empty_secret_auth(self, adapter, http):
        client = Client(SERVER, http=http)
        client._set_credentials(Credentials(USERNAME))
        adapter.add("GET", "/api/v1/events", json_body={"events": []})
        client.send("GET", "events")
        assert adapter.requests[-1].headers["Authorization"] == basic_auth(USERNAME, "")

    def test_endpoint_joined_to_api_root(self, adapter, http):
        client = Client(SERVER + "/some/path", http=http)
        adapter.add("POST", "/api/v1/register", json_body={"queue_id": "q", "last_event_id": -1})
        client.send("POST", "register")
        assert adapter.requests[-1].url == SERVER + "/api/v1/register"

    def test_into_decodes_body(self, adapter, client):
        adapter.add("POST", "/api/v1/fetch_api_key", json_body=auth_response())
        credentials = client.send("POST", "fetch_api_key", into=Credentials.from_dict)
        assert credentials == Credentials(USERNAME, API_KEY)

    def test_timeout_passed_to_transport(self, adapter, http, monkeypatch):
        seen = {}
        real_send = adapter.send

        def send(request, **kwargs):
            seen.update(kwargs)
            return real_send(request, **kwargs)

        monkeypatch.setattr(adapter, "send", send)
        adapter.add("GET", "/api/v1/events", json_body={"events": []})
        Client.build(SERVER).with_http(http).with_timeout(5).init().send("GET", "events")
        assert seen["timeout"] == 5
