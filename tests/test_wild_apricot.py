import pytest
import requests

from app.services.wild_apricot import WildApricotClient
from app.utils.exceptions import FetchError


class FakeResponse:
    def __init__(self, status_code=200, payload=None, json_error=False):
        self.status_code = status_code
        self._payload = payload
        self._json_error = json_error

    def json(self):
        if self._json_error:
            raise ValueError("not json")
        return self._payload


class FakeSession:
    def __init__(self, token_response=None, contacts_response=None, raise_on=None):
        self.token_response = token_response or FakeResponse(200, {"access_token": "tok"})
        self.contacts_response = contacts_response or FakeResponse(200, {"Contacts": []})
        self.raise_on = raise_on
        self.requests = []

    def post(self, url, **kwargs):
        self.requests.append(("POST", url, kwargs))
        if self.raise_on == "post":
            raise requests.ConnectionError("refused")
        return self.token_response

    def get(self, url, **kwargs):
        self.requests.append(("GET", url, kwargs))
        if self.raise_on == "get":
            raise requests.Timeout("read timed out")
        return self.contacts_response


def _client(session):
    return WildApricotClient(
        "key-123",
        session=session,
        auth_url="https://auth.example/token",
        api_url="https://api.example/v2.2/",
        timeout_s=7,
    )


def test_get_contacts_returns_raw_contacts():
    contacts = [{"Id": 1, "FieldValues": []}]
    session = FakeSession(contacts_response=FakeResponse(200, {"Contacts": contacts}))

    assert _client(session).get_contacts(42) == contacts

    method, url, kwargs = session.requests[0]
    assert (method, url) == ("POST", "https://auth.example/token")
    assert kwargs["auth"] == ("APIKEY", "key-123")
    assert kwargs["timeout"] == 7

    method, url, kwargs = session.requests[1]
    assert (method, url) == ("GET", "https://api.example/v2.2/accounts/42/contacts")
    assert kwargs["headers"]["Authorization"] == "Bearer tok"
    assert kwargs["params"] == {"$async": "false"}
    assert kwargs["timeout"] == 7


@pytest.mark.parametrize("session", [
    FakeSession(raise_on="post"),
    FakeSession(raise_on="get"),
    FakeSession(token_response=FakeResponse(401, {})),
    FakeSession(token_response=FakeResponse(200, {})),
    FakeSession(contacts_response=FakeResponse(503, {})),
    FakeSession(contacts_response=FakeResponse(200, json_error=True)),
    FakeSession(contacts_response=FakeResponse(200, {"Contacts": "nope"})),
    FakeSession(contacts_response=FakeResponse(200, ["not", "a", "dict"])),
])
def test_failures_raise_fetch_error(session):
    with pytest.raises(FetchError):
        _client(session).get_contacts(42)


def test_missing_api_key_is_fetch_error():
    session = FakeSession()
    client = WildApricotClient("", session=session)
    with pytest.raises(FetchError):
        client.get_contacts(42)
    assert session.requests == []
