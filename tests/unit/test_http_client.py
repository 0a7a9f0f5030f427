"""HTTPClientのテスト"""

from typing import Any, Optional

import pytest
import requests

from member_map.shared.exceptions.errors import HTTPError
from member_map.shared.http.client import DEFAULT_USER_AGENT, HTTPClient


class FakeResponse:
    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)  # type: ignore[arg-type]


class FakeSession(requests.Session):
    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[Exception] = None):
        super().__init__()
        self.response = response
        self.error = error
        self.requests: list[dict[str, Any]] = []

    def request(self, method, url, **kwargs):  # type: ignore[override]
        self.requests.append({"method": method, "url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response


def test_default_user_agent_and_timeout() -> None:
    session = FakeSession(FakeResponse())
    client = HTTPClient(timeout=5, session=session)

    client.get("http://example.test/a", params={"q": "x"})

    assert session.headers["User-Agent"] == DEFAULT_USER_AGENT
    assert session.requests[0]["method"] == "GET"
    assert session.requests[0]["params"] == {"q": "x"}
    assert session.requests[0]["timeout"] == 5


def test_error_status_raises_with_status_code() -> None:
    client = HTTPClient(session=FakeSession(FakeResponse(503)))

    with pytest.raises(HTTPError) as exc_info:
        client.request("GET", "http://example.test/a")

    assert exc_info.value.status_code == 503


def test_error_status_returned_when_not_raising() -> None:
    client = HTTPClient(session=FakeSession(FakeResponse(404)))

    response = client.request("DELETE", "http://example.test/a", raise_for_status=False)

    assert response.status_code == 404


def test_transport_error_has_no_status_code() -> None:
    client = HTTPClient(session=FakeSession(error=requests.ConnectionError("offline")))

    with pytest.raises(HTTPError) as exc_info:
        client.request("POST", "http://example.test/a", json={"a": 1})

    assert exc_info.value.status_code is None
