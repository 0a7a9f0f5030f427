"""MemberApiClientのテスト"""

from typing import Any, Optional

import pytest
import requests

from member_map.features.members.clients.member_api_client import MemberApiClient
from member_map.features.members.domain.models import MemberDraft
from member_map.shared.exceptions.errors import MemberNotFoundError, MemberStoreError
from member_map.shared.http.client import HTTPClient


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200, invalid_json: bool = False):
        self.payload = payload
        self.status_code = status_code
        self.invalid_json = invalid_json

    def json(self) -> Any:
        if self.invalid_json:
            raise ValueError("Expecting value")
        return self.payload


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


def make_client(session: FakeSession) -> MemberApiClient:
    return MemberApiClient(
        "http://api.test/", http_client=HTTPClient(max_retries=0, session=session)
    )


MEMBER = {"id": "m1", "name": "Jean Dupont", "latitude": 48.8566, "longitude": 2.3522}


def test_list_members() -> None:
    session = FakeSession(FakeResponse({"members": [MEMBER]}))

    assert make_client(session).list_members() == [MEMBER]
    assert session.requests[0]["method"] == "GET"
    assert session.requests[0]["url"] == "http://api.test/members"


def test_create_member_posts_draft() -> None:
    session = FakeSession(FakeResponse({"member": MEMBER}, status_code=201))
    draft = MemberDraft(name="Jean Dupont", latitude=48.8566, longitude=2.3522, ville="Paris")

    assert make_client(session).create_member(draft) == MEMBER

    sent = session.requests[0]
    assert sent["method"] == "POST"
    assert sent["json"]["name"] == "Jean Dupont"
    assert sent["json"]["ville"] == "Paris"


def test_update_member_sends_id_as_query() -> None:
    session = FakeSession(FakeResponse({"member": {**MEMBER, "name": "Renamed"}}))

    updated = make_client(session).update_member("m1", {"name": "Renamed"})

    assert updated["name"] == "Renamed"
    assert session.requests[0]["method"] == "PUT"
    assert session.requests[0]["params"] == {"id": "m1"}
    assert session.requests[0]["json"] == {"name": "Renamed"}


def test_update_rejects_read_only_fields() -> None:
    """id / created_at などは更新できない"""
    session = FakeSession(FakeResponse({}))

    with pytest.raises(MemberStoreError):
        make_client(session).update_member("m1", {"id": "other"})

    assert session.requests == []


def test_delete_member_returns_message() -> None:
    session = FakeSession(FakeResponse({"message": "Member deleted"}))

    assert make_client(session).delete_member("m1") == "Member deleted"
    assert session.requests[0]["params"] == {"id": "m1"}


def test_not_found_raises_member_not_found() -> None:
    session = FakeSession(FakeResponse({"error": "Member not found"}, status_code=404))

    with pytest.raises(MemberNotFoundError) as exc_info:
        make_client(session).update_member("zz", {"name": "x"})

    assert exc_info.value.status_code == 404
    assert "Member not found" in str(exc_info.value)


def test_server_error_uses_error_body() -> None:
    session = FakeSession(FakeResponse({"error": "Failed to fetch members"}, status_code=500))

    with pytest.raises(MemberStoreError) as exc_info:
        make_client(session).list_members()

    assert str(exc_info.value) == "Failed to load members: Failed to fetch members"
    assert exc_info.value.status_code == 500


def test_error_without_body_uses_status() -> None:
    session = FakeSession(FakeResponse(invalid_json=True, status_code=502))

    with pytest.raises(MemberStoreError, match="HTTP 502"):
        make_client(session).delete_member("m1")


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(error=requests.ConnectionError("offline")),
        FakeSession(FakeResponse(invalid_json=True)),
        FakeSession(FakeResponse(["not", "a", "dict"])),
        FakeSession(FakeResponse({"members": "nope"})),
        FakeSession(FakeResponse({"members": [MEMBER, "garbage"]})),
    ],
)
def test_transport_and_format_failures_raise_store_error(session: FakeSession) -> None:
    with pytest.raises(MemberStoreError):
        make_client(session).list_members()
