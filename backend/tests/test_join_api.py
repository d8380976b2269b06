"""
Tests for the join workflow endpoints: join, leave, waitlist,
approve/reject, and the request listings.
"""

import pytest
from httpx import AsyncClient

from tests.conftest import headers_for


@pytest.mark.asyncio
async def test_join_open_event(client: AsyncClient, test_event, member, member_headers, notifier):
    """Open events admit immediately."""
    response = await client.post(f"/api/v1/events/{test_event.id}/join", headers=member_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["requires_approval"] is False
    assert data["message"] == "Successfully joined event!"
    assert data["event"]["participants"] == [member.id]
    assert data["event"]["capacity_current"] == 1
    assert notifier.names() == ["participant_joined"]


@pytest.mark.asyncio
async def test_join_requires_auth(client: AsyncClient, test_event):
    response = await client.post(f"/api/v1/events/{test_event.id}/join")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_join_with_invalid_token(client: AsyncClient, test_event):
    response = await client.post(
        f"/api/v1/events/{test_event.id}/join",
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_join_unknown_event(client: AsyncClient, member_headers):
    response = await client.post("/api/v1/events/99999/join", headers=member_headers)

    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_join_twice(client: AsyncClient, test_event, member_headers):
    """Second join by the same member returns 409 ALREADY_JOINED."""
    await client.post(f"/api/v1/events/{test_event.id}/join", headers=member_headers)
    response = await client.post(f"/api/v1/events/{test_event.id}/join", headers=member_headers)

    assert response.status_code == 409
    assert response.json()["error"] == "ALREADY_JOINED"


@pytest.mark.asyncio
async def test_join_full_event(client: AsyncClient, make_event, member_headers):
    event = await make_event(capacity_max=1, participants=[501])

    response = await client.post(f"/api/v1/events/{event.id}/join", headers=member_headers)

    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "CAPACITY_EXCEEDED"
    assert body["capacity_max"] == 1


@pytest.mark.asyncio
async def test_join_paid_event_without_code(client: AsyncClient, make_event, member_headers):
    """Paid events answer 402 with the price so the client can collect payment."""
    event = await make_event(
        requires_approval=True,
        pricing_type="paid",
        pricing_amount=12.5,
        pricing_currency="GBP",
    )

    response = await client.post(f"/api/v1/events/{event.id}/join", headers=member_headers)

    assert response.status_code == 402
    assert response.json() == {
        "error": "PAYMENT_REQUIRED",
        "detail": "Transaction code is required for paid events",
        "amount": 12.5,
        "currency": "GBP",
    }


@pytest.mark.asyncio
async def test_join_paid_event_with_code(client: AsyncClient, make_event, member, member_headers):
    event = await make_event(
        requires_approval=True,
        pricing_type="paid",
        pricing_amount=12.5,
        pricing_currency="GBP",
    )

    response = await client.post(
        f"/api/v1/events/{event.id}/join",
        json={"transaction_code": "PAY-0091"},
        headers=member_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["requires_approval"] is True
    assert data["message"] == "Join request submitted! Awaiting organizer approval."
    [request] = data["event"]["join_requests"]
    assert request["user_id"] == member.id
    assert request["transaction_code"] == "PAY-0091"
    assert request["status"] == "pending"


@pytest.mark.asyncio
async def test_duplicate_request(client: AsyncClient, approval_event, member_headers):
    await client.post(f"/api/v1/events/{approval_event.id}/join", headers=member_headers)
    response = await client.post(f"/api/v1/events/{approval_event.id}/join", headers=member_headers)

    assert response.status_code == 409
    assert response.json()["error"] == "DUPLICATE_REQUEST"


@pytest.mark.asyncio
async def test_approve_flow(client: AsyncClient, approval_event, member, member_headers, auth_headers, notifier):
    """Organizer approves a pending request and the member is admitted."""
    joined = await client.post(f"/api/v1/events/{approval_event.id}/join", headers=member_headers)
    request_id = joined.json()["event"]["join_requests"][0]["id"]

    response = await client.post(
        f"/api/v1/events/{approval_event.id}/approve-request/{request_id}",
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Join request approved"
    assert data["event"]["participants"] == [member.id]
    assert data["event"]["join_requests"][0]["status"] == "approved"
    assert data["event"]["join_requests"][0]["processed_at"] is not None
    assert notifier.names() == ["join_request_created", "join_request_approved"]


@pytest.mark.asyncio
async def test_approve_by_member_is_forbidden(client: AsyncClient, approval_event, member_headers):
    joined = await client.post(f"/api/v1/events/{approval_event.id}/join", headers=member_headers)
    request_id = joined.json()["event"]["join_requests"][0]["id"]

    response = await client.post(
        f"/api/v1/events/{approval_event.id}/approve-request/{request_id}",
        headers=member_headers,
    )

    assert response.status_code == 403
    assert response.json()["error"] == "FORBIDDEN"


@pytest.mark.asyncio
async def test_reject_then_approve(client: AsyncClient, approval_event, member_headers, auth_headers):
    """A processed request cannot be decided again."""
    joined = await client.post(f"/api/v1/events/{approval_event.id}/join", headers=member_headers)
    request_id = joined.json()["event"]["join_requests"][0]["id"]

    rejected = await client.post(
        f"/api/v1/events/{approval_event.id}/reject-request/{request_id}",
        headers=auth_headers,
    )
    assert rejected.status_code == 200
    assert rejected.json()["message"] == "Join request rejected"
    assert rejected.json()["event"]["participants"] == []

    response = await client.post(
        f"/api/v1/events/{approval_event.id}/approve-request/{request_id}",
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "ALREADY_PROCESSED"


@pytest.mark.asyncio
async def test_approve_unknown_request(client: AsyncClient, approval_event, auth_headers):
    response = await client.post(
        f"/api/v1/events/{approval_event.id}/approve-request/4242",
        headers=auth_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_leave_event(client: AsyncClient, make_event, member, other_member, member_headers):
    """Leaving frees the spot for the head of the waitlist."""
    event = await make_event(capacity_max=1, participants=[member.id], waitlist=[other_member.id])

    response = await client.post(f"/api/v1/events/{event.id}/leave", headers=member_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "You have left the event"
    assert data["promoted_user_id"] == other_member.id
    assert data["event"]["participants"] == [other_member.id]
    assert data["event"]["waitlist"] == []


@pytest.mark.asyncio
async def test_leave_without_joining(client: AsyncClient, test_event, member_headers):
    response = await client.post(f"/api/v1/events/{test_event.id}/leave", headers=member_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "NOT_A_PARTICIPANT"


@pytest.mark.asyncio
async def test_waitlist_on_full_event(client: AsyncClient, make_event, member, member_headers):
    event = await make_event(capacity_max=1, participants=[501])

    response = await client.post(f"/api/v1/events/{event.id}/waitlist", headers=member_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["position"] == 1
    assert data["event"]["waitlist"] == [member.id]


@pytest.mark.asyncio
async def test_waitlist_on_open_spots(client: AsyncClient, test_event, member_headers):
    response = await client.post(f"/api/v1/events/{test_event.id}/waitlist", headers=member_headers)

    assert response.status_code == 409
    assert response.json()["error"] == "WAITLIST_UNAVAILABLE"


@pytest.mark.asyncio
async def test_my_join_requests(client: AsyncClient, approval_event, member_headers):
    await client.post(f"/api/v1/events/{approval_event.id}/join", headers=member_headers)

    response = await client.get("/api/v1/events/my-join-requests", headers=member_headers)

    assert response.status_code == 200
    [item] = response.json()
    assert item["event"]["id"] == approval_event.id
    assert item["event"]["title"] == "Club Trials"
    assert item["request"]["status"] == "pending"


@pytest.mark.asyncio
async def test_my_events_requests(
    client: AsyncClient, approval_event, member, other_member, auth_headers
):
    """Organizer sees pending requests from every member, oldest first."""
    await client.post(f"/api/v1/events/{approval_event.id}/join", headers=headers_for(member))
    await client.post(f"/api/v1/events/{approval_event.id}/join", headers=headers_for(other_member))

    response = await client.get("/api/v1/events/my-events-requests", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert [item["user_id"] for item in data] == [member.id, other_member.id]
    assert all(item["event"]["id"] == approval_event.id for item in data)
    assert all(item["transaction_code"] == "FREE" for item in data)


@pytest.mark.asyncio
async def test_my_events_requests_empty_for_member(client: AsyncClient, approval_event, member_headers):
    response = await client.get("/api/v1/events/my-events-requests", headers=member_headers)

    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_waitlisted_member_joining_after_capacity_raise(
    client: AsyncClient, make_event, member, other_member, auth_headers
):
    """A member who joins directly leaves the waitlist, so a later leave cannot admit them twice."""
    event = await make_event(capacity_max=1, participants=[other_member.id])
    member_headers = headers_for(member)

    queued = await client.post(f"/api/v1/events/{event.id}/waitlist", headers=member_headers)
    assert queued.json()["position"] == 1

    raised = await client.put(f"/api/v1/events/{event.id}", json={"capacity_max": 3}, headers=auth_headers)
    assert raised.status_code == 200

    joined = await client.post(f"/api/v1/events/{event.id}/join", headers=member_headers)
    assert joined.status_code == 200
    assert joined.json()["event"]["participants"] == [other_member.id, member.id]
    assert joined.json()["event"]["waitlist"] == []

    left = await client.post(f"/api/v1/events/{event.id}/leave", headers=headers_for(other_member))
    data = left.json()
    assert data["promoted_user_id"] is None
    assert data["event"]["participants"] == [member.id]
    assert data["event"]["capacity_current"] == 1


@pytest.mark.asyncio
async def test_reject_drops_cached_listings(
    client: AsyncClient, approval_event, member_headers, auth_headers, monkeypatch
):
    """Cached listing pages embed join-request status, so a rejection must invalidate them."""
    from huddle.api.routes import join as join_routes

    calls = []

    async def record_invalidation():
        calls.append("invalidate")

    joined = await client.post(f"/api/v1/events/{approval_event.id}/join", headers=member_headers)
    request_id = joined.json()["event"]["join_requests"][0]["id"]
    monkeypatch.setattr(join_routes, "invalidate_event_cache", record_invalidation)

    response = await client.post(
        f"/api/v1/events/{approval_event.id}/reject-request/{request_id}",
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert calls == ["invalidate"]
