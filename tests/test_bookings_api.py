from datetime import datetime, timedelta, timezone

import httpx
import pytest
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql

from conftest import auth_headers, make_booking, make_stadium
from stadium_booking.core.config import settings
from stadium_booking.core.exceptions import InvalidTransitionError
from stadium_booking.core.security import create_session_token, decode_session_token
from stadium_booking.models.booking import Booking, BookingStatus
from stadium_booking.services.booking_service import booking_query, booking_service
from stadium_booking.services.mailer import mailer

START = datetime(2030, 1, 7, 9, 0, tzinfo=timezone.utc)


def _payload(stadium, start=START, hours=1, **extra):
    return {
        "stadium_id": stadium.id,
        "start_time": start.isoformat(),
        "end_time": (start + timedelta(hours=hours)).isoformat(),
        **extra,
    }


async def _count_bookings(db) -> int:
    result = await db.execute(select(func.count()).select_from(Booking))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_create_booking_confirms_and_prices(client, player, stadium):
    response = await client.post(
        "/api/bookings",
        json=_payload(stadium, hours=2, special_requests="Bring bibs"),
        headers=auth_headers(player),
    )

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "CONFIRMED"
    assert data["payment_status"] == "PENDING"
    assert data["total_price"] == 100.0
    assert data["user_id"] == player.id
    assert data["special_requests"] == "Bring bibs"
    assert data["stadium"]["name"] == "Arena Central"


@pytest.mark.asyncio
async def test_create_booking_requires_session(client, stadium):
    response = await client.post("/api/bookings", json=_payload(stadium))
    assert response.status_code == 401
    assert response.json() == {"detail": "Unauthorized"}


@pytest.mark.asyncio
async def test_create_booking_unknown_stadium(client, player, stadium):
    payload = _payload(stadium)
    payload["stadium_id"] = stadium.id + 100

    response = await client.post("/api/bookings", json=payload, headers=auth_headers(player))

    assert response.status_code == 404
    assert response.json()["detail"] == "Stadium not found"


@pytest.mark.asyncio
async def test_create_booking_rejects_inverted_range(client, player, stadium):
    response = await client.post(
        "/api/bookings", json=_payload(stadium, hours=-1), headers=auth_headers(player)
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "end_time must be after start_time"


@pytest.mark.asyncio
async def test_overlap_with_confirmed_booking_conflicts(client, db, player, other_player, stadium):
    await make_booking(db, stadium, other_player, START, hours=2)

    response = await client.post(
        "/api/bookings",
        json=_payload(stadium, start=START + timedelta(hours=1)),
        headers=auth_headers(player),
    )

    assert response.status_code == 409
    assert response.json() == {"detail": "This time slot is already booked"}
    assert await _count_bookings(db) == 1


@pytest.mark.asyncio
async def test_adjacent_bookings_do_not_conflict(client, db, player, other_player, stadium):
    await make_booking(db, stadium, other_player, START, hours=1)
    headers = auth_headers(player)

    after = await client.post(
        "/api/bookings", json=_payload(stadium, start=START + timedelta(hours=1)), headers=headers
    )
    before = await client.post(
        "/api/bookings", json=_payload(stadium, start=START - timedelta(hours=1)), headers=headers
    )

    assert after.status_code == 201
    assert before.status_code == 201


@pytest.mark.asyncio
async def test_overlap_is_per_stadium(client, db, owner, player, other_player, stadium):
    await make_booking(db, stadium, other_player, START)
    second = await make_stadium(db, owner, name="Second Pitch")

    response = await client.post(
        "/api/bookings", json=_payload(second), headers=auth_headers(player)
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_cancelled_and_pending_bookings_do_not_block(
    client, db, player, other_player, stadium
):
    await make_booking(db, stadium, other_player, START, status=BookingStatus.CANCELLED)
    await make_booking(db, stadium, other_player, START, status=BookingStatus.PENDING)

    response = await client.post(
        "/api/bookings", json=_payload(stadium), headers=auth_headers(player)
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_pending_bookings_block_when_configured(
    client, db, player, other_player, stadium, monkeypatch
):
    monkeypatch.setattr(settings, "BLOCK_ON_PENDING_BOOKINGS", True)
    await make_booking(db, stadium, other_player, START, status=BookingStatus.PENDING)

    response = await client.post(
        "/api/bookings", json=_payload(stadium), headers=auth_headers(player)
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_booking_stays_pending_without_auto_confirm(
    client, player, stadium, monkeypatch
):
    monkeypatch.setattr(settings, "AUTO_CONFIRM_BOOKINGS", False)

    response = await client.post(
        "/api/bookings", json=_payload(stadium), headers=auth_headers(player)
    )

    assert response.status_code == 201
    assert response.json()["status"] == "PENDING"


@pytest.mark.asyncio
async def test_list_bookings_returns_own_newest_first(
    client, db, player, other_player, stadium
):
    await make_booking(db, stadium, player, START)
    await make_booking(db, stadium, player, START + timedelta(days=1), status=BookingStatus.CANCELLED)
    await make_booking(db, stadium, other_player, START + timedelta(days=2))

    response = await client.get("/api/bookings", headers=auth_headers(player))

    assert response.status_code == 200
    data = response.json()
    assert [b["user_id"] for b in data] == [player.id, player.id]
    assert [b["status"] for b in data] == ["CANCELLED", "CONFIRMED"]

    response = await client.get(
        "/api/bookings", params={"status": "CONFIRMED"}, headers=auth_headers(player)
    )
    assert [b["status"] for b in response.json()] == ["CONFIRMED"]


@pytest.mark.asyncio
async def test_list_bookings_filters_by_stadium(client, db, owner, player, stadium):
    second = await make_stadium(db, owner, name="Second Pitch")
    await make_booking(db, stadium, player, START)
    await make_booking(db, second, player, START)

    response = await client.get(
        "/api/bookings", params={"stadium_id": second.id}, headers=auth_headers(player)
    )

    assert [b["stadium_id"] for b in response.json()] == [second.id]


@pytest.mark.asyncio
async def test_get_booking_visibility(client, db, owner, player, other_player, admin, stadium):
    booking = await make_booking(db, stadium, player, START)
    url = f"/api/bookings/{booking.id}"

    assert (await client.get(url, headers=auth_headers(player))).status_code == 200
    assert (await client.get(url, headers=auth_headers(owner))).status_code == 200
    assert (await client.get(url, headers=auth_headers(admin))).status_code == 200

    response = await client.get(url, headers=auth_headers(other_player))
    assert response.status_code == 403
    assert response.json() == {"detail": "Forbidden"}

    response = await client.get("/api/bookings/9999", headers=auth_headers(player))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_owner_confirms_pending_booking(client, db, owner, player, stadium):
    booking = await make_booking(db, stadium, player, START, status=BookingStatus.PENDING)
    url = f"/api/bookings/{booking.id}/status"

    response = await client.patch(url, json={"status": "CONFIRMED"}, headers=auth_headers(owner))
    assert response.status_code == 200
    assert response.json()["status"] == "CONFIRMED"

    response = await client.patch(url, json={"status": "CONFIRMED"}, headers=auth_headers(owner))
    assert response.status_code == 400
    assert response.json()["detail"] == "Booking status is already CONFIRMED, cannot change."

    response = await client.patch(url, json={"status": "CANCELLED"}, headers=auth_headers(owner))
    assert response.status_code == 400
    assert response.json()["detail"] == "Booking status is already CONFIRMED, cannot change."


@pytest.mark.asyncio
async def test_owner_declines_pending_booking(client, db, owner, player, stadium):
    booking = await make_booking(db, stadium, player, START, status=BookingStatus.PENDING)

    response = await client.patch(
        f"/api/bookings/{booking.id}/status",
        json={"status": "CANCELLED"},
        headers=auth_headers(owner),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "CANCELLED"
    assert data["cancelled_at"] is not None


@pytest.mark.asyncio
async def test_status_change_requires_owner_or_admin(client, db, player, admin, stadium):
    booking = await make_booking(db, stadium, player, START, status=BookingStatus.PENDING)
    url = f"/api/bookings/{booking.id}/status"

    response = await client.patch(url, json={"status": "CONFIRMED"}, headers=auth_headers(player))
    assert response.status_code == 403

    response = await client.patch(url, json={"status": "CONFIRMED"}, headers=auth_headers(admin))
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_status_change_rejects_other_targets(client, db, owner, player, stadium):
    booking = await make_booking(db, stadium, player, START, status=BookingStatus.PENDING)
    url = f"/api/bookings/{booking.id}/status"

    response = await client.patch(url, json={"status": "COMPLETED"}, headers=auth_headers(owner))
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid target status provided"

    response = await client.patch(url, json={"status": "ARCHIVED"}, headers=auth_headers(owner))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_confirming_overlapping_pending_booking_conflicts(
    client, db, owner, player, other_player, stadium
):
    await make_booking(db, stadium, other_player, START, hours=2)
    pending = await make_booking(
        db, stadium, player, START + timedelta(hours=1), status=BookingStatus.PENDING
    )

    response = await client.patch(
        f"/api/bookings/{pending.id}/status",
        json={"status": "CONFIRMED"},
        headers=auth_headers(owner),
    )

    assert response.status_code == 409
    await db.refresh(pending)
    assert pending.status == BookingStatus.PENDING


@pytest.mark.asyncio
async def test_cancel_booking_outside_window(client, db, player, stadium):
    start = datetime.now(timezone.utc) + timedelta(hours=9)
    booking = await make_booking(db, stadium, player, start)

    response = await client.post(
        f"/api/bookings/{booking.id}/cancel", headers=auth_headers(player)
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "CANCELLED"
    assert data["cancelled_at"] is not None


@pytest.mark.asyncio
async def test_cancel_booking_too_close_to_start(client, db, player, stadium):
    start = datetime.now(timezone.utc) + timedelta(hours=7)
    booking = await make_booking(db, stadium, player, start)

    response = await client.post(
        f"/api/bookings/{booking.id}/cancel", headers=auth_headers(player)
    )

    assert response.status_code == 400
    assert "less than 8 hours away" in response.json()["detail"]
    await db.refresh(booking)
    assert booking.status == BookingStatus.CONFIRMED


@pytest.mark.asyncio
async def test_cancel_booking_of_someone_else(client, db, owner, player, stadium):
    start = datetime.now(timezone.utc) + timedelta(days=2)
    booking = await make_booking(db, stadium, player, start)

    response = await client.post(
        f"/api/bookings/{booking.id}/cancel", headers=auth_headers(owner)
    )

    assert response.status_code == 403
    assert response.json() == {"detail": "You can only cancel your own bookings"}


@pytest.mark.asyncio
async def test_cancel_booking_twice(client, db, player, stadium):
    start = datetime.now(timezone.utc) + timedelta(days=2)
    booking = await make_booking(db, stadium, player, start, status=BookingStatus.CANCELLED)

    response = await client.post(
        f"/api/bookings/{booking.id}/cancel", headers=auth_headers(player)
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_failed_confirmation_email_does_not_fail_booking(
    client, player, stadium, monkeypatch
):
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return httpx.Response(500, json={"error": "down"})

    monkeypatch.setattr(mailer, "api_url", "http://mail.test/emails")
    monkeypatch.setattr(mailer, "transport", httpx.MockTransport(handler))
    monkeypatch.setattr(mailer, "max_retries", 1)
    monkeypatch.setattr(mailer, "backoff_seconds", 0)

    response = await client.post(
        "/api/bookings", json=_payload(stadium), headers=auth_headers(player)
    )

    assert response.status_code == 201
    assert len(sent) == 1
    assert b"player@example.com" in sent[0].content


def test_status_changes_read_the_booking_row_locked():
    dialect = postgresql.dialect()

    locked = str(booking_query(1, lock=True).compile(dialect=dialect))
    plain = str(booking_query(1).compile(dialect=dialect))

    assert "FOR UPDATE" in locked
    assert "FOR UPDATE" not in plain


@pytest.mark.asyncio
async def test_confirm_sees_cancellation_made_after_booking_was_loaded(
    client, db, owner, player, stadium
):
    start = datetime.now(timezone.utc) + timedelta(days=2)
    # The owner's session holds this booking as PENDING
    booking = await make_booking(db, stadium, player, start, status=BookingStatus.PENDING)

    response = await client.post(
        f"/api/bookings/{booking.id}/cancel", headers=auth_headers(player)
    )
    assert response.status_code == 200

    owner_identity = decode_session_token(create_session_token(owner))
    with pytest.raises(InvalidTransitionError) as exc:
        await booking_service.update_status(
            db, owner_identity, booking.id, BookingStatus.CONFIRMED
        )
    assert exc.value.message == "Booking status is already CANCELLED, cannot change."

    await db.rollback()
    await db.refresh(booking)
    assert booking.status == BookingStatus.CANCELLED
