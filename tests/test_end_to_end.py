"""Appointment flows observed through the notification feeds."""

from collections.abc import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.database import get_db
from app.dependencies import get_event_publisher, get_identity_client
from app.main import appointment_app, notification_app
from app.services.event_publisher import EventPublisher


@pytest_asyncio.fixture
async def platform(
    appointment_sessions: async_sessionmaker[AsyncSession],
    notification_overrides,
    identity,
    patient_id: str,
) -> AsyncGenerator[tuple[AsyncClient, AsyncClient], None]:
    """Appointment and notification clients, wired to deliver events to each other."""
    identity.names[patient_id] = "Alice Smith"
    publisher = EventPublisher(
        events_url="http://notifications.test/api/events",
        transport=ASGITransport(app=notification_app),
    )

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with appointment_sessions() as session:
            yield session

    appointment_app.dependency_overrides[get_db] = override_get_db
    appointment_app.dependency_overrides[get_event_publisher] = lambda: publisher
    appointment_app.dependency_overrides[get_identity_client] = lambda: identity

    async with AsyncClient(
        transport=ASGITransport(app=appointment_app), base_url="http://test"
    ) as appointments, AsyncClient(
        transport=ASGITransport(app=notification_app), base_url="http://test"
    ) as feed:
        yield appointments, feed

    appointment_app.dependency_overrides.clear()


async def messages(feed: AsyncClient, recipient_id: str, recipient_type: str) -> list[str]:
    response = await feed.get(f"/api/notifications/{recipient_id}/{recipient_type}")
    assert response.status_code == 200
    return [n["message"] for n in response.json()["notifications"]]


@pytest.mark.asyncio
async def test_request_then_approve(
    platform,
    patient_headers: dict,
    doctor_headers: dict,
    patient_id: str,
    doctor_id: str,
    sample_appointment_data: dict,
) -> None:
    """The doctor is told about the request, the patient about the approval."""
    appointments, feed = platform

    response = await appointments.post(
        "/api/appointments", json=sample_appointment_data, headers=patient_headers
    )
    assert response.status_code == 201
    appointment_id = response.json()["id"]

    assert await messages(feed, doctor_id, "doctor") == [
        "New appointment request from Alice Smith on 2025-03-01 at 10:00"
    ]

    response = await appointments.patch(
        f"/api/appointments/{appointment_id}/status",
        json={"status": "approved", "notes": "bring ID"},
        headers=doctor_headers,
    )
    assert response.status_code == 200

    assert await messages(feed, patient_id, "patient") == [
        "Your appointment with Dr. Grey has been approved!"
    ]

    response = await feed.get(f"/api/notifications/{patient_id}/patient/unread-count")
    assert response.json() == {"unreadCount": 1}

    # Approved appointments can no longer be rejected
    response = await appointments.patch(
        f"/api/appointments/{appointment_id}/status",
        json={"status": "rejected"},
        headers=doctor_headers,
    )
    assert response.status_code == 400
    assert len(await messages(feed, patient_id, "patient")) == 1


@pytest.mark.asyncio
async def test_reject_with_notes(
    platform,
    patient_headers: dict,
    doctor_headers: dict,
    patient_id: str,
    sample_appointment_data: dict,
) -> None:
    appointments, feed = platform
    created = await appointments.post(
        "/api/appointments", json=sample_appointment_data, headers=patient_headers
    )

    await appointments.patch(
        f"/api/appointments/{created.json()['id']}/status",
        json={"status": "rejected", "notes": "fully booked"},
        headers=doctor_headers,
    )

    assert await messages(feed, patient_id, "patient") == [
        "Your appointment with Dr. Grey has been rejected. fully booked"
    ]


@pytest.mark.asyncio
async def test_cancel_notifies_doctor(
    platform,
    patient_headers: dict,
    doctor_id: str,
    sample_appointment_data: dict,
) -> None:
    appointments, feed = platform
    created = await appointments.post(
        "/api/appointments", json=sample_appointment_data, headers=patient_headers
    )

    response = await appointments.patch(
        f"/api/appointments/{created.json()['id']}/cancel", headers=patient_headers
    )
    assert response.status_code == 200

    assert await messages(feed, doctor_id, "doctor") == [
        "Appointment with Alice Smith has been cancelled.",
        "New appointment request from Alice Smith on 2025-03-01 at 10:00",
    ]


@pytest.mark.asyncio
async def test_notification_outage_does_not_undo_appointment(
    appointment_sessions: async_sessionmaker[AsyncSession],
    identity,
    patient_headers: dict,
    doctor_headers: dict,
    sample_appointment_data: dict,
) -> None:
    """Delivery failures are dropped; the appointment change stays committed."""

    def unavailable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    publisher = EventPublisher(
        events_url="http://notifications.test/api/events",
        transport=httpx.MockTransport(unavailable),
    )

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with appointment_sessions() as session:
            yield session

    appointment_app.dependency_overrides[get_db] = override_get_db
    appointment_app.dependency_overrides[get_event_publisher] = lambda: publisher
    appointment_app.dependency_overrides[get_identity_client] = lambda: identity

    try:
        async with AsyncClient(
            transport=ASGITransport(app=appointment_app), base_url="http://test"
        ) as client:
            created = await client.post(
                "/api/appointments", json=sample_appointment_data, headers=patient_headers
            )
            assert created.status_code == 201

            response = await client.get(
                f"/api/appointments/{created.json()['id']}", headers=doctor_headers
            )
            assert response.status_code == 200
            assert response.json()["status"] == "pending"
    finally:
        appointment_app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_both_services_serve_requests_in_one_process() -> None:
    """Each app builds its metrics middleware without clashing with the other."""
    async with AsyncClient(
        transport=ASGITransport(app=appointment_app), base_url="http://test"
    ) as appointments, AsyncClient(
        transport=ASGITransport(app=notification_app), base_url="http://test"
    ) as feed:
        for client, service in ((appointments, "appointments"), (feed, "notifications")):
            response = await client.get("/api/health")
            assert response.status_code == 200
            assert response.json()["service"] == service

        for client in (appointments, feed):
            response = await client.get("/metrics")
            assert response.status_code == 200
            assert 'handler="/api/health"' in response.text
