"""Unit tests for coach notifications and the email client."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from libs.common.emails.client import EmailClient
from services.rentals_service.services import notifications
from tests.factories import AreaFactory, CoachFactory, RentalFactory


async def _cancelled_rental(session_factory, **coach_overrides):
    async with session_factory() as db:
        area = AreaFactory.create(name="Studio B")
        coach = CoachFactory.create(name="Rita", **coach_overrides)
        db.add_all([area, coach])
        await db.commit()
        rental = RentalFactory.create(
            area_id=area.id, coach_id=coach.id, credit_generated=True
        )
        db.add(rental)
        await db.commit()
        return rental.id, coach.email


@pytest.mark.asyncio
@pytest.mark.unit
async def test_notify_rental_cancelled_sends_template(session_factory):
    rental_id, email = await _cancelled_rental(session_factory)
    email_client = MagicMock()
    email_client.send_template = AsyncMock(return_value=True)

    with patch.object(notifications, "AsyncSessionLocal", session_factory), patch.object(
        notifications, "get_email_client", return_value=email_client
    ):
        await notifications.notify_rental_cancelled(rental_id)

    email_client.send_template.assert_awaited_once()
    kwargs = email_client.send_template.await_args.kwargs
    assert kwargs["template_type"] == "rental_cancelled"
    assert kwargs["to_email"] == email
    assert kwargs["template_data"]["coach_name"] == "Rita"
    assert kwargs["template_data"]["area_name"] == "Studio B"
    assert kwargs["template_data"]["credit_generated"] is True


@pytest.mark.asyncio
@pytest.mark.unit
async def test_notification_skipped_without_email(session_factory):
    rental_id, _ = await _cancelled_rental(session_factory, email=None)
    email_client = MagicMock()
    email_client.send_template = AsyncMock(return_value=True)

    with patch.object(notifications, "AsyncSessionLocal", session_factory), patch.object(
        notifications, "get_email_client", return_value=email_client
    ):
        await notifications.notify_rental_booked(rental_id)

    email_client.send_template.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_notification_failure_is_swallowed(session_factory):
    rental_id, _ = await _cancelled_rental(session_factory)
    email_client = MagicMock()
    email_client.send_template = AsyncMock(side_effect=RuntimeError("smtp down"))

    with patch.object(notifications, "AsyncSessionLocal", session_factory), patch.object(
        notifications, "get_email_client", return_value=email_client
    ):
        await notifications.notify_rental_booked(rental_id)

    email_client.send_template.assert_awaited_once()


@pytest.mark.unit
def test_schedule_respects_notifications_flag():
    background_tasks = MagicMock()

    notifications.schedule(background_tasks, notifications.notify_rental_booked, "x")

    background_tasks.add_task.assert_not_called()


# ---------------------------------------------------------------------------
# EmailClient
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_email_client_disabled_returns_false():
    client = EmailClient(base_url="http://communications.test")

    assert client.enabled is False
    assert await client.send("a@example.com", "Hi", "Body") is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_email_client_posts_template_with_service_token():
    client = EmailClient(base_url="http://communications.test/")
    client.enabled = True
    response = httpx.Response(
        200,
        json={"success": True},
        request=httpx.Request("POST", "http://communications.test/email/template"),
    )

    with patch.object(
        httpx.AsyncClient, "post", new_callable=AsyncMock, return_value=response
    ) as mock_post:
        ok = await client.send_template(
            template_type="rental_confirmed",
            to_email="coach@example.com",
            template_data={"coach_name": "Rita"},
        )

    assert ok is True
    args, kwargs = mock_post.await_args
    assert args[0] == "http://communications.test/email/template"
    assert kwargs["json"]["template_type"] == "rental_confirmed"
    assert kwargs["headers"]["Authorization"].startswith("Bearer ")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_email_client_http_error_returns_false():
    client = EmailClient(base_url="http://communications.test")
    client.enabled = True

    with patch.object(
        httpx.AsyncClient,
        "post",
        new_callable=AsyncMock,
        side_effect=httpx.ConnectError("refused"),
    ):
        assert await client.send("a@example.com", "Hi", "Body") is False
