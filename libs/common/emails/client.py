"""
Email client for service-to-service email delivery.

Emails are rendered and sent by the Communications Service. This client
authenticates with a short-lived service-role JWT and forwards the template
type and data. Delivery is best effort: every failure is logged and reported
as ``False``, never raised, so callers can fire and forget.

Usage:
    from libs.common.emails.client import get_email_client

    email_client = get_email_client()

    await email_client.send_template(
        template_type="rental_cancelled",
        to_email="coach@example.com",
        template_data={"coach_name": "Ana", "credit_generated": True},
    )
"""

from typing import Any, Optional

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


class EmailClient:
    """HTTP client for the Communications Service email API."""

    def __init__(self, base_url: Optional[str] = None, timeout: float = 10.0):
        settings = get_settings()
        self.base_url = (base_url or settings.COMMUNICATIONS_SERVICE_URL).rstrip("/")
        self.timeout = timeout
        self.enabled = settings.NOTIFICATIONS_ENABLED

    def _get_auth_headers(self) -> dict[str, str]:
        from libs.auth.dependencies import _service_role_jwt

        token = _service_role_jwt("email_client", ttl_seconds=60)
        return {"Authorization": f"Bearer {token}"}

    async def _post(self, path: str, payload: dict[str, Any]) -> bool:
        if not self.enabled:
            logger.info("Notifications disabled, skipping %s", path)
            return False

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}{path}",
                    json=payload,
                    headers=self._get_auth_headers(),
                )
        except httpx.HTTPError as e:
            logger.error("Failed to reach Communications Service: %s", e)
            return False

        if response.status_code != 200:
            logger.error(
                "Email API %s returned %s: %s",
                path,
                response.status_code,
                response.text,
            )
            return False
        return bool(response.json().get("success", False))

    async def send(
        self,
        to_email: str,
        subject: str,
        body: str,
        html_body: Optional[str] = None,
    ) -> bool:
        """Send a single plain email. Returns True on success."""
        payload: dict[str, Any] = {
            "to_email": to_email,
            "subject": subject,
            "body": body,
        }
        if html_body:
            payload["html_body"] = html_body
        return await self._post("/email/send", payload)

    async def send_template(
        self,
        template_type: str,
        to_email: str,
        template_data: dict[str, Any],
    ) -> bool:
        """
        Send a templated email.

        Template types used by the studio services:
        - rental_confirmed: Rental booked for a coach
        - rental_cancelled: Rental cancelled, with credit outcome
        - series_booked: Recurring series booked (possibly partially)
        """
        payload = {
            "template_type": template_type,
            "to_email": to_email,
            "template_data": template_data,
        }
        return await self._post("/email/template", payload)


# Singleton instance for convenience
_email_client: Optional[EmailClient] = None


def get_email_client() -> EmailClient:
    """Get or create the singleton EmailClient instance."""
    global _email_client
    if _email_client is None:
        _email_client = EmailClient()
    return _email_client
