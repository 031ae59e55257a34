"""
Email client for service-to-service email delivery.

Emails are routed through the Communications Service, which owns SMTP
credentials and delivery. This client handles:
- Service-role JWT authentication for inter-service calls
- Mapping transport failures to a ``False`` result instead of raising
- Singleton reuse across a service's lifetime

Usage:
    from libs.common.emails.client import get_email_client

    email_client = get_email_client()
    await email_client.send(
        to_email="user@example.com",
        subject="Hello",
        body="Plain text body",
    )
"""

from typing import Any, Optional

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger, get_request_id

logger = get_logger(__name__)


class EmailClient:
    """
    HTTP client for sending emails through the Communications Service.

    Authenticates with a short-lived service-role JWT so that the email
    endpoints, which only accept service callers, accept the request.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        settings = get_settings()
        self.base_url = (base_url or settings.COMMUNICATIONS_SERVICE_URL).rstrip("/")
        self.timeout = timeout or settings.NOTIFICATION_TIMEOUT

    def _get_headers(self) -> dict[str, str]:
        from libs.auth.dependencies import service_role_jwt

        headers = {"Authorization": f"Bearer {service_role_jwt('email_client')}"}
        request_id = get_request_id()
        if request_id:
            headers["X-Request-ID"] = request_id
        return headers

    async def send(
        self,
        to_email: str,
        subject: str,
        body: str,
        html_body: Optional[str] = None,
    ) -> bool:
        """
        Send a single email through the Communications Service.

        Returns:
            True if the Communications Service accepted the email, False otherwise
        """
        payload: dict[str, Any] = {
            "to_email": to_email,
            "subject": subject,
            "body": body,
        }
        if html_body:
            payload["html_body"] = html_body

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/email/send",
                    json=payload,
                    headers=self._get_headers(),
                )
        except httpx.RequestError as e:
            logger.error("Failed to connect to Communications Service: %s", e)
            return False

        if response.status_code != 200:
            logger.error(
                "Email API returned %s: %s", response.status_code, response.text
            )
            return False
        return bool(response.json().get("success", False))


# Singleton instance for convenience
_email_client: Optional[EmailClient] = None


def get_email_client() -> EmailClient:
    """Get or create the singleton EmailClient instance."""
    global _email_client
    if _email_client is None:
        _email_client = EmailClient()
    return _email_client
