"""
Email client for service-to-service email communication.

Every outbound email goes through the Communications Service, which owns the
templates and the delivery. This client handles:
- Service-role JWT authentication for inter-service calls
- Best-effort semantics: delivery problems are logged, never raised
- Singleton pattern for reuse across a service's lifetime

Usage:
    from libs.common.emails.client import get_email_client

    email_client = get_email_client()
    await email_client.send_template(
        template_type="review_invite",
        to_email="choir@example.com",
        template_data={"coach_name": "Alex"},
    )
"""

from typing import Any, Optional

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger, get_request_id

logger = get_logger(__name__)


class EmailClient:
    """
    HTTP client for sending templated emails through the Communications Service.

    Authenticates with a short-lived service-role JWT, matching the
    ``require_service_role`` guard on the email endpoints.
    """

    def __init__(self):
        settings = get_settings()
        self.base_url = settings.COMMUNICATIONS_SERVICE_URL
        self.calling_service = settings.SERVICE_NAME
        self.timeout = 10.0

    def _get_auth_headers(self) -> dict[str, str]:
        from libs.auth.dependencies import _service_role_jwt

        headers = {
            "Authorization": f"Bearer {_service_role_jwt(self.calling_service)}",
            "X-Caller-Service": self.calling_service,
        }
        request_id = get_request_id()
        if request_id:
            headers["X-Request-ID"] = request_id
        return headers

    async def send_template(
        self,
        template_type: str,
        to_email: str,
        template_data: dict[str, Any],
    ) -> bool:
        """
        Send a templated email through the Communications Service.

        Template types used by the review workflow:
        - review_invite: a coach asks an ensemble for a review
        - ensemble_review_decision: a coach approved or rejected an unprompted review

        Returns:
            True if the Communications Service accepted the email, False otherwise
        """
        payload = {
            "template_type": template_type,
            "to_email": to_email,
            "template_data": template_data,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/email/template",
                    json=payload,
                    headers=self._get_auth_headers(),
                )
        except httpx.RequestError as e:
            logger.warning(
                "Template email '%s' to %s not sent, "
                "Communications Service unreachable: %s",
                template_type,
                to_email,
                e,
            )
            return False

        if response.status_code != 200:
            logger.error(
                "Template email API returned %s: %s",
                response.status_code,
                response.text,
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
