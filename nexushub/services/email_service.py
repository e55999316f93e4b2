"""
NexusHub - Email Service
Transactional email through the Resend HTTP API
"""
import os
import logging

import requests

from nexushub.errors import ProviderError, ProviderUnconfigured
from nexushub.models.notification import NotificationResult

logger = logging.getLogger(__name__)

RESEND_ENDPOINT = 'https://api.resend.com/emails'


class EmailService:
    """Email notification service"""

    def __init__(self):
        pass  # Read env vars at runtime via properties

    @property
    def api_key(self):
        return os.getenv('RESEND_API_KEY', '')

    @property
    def from_address(self):
        return os.getenv('EMAIL_FROM', 'NexusHub <notifications@nexushub.digital>')

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def send_email(self, to: str, subject: str, html: str) -> NotificationResult:
        """Send one HTML email; failures come back as an unsuccessful result"""
        try:
            data = self._post(to, subject, html)
        except ProviderUnconfigured as e:
            logger.warning(f"Email not configured. Would send to {to}: {subject}")
            return NotificationResult.failed(e.message)
        except ProviderError as e:
            logger.error(f"Failed to send email to {to}: {e.message}")
            return NotificationResult.failed(e.message)

        logger.info(f"Email sent to {to}: {subject}")
        return NotificationResult(success=True, detail='sent', data=data)

    def _post(self, to: str, subject: str, html: str) -> dict:
        if not self.api_key:
            raise ProviderUnconfigured('API key missing')
        if not to:
            raise ProviderError('Recipient missing')

        try:
            response = requests.post(
                RESEND_ENDPOINT,
                headers={
                    'Authorization': f'Bearer {self.api_key}',
                    'Content-Type': 'application/json'
                },
                json={
                    'from': self.from_address,
                    'to': [to],
                    'subject': subject,
                    'html': html
                },
                timeout=15
            )
        except requests.RequestException as e:
            raise ProviderError(f'Resend request failed: {e}')

        if response.status_code not in (200, 201, 202):
            raise ProviderError(f'Resend error ({response.status_code}): {response.text[:200]}')

        try:
            return response.json()
        except ValueError:
            return {}


_email_service = None


def get_email_service() -> EmailService:
    """Get or create email service singleton"""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
