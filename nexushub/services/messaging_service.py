"""
NexusHub - Messaging Service
WhatsApp text messages through an Evolution API instance
"""
import os
import logging

import requests

from nexushub.errors import ProviderError, ProviderUnconfigured
from nexushub.formatters import digits_only
from nexushub.models.notification import NotificationResult

logger = logging.getLogger(__name__)


class MessagingService:
    """WhatsApp notification service"""

    @property
    def api_url(self):
        return os.getenv('EVOLUTION_API_URL', '').rstrip('/')

    @property
    def api_key(self):
        return os.getenv('EVOLUTION_API_KEY', '')

    @property
    def instance(self):
        return os.getenv('EVOLUTION_INSTANCE', '')

    @property
    def is_configured(self) -> bool:
        return bool(self.api_url and self.api_key and self.instance)

    def send_message(self, phone: str, body: str) -> NotificationResult:
        """Send one text message; the phone is reduced to its digits"""
        number = digits_only(phone)
        try:
            data = self._post(number, body)
        except ProviderUnconfigured as e:
            logger.warning(f"Evolution API not fully configured. Would message {number}")
            return NotificationResult.failed(e.message)
        except ProviderError as e:
            logger.error(f"Failed to send WhatsApp message to {number}: {e.message}")
            return NotificationResult.failed(e.message)

        logger.info(f"WhatsApp message sent to {number}")
        return NotificationResult(success=True, detail='sent', data=data)

    def _post(self, number: str, body: str) -> dict:
        if not self.is_configured:
            raise ProviderUnconfigured('Config missing')
        if not number:
            raise ProviderError('Phone number missing')

        try:
            response = requests.post(
                f'{self.api_url}/message/sendText/{self.instance}',
                headers={
                    'Content-Type': 'application/json',
                    'apikey': self.api_key
                },
                json={
                    'number': number,
                    'options': {
                        'delay': 1200,
                        'presence': 'composing',
                        'linkPreview': False
                    },
                    'textMessage': {
                        'text': body
                    }
                },
                timeout=15
            )
        except requests.RequestException as e:
            raise ProviderError(f'Evolution API request failed: {e}')

        if not response.ok:
            raise ProviderError(f'Evolution API error ({response.status_code}): {response.text[:200]}')

        try:
            return response.json()
        except ValueError:
            return {}


_messaging_service = None


def get_messaging_service() -> MessagingService:
    """Get or create messaging service singleton"""
    global _messaging_service
    if _messaging_service is None:
        _messaging_service = MessagingService()
    return _messaging_service
