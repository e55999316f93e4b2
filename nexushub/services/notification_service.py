"""
NexusHub - Notification Service
Client-facing notifications over email and WhatsApp.
Every method returns results; none of them raises.
"""
import os
import logging
from html import escape
from typing import Dict, Optional

from nexushub.models.notification import NotificationResult
from nexushub.services.email_service import get_email_service
from nexushub.services.messaging_service import get_messaging_service

logger = logging.getLogger(__name__)


WELCOME_EMAIL = """
<h1>Olá, {name}!</h1>
<p>Seja bem-vindo ao portal do cliente da NexusHub Digital.</p>
<p>Seu acesso já está liberado. Você pode acompanhar seus projetos, contratos e faturas através do link abaixo:</p>
<a href="{portal_url}" style="display:inline-block;padding:12px 24px;background:#4f46e5;color:white;text-decoration:none;border-radius:8px;font-weight:bold;">Acessar Portal</a>
<p>Se tiver qualquer dúvida, basta responder a este e-mail.</p>
<br>
<p>Atenciosamente,<br>Equipe NexusHub</p>
"""

WELCOME_MESSAGE = (
    "Olá *{name}*! Seja bem-vindo à NexusHub Digital. 🚀\n\n"
    "Seu portal do cliente já está ativo. Acesse tudo por aqui: {portal_host}\n\n"
    "Qualquer dúvida, conte conosco!"
)

POST_PUBLISHED_EMAIL = """
<h2>Seu novo artigo foi publicado!</h2>
<p>Olá, {name}. O artigo <strong>{title}</strong> já está no ar em {site}.</p>
<a href="{portal_url}" style="display:inline-block;padding:12px 24px;background:#4f46e5;color:white;text-decoration:none;border-radius:8px;font-weight:bold;">Ver no Portal</a>
<br>
<p>Atenciosamente,<br>Equipe NexusHub</p>
"""


class NotificationService:
    """Compose and send client notifications"""

    def __init__(self, email_service=None, messaging_service=None):
        self.email = email_service or get_email_service()
        self.messaging = messaging_service or get_messaging_service()

    @property
    def portal_url(self):
        return os.getenv('PORTAL_URL', 'https://portal.nexushub.digital')

    @property
    def portal_host(self):
        return self.portal_url.split('://', 1)[-1].rstrip('/')

    def send_welcome(self, name: str, email: str, phone: Optional[str] = None) -> Dict[str, NotificationResult]:
        """
        Welcome a new client by email and, when a phone is known, WhatsApp.

        Returns:
            {'email': NotificationResult, 'message': NotificationResult}
        """
        results = {
            'email': NotificationResult.failed('Email not provided'),
            'message': NotificationResult.failed('Phone not provided'),
        }
        try:
            if email:
                results['email'] = self.email.send_email(
                    email,
                    f'Bem-vindo ao NexusHub, {name}!',
                    WELCOME_EMAIL.format(name=escape(name or ''), portal_url=self.portal_url)
                )
            if phone:
                results['message'] = self.messaging.send_message(
                    phone,
                    WELCOME_MESSAGE.format(name=name, portal_host=self.portal_host)
                )
        except Exception as e:
            # Providers convert their own failures; this guards the client-creation flow
            logger.error(f"Welcome notification for {email} failed: {e}")
        return results

    def send_post_published(self, client, post) -> NotificationResult:
        """Tell the client a post went live; client and post are aggregates"""
        try:
            return self.email.send_email(
                client.email,
                f'Seu novo artigo foi publicado: {post.title}',
                POST_PUBLISHED_EMAIL.format(
                    name=escape(client.name or ''),
                    title=escape(post.title or ''),
                    site=escape(client.site_url or 'seu site'),
                    portal_url=self.portal_url
                )
            )
        except Exception as e:
            logger.error(f"Post-published notification for {client.email} failed: {e}")
            return NotificationResult.failed(str(e))


_notification_service = None


def get_notification_service() -> NotificationService:
    """Get or create notification service singleton"""
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService()
    return _notification_service
