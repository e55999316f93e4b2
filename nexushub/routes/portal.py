"""
NexusHub - Client Portal Routes
A client's own view, or an admin's while impersonating that client.
Every mutation answers with the client's refreshed aggregate.
"""
from flask import Blueprint, jsonify, g

from nexushub.errors import ValidationRejected
from nexushub.models.db_models import IntegrationStatus, PostStatus
from nexushub.routes.auth import token_required
from nexushub.services.ai_service import ERROR_PREFIX, ai_service
from nexushub.services.audit_service import audit_service
from nexushub.services.client_service import get_client_service
from nexushub.services.notification_service import get_notification_service
from nexushub.services.session_service import get_session_service
from nexushub.utils import get_json_body

portal_bp = Blueprint('portal', __name__)


def _portal_client():
    return get_session_service().portal_client(g.auth_session)


def _client_response(client_id: str, status: int = 200, **extra):
    client = get_client_service().fetch_client(client_id)
    return jsonify({**extra, 'client': client.to_dict(include_vault=False)}), status


@portal_bp.route('/', methods=['GET'])
@token_required
def get_portal(current_user):
    """The caller's client aggregate (vault items are agency-only)"""
    client = _portal_client()
    return jsonify({'client': client.to_dict(include_vault=False)})


@portal_bp.route('/posts/outline', methods=['POST'])
@token_required
def generate_outline(current_user):
    """
    Draft an outline with AI

    POST /api/portal/posts/outline
    {"topic": "...", "tone": "friendly", "keywords": "optional, list"}
    """
    _portal_client()
    data = get_json_body(required=['topic'])
    outline = ai_service.generate_outline(data['topic'], data.get('tone'), data.get('keywords'))
    return _generated('outline', outline)


@portal_bp.route('/posts/draft', methods=['POST'])
@token_required
def generate_draft(current_user):
    """
    Expand an outline into a full post

    POST /api/portal/posts/draft
    {"outline": "<h3>...</h3>", "topic": "...", "tone": "friendly", "keywords": "..."}
    """
    _portal_client()
    data = get_json_body(required=['outline', 'topic'])
    content = ai_service.generate_full_draft(
        data['outline'], data['topic'], data.get('tone'), data.get('keywords')
    )
    return _generated('content', content)


def _generated(key: str, text: str):
    # Provider failures are reported in-band; the request itself succeeded
    if text.startswith(ERROR_PREFIX):
        return jsonify({'success': False, 'error': text}), 200
    return jsonify({'success': True, key: text})


@portal_bp.route('/posts', methods=['POST'])
@token_required
def publish_post(current_user):
    """
    Publish one post, then notify the client by email

    POST /api/portal/posts
    {"title": "...", "content": "<p>...</p>", "status": "published"}
    """
    client = _portal_client()
    data = get_json_body(required=['title'])
    data.setdefault('status', PostStatus.PUBLISHED)

    post = get_client_service().add_post(client.id, data)
    audit_service.log_change(audit_service.ACTION_PUBLISH, audit_service.RESOURCE_POST,
                             post.id, post.title, user=current_user)

    notification = None
    if post.status == PostStatus.PUBLISHED:
        notification = get_notification_service().send_post_published(client, post).to_dict()

    return _client_response(client.id, 201, post=post.to_dict(), notification=notification)


@portal_bp.route('/integrations/<integration_id>/connect', methods=['POST'])
@token_required
def connect_integration(current_user, integration_id):
    """
    Connect an integration with its kind-specific configuration

    POST /api/portal/integrations/<id>/connect
    {"url": "https://site.com", "username": "admin", "app_password": "xxxx"}
    """
    client = _portal_client()
    data = get_json_body()
    config = data.get('config', data)
    if not isinstance(config, dict):
        raise ValidationRejected('config must be an object')

    integration = get_client_service().update_integration_status(
        integration_id, IntegrationStatus.CONNECTED, config=config, client_id=client.id
    )
    audit_service.log_change(audit_service.ACTION_UPDATE, audit_service.RESOURCE_INTEGRATION,
                             integration.id, integration.name, user=current_user,
                             metadata={'status': integration.status})
    return _client_response(client.id, integration=integration.to_dict())


@portal_bp.route('/integrations/<integration_id>/disconnect', methods=['POST'])
@token_required
def disconnect_integration(current_user, integration_id):
    """Disconnect an integration and drop its stored credentials"""
    client = _portal_client()
    integration = get_client_service().update_integration_status(
        integration_id, IntegrationStatus.DISCONNECTED, config={}, client_id=client.id
    )
    audit_service.log_change(audit_service.ACTION_UPDATE, audit_service.RESOURCE_INTEGRATION,
                             integration.id, integration.name, user=current_user,
                             metadata={'status': integration.status})
    return _client_response(client.id, integration=integration.to_dict())
