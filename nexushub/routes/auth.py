"""
NexusHub - Authentication Routes
Admin and portal login, session state, activity and impersonation
"""
from flask import Blueprint, request, jsonify, g
from functools import wraps

from nexushub.errors import AuthFailed, ValidationRejected
from nexushub.models.db_models import UserRole
from nexushub.services.audit_service import audit_service
from nexushub.services.session_service import (
    ACTIVITY_EVENTS, get_auth_provider, get_session_service
)
from nexushub.utils import get_json_body

auth_bp = Blueprint('auth', __name__)

# Requests with these methods count as user activity
MUTATING_METHODS = ('POST', 'PUT', 'PATCH', 'DELETE')


def _bearer_token():
    auth_header = request.headers.get('Authorization', '')
    if auth_header.startswith('Bearer '):
        return auth_header.split(' ', 1)[1].strip()
    return None


def token_required(f):
    """Decorator to require a live session; passes the session's user first"""
    @wraps(f)
    def decorated(*args, **kwargs):
        session = get_auth_provider().authenticate(
            _bearer_token(),
            record_activity=request.method in MUTATING_METHODS
        )
        g.auth_session = session
        return f(session.user, *args, **kwargs)

    return decorated


def admin_required(f):
    """Decorator to require admin role"""
    @wraps(f)
    @token_required
    def decorated(current_user, *args, **kwargs):
        if current_user.role != UserRole.ADMIN:
            return jsonify({'error': 'forbidden', 'message': 'Admin access required'}), 403
        return f(current_user, *args, **kwargs)
    return decorated


def _login_response(token, state):
    return jsonify({'token': token, **state.to_dict()})


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Admin login

    POST /api/auth/login
    {
        "email": "admin@nexushub.com",
        "password": "..."
    }
    """
    data = get_json_body(required=['email', 'password'])

    try:
        token, state = get_session_service().admin_login(data['email'], data['password'])
    except AuthFailed as e:
        audit_service.log_login(None, data['email'], success=False, error=e.message)
        raise

    return _login_response(token, state)


@auth_bp.route('/client-login', methods=['POST'])
def client_login():
    """
    Portal login with the client's email and portal password

    POST /api/auth/client-login
    {
        "email": "alice@bloom.com",
        "password": "..."
    }
    """
    data = get_json_body(required=['email', 'password'])

    try:
        token, state = get_session_service().client_login(data['email'], data['password'])
    except AuthFailed as e:
        audit_service.log_login(None, data['email'], success=False, error=e.message)
        raise

    return _login_response(token, state)


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """End the caller's session; unknown or expired tokens are accepted silently"""
    token = _bearer_token()
    if token:
        get_auth_provider().sign_out(token)
    return jsonify({'success': True})


@auth_bp.route('/session', methods=['GET'])
@token_required
def get_session(current_user):
    """
    App-start state for an existing session: the roster for admins,
    the client's own aggregate for clients
    """
    state = get_session_service().resolve_session(g.auth_session)
    return jsonify(state.to_dict())


@auth_bp.route('/activity', methods=['POST'])
def activity():
    """
    Report user activity to keep the session alive

    POST /api/auth/activity
    {"event": "keydown"}
    """
    provider = get_auth_provider()
    session = provider.authenticate(_bearer_token())

    data = get_json_body(required=['event'])
    if data['event'] not in ACTIVITY_EVENTS:
        raise ValidationRejected(f"event must be one of: {', '.join(ACTIVITY_EVENTS)}")

    provider.record_activity(session)
    return jsonify({
        'success': True,
        'last_activity_at': session.last_activity_at.isoformat()
    })


@auth_bp.route('/impersonate', methods=['POST'])
@admin_required
def start_impersonation(current_user):
    """
    View a client's portal as admin

    POST /api/auth/impersonate
    {"client_id": "client_abc123"}
    """
    data = get_json_body(required=['client_id'])
    client = get_session_service().start_impersonation(g.auth_session, data['client_id'])
    audit_service.log(
        action=audit_service.ACTION_IMPERSONATE,
        resource_type=audit_service.RESOURCE_CLIENT,
        resource_id=client.id,
        resource_name=client.email,
        user_id=current_user.id,
        user_email=current_user.email,
        description=f"Started viewing the portal of {client.company or client.name}"
    )
    return jsonify({'success': True, 'client': client.to_dict(include_vault=False)})


@auth_bp.route('/impersonate', methods=['DELETE'])
@admin_required
def stop_impersonation(current_user):
    get_session_service().stop_impersonation(g.auth_session)
    return jsonify({'success': True})
