"""
NexusHub - Sessions & Role Resolution

AuthProvider issues and checks bearer tokens backed by auth_sessions rows.
SessionService turns an authenticated user into the post-login state: the
full roster for admins, exactly one client aggregate for clients.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Tuple

import jwt
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from nexushub.database import db, utcnow
from nexushub.errors import AuthFailed, BackendUnavailable, NotFound
from nexushub.models.aggregate import ClientAggregate
from nexushub.models.db_models import DBAuthSession, DBClient, DBUser, UserRole
from nexushub.services.client_service import ClientService, get_client_service

logger = logging.getLogger(__name__)

# Session change events
SIGNED_IN = 'SIGNED_IN'
SIGNED_OUT = 'SIGNED_OUT'
IDLE_TIMEOUT = 'IDLE_TIMEOUT'

# User interactions that count as activity for the inactivity timeout
ACTIVITY_EVENTS = ('mousedown', 'keydown', 'scroll', 'touchstart', 'click')

IDLE_MESSAGE = 'Session expired due to inactivity'

SessionListener = Callable[[str, DBUser], None]


def _commit(action: str):
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"{action} failed: {e}")
        raise BackendUnavailable()


class AuthProvider:
    """Password sign-in, JWT bearer tokens and server-side session rows"""

    def __init__(self):
        self._listeners: List[SessionListener] = []

    def on_session_change(self, callback: SessionListener) -> Callable[[], None]:
        """Subscribe to SIGNED_IN / SIGNED_OUT / IDLE_TIMEOUT; returns an unsubscribe function"""
        self._listeners.append(callback)
        return lambda: self._listeners.remove(callback)

    def _emit(self, event: str, user: DBUser):
        for callback in list(self._listeners):
            try:
                callback(event, user)
            except Exception as e:
                logger.error(f"Session listener failed on {event}: {e}")

    @property
    def idle_window(self) -> timedelta:
        return timedelta(minutes=current_app.config.get('SESSION_IDLE_MINUTES', 30))

    # ============================================
    # Sign in / out
    # ============================================

    def sign_in_with_password(self, email: str, password: str) -> Tuple[str, DBUser]:
        """Check a user's own password and open a session"""
        email = (email or '').strip().lower()
        user = DBUser.query.filter_by(email=email).first()
        if not user or not user.verify_password(password or ''):
            raise AuthFailed('Invalid email or password')
        if not user.is_active:
            raise AuthFailed('Account is deactivated')
        return self.issue_token(user), user

    def issue_token(self, user: DBUser) -> str:
        """Open a new session row for user and return its bearer token"""
        session = DBAuthSession(user_id=user.id)
        user.last_login = utcnow()
        db.session.add(session)
        _commit('Open session')

        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                'user_id': user.id,
                'jti': session.id,
                'iat': now,
                'exp': now + current_app.config['JWT_ACCESS_TOKEN_EXPIRES']
            },
            current_app.config['JWT_SECRET_KEY'],
            algorithm='HS256'
        )
        logger.info(f"Session {session.id} opened for {user.email}")
        self._emit(SIGNED_IN, user)
        return token

    def sign_out(self, token: str) -> bool:
        session = self.get_session(token)
        if session is None:
            return False
        self._revoke(session, 'signed_out')
        self._emit(SIGNED_OUT, session.user)
        return True

    # ============================================
    # Session lookup
    # ============================================

    def _decode(self, token: str) -> dict:
        try:
            return jwt.decode(token, current_app.config['JWT_SECRET_KEY'], algorithms=['HS256'])
        except jwt.ExpiredSignatureError:
            raise AuthFailed('Token has expired')
        except jwt.InvalidTokenError:
            raise AuthFailed('Invalid token')

    def _load(self, payload: dict) -> Optional[DBAuthSession]:
        session = db.session.get(DBAuthSession, payload.get('jti'))
        if session is None or session.user_id != payload.get('user_id'):
            return None
        return session

    def get_session(self, token: str) -> Optional[DBAuthSession]:
        """The live session behind token, or None (never raises on bad tokens)"""
        try:
            payload = self._decode(token)
        except AuthFailed:
            return None
        session = self._load(payload)
        if session is None or session.is_revoked or not session.user.is_active:
            return None
        if self._is_idle(session):
            return None
        return session

    def authenticate(self, token: str, record_activity: bool = False) -> DBAuthSession:
        """
        Resolve a bearer token to its session, enforcing the inactivity timeout

        Raises:
            AuthFailed: bad/expired token, ended session, inactive user or idle session
        """
        if not token:
            raise AuthFailed('Token is missing')
        session = self._load(self._decode(token))
        if session is None or session.is_revoked:
            raise AuthFailed('Session has ended')
        if not session.user.is_active:
            raise AuthFailed('User is deactivated')

        if self._is_idle(session):
            self._revoke(session, 'idle_timeout')
            logger.info(f"Session {session.id} of {session.user.email} expired after inactivity")
            self._emit(IDLE_TIMEOUT, session.user)
            raise AuthFailed(IDLE_MESSAGE)

        if record_activity:
            self.record_activity(session)
        return session

    def _is_idle(self, session: DBAuthSession) -> bool:
        return utcnow() - session.last_activity_at > self.idle_window

    def record_activity(self, session: DBAuthSession):
        session.last_activity_at = utcnow()
        _commit('Record activity')

    def _revoke(self, session: DBAuthSession, reason: str):
        session.revoked_at = utcnow()
        session.revoked_reason = reason
        _commit('Revoke session')


def get_auth_provider() -> AuthProvider:
    """The app's AuthProvider (created by create_app)"""
    provider = current_app.extensions.get('auth_provider')
    if provider is None:
        provider = current_app.extensions['auth_provider'] = AuthProvider()
    return provider


@dataclass
class SessionState:
    """Post-login state: roster for admins, one aggregate for clients"""
    role: str
    user: DBUser
    roster: Optional[List[ClientAggregate]] = None
    client: Optional[ClientAggregate] = None
    impersonating: Optional[ClientAggregate] = None

    def to_dict(self) -> dict:
        data = {'role': self.role, 'user': self.user.to_dict()}
        if self.roster is not None:
            data['clients'] = [c.to_dict() for c in self.roster]
        if self.client is not None:
            data['client'] = self.client.to_dict()
        if self.impersonating is not None:
            data['impersonating'] = self.impersonating.to_dict(include_vault=False)
        return data


class SessionService:
    """Role routing for app start, both login paths and impersonation"""

    def __init__(self, auth_provider: AuthProvider = None, client_service: ClientService = None):
        self._auth_provider = auth_provider
        self.clients = client_service or get_client_service()

    @property
    def auth(self) -> AuthProvider:
        return self._auth_provider or get_auth_provider()

    def resolve(self, user: DBUser) -> SessionState:
        """
        Load what the user's role is entitled to, and nothing else.

        Raises:
            AuthFailed: a client login with no client record, or an unknown role
        """
        if user.role == UserRole.ADMIN:
            return SessionState(role=UserRole.ADMIN, user=user, roster=self.clients.fetch_all_clients())

        if user.role == UserRole.CLIENT:
            client = self.clients.fetch_client_by_email(user.email)
            if client is None:
                raise AuthFailed('No client account is linked to this login')
            return SessionState(role=UserRole.CLIENT, user=user, client=client)

        logger.error(f"User {user.email} has unknown role {user.role!r}")
        raise AuthFailed('Unknown role')

    def resolve_session(self, session: DBAuthSession) -> SessionState:
        state = self.resolve(session.user)
        if state.role == UserRole.ADMIN and session.impersonated_client_id:
            try:
                state.impersonating = self.clients.fetch_client(session.impersonated_client_id)
            except NotFound:
                self.stop_impersonation(session)
        return state

    def admin_login(self, email: str, password: str) -> Tuple[str, SessionState]:
        token, user = self.auth.sign_in_with_password(email, password)
        if user.role != UserRole.ADMIN:
            self.auth.sign_out(token)
            raise AuthFailed('Admin access required')
        return token, self.resolve(user)

    def client_login(self, email: str, password: str) -> Tuple[str, SessionState]:
        """
        Portal login: checks the client's portal password and provisions a
        client-role user for that email on first use.
        """
        email = (email or '').strip().lower()
        client = DBClient.query.filter_by(email=email).first()
        if client is None or not client.verify_password(password or ''):
            raise AuthFailed('Invalid email or password')

        user = DBUser.query.filter_by(email=email).first()
        if user is None:
            user = DBUser(email=email, name=client.name, role=UserRole.CLIENT)
            db.session.add(user)
            _commit('Provision client login')
            logger.info(f"Provisioned portal login for {email}")
        elif user.role != UserRole.CLIENT:
            raise AuthFailed('Use the admin login for this account')
        if not user.is_active:
            raise AuthFailed('Account is deactivated')

        token = self.auth.issue_token(user)
        return token, self.resolve(user)

    # ============================================
    # Impersonation
    # ============================================

    def start_impersonation(self, session: DBAuthSession, client_id: str) -> ClientAggregate:
        """Point an admin session at one client's portal; the role does not change"""
        if not session.user.is_admin:
            raise AuthFailed('Admin access required')
        client = self.clients.fetch_client(client_id)
        session.impersonated_client_id = client.id
        _commit('Start impersonation')
        logger.info(f"{session.user.email} is viewing the portal of {client.email}")
        return client

    def stop_impersonation(self, session: DBAuthSession):
        session.impersonated_client_id = None
        _commit('Stop impersonation')

    def portal_client(self, session: DBAuthSession) -> ClientAggregate:
        """The client a portal request acts on"""
        user = session.user
        if user.role == UserRole.CLIENT:
            client = self.clients.fetch_client_by_email(user.email)
            if client is None:
                raise AuthFailed('No client account is linked to this login')
            return client
        if user.role == UserRole.ADMIN and session.impersonated_client_id:
            return self.clients.fetch_client(session.impersonated_client_id)
        raise AuthFailed('Select a client to view its portal')


_session_service = None


def get_session_service() -> SessionService:
    """Get or create session service singleton"""
    global _session_service
    if _session_service is None:
        _session_service = SessionService()
    return _session_service
