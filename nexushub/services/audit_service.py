"""
NexusHub - Audit Logging Service
Record logins, logouts and client changes
"""
import json
import logging
from datetime import timedelta
from typing import Optional, List, Dict

from flask import request, has_request_context

from nexushub.database import db, utcnow
from nexushub.models.db_models import DBAuditLog

logger = logging.getLogger(__name__)


class AuditService:
    """Writes audit events; a failing write is logged and never propagates"""

    # Action types
    ACTION_CREATE = 'create'
    ACTION_UPDATE = 'update'
    ACTION_DELETE = 'delete'
    ACTION_LOGIN = 'login'
    ACTION_LOGOUT = 'logout'
    ACTION_TIMEOUT = 'idle_timeout'
    ACTION_IMPERSONATE = 'impersonate'
    ACTION_PUBLISH = 'publish'

    # Resource types
    RESOURCE_USER = 'user'
    RESOURCE_CLIENT = 'client'
    RESOURCE_POST = 'post'
    RESOURCE_INTEGRATION = 'integration'
    RESOURCE_PRODUCT = 'product'
    RESOURCE_SETTING = 'setting'

    def log(
        self,
        action: str,
        resource_type: str,
        resource_id: Optional[str] = None,
        resource_name: Optional[str] = None,
        description: Optional[str] = None,
        user_id: Optional[str] = None,
        user_email: Optional[str] = None,
        metadata: Optional[Dict] = None,
        status: str = 'success',
        error_message: Optional[str] = None
    ) -> Optional[DBAuditLog]:
        """
        Log an audit event

        Call only after the audited change has been committed: the entry
        is written in its own commit.

        Returns:
            The created audit log entry, or None if it could not be written
        """
        try:
            ip_address = None
            endpoint = None
            http_method = None

            if has_request_context():
                ip_address = request.remote_addr
                endpoint = request.path
                http_method = request.method

            metadata_json = None
            if metadata is not None:
                metadata_json = json.dumps(metadata, default=str)

            log_entry = DBAuditLog(
                user_id=user_id,
                user_email=user_email,
                ip_address=ip_address,
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                resource_name=resource_name,
                description=description,
                extra_data=metadata_json,
                endpoint=endpoint,
                http_method=http_method,
                status=status,
                error_message=error_message,
                created_at=utcnow()
            )

            db.session.add(log_entry)
            db.session.commit()

            logger.debug(f"Audit: {action} {resource_type} {resource_id} by {user_email}")

            return log_entry

        except Exception as e:
            logger.error(f"Failed to create audit log: {e}")
            db.session.rollback()
            return None

    def log_login(self, user_id: Optional[str], user_email: str, success: bool = True, error: str = None):
        """Log a login attempt"""
        return self.log(
            action=self.ACTION_LOGIN,
            resource_type=self.RESOURCE_USER,
            resource_id=user_id,
            resource_name=user_email,
            user_id=user_id,
            user_email=user_email,
            description=f"User {'logged in successfully' if success else 'failed to log in'}",
            status='success' if success else 'failure',
            error_message=error
        )

    def log_logout(self, user_id: str, user_email: str, reason: str = None):
        """Log a logout or an inactivity timeout"""
        timed_out = reason == self.ACTION_TIMEOUT
        return self.log(
            action=self.ACTION_TIMEOUT if timed_out else self.ACTION_LOGOUT,
            resource_type=self.RESOURCE_USER,
            resource_id=user_id,
            resource_name=user_email,
            user_id=user_id,
            user_email=user_email,
            description="Session expired due to inactivity" if timed_out else "User logged out"
        )

    def log_change(self, action: str, resource_type: str, resource_id: str, resource_name: str,
                   user=None, metadata: Optional[Dict] = None):
        """Log a create/update/delete performed by user"""
        verb = {self.ACTION_CREATE: 'Created', self.ACTION_UPDATE: 'Updated',
                self.ACTION_DELETE: 'Deleted', self.ACTION_PUBLISH: 'Published'}.get(action, action)
        return self.log(
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            resource_name=resource_name,
            user_id=getattr(user, 'id', None),
            user_email=getattr(user, 'email', None),
            metadata=metadata,
            description=f"{verb} {resource_type}: {resource_name}"
        )

    def on_session_change(self, event: str, user):
        """Listener for AuthProvider session events"""
        if event == 'SIGNED_IN':
            self.log_login(user.id, user.email)
        elif event == 'SIGNED_OUT':
            self.log_logout(user.id, user.email)
        elif event == 'IDLE_TIMEOUT':
            self.log_logout(user.id, user.email, reason=self.ACTION_TIMEOUT)

    def get_logs(
        self,
        action: str = None,
        resource_type: str = None,
        resource_id: str = None,
        user_id: str = None,
        days: int = None,
        limit: int = 100,
        offset: int = 0
    ) -> List[DBAuditLog]:
        """Query audit logs with filters, newest first"""
        query = DBAuditLog.query

        if action:
            query = query.filter(DBAuditLog.action == action)
        if resource_type:
            query = query.filter(DBAuditLog.resource_type == resource_type)
        if resource_id:
            query = query.filter(DBAuditLog.resource_id == resource_id)
        if user_id:
            query = query.filter(DBAuditLog.user_id == user_id)
        if days:
            query = query.filter(DBAuditLog.created_at >= utcnow() - timedelta(days=days))

        return query.order_by(DBAuditLog.created_at.desc(), DBAuditLog.id.desc()).offset(offset).limit(limit).all()


# Singleton instance
audit_service = AuditService()
