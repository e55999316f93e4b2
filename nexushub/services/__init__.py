"""
NexusHub - Services
Client reconciliation, sessions and external providers
"""
from nexushub.services.client_service import ClientService, get_client_service
from nexushub.services.session_service import AuthProvider, SessionService, SessionState
from nexushub.services.catalog_service import CatalogService
from nexushub.services.settings_service import AgencySettings, SettingsService
from nexushub.services.ai_service import AIService, ai_service
from nexushub.services.notification_service import NotificationService, get_notification_service
from nexushub.services.audit_service import AuditService, audit_service

__all__ = [
    'ClientService',
    'get_client_service',
    'AuthProvider',
    'SessionService',
    'SessionState',
    'CatalogService',
    'AgencySettings',
    'SettingsService',
    'AIService',
    'ai_service',
    'NotificationService',
    'get_notification_service',
    'AuditService',
    'audit_service'
]
