"""
NexusHub - Error taxonomy

Storage and auth errors propagate to the HTTP layer and are rendered as JSON
by the handlers registered in create_app(). Provider errors stay inside the
AI and notification services, which turn them into return values.
"""


class NexusHubError(Exception):
    """Base class for errors surfaced to API callers"""
    status_code = 500
    kind = 'error'
    default_message = 'An unexpected error occurred'
    
    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)
    
    def to_dict(self) -> dict:
        return {'error': self.kind, 'message': self.message}


class BackendUnavailable(NexusHubError):
    """Storage layer unreachable or failing"""
    status_code = 503
    kind = 'backend_unavailable'
    default_message = 'The service is temporarily unavailable. Please try again.'


class NotFound(NexusHubError):
    """Referenced id or email does not exist"""
    status_code = 404
    kind = 'not_found'
    default_message = 'The requested resource was not found'


class ValidationRejected(NexusHubError):
    """Input or storage-side constraint violation (e.g. duplicate email)"""
    status_code = 400
    kind = 'validation_rejected'
    default_message = 'The request was rejected'


class AuthFailed(NexusHubError):
    """Bad credentials, expired session or unknown role"""
    status_code = 401
    kind = 'auth_failed'
    default_message = 'Authentication failed'


class ProviderUnconfigured(NexusHubError):
    """An external provider has no credentials configured"""
    status_code = 503
    kind = 'provider_unconfigured'
    default_message = 'Provider is not configured'


class ProviderError(NexusHubError):
    """An external provider returned an error or was unreachable"""
    status_code = 502
    kind = 'provider_error'
    default_message = 'Provider request failed'
