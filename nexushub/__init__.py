"""
NexusHub - Agency Client Management Platform
Client roster, client portal, AI blog drafting and notifications
"""
from flask import Flask, jsonify
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix
import os
import logging

__version__ = "1.0.0"

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(config_name=None):
    """Application factory pattern"""
    app = Flask(__name__)

    # Fix for running behind a reverse proxy
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    # Load config
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    from nexushub.config import config
    # Use instance instead of class to support @property
    config_instance = config[config_name]()
    app.config.from_object(config_instance)

    if not app.config.get('SQLALCHEMY_DATABASE_URI'):
        raise RuntimeError('DATABASE_URL must be set in production')

    # Enable CORS - set CORS_ORIGINS in production
    cors_origins = app.config.get('CORS_ORIGINS', '*')
    if cors_origins == '*' and config_name == 'production':
        logger.warning("SECURITY: CORS_ORIGINS is set to '*' in production! Set specific origins.")
    CORS(app, origins=cors_origins)

    # Rate limiting
    limiter = Limiter(
        app=app,
        key_func=get_remote_address,
        default_limits=["200 per day", "50 per hour"],
        storage_uri="memory://"
    )
    app.limiter = limiter  # Store for use in routes

    # Initialize database
    from nexushub.database import init_db
    init_db(app)

    # Session events feed the audit log
    from nexushub.services.audit_service import audit_service
    from nexushub.services.session_service import AuthProvider
    auth_provider = AuthProvider()
    auth_provider.on_session_change(audit_service.on_session_change)
    app.extensions['auth_provider'] = auth_provider

    # Agency settings are cached on the app
    from nexushub.services.settings_service import SettingsService
    with app.app_context():
        SettingsService().load()

    # Register blueprints
    from nexushub.routes import register_routes
    register_routes(app)

    # Activity pings arrive on every input event
    limiter.exempt(app.view_functions['auth.activity'])

    # ==========================================
    # GLOBAL ERROR HANDLERS
    # ==========================================

    from nexushub.errors import NexusHubError

    @app.errorhandler(NexusHubError)
    def handle_nexushub_error(error):
        if error.status_code >= 500:
            logger.error(f"{error.kind}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({
            'error': 'Bad request',
            'message': str(error.description) if hasattr(error, 'description') else 'Invalid request'
        }), 400

    @app.errorhandler(401)
    def unauthorized(error):
        return jsonify({
            'error': 'Unauthorized',
            'message': 'Authentication required'
        }), 401

    @app.errorhandler(403)
    def forbidden(error):
        return jsonify({
            'error': 'Forbidden',
            'message': 'Access denied'
        }), 403

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'error': 'Not found',
            'message': 'The requested resource was not found'
        }), 404

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal server error: {error}")
        return jsonify({
            'error': 'Internal server error',
            'message': 'An unexpected error occurred'
        }), 500

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Catch-all for unhandled exceptions"""
        if isinstance(error, HTTPException):
            return jsonify({
                'error': error.name,
                'message': error.description
            }), error.code
        logger.error(f"Unhandled exception: {error}", exc_info=True)
        return jsonify({
            'error': 'Server error',
            'message': 'An unexpected error occurred'
        }), 500

    # Health check
    @app.route('/health')
    def health():
        # Basic health check with database ping
        try:
            from nexushub.database import db
            db.session.execute(db.text('SELECT 1'))
            db_status = 'connected'
        except Exception as e:
            db_status = f'error: {str(e)[:50]}'

        return {
            'status': 'healthy' if db_status == 'connected' else 'degraded',
            'version': __version__,
            'database': db_status
        }

    # Diagnostic endpoint - which providers are configured
    @app.route('/health/config')
    def health_config():
        from nexushub.services.ai_service import ai_service
        from nexushub.services.email_service import get_email_service
        from nexushub.services.messaging_service import get_messaging_service

        return {
            'status': 'ok' if ai_service.is_configured else 'missing_ai_key',
            'version': __version__,
            'config': {
                'ai_configured': ai_service.is_configured,
                'email_configured': get_email_service().is_configured,
                'whatsapp_configured': get_messaging_service().is_configured,
                'session_idle_minutes': app.config.get('SESSION_IDLE_MINUTES')
            }
        }

    return app
