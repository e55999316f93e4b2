"""
NexusHub - Routes
API endpoint registration
"""
from flask import Flask


def register_routes(app: Flask):
    """Register all API blueprints"""

    from nexushub.routes.auth import auth_bp
    from nexushub.routes.clients import clients_bp
    from nexushub.routes.portal import portal_bp
    from nexushub.routes.products import products_bp
    from nexushub.routes.settings import settings_bp

    # Register with /api prefix
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(clients_bp, url_prefix='/api/clients')
    app.register_blueprint(portal_bp, url_prefix='/api/portal')
    app.register_blueprint(products_bp, url_prefix='/api/products')
    app.register_blueprint(settings_bp, url_prefix='/api/settings')
