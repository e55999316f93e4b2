"""
NexusHub - Test fixtures
Each test gets a fresh app on an in-memory SQLite database.
"""
import pytest

from nexushub import create_app
from nexushub.database import db
from nexushub.models.db_models import DBUser, UserRole
from nexushub.services.client_service import ClientService

PROVIDER_ENV = (
    'OPENAI_API_KEY',
    'ANTHROPIC_API_KEY',
    'RESEND_API_KEY',
    'EVOLUTION_API_URL',
    'EVOLUTION_API_KEY',
    'EVOLUTION_INSTANCE',
)

ADMIN_EMAIL = 'admin@nexushub.com'
ADMIN_PASSWORD = 'admin-pass-123'
PORTAL_PASSWORD = 'portal-pass-123'


@pytest.fixture
def app(monkeypatch):
    # No test may reach a real provider
    for key in PROVIDER_ENV:
        monkeypatch.delenv(key, raising=False)

    app = create_app('testing')
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def http(app):
    return app.test_client()


@pytest.fixture
def service(app):
    return ClientService()


@pytest.fixture
def auth_provider(app):
    return app.extensions['auth_provider']


@pytest.fixture
def admin_user(app):
    user = DBUser(email=ADMIN_EMAIL, name='Admin', password=ADMIN_PASSWORD, role=UserRole.ADMIN)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin_token(auth_provider, admin_user):
    return auth_provider.issue_token(admin_user)


@pytest.fixture
def admin_headers(admin_token):
    return {'Authorization': f'Bearer {admin_token}'}


@pytest.fixture
def profile():
    """Profile fields for a new client"""
    return {
        'name': 'Alice Johnson',
        'company': 'Bloom Boutique',
        'email': 'alice@bloom.com',
        'siteUrl': 'bloomboutique.com.br',
        'siteType': 'ecommerce',
        'hostingExpiry': '2025-12-15',
        'maintenanceMode': False,
        'phone': '11987654321',
        'password': PORTAL_PASSWORD,
    }


@pytest.fixture
def alice(service, profile):
    """Id of a stored client with a portal password"""
    return service.create_client(profile, [{'name': 'Hospedagem', 'price': 149.9}])
