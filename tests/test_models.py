"""
NexusHub - Model Tests
"""
import pytest
from datetime import date

from nexushub.errors import ValidationRejected
from nexushub.models.aggregate import Address, ClientAggregate, Integration
from nexushub.models.db_models import DBClient, DBUser, SiteType, UserRole
from nexushub.models.integration import (
    DEFAULT_INTEGRATIONS, IntegrationKind, mask_config, validate_config
)
from nexushub.models.notification import NotificationResult


class TestUserModel:
    """Test DBUser"""
    
    def test_password_verification(self):
        user = DBUser("Admin@Test.com ", "Test Admin", "password123", role=UserRole.ADMIN)
        
        assert user.email == "admin@test.com"
        assert user.is_admin
        assert user.verify_password("password123")
        assert not user.verify_password("wrongpassword")
    
    def test_user_without_password_never_verifies(self):
        user = DBUser("client@test.com", "Client")
        
        assert user.role == UserRole.CLIENT
        assert not user.verify_password("")
        assert not user.verify_password("anything")
    
    def test_user_to_dict(self):
        data = DBUser("admin@test.com", "Test Admin", "password123", role=UserRole.ADMIN).to_dict()
        
        assert data['role'] == "admin"
        assert 'password_hash' not in data


class TestClientModel:
    """Test DBClient portal credential"""
    
    def test_password_is_hashed(self):
        client = DBClient("Alice", "alice@bloom.com", password="secret-1")
        
        assert client.password_hash != "secret-1"
        assert client.verify_password("secret-1")
    
    def test_clearing_password(self):
        client = DBClient("Alice", "alice@bloom.com", password="secret-1")
        client.set_password(None)
        
        assert client.password_hash is None
        assert not client.verify_password("secret-1")


class TestSiteType:
    
    def test_parse_values_and_labels(self):
        assert SiteType.parse('ecommerce') == SiteType.ECOMMERCE
        assert SiteType.parse('E-commerce') == SiteType.ECOMMERCE
        assert SiteType.parse('Landing Page') == SiteType.LANDING_PAGE
        assert SiteType.parse('Institucional') == SiteType.INSTITUTIONAL
        assert SiteType.parse('blog') is None


class TestIntegrationKind:
    """Kinds are resolved from display names once"""
    
    @pytest.mark.parametrize('name,kind', [
        ('Google Analytics 4', IntegrationKind.GOOGLE_ANALYTICS_4),
        ('GA4', IntegrationKind.GOOGLE_ANALYTICS_4),
        ('WordPress', IntegrationKind.WORDPRESS),
        ('Facebook Pixel', IntegrationKind.META_PIXEL),
        ('HubSpot CRM', IntegrationKind.HUBSPOT),
        ('Zapier', IntegrationKind.CUSTOM),
        (None, IntegrationKind.CUSTOM),
    ])
    def test_from_name(self, name, kind):
        assert IntegrationKind.from_name(name) == kind
    
    def test_parse_accepts_values(self):
        assert IntegrationKind.parse('meta_pixel') == IntegrationKind.META_PIXEL
        assert IntegrationKind.parse('Mailchimp') == IntegrationKind.MAILCHIMP
    
    def test_defaults(self):
        assert [k.display_name for k in DEFAULT_INTEGRATIONS] == ['Google Analytics 4', 'WordPress']


class TestIntegrationConfig:
    
    def test_wordpress_requires_all_fields(self):
        with pytest.raises(ValidationRejected) as exc:
            validate_config(IntegrationKind.WORDPRESS, {'url': 'https://site.com'})
        
        assert 'username' in exc.value.message
        assert 'app_password' in exc.value.message
    
    def test_validate_strips_unknown_keys(self):
        config = validate_config(IntegrationKind.GOOGLE_ANALYTICS_4,
                                 {'property_id': ' G-123 ', 'extra': 'x'})
        
        assert config == {'property_id': 'G-123'}
    
    def test_custom_accepts_anything_empty(self):
        assert validate_config(IntegrationKind.CUSTOM, None) == {}
    
    def test_mask_hides_secrets_only(self):
        masked = mask_config(IntegrationKind.MAILCHIMP, {'api_key': 'abc', 'audience_id': 'list1'})
        
        assert masked == {'api_key': '***', 'audience_id': 'list1'}


class TestClientAggregate:
    
    def _aggregate(self):
        return ClientAggregate(
            id='client_1', email='alice@bloom.com', name='Alice', company='Bloom',
            hosting_expiry=date(2025, 12, 15),
            address=Address(street='Rua A', number='10', city='São Paulo', state='SP', zip_code='01310-100'),
            integrations=[Integration(id='i1', name='WordPress', icon='', status='connected',
                                      kind=IntegrationKind.WORDPRESS,
                                      config={'url': 'u', 'username': 'n', 'app_password': 'p'})]
        )
    
    def test_to_dict_uses_camel_case(self):
        data = self._aggregate().to_dict()
        
        assert data['hostingExpiry'] == '2025-12-15'
        assert data['address']['zipCode'] == '01310-100'
        assert data['visits'] == [0] * 7
        assert data['hasPassword'] is False
        assert 'passwordVaultItems' in data
    
    def test_to_dict_masks_integration_secrets(self):
        data = self._aggregate().to_dict()
        
        assert data['integrations'][0]['config']['app_password'] == '***'
        assert data['integrations'][0]['kind'] == 'wordpress'
    
    def test_portal_view_has_no_vault(self):
        assert 'passwordVaultItems' not in self._aggregate().to_dict(include_vault=False)
    
    def test_get_integration(self):
        aggregate = self._aggregate()
        
        assert aggregate.get_integration(IntegrationKind.WORDPRESS).id == 'i1'
        assert aggregate.get_integration(IntegrationKind.HUBSPOT) is None


class TestNotificationResult:
    
    def test_failed(self):
        result = NotificationResult.failed('API key missing')
        
        assert result.success is False
        assert result.to_dict() == {'success': False, 'detail': 'API key missing'}
