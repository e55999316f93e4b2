"""
NexusHub - Client Service Tests
Storage mapping, transactional writes and collection replacement
"""
import pytest
from datetime import date
from unittest import mock

from sqlalchemy.exc import OperationalError

from nexushub.database import db, utcnow
from nexushub.errors import BackendUnavailable, NotFound, ValidationRejected
from nexushub.models.db_models import (
    DBAuthSession, DBBlogPost, DBClient, DBClientAnalytics, DBContract, DBIntegration,
    DBProduct, DBUser, DBVaultItem, UserRole
)
from nexushub.models.integration import IntegrationKind
from nexushub.services.client_service import DUPLICATE_EMAIL_MESSAGE, ClientService, parse_visits


def _owned_row_counts(client_id):
    return {
        model.__tablename__: model.query.filter_by(client_id=client_id).count()
        for model in (DBBlogPost, DBIntegration, DBClientAnalytics, DBProduct, DBContract, DBVaultItem)
    }


class TestCreateAndFetch:
    """Creating a client and reading it back"""

    def test_round_trip(self, service, alice):
        client = service.fetch_client(alice)

        assert client.name == 'Alice Johnson'
        assert client.company == 'Bloom Boutique'
        assert client.email == 'alice@bloom.com'
        assert client.site_type == 'ecommerce'
        assert client.hosting_expiry == date(2025, 12, 15)
        assert client.phone == '(11) 98765-4321'
        assert client.has_password is True
        assert client.visits == [0] * 7
        assert [p.name for p in client.products] == ['Hospedagem']
        assert client.products[0].price == 149.9

    def test_default_integrations_are_disconnected(self, service, alice):
        client = service.fetch_client(alice)

        assert [i.kind for i in client.integrations] == [
            IntegrationKind.GOOGLE_ANALYTICS_4, IntegrationKind.WORDPRESS
        ]
        assert all(i.status == 'disconnected' for i in client.integrations)

    def test_password_never_leaves_storage(self, service, alice):
        data = service.fetch_client(alice).to_dict()

        assert data['hasPassword'] is True
        assert 'password' not in data
        assert db.session.get(DBClient, alice).password_hash.startswith('$2')

    def test_email_is_required(self, service, profile):
        profile['email'] = ' '

        with pytest.raises(ValidationRejected):
            service.create_client(profile)

    def test_duplicate_email_is_rejected(self, service, profile, alice):
        profile['email'] = 'ALICE@bloom.com'

        with pytest.raises(ValidationRejected) as exc:
            service.create_client(profile)

        assert exc.value.message == DUPLICATE_EMAIL_MESSAGE
        assert len(service.fetch_all_clients()) == 1

    def test_initial_visits(self, service, profile):
        client_id = service.create_client(profile, visits=[1, 2, 3, 4, 5, 6, 7])

        assert service.fetch_client(client_id).visits == [1, 2, 3, 4, 5, 6, 7]

    def test_fetch_by_email(self, service, alice):
        assert service.fetch_client_by_email(' Alice@Bloom.com ').id == alice
        assert service.fetch_client_by_email('nobody@example.com') is None
        assert service.fetch_client_by_email('') is None

    def test_fetch_unknown_id(self, service):
        with pytest.raises(NotFound):
            service.fetch_client('client_missing')

    def test_roster_is_sorted_by_name(self, service, profile, alice):
        service.create_client({'name': 'Aaron', 'email': 'aaron@example.com'})

        assert [c.name for c in service.fetch_all_clients()] == ['Aaron', 'Alice Johnson']


class TestCreateRollback:
    """A failing step leaves no partial client behind"""

    def test_invalid_product_rolls_back(self, service, profile):
        with pytest.raises(ValidationRejected):
            service.create_client(profile, [{'name': 'Hospedagem', 'price': -1}])

        assert DBClient.query.count() == 0
        assert DBIntegration.query.count() == 0
        assert DBClientAnalytics.query.count() == 0

    def test_storage_failure_rolls_back(self, service, profile):
        failure = OperationalError('INSERT INTO products', {}, Exception('disk I/O error'))

        with mock.patch.object(ClientService, '_replace_collection', side_effect=failure):
            with pytest.raises(BackendUnavailable):
                service.create_client(profile, [{'name': 'Hospedagem', 'price': 10}])

        assert DBClient.query.count() == 0
        assert DBIntegration.query.count() == 0
        assert service.fetch_all_clients() == []


class TestUpdate:
    """Sparse updates and collection replacement"""

    def test_sparse_update_keeps_other_fields(self, service, alice):
        before = service.fetch_client(alice)

        after = service.update_client(alice, {'company': 'Bloom Co'})

        assert after.company == 'Bloom Co'
        assert after.name == before.name
        assert after.site_url == before.site_url
        assert after.products == before.products
        assert after.integrations == before.integrations
        assert after.has_password is True

    def test_full_round_trip_through_update(self, service, alice):
        service.replace_posts(alice, [{'title': 'Post', 'status': 'published', 'date': '2023-10-01'}])
        service.replace_contracts(alice, [
            {'title': 'Manutenção', 'startDate': '2024-01-01', 'endDate': '2024-12-31', 'value': 900}
        ])
        service.update_client(alice, {
            'document': '52998224725',
            'visits': [3, 1, 4, 1, 5, 9, 2],
            'address': {'street': 'Rua A', 'number': '10', 'neighborhood': 'Centro',
                        'city': 'Campinas', 'state': 'SP', 'zipCode': '13010-000'},
        })
        before = service.fetch_client(alice)

        after = service.update_client(alice, before.to_dict())

        assert after == before

    def test_empty_product_list_deletes_products(self, service, alice):
        before = service.fetch_client(alice)

        client = service.update_client(alice, {'products': []})

        assert client.products == []
        assert client.integrations == before.integrations
        assert client.contracts == before.contracts
        assert DBProduct.query.filter_by(client_id=alice).count() == 0

    def test_null_collection_is_rejected(self, service, alice):
        with pytest.raises(ValidationRejected):
            service.update_client(alice, {'products': None})

        assert len(service.fetch_client(alice).products) == 1

    def test_read_only_keys_are_ignored(self, service, alice):
        client = service.update_client(alice, {'id': 'client_other', 'hasPassword': False, 'notes': 'VIP'})

        assert client.id == alice
        assert client.has_password is True
        assert client.notes == 'VIP'

    def test_unknown_field(self, service, alice):
        with pytest.raises(ValidationRejected) as exc:
            service.update_client(alice, {'favouriteColor': 'blue'})

        assert 'favouriteColor' in exc.value.message

    def test_password_semantics(self, service, alice):
        service.update_client(alice, {'password': ''})
        assert service.fetch_client(alice).has_password is True

        service.update_client(alice, {'password': None})
        assert service.fetch_client(alice).has_password is False

    def test_duplicate_email_on_update(self, service, alice):
        other = service.create_client({'name': 'Bob', 'email': 'bob@example.com'})

        with pytest.raises(ValidationRejected) as exc:
            service.update_client(other, {'email': 'alice@bloom.com'})

        assert exc.value.message == DUPLICATE_EMAIL_MESSAGE

    def test_email_change_moves_portal_login(self, service, alice):
        db.session.add(DBUser(email='alice@bloom.com', name='Alice', role=UserRole.CLIENT))
        db.session.commit()

        service.update_client(alice, {'email': 'alice@newbloom.com'})

        assert DBUser.query.filter_by(email='alice@newbloom.com').count() == 1

    def test_document_checksum(self, service, alice):
        assert service.update_client(alice, {'document': '529.982.247-25'}).document == '52998224725'

        with pytest.raises(ValidationRejected):
            service.update_client(alice, {'document': '11.222.333/0001-82'})

    def test_address(self, service, alice):
        client = service.update_client(alice, {'address': {
            'street': 'Av. Paulista', 'number': '1000', 'neighborhood': 'Bela Vista',
            'city': 'São Paulo', 'state': 'sp', 'zipCode': '01310100'
        }})

        assert client.address.state == 'SP'
        assert client.address.zip_code == '01310-100'
        assert client.address.complement is None

    def test_visits_must_have_seven_numbers(self, service, alice):
        with pytest.raises(ValidationRejected):
            service.update_client(alice, {'visits': [1, 2, 3]})

        assert service.update_client(alice, {'visits': [5] * 7}).visits == [5] * 7

    def test_replace_posts_keeps_given_order(self, service, alice):
        client = service.replace_posts(alice, [
            {'title': 'Primeiro', 'status': 'published', 'date': '01/10/2023'},
            {'title': 'Segundo'},
        ])

        assert [p.title for p in client.posts] == ['Primeiro', 'Segundo']
        assert client.posts[0].date == date(2023, 10, 1)
        assert client.posts[1].status == 'draft'

    def test_replace_contracts_validates_dates(self, service, alice):
        with pytest.raises(ValidationRejected):
            service.replace_contracts(alice, [
                {'title': 'Manutenção', 'startDate': '2024-12-31', 'endDate': '2024-01-01'}
            ])

        client = service.replace_contracts(alice, [
            {'title': 'Manutenção', 'startDate': '2024-01-01', 'endDate': '2024-12-31', 'value': 1200}
        ])
        assert client.contracts[0].value == 1200.0

    def test_replace_vault_items(self, service, alice):
        client = service.replace_vault_items(alice, [
            {'service': 'cPanel', 'username': 'bloom', 'password': 's3cret'}
        ])

        assert client.password_vault_items[0].password == 's3cret'
        assert service.replace_vault_items(alice, []).password_vault_items == []

    def test_duplicate_item_ids(self, service, alice):
        with pytest.raises(ValidationRejected):
            service.replace_products(alice, [{'id': 'p1', 'name': 'A'}, {'id': 'p1', 'name': 'B'}])


class TestAnalytics:

    def test_missing_row_reads_as_zeros(self, service, alice):
        db.session.delete(DBClientAnalytics.query.filter_by(client_id=alice).one())
        db.session.commit()

        assert service.fetch_client(alice).visits == [0] * 7

    def test_malformed_series_is_normalized(self, service, alice):
        analytics = DBClientAnalytics.query.filter_by(client_id=alice).one()
        analytics.visits_data = '[1, 2, "x", -4]'
        db.session.commit()

        assert service.fetch_client(alice).visits == [1, 2, 0, 0, 0, 0, 0]

    def test_long_series_is_truncated(self, service, alice):
        analytics = DBClientAnalytics.query.filter_by(client_id=alice).one()
        analytics.visits_data = '[1, 2, 3, 4, 5, 6, 7, 8, 9]'
        db.session.commit()

        assert service.fetch_client(alice).visits == [1, 2, 3, 4, 5, 6, 7]

    @pytest.mark.parametrize('stored', ['[1, 2, 3]', '[1, 2, "x", 4, 5, 6, 7]', '{"mon": 1}'])
    def test_normalizing_is_logged(self, service, alice, stored, caplog):
        analytics = DBClientAnalytics.query.filter_by(client_id=alice).one()
        analytics.visits_data = stored
        db.session.commit()

        with caplog.at_level('WARNING', logger='nexushub.services.client_service'):
            assert len(service.fetch_client(alice).visits) == 7

        assert 'malformed visits series' in caplog.text

    def test_well_formed_series_is_not_logged(self, service, alice, caplog):
        service.update_client(alice, {'visits': [3, 1, 4, 1, 5, 9, 2]})

        with caplog.at_level('WARNING', logger='nexushub.services.client_service'):
            assert service.fetch_client(alice).visits == [3, 1, 4, 1, 5, 9, 2]

        assert 'malformed visits series' not in caplog.text

    def test_parse_visits_rejects_booleans(self):
        with pytest.raises(ValidationRejected):
            parse_visits([True, 0, 0, 0, 0, 0, 0])


class TestDelete:

    def test_delete_removes_every_owned_row(self, service, alice):
        service.replace_contracts(alice, [
            {'title': 'Manutenção', 'startDate': '2024-01-01', 'endDate': '2024-12-31'}
        ])
        service.replace_posts(alice, [{'title': 'Post'}])
        service.replace_vault_items(alice, [{'service': 'cPanel'}])

        assert service.delete_client(alice) is True

        assert db.session.get(DBClient, alice) is None
        assert all(count == 0 for count in _owned_row_counts(alice).values())

    def test_delete_removes_portal_login(self, service, auth_provider, alice):
        user = DBUser(email='alice@bloom.com', name='Alice', role=UserRole.CLIENT)
        db.session.add(user)
        db.session.commit()
        auth_provider.issue_token(user)
        user_id = user.id

        service.delete_client(alice)

        assert DBUser.query.filter_by(email='alice@bloom.com').count() == 0
        assert DBAuthSession.query.filter_by(user_id=user_id).count() == 0

    def test_email_is_reusable_after_delete(self, service, alice):
        bob = service.create_client({'name': 'Bob', 'email': 'bob@example.com'})
        db.session.add(DBUser(email='alice@bloom.com', name='Alice', role=UserRole.CLIENT))
        db.session.add(DBUser(email='bob@example.com', name='Bob', role=UserRole.CLIENT))
        db.session.commit()
        service.delete_client(alice)

        client = service.update_client(bob, {'email': 'alice@bloom.com'})

        assert client.email == 'alice@bloom.com'
        assert DBUser.query.filter_by(email='alice@bloom.com', role=UserRole.CLIENT).count() == 1

    def test_delete_keeps_admin_with_same_email(self, service, admin_user):
        client_id = service.create_client({'name': 'Agency', 'email': admin_user.email})

        service.delete_client(client_id)

        assert db.session.get(DBUser, admin_user.id) is not None

    def test_second_delete_is_not_found(self, service, alice):
        service.delete_client(alice)

        with pytest.raises(NotFound):
            service.delete_client(alice)


class TestIntegrations:

    def _wordpress(self, service, client_id):
        return service.fetch_client(client_id).get_integration(IntegrationKind.WORDPRESS)

    def test_status_defaults_last_sync_to_now(self, service, alice):
        before = utcnow()
        wordpress = self._wordpress(service, alice)

        result = service.update_integration_status(wordpress.id, 'pending')

        assert result.status == 'pending'
        assert result.last_sync >= before

    def test_explicit_last_sync(self, service, alice):
        wordpress = self._wordpress(service, alice)

        result = service.update_integration_status(wordpress.id, 'pending', '2024-05-01T10:00:00Z')

        assert result.last_sync.isoformat() == '2024-05-01T10:00:00'

    def test_invalid_status(self, service, alice):
        with pytest.raises(ValidationRejected):
            service.update_integration_status(self._wordpress(service, alice).id, 'broken')

    def test_connect_validates_config(self, service, alice):
        wordpress = self._wordpress(service, alice)

        with pytest.raises(ValidationRejected):
            service.update_integration_status(wordpress.id, 'connected', config={'url': 'https://bloom.com'})

        assert self._wordpress(service, alice).status == 'disconnected'

    def test_other_clients_integration_is_not_found(self, service, alice):
        other = service.create_client({'name': 'Bob', 'email': 'bob@example.com'})

        with pytest.raises(NotFound):
            service.update_integration_status(self._wordpress(service, alice).id, 'pending', client_id=other)

    def test_masked_secret_survives_round_trip(self, service, alice):
        wordpress = self._wordpress(service, alice)
        service.update_integration_status(wordpress.id, 'connected', config={
            'url': 'https://bloom.com', 'username': 'admin', 'app_password': 'abcd efgh'
        })

        echoed = [i.to_dict() for i in service.fetch_client(alice).integrations]
        assert echoed[1]['config']['app_password'] == '***'

        service.replace_integrations(alice, echoed)

        assert db.session.get(DBIntegration, wordpress.id).get_config()['app_password'] == 'abcd efgh'

    def test_disconnect_wipes_config(self, service, alice):
        wordpress = self._wordpress(service, alice)
        service.update_integration_status(wordpress.id, 'connected', config={
            'url': 'https://bloom.com', 'username': 'admin', 'app_password': 'abcd'
        })

        result = service.update_integration_status(wordpress.id, 'disconnected', config={})

        assert result.config == {}


class TestSeed:

    def test_seed_is_idempotent(self, service):
        assert service.seed_demo_data() == 3
        assert service.seed_demo_data() == 0

        clients = service.fetch_all_clients()
        assert [c.email for c in clients] == [
            'alice@bloom.com', 'marcos@techflow.io', 'sara@urbanarch.net'
        ]

    def test_seed_skips_existing_clients(self, service, alice):
        assert service.seed_demo_data() == 2

    def test_seeded_integrations(self, service):
        service.seed_demo_data()
        alice = service.fetch_client_by_email('alice@bloom.com')

        statuses = {i.name: i.status for i in alice.integrations}
        assert statuses['Google Analytics 4'] == 'connected'
        assert statuses['Meta Pixel'] == 'connected'
        assert statuses['Mailchimp'] == 'disconnected'
        assert alice.visits == [120, 145, 132, 190, 210, 180, 250]
        assert len(alice.posts) == 2

    def test_portal_password(self, service):
        service.seed_demo_data(portal_password='demo-pass')

        assert service.fetch_client_by_email('marcos@techflow.io').has_password is True
