"""
NexusHub - Client Service
Maps the relational client tables to and from the ClientAggregate.

Every read goes through _to_aggregate, the single schema -> aggregate path.
Every multi-row write runs inside one transaction; a failure at any step
rolls the whole operation back.
"""
import logging
import re
from contextlib import contextmanager
from datetime import date, timedelta
from typing import Optional, List, Dict, Iterable

from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload

from nexushub.database import db, utcnow
from nexushub.errors import NexusHubError, BackendUnavailable, NotFound, ValidationRejected
from nexushub.formatters import (
    digits_only, format_cep, format_phone_br, is_valid_cnpj, is_valid_cpf,
    parse_date, parse_datetime
)
from nexushub.models.aggregate import (
    VISITS_WINDOW, Address, BlogPost, ClientAggregate, Contract, Integration,
    Product, VaultItem
)
from nexushub.models.db_models import (
    DBAuthSession, DBBlogPost, DBClient, DBClientAnalytics, DBContract, DBIntegration,
    DBProduct, DBUser, DBVaultItem, ContractStatus, IntegrationStatus, PostStatus, SiteType,
    UserRole, new_id
)
from nexushub.models.integration import DEFAULT_INTEGRATIONS, IntegrationKind, validate_config
from nexushub.utils import safe_bool, safe_int

logger = logging.getLogger(__name__)

# Deleted, in this order, before the client row itself
OWNED_COLLECTIONS = ('posts', 'integrations', 'analytics', 'products', 'contracts', 'vault_items')

# Aggregate key -> clients column
SCALAR_FIELDS = {
    'name': 'name',
    'company': 'company',
    'email': 'email',
    'phone': 'phone',
    'avatar': 'avatar',
    'responsiblePerson': 'responsible_person',
    'notes': 'notes',
    'document': 'document',
    'siteUrl': 'site_url',
    'siteType': 'site_type',
    'hostingExpiry': 'hosting_expiry',
    'maintenanceMode': 'maintenance_mode',
}

# Aggregate key -> relationship attribute on DBClient
COLLECTION_FIELDS = {
    'posts': 'posts',
    'integrations': 'integrations',
    'products': 'products',
    'contracts': 'contracts',
    'passwordVaultItems': 'vault_items',
}

# Written by the server, ignored when echoed back
READ_ONLY_FIELDS = ('id', 'hasPassword')

_KEY_ALIASES = {
    'responsible_person': 'responsiblePerson',
    'site_url': 'siteUrl',
    'site_type': 'siteType',
    'hosting_expiry': 'hostingExpiry',
    'maintenance_mode': 'maintenanceMode',
    'password_vault_items': 'passwordVaultItems',
    'vault_items': 'passwordVaultItems',
    'has_password': 'hasPassword',
}

_ADDRESS_COLUMNS = {
    'street': 'address_street',
    'number': 'address_number',
    'complement': 'address_complement',
    'neighborhood': 'address_neighborhood',
    'city': 'address_city',
    'state': 'address_state',
    'zipCode': 'address_zip_code',
}

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')

DUPLICATE_EMAIL_MESSAGE = 'A client with this email already exists'


def _normalize_keys(fields: Dict) -> Dict:
    return {_KEY_ALIASES.get(key, key): value for key, value in fields.items()}


def _text(value) -> str:
    return '' if value is None else str(value).strip()


def _required_text(data: Dict, key: str, label: str) -> str:
    value = _text(data.get(key))
    if not value:
        raise ValidationRejected(f'{label} is required')
    return value


def _optional_text(value) -> Optional[str]:
    value = _text(value)
    return value or None


def _amount(value, label: str) -> float:
    if value is None or value == '':
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationRejected(f'{label} must be a number')
    if amount < 0:
        raise ValidationRejected(f'{label} cannot be negative')
    return amount


def _date_field(value, label: str, required: bool = False) -> Optional[date]:
    if value is None or value == '':
        if required:
            raise ValidationRejected(f'{label} is required')
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValidationRejected(f'{label} is not a valid date: {value}')
    return parsed


def _choice(value, allowed: Iterable[str], default: str, label: str) -> str:
    if value is None or value == '':
        return default
    if value not in allowed:
        raise ValidationRejected(f'Invalid {label}: {value}')
    return value


def parse_visits(visits) -> List[int]:
    """Validate a daily visit series: exactly seven non-negative integers"""
    if not isinstance(visits, (list, tuple)) or len(visits) != VISITS_WINDOW:
        raise ValidationRejected(f'visits must be a list of {VISITS_WINDOW} numbers')
    series = []
    for value in visits:
        if isinstance(value, bool):
            raise ValidationRejected('visits must contain only numbers')
        try:
            count = int(value)
        except (TypeError, ValueError):
            raise ValidationRejected('visits must contain only numbers')
        if count < 0:
            raise ValidationRejected('visits cannot be negative')
        series.append(count)
    return series


class ClientService:
    """
    Reconciliation layer between the relational schema and ClientAggregate.

    Mutations return ids or single sub-resources; callers re-read the
    roster (or the one aggregate) afterwards.
    """

    # ============================================
    # Transactions
    # ============================================

    @contextmanager
    def _storage_errors(self, action: str):
        """Roll back and translate storage failures into the error taxonomy"""
        try:
            yield
        except NexusHubError:
            db.session.rollback()
            raise
        except IntegrityError as e:
            db.session.rollback()
            logger.warning(f"{action} rejected by a storage constraint: {e.orig}")
            raise ValidationRejected(self._integrity_message(e))
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"{action} failed: {e}")
            raise BackendUnavailable()

    @contextmanager
    def _transaction(self, action: str):
        with self._storage_errors(action):
            yield
            db.session.commit()

    @staticmethod
    def _integrity_message(error: IntegrityError) -> str:
        if 'email' in str(error.orig).lower():
            return DUPLICATE_EMAIL_MESSAGE
        return 'The change conflicts with existing data'

    # ============================================
    # Reads
    # ============================================

    def _query(self):
        return DBClient.query.options(
            selectinload(DBClient.posts),
            selectinload(DBClient.integrations),
            selectinload(DBClient.products),
            selectinload(DBClient.contracts),
            selectinload(DBClient.vault_items),
            selectinload(DBClient.analytics),
        )

    def _get_row(self, client_id: str) -> DBClient:
        with self._storage_errors('Load client'):
            row = self._query().filter(DBClient.id == client_id).one_or_none()
        if row is None:
            raise NotFound(f'Client {client_id} not found')
        return row

    def fetch_all_clients(self) -> List[ClientAggregate]:
        """Every client with all owned collections; empty list means no clients"""
        with self._storage_errors('Fetch clients'):
            rows = self._query().order_by(DBClient.name, DBClient.created_at).all()
            return [self._to_aggregate(row) for row in rows]

    def fetch_client_by_email(self, email: Optional[str]) -> Optional[ClientAggregate]:
        """
        Load the one client owning this email.

        Returns None when no client matches; that is an expected outcome of
        the client login path, not an error.
        """
        email = _text(email).lower()
        if not email:
            return None
        with self._storage_errors('Fetch client by email'):
            row = self._query().filter(DBClient.email == email).one_or_none()
            return self._to_aggregate(row) if row else None

    def fetch_client(self, client_id: str) -> ClientAggregate:
        """Load one client by id; raises NotFound"""
        row = self._get_row(client_id)
        with self._storage_errors('Fetch client'):
            return self._to_aggregate(row)

    def email_exists(self, email: str, exclude_id: Optional[str] = None) -> bool:
        query = DBClient.query.filter(DBClient.email == _text(email).lower())
        if exclude_id:
            query = query.filter(DBClient.id != exclude_id)
        with self._storage_errors('Check email'):
            return db.session.query(query.exists()).scalar()

    # ============================================
    # Create / update / delete
    # ============================================

    def create_client(self, profile: Dict, initial_products: Optional[List[Dict]] = None,
                      visits: Optional[List[int]] = None) -> str:
        """
        Create a client with its analytics row, the default integrations
        and any initial products, all in one transaction.

        Returns:
            The new client id

        Raises:
            ValidationRejected: missing name/email, bad field values or a duplicate email
        """
        with self._transaction('Create client'):
            row = self._create_row(profile, initial_products, visits)
            client_id = row.id

        logger.info(f"Created client {client_id} ({row.email})")
        return client_id

    def _create_row(self, profile: Dict, initial_products: Optional[List[Dict]],
                    visits: Optional[List[int]]) -> DBClient:
        profile = _normalize_keys(dict(profile or {}))
        if visits is None:
            visits = profile.pop('visits', None)
        else:
            profile.pop('visits', None)
        if initial_products is None:
            initial_products = profile.pop('products', None)

        name = _required_text(profile, 'name', 'Name')
        email = _required_text(profile, 'email', 'Email')

        # Step 1: the client row (the other steps reference it)
        row = DBClient(name=name, email=email)
        self._apply_scalars(row, profile)
        db.session.add(row)
        db.session.flush()

        # Step 2: analytics series
        analytics = DBClientAnalytics()
        analytics.set_visits(parse_visits(visits) if visits is not None else [0] * VISITS_WINDOW)
        row.analytics = analytics

        # Step 3: default integrations, disconnected
        for position, kind in enumerate(DEFAULT_INTEGRATIONS):
            row.integrations.append(DBIntegration(
                id=new_id('integ'),
                kind=kind.value,
                name=kind.display_name,
                icon=kind.default_icon,
                status=IntegrationStatus.DISCONNECTED,
                config='{}',
                position=position
            ))

        # Step 4: initial products
        if initial_products:
            self._replace_collection(row, 'products', initial_products)

        db.session.flush()
        return row

    def update_client(self, client_id: str, fields: Dict) -> ClientAggregate:
        """
        Sparse update: only keys present in fields are written.

        A collection key present in fields replaces that whole collection
        (an empty list deletes every row of it). A collection key set to None
        is rejected; omit the key to leave the collection unchanged.
        """
        fields = _normalize_keys(dict(fields or {}))
        row = self._get_row(client_id)

        for key in COLLECTION_FIELDS:
            if key in fields and fields[key] is None:
                raise ValidationRejected(f'{key} cannot be null; omit it to leave it unchanged')

        scalars = {k: v for k, v in fields.items() if k not in COLLECTION_FIELDS}
        with self._transaction('Update client'):
            self._apply_scalars(row, scalars)
            for key, attr in COLLECTION_FIELDS.items():
                if key in fields:
                    self._replace_collection(row, attr, fields[key])
            row.updated_at = utcnow()

        logger.info(f"Updated client {client_id}: {', '.join(sorted(fields)) or 'no fields'}")
        return self.fetch_client(client_id)

    def _replace(self, client_id: str, attr: str, items: List[Dict]) -> ClientAggregate:
        if items is None:
            raise ValidationRejected('A collection replacement needs a list; send [] to clear it')
        row = self._get_row(client_id)
        with self._transaction(f'Replace {attr}'):
            self._replace_collection(row, attr, items)
            row.updated_at = utcnow()
        logger.info(f"Replaced {attr} of client {client_id} ({len(items)} items)")
        return self.fetch_client(client_id)

    def replace_products(self, client_id: str, items: List[Dict]) -> ClientAggregate:
        return self._replace(client_id, 'products', items)

    def replace_contracts(self, client_id: str, items: List[Dict]) -> ClientAggregate:
        return self._replace(client_id, 'contracts', items)

    def replace_posts(self, client_id: str, items: List[Dict]) -> ClientAggregate:
        return self._replace(client_id, 'posts', items)

    def replace_integrations(self, client_id: str, items: List[Dict]) -> ClientAggregate:
        return self._replace(client_id, 'integrations', items)

    def replace_vault_items(self, client_id: str, items: List[Dict]) -> ClientAggregate:
        return self._replace(client_id, 'vault_items', items)

    def delete_client(self, client_id: str) -> bool:
        """
        Delete every owned collection, then the client, in one transaction

        The client's portal login goes with it, together with every session
        it holds, so no old token can reach a later client with the same email.
        """
        row = self._get_row(client_id)
        email = row.email
        with self._transaction('Delete client'):
            for attr in OWNED_COLLECTIONS:
                if attr == 'analytics':
                    row.analytics = None
                else:
                    getattr(row, attr).clear()
                db.session.flush()
            self._drop_login(email)
            db.session.delete(row)

        logger.info(f"Deleted client {client_id} ({email})")
        return True

    @staticmethod
    def _drop_login(email: str):
        """Remove a client's portal user and its sessions"""
        user = DBUser.query.filter_by(email=email, role=UserRole.CLIENT).first()
        if user is None:
            return
        sessions = DBAuthSession.query.filter_by(user_id=user.id).delete(synchronize_session='fetch')
        db.session.delete(user)
        db.session.flush()
        logger.info(f"Removed portal login {email} and {sessions} session(s)")

    # ============================================
    # Single sub-resource writes
    # ============================================

    def add_post(self, client_id: str, post: Dict) -> BlogPost:
        """Append one post (portal publish flow)"""
        if not isinstance(post, dict):
            raise ValidationRejected('Post must be an object')
        row = self._get_row(client_id)
        with self._transaction('Add post'):
            new_post = self._build_post(post, 0, {})
            row.posts.append(new_post)
            row.updated_at = utcnow()
            db.session.flush()
            result = self._to_post(new_post)

        logger.info(f"Added post {result.id} to client {client_id}")
        return result

    def update_integration_status(self, integration_id: str, status: str, last_sync=None,
                                  config: Optional[Dict] = None,
                                  client_id: Optional[str] = None) -> Integration:
        """
        Set one integration's status. last_sync defaults to now.

        A config is validated against the kind's schema when connecting;
        passing {} while disconnecting wipes stored credentials.
        """
        status = _choice(status, IntegrationStatus.ALL, None, 'integration status')
        if status is None:
            raise ValidationRejected('status is required')

        with self._storage_errors('Load integration'):
            row = db.session.get(DBIntegration, integration_id)
        if row is None or (client_id and row.client_id != client_id):
            raise NotFound(f'Integration {integration_id} not found')

        synced_at = parse_datetime(last_sync) if last_sync else utcnow()
        if synced_at is None:
            raise ValidationRejected(f'lastSync is not a valid timestamp: {last_sync}')

        kind = IntegrationKind.parse(row.kind)
        with self._transaction('Update integration'):
            if config is not None:
                if not isinstance(config, dict):
                    raise ValidationRejected('config must be an object')
                if status == IntegrationStatus.CONNECTED:
                    config = validate_config(kind, config)
                row.set_config(config)
            row.status = status
            row.last_sync = synced_at
            db.session.flush()
            result = self._to_integration(row)

        logger.info(f"Integration {integration_id} ({kind.value}) is now {status}")
        return result

    # ============================================
    # Demo data
    # ============================================

    def seed_demo_data(self, portal_password: Optional[str] = None) -> int:
        """
        Create the demo clients that do not exist yet (matched by email).
        Safe to call repeatedly.

        Returns:
            Number of clients created
        """
        from nexushub.services.demo_data import demo_clients

        created = 0
        for demo in demo_clients():
            email = demo['profile']['email']
            if self.email_exists(email):
                logger.debug(f"Demo client {email} already exists, skipping")
                continue

            profile = dict(demo['profile'])
            if portal_password:
                profile['password'] = portal_password

            with self._transaction('Seed demo client'):
                row = self._create_row(profile, demo.get('products'), demo.get('visits'))
                self._replace_collection(row, 'posts', demo.get('posts', []))
                self._replace_collection(row, 'contracts', demo.get('contracts', []))
                self._replace_collection(
                    row, 'integrations',
                    self._merge_integrations(row.integrations, demo.get('integrations', []))
                )
            created += 1

        logger.info(f"Demo seed created {created} client(s)")
        return created

    @staticmethod
    def _merge_integrations(current: List[DBIntegration], overrides: List[Dict]) -> List[Dict]:
        """Apply demo statuses to the default integrations, appending the rest"""
        merged = [{
            'id': integ.id,
            'kind': integ.kind,
            'name': integ.name,
            'icon': integ.icon,
            'status': integ.status,
        } for integ in current]

        for override in overrides:
            kind = IntegrationKind.parse(override.get('kind') or override.get('name'))
            match = next((item for item in merged if item['kind'] == kind.value), None)
            if match is None:
                merged.append(dict(override, kind=kind.value))
            else:
                match.update({k: v for k, v in override.items() if k != 'id'})
                match['kind'] = kind.value
        return merged

    # ============================================
    # Aggregate -> rows
    # ============================================

    def _apply_scalars(self, row: DBClient, fields: Dict):
        """Write profile/site/address/password/visits keys present in fields"""
        for key, value in fields.items():
            if key in READ_ONLY_FIELDS:
                continue
            if key == 'address':
                self._apply_address(row, value)
            elif key == 'password':
                # None clears the portal password; an empty string leaves it unchanged
                if value is None:
                    row.set_password(None)
                elif _text(value):
                    row.set_password(str(value))
            elif key == 'visits':
                series = parse_visits(value)
                if row.analytics is None:
                    row.analytics = DBClientAnalytics()
                row.analytics.set_visits(series)
            elif key in SCALAR_FIELDS:
                setattr(row, SCALAR_FIELDS[key], self._clean_scalar(row, key, value))
            elif key in COLLECTION_FIELDS:
                raise ValidationRejected(f'{key} must be replaced through its collection endpoint')
            else:
                raise ValidationRejected(f'Unknown field: {key}')

    def _clean_scalar(self, row: DBClient, key: str, value):
        if key == 'name':
            return _required_text({'name': value}, 'name', 'Name')
        if key == 'email':
            email = _text(value).lower()
            if not EMAIL_PATTERN.match(email):
                raise ValidationRejected(f'Invalid email: {value}')
            persistent = inspect(row).persistent
            if not persistent or email != row.email:
                if self.email_exists(email, exclude_id=row.id):
                    raise ValidationRejected(DUPLICATE_EMAIL_MESSAGE)
                if persistent:
                    self._rename_login(row.email, email)
            return email
        if key == 'company':
            return _text(value)
        if key == 'siteUrl':
            return _text(value)
        if key == 'siteType':
            site_type = SiteType.parse(value)
            if site_type is None:
                raise ValidationRejected(f'Invalid site type: {value}')
            return site_type
        if key == 'hostingExpiry':
            return _date_field(value, 'hostingExpiry')
        if key == 'maintenanceMode':
            return safe_bool(value)
        if key == 'phone':
            return format_phone_br(_text(value)) or None
        if key == 'document':
            return self._clean_document(value)
        return _optional_text(value)

    @staticmethod
    def _clean_document(value) -> Optional[str]:
        document = digits_only(value)
        if not document:
            return None
        if len(document) == 11:
            if not is_valid_cpf(document):
                raise ValidationRejected('Invalid CPF')
        elif len(document) == 14:
            if not is_valid_cnpj(document):
                raise ValidationRejected('Invalid CNPJ')
        else:
            raise ValidationRejected('Document must be a CPF (11 digits) or a CNPJ (14 digits)')
        return document

    @staticmethod
    def _apply_address(row: DBClient, address: Optional[Dict]):
        if address is None:
            for column in _ADDRESS_COLUMNS.values():
                setattr(row, column, None)
            return
        if not isinstance(address, dict):
            raise ValidationRejected('address must be an object')
        address = {('zipCode' if k == 'zip_code' else k): v for k, v in address.items()}

        state = _text(address.get('state')).upper()
        if len(state) > 2:
            raise ValidationRejected('address.state must be a two-letter code')

        for key, column in _ADDRESS_COLUMNS.items():
            if key == 'state':
                value = state
            elif key == 'zipCode':
                value = format_cep(_text(address.get(key)))
            elif key == 'complement':
                value = _optional_text(address.get(key))
            else:
                value = _text(address.get(key))
            setattr(row, column, value)

    @staticmethod
    def _rename_login(old_email: str, new_email: str):
        """Keep a client's portal login attached to its renamed email"""
        user = DBUser.query.filter_by(email=old_email, role=UserRole.CLIENT).first()
        if user:
            user.email = new_email

    def _replace_collection(self, row: DBClient, attr: str, items):
        """Delete every row of one owned collection and insert items in its place"""
        if not isinstance(items, list):
            raise ValidationRejected(f'{attr} must be a list')

        builder = {
            'posts': self._build_post,
            'integrations': self._build_integration,
            'products': self._build_product,
            'contracts': self._build_contract,
            'vault_items': self._build_vault_item,
        }[attr]

        collection = getattr(row, attr)
        previous = {item.id: item for item in collection}

        new_rows = []
        for position, item in enumerate(items):
            if not isinstance(item, dict):
                raise ValidationRejected(f'Every entry of {attr} must be an object')
            new_rows.append(builder(item, position, previous))

        ids = [r.id for r in new_rows]
        if len(ids) != len(set(ids)):
            raise ValidationRejected(f'Duplicate ids in {attr}')

        collection.clear()
        db.session.flush()
        collection.extend(new_rows)

    @staticmethod
    def _item_id(data: Dict, prefix: str) -> str:
        return _text(data.get('id')) or new_id(prefix)

    def _build_post(self, data: Dict, position: int, previous: Dict) -> DBBlogPost:
        return DBBlogPost(
            id=self._item_id(data, 'post'),
            title=_required_text(data, 'title', 'Post title'),
            status=_choice(data.get('status'), PostStatus.ALL, PostStatus.DRAFT, 'post status'),
            post_date=_date_field(data.get('date'), 'Post date') or date.today(),
            content=data.get('content') or '',
            # Keep the given order under the newest-first sort
            created_at=utcnow() - timedelta(seconds=position)
        )

    def _build_integration(self, data: Dict, position: int, previous: Dict) -> DBIntegration:
        kind = IntegrationKind.parse(data.get('kind') or data.get('name'))
        item_id = self._item_id(data, 'integ')

        last_sync = None
        if data.get('lastSync'):
            last_sync = parse_datetime(data['lastSync'])
            if last_sync is None:
                raise ValidationRejected(f"lastSync is not a valid timestamp: {data['lastSync']}")

        config = data.get('config') or {}
        if not isinstance(config, dict):
            raise ValidationRejected('Integration config must be an object')
        config = dict(config)

        # Masked secrets echoed back from a read keep their stored value
        old = previous.get(item_id)
        if old is not None:
            stored = old.get_config()
            for name in kind.config_schema.SECRET_FIELDS:
                if config.get(name) == '***' and stored.get(name):
                    config[name] = stored[name]

        status = _choice(data.get('status'), IntegrationStatus.ALL,
                         IntegrationStatus.DISCONNECTED, 'integration status')
        if config and status == IntegrationStatus.CONNECTED:
            config = validate_config(kind, config)

        integration = DBIntegration(
            id=item_id,
            kind=kind.value,
            name=_text(data.get('name')) or kind.display_name,
            icon=_text(data.get('icon')) or kind.default_icon,
            status=status,
            last_sync=last_sync,
            position=position
        )
        integration.set_config(config)
        return integration

    def _build_product(self, data: Dict, position: int, previous: Dict) -> DBProduct:
        return DBProduct(
            id=self._item_id(data, 'prod'),
            name=_required_text(data, 'name', 'Product name'),
            description=_text(data.get('description')),
            price=_amount(data.get('price'), 'Product price'),
            active=safe_bool(data.get('active'), default=True),
            position=position
        )

    def _build_contract(self, data: Dict, position: int, previous: Dict) -> DBContract:
        start = _date_field(data.get('startDate'), 'Contract start date', required=True)
        end = _date_field(data.get('endDate'), 'Contract end date', required=True)
        if end < start:
            raise ValidationRejected('Contract end date is before its start date')
        return DBContract(
            id=self._item_id(data, 'contract'),
            title=_required_text(data, 'title', 'Contract title'),
            start_date=start,
            end_date=end,
            value=_amount(data.get('value'), 'Contract value'),
            status=_choice(data.get('status'), ContractStatus.ALL, ContractStatus.ACTIVE, 'contract status'),
            file_url=_optional_text(data.get('fileUrl'))
        )

    def _build_vault_item(self, data: Dict, position: int, previous: Dict) -> DBVaultItem:
        return DBVaultItem(
            id=self._item_id(data, 'vault'),
            service=_required_text(data, 'service', 'Vault service'),
            username=_text(data.get('username')),
            password=data.get('password') or '',
            url=_optional_text(data.get('url')),
            notes=_optional_text(data.get('notes')),
            position=position
        )

    # ============================================
    # Rows -> aggregate
    # ============================================

    def _to_aggregate(self, row: DBClient) -> ClientAggregate:
        """The one mapping from storage rows to ClientAggregate"""
        address = None
        if any(getattr(row, column) is not None for column in _ADDRESS_COLUMNS.values()):
            address = Address(
                street=row.address_street or '',
                number=row.address_number or '',
                complement=row.address_complement,
                neighborhood=row.address_neighborhood or '',
                city=row.address_city or '',
                state=row.address_state or '',
                zip_code=row.address_zip_code or ''
            )

        return ClientAggregate(
            id=row.id,
            email=row.email,
            name=row.name,
            company=row.company or '',
            site_url=row.site_url or '',
            site_type=row.site_type or SiteType.INSTITUTIONAL,
            hosting_expiry=row.hosting_expiry,
            maintenance_mode=bool(row.maintenance_mode),
            phone=row.phone,
            avatar=row.avatar,
            responsible_person=row.responsible_person,
            notes=row.notes,
            document=row.document,
            address=address,
            has_password=bool(row.password_hash),
            posts=[self._to_post(p) for p in row.posts or []],
            integrations=[self._to_integration(i) for i in row.integrations or []],
            products=[
                Product(id=p.id, name=p.name, description=p.description or '',
                        price=p.price or 0.0, active=bool(p.active))
                for p in row.products or []
            ],
            contracts=[
                Contract(id=c.id, title=c.title, start_date=c.start_date, end_date=c.end_date,
                         value=c.value or 0.0, status=c.status, file_url=c.file_url)
                for c in row.contracts or []
            ],
            password_vault_items=[
                VaultItem(id=v.id, service=v.service, username=v.username or '',
                          password=v.password or '', url=v.url, notes=v.notes)
                for v in row.vault_items or []
            ],
            visits=self._visits(row.analytics)
        )

    @staticmethod
    def _to_post(row: DBBlogPost) -> BlogPost:
        return BlogPost(id=row.id, title=row.title, status=row.status,
                        date=row.post_date, content=row.content)

    @staticmethod
    def _to_integration(row: DBIntegration) -> Integration:
        return Integration(
            id=row.id,
            name=row.name,
            icon=row.icon or '',
            status=row.status,
            kind=IntegrationKind.parse(row.kind),
            last_sync=row.last_sync,
            config=row.get_config()
        )

    @staticmethod
    def _visits(analytics: Optional[DBClientAnalytics]) -> List[int]:
        """Always exactly seven non-negative ints, whatever is stored"""
        if analytics is None:
            return [0] * VISITS_WINDOW
        raw = analytics.get_visits()
        if not isinstance(raw, list):
            raw = []
        series = [safe_int(value, 0, min_val=0) for value in raw[:VISITS_WINDOW]]
        series += [0] * (VISITS_WINDOW - len(series))
        if series != raw:
            logger.warning(f"Client {analytics.client_id} has a malformed visits series; normalized")
        return series


_client_service = None


def get_client_service() -> ClientService:
    """Get or create client service singleton"""
    global _client_service
    if _client_service is None:
        _client_service = ClientService()
    return _client_service
