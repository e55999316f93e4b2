"""
NexusHub - SQLAlchemy Database Models
One table per owned collection; every owned row references exactly one client
"""
from datetime import datetime, date
from typing import Optional, List
import json
import uuid

import bcrypt
from sqlalchemy import String, Text, Integer, Float, Boolean, DateTime, Date, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nexushub.database import db, utcnow


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def safe_json_loads(value, default=None):
    """Safely parse JSON, returning default if None or invalid"""
    if default is None:
        default = []
    if not value:
        return default
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return default


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def check_password(password: str, hashed: Optional[str]) -> bool:
    """Verify a password against its bcrypt hash."""
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), hashed.encode('utf-8'))
    except ValueError:
        return False


# ============================================
# Enumerations
# ============================================

class UserRole:
    ADMIN = 'admin'
    CLIENT = 'client'
    ALL = (ADMIN, CLIENT)


class SiteType:
    INSTITUTIONAL = 'institutional'
    LANDING_PAGE = 'landing_page'
    ECOMMERCE = 'ecommerce'
    ALL = (INSTITUTIONAL, LANDING_PAGE, ECOMMERCE)
    
    # Labels used by the original portal forms
    LABELS = {
        'institucional': INSTITUTIONAL,
        'landing page': LANDING_PAGE,
        'e-commerce': ECOMMERCE,
        'ecommerce': ECOMMERCE,
    }
    
    @classmethod
    def parse(cls, value: Optional[str]) -> Optional[str]:
        if value in cls.ALL:
            return value
        return cls.LABELS.get((value or '').strip().lower())


class PostStatus:
    DRAFT = 'draft'
    PUBLISHED = 'published'
    SCHEDULED = 'scheduled'
    ALL = (DRAFT, PUBLISHED, SCHEDULED)


class IntegrationStatus:
    CONNECTED = 'connected'
    DISCONNECTED = 'disconnected'
    PENDING = 'pending'
    ALL = (CONNECTED, DISCONNECTED, PENDING)


class ContractStatus:
    ACTIVE = 'active'
    EXPIRED = 'expired'
    PENDING = 'pending'
    ALL = (ACTIVE, EXPIRED, PENDING)


class BillingCycle:
    MONTHLY = 'monthly'
    QUARTERLY = 'quarterly'
    SEMIANNUAL = 'semiannual'
    ANNUAL = 'annual'
    ONE_TIME = 'one_time'
    ALL = (MONTHLY, QUARTERLY, SEMIANNUAL, ANNUAL, ONE_TIME)


# ============================================
# Users & sessions
# ============================================

class DBUser(db.Model):
    """Login profile; the role lives here, never in the token"""
    __tablename__ = 'users'
    
    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Client-role users authenticate against the portal password on their client row
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(20), default=UserRole.CLIENT)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    
    def __init__(self, email: str, name: str, password: Optional[str] = None, role: str = UserRole.CLIENT):
        self.id = new_id('user')
        self.email = email.strip().lower()
        self.name = name
        self.role = role
        self.password_hash = hash_password(password) if password else None
        self.is_active = True
        self.created_at = utcnow()
    
    def verify_password(self, password: str) -> bool:
        return check_password(password, self.password_hash)
    
    def set_password(self, password: str):
        self.password_hash = hash_password(password)
    
    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
    
    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'role': self.role,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'last_login': self.last_login.isoformat() if self.last_login else None
        }


class DBAuthSession(db.Model):
    """Server-side session behind a bearer token (the token's jti)"""
    __tablename__ = 'auth_sessions'
    
    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(50), ForeignKey('users.id'), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    last_activity_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    revoked_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    revoked_reason: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    impersonated_client_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    
    user: Mapped["DBUser"] = relationship("DBUser")
    
    def __init__(self, user_id: str):
        now = utcnow()
        self.id = new_id('sess')
        self.user_id = user_id
        self.created_at = now
        self.last_activity_at = now
    
    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None


# ============================================
# Client aggregate tables
# ============================================

class DBClient(db.Model):
    """Agency client and the website the agency runs for them"""
    __tablename__ = 'clients'
    
    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str] = mapped_column(String(255), default='')
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    avatar: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    responsible_person: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    document: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)  # CPF or CNPJ digits
    
    # Address
    address_street: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    address_complement: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address_neighborhood: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address_city: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address_state: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    address_zip_code: Mapped[Optional[str]] = mapped_column(String(9), nullable=True)
    
    # Site
    site_url: Mapped[str] = mapped_column(String(500), default='')
    site_type: Mapped[str] = mapped_column(String(20), default=SiteType.INSTITUTIONAL)
    hosting_expiry: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    maintenance_mode: Mapped[bool] = mapped_column(Boolean, default=False)
    
    # Portal credential (bcrypt)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)
    
    # Owned collections
    posts: Mapped[List["DBBlogPost"]] = relationship(
        back_populates="client", cascade="all, delete-orphan",
        order_by="DBBlogPost.created_at.desc()"
    )
    integrations: Mapped[List["DBIntegration"]] = relationship(
        back_populates="client", cascade="all, delete-orphan",
        order_by="DBIntegration.position"
    )
    products: Mapped[List["DBProduct"]] = relationship(
        back_populates="client", cascade="all, delete-orphan",
        order_by="DBProduct.position"
    )
    contracts: Mapped[List["DBContract"]] = relationship(
        back_populates="client", cascade="all, delete-orphan",
        order_by="DBContract.start_date"
    )
    vault_items: Mapped[List["DBVaultItem"]] = relationship(
        back_populates="client", cascade="all, delete-orphan",
        order_by="DBVaultItem.position"
    )
    analytics: Mapped[Optional["DBClientAnalytics"]] = relationship(
        back_populates="client", cascade="all, delete-orphan", uselist=False
    )
    
    def __init__(self, name: str, email: str, **kwargs):
        self.id = kwargs.get('id') or new_id('client')
        self.name = name
        self.email = email.strip().lower()
        self.company = kwargs.get('company', '')
        self.site_url = kwargs.get('site_url', '')
        self.site_type = kwargs.get('site_type', SiteType.INSTITUTIONAL)
        self.maintenance_mode = kwargs.get('maintenance_mode', False)
        for key in ('phone', 'avatar', 'responsible_person', 'notes', 'document', 'hosting_expiry',
                    'address_street', 'address_number', 'address_complement', 'address_neighborhood',
                    'address_city', 'address_state', 'address_zip_code'):
            setattr(self, key, kwargs.get(key))
        password = kwargs.get('password')
        self.password_hash = hash_password(password) if password else None
        self.created_at = utcnow()
        self.updated_at = self.created_at
    
    def verify_password(self, password: str) -> bool:
        return check_password(password, self.password_hash)
    
    def set_password(self, password: Optional[str]):
        self.password_hash = hash_password(password) if password else None


class DBClientAnalytics(db.Model):
    """Seven-slot daily visit series, one row per client"""
    __tablename__ = 'client_analytics'
    
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[str] = mapped_column(String(50), ForeignKey('clients.id'), unique=True, nullable=False)
    visits_data: Mapped[str] = mapped_column(Text, default='[0, 0, 0, 0, 0, 0, 0]')  # JSON
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)
    
    client: Mapped["DBClient"] = relationship(back_populates="analytics")
    
    def get_visits(self) -> List[int]:
        return safe_json_loads(self.visits_data)
    
    def set_visits(self, visits: List[int]):
        self.visits_data = json.dumps(list(visits))
        self.updated_at = utcnow()


class DBBlogPost(db.Model):
    """Blog post on the client's site"""
    __tablename__ = 'posts'
    
    id: Mapped[str] = mapped_column(String(50), primary_key=True, default=lambda: new_id('post'))
    client_id: Mapped[str] = mapped_column(String(50), ForeignKey('clients.id'), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=PostStatus.DRAFT)
    post_date: Mapped[Optional[date]] = mapped_column("date", Date, nullable=True)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    
    client: Mapped["DBClient"] = relationship(back_populates="posts")


class DBIntegration(db.Model):
    """Third-party integration attached to a client's site"""
    __tablename__ = 'integrations'
    
    id: Mapped[str] = mapped_column(String(50), primary_key=True, default=lambda: new_id('integ'))
    client_id: Mapped[str] = mapped_column(String(50), ForeignKey('clients.id'), nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[str] = mapped_column(String(500), default='')
    status: Mapped[str] = mapped_column(String(20), default=IntegrationStatus.DISCONNECTED)
    last_sync: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    config: Mapped[str] = mapped_column(Text, default='{}')  # JSON, schema depends on kind
    position: Mapped[int] = mapped_column(Integer, default=0)
    
    client: Mapped["DBClient"] = relationship(back_populates="integrations")
    
    def get_config(self) -> dict:
        return safe_json_loads(self.config, default={})
    
    def set_config(self, config: dict):
        self.config = json.dumps(config or {})


class DBProduct(db.Model):
    """Service sold to one client"""
    __tablename__ = 'products'
    
    id: Mapped[str] = mapped_column(String(50), primary_key=True, default=lambda: new_id('prod'))
    client_id: Mapped[str] = mapped_column(String(50), ForeignKey('clients.id'), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default='')
    price: Mapped[float] = mapped_column(Float, default=0.0)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    position: Mapped[int] = mapped_column(Integer, default=0)
    
    client: Mapped["DBClient"] = relationship(back_populates="products")


class DBContract(db.Model):
    """Contract signed with one client"""
    __tablename__ = 'contracts'
    
    id: Mapped[str] = mapped_column(String(50), primary_key=True, default=lambda: new_id('contract'))
    client_id: Mapped[str] = mapped_column(String(50), ForeignKey('clients.id'), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    value: Mapped[float] = mapped_column(Float, default=0.0)
    status: Mapped[str] = mapped_column(String(20), default=ContractStatus.ACTIVE)
    file_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    
    client: Mapped["DBClient"] = relationship(back_populates="contracts")


class DBVaultItem(db.Model):
    """Credential the agency keeps for one of the client's services"""
    __tablename__ = 'vault_items'
    
    id: Mapped[str] = mapped_column(String(50), primary_key=True, default=lambda: new_id('vault'))
    client_id: Mapped[str] = mapped_column(String(50), ForeignKey('clients.id'), nullable=False, index=True)
    service: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str] = mapped_column(String(255), default='')
    password: Mapped[str] = mapped_column(String(255), default='')
    url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    position: Mapped[int] = mapped_column(Integer, default=0)
    
    client: Mapped["DBClient"] = relationship(back_populates="vault_items")


# ============================================
# Agency-level tables
# ============================================

class DBGlobalProduct(db.Model):
    """Catalog entry offered to every client"""
    __tablename__ = 'global_products'
    
    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default='')
    price: Mapped[float] = mapped_column(Float, default=0.0)
    cycle: Mapped[str] = mapped_column(String(20), default=BillingCycle.MONTHLY)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    
    def __init__(self, name: str, price: float, **kwargs):
        self.id = new_id('gprod')
        self.name = name
        self.price = price
        self.description = kwargs.get('description', '')
        self.cycle = kwargs.get('cycle', BillingCycle.MONTHLY)
        self.active = kwargs.get('active', True)
        self.created_at = utcnow()
    
    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'price': self.price,
            'cycle': self.cycle,
            'active': self.active
        }


class DBAgencySettings(db.Model):
    """Single-row agency profile"""
    __tablename__ = 'agency_settings'
    
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    agency_name: Mapped[str] = mapped_column(String(255), default='NexusHub Digital')
    contact_email: Mapped[str] = mapped_column(String(255), default='')
    contact_phone: Mapped[str] = mapped_column(String(50), default='')
    document: Mapped[str] = mapped_column(String(20), default='')
    website: Mapped[str] = mapped_column(String(500), default='')
    portal_url: Mapped[str] = mapped_column(String(500), default='')
    logo_url: Mapped[str] = mapped_column(String(500), default='')
    primary_color: Mapped[str] = mapped_column(String(20), default='#4f46e5')
    address: Mapped[str] = mapped_column(Text, default='')
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class DBAuditLog(db.Model):
    """Audit log for tracking all system actions"""
    __tablename__ = 'audit_logs'
    
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    
    # Who did it
    user_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    user_email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    
    # What they did
    action: Mapped[str] = mapped_column(String(50), index=True)  # create, update, delete, login, logout
    resource_type: Mapped[str] = mapped_column(String(50), index=True)  # client, user, product, settings
    resource_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    resource_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    extra_data: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # JSON
    
    # Context
    endpoint: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    http_method: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default='success')  # success, failure
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    
    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'user_email': self.user_email,
            'action': self.action,
            'resource_type': self.resource_type,
            'resource_id': self.resource_id,
            'resource_name': self.resource_name,
            'description': self.description,
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
