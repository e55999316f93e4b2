"""
NexusHub - Client Aggregate
The denormalized shape the dashboard and portal operate on.
Built only by ClientService from storage rows; serialized with camelCase keys.
"""
from dataclasses import dataclass, field
import datetime as dt
from datetime import date, datetime
from typing import Optional, List, Dict

from nexushub.models.integration import IntegrationKind, mask_config

VISITS_WINDOW = 7


def _iso(value) -> Optional[str]:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


@dataclass
class Address:
    street: str = ''
    number: str = ''
    neighborhood: str = ''
    city: str = ''
    state: str = ''
    zip_code: str = ''
    complement: Optional[str] = None
    
    def to_dict(self) -> Dict:
        return {
            'street': self.street,
            'number': self.number,
            'complement': self.complement,
            'neighborhood': self.neighborhood,
            'city': self.city,
            'state': self.state,
            'zipCode': self.zip_code
        }


@dataclass
class BlogPost:
    id: str
    title: str
    status: str
    date: Optional[dt.date] = None
    content: Optional[str] = None
    
    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'title': self.title,
            'status': self.status,
            'date': _iso(self.date),
            'content': self.content
        }


@dataclass
class Integration:
    id: str
    name: str
    icon: str
    status: str
    kind: IntegrationKind = IntegrationKind.CUSTOM
    last_sync: Optional[datetime] = None
    config: Dict = field(default_factory=dict)
    
    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'icon': self.icon,
            'status': self.status,
            'kind': self.kind.value,
            'lastSync': _iso(self.last_sync),
            'config': mask_config(self.kind, self.config)
        }


@dataclass
class Product:
    id: str
    name: str
    description: str
    price: float
    active: bool = True
    
    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'price': self.price,
            'active': self.active
        }


@dataclass
class Contract:
    id: str
    title: str
    start_date: date
    end_date: date
    value: float
    status: str
    file_url: Optional[str] = None
    
    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'title': self.title,
            'startDate': _iso(self.start_date),
            'endDate': _iso(self.end_date),
            'value': self.value,
            'status': self.status,
            'fileUrl': self.file_url
        }


@dataclass
class VaultItem:
    id: str
    service: str
    username: str
    password: str
    url: Optional[str] = None
    notes: Optional[str] = None
    
    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'service': self.service,
            'username': self.username,
            'password': self.password,
            'url': self.url,
            'notes': self.notes
        }


@dataclass
class ClientAggregate:
    """A client with every sub-resource it owns"""
    
    id: str
    email: str
    name: str
    company: str
    
    # Site
    site_url: str = ''
    site_type: str = 'institutional'
    hosting_expiry: Optional[date] = None
    maintenance_mode: bool = False
    
    # Profile
    phone: Optional[str] = None
    avatar: Optional[str] = None
    responsible_person: Optional[str] = None
    notes: Optional[str] = None
    document: Optional[str] = None
    address: Optional[Address] = None
    
    # Only whether a portal password exists; the hash never leaves storage
    has_password: bool = False
    
    posts: List[BlogPost] = field(default_factory=list)
    integrations: List[Integration] = field(default_factory=list)
    products: List[Product] = field(default_factory=list)
    contracts: List[Contract] = field(default_factory=list)
    password_vault_items: List[VaultItem] = field(default_factory=list)
    visits: List[int] = field(default_factory=lambda: [0] * VISITS_WINDOW)
    
    def get_integration(self, kind: IntegrationKind) -> Optional[Integration]:
        for integration in self.integrations:
            if integration.kind == kind:
                return integration
        return None
    
    def to_dict(self, include_vault: bool = True) -> Dict:
        """Convert to the JSON shape used by the dashboard and portal"""
        data = {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'company': self.company,
            'phone': self.phone,
            'avatar': self.avatar,
            'responsiblePerson': self.responsible_person,
            'notes': self.notes,
            'document': self.document,
            'address': self.address.to_dict() if self.address else None,
            'siteUrl': self.site_url,
            'siteType': self.site_type,
            'hostingExpiry': _iso(self.hosting_expiry),
            'maintenanceMode': self.maintenance_mode,
            'hasPassword': self.has_password,
            'posts': [p.to_dict() for p in self.posts],
            'integrations': [i.to_dict() for i in self.integrations],
            'products': [p.to_dict() for p in self.products],
            'contracts': [c.to_dict() for c in self.contracts],
            'visits': list(self.visits)
        }
        if include_vault:
            data['passwordVaultItems'] = [v.to_dict() for v in self.password_vault_items]
        return data
