"""
NexusHub - Data Models
SQLAlchemy storage rows and the client aggregate built from them
"""
from nexushub.models.db_models import (
    DBUser as User,
    DBClient as Client,
    DBBlogPost as BlogPostRow,
    DBIntegration as IntegrationRow,
    DBProduct as ProductRow,
    DBContract as ContractRow,
    DBGlobalProduct as GlobalProduct,
    UserRole,
    SiteType,
    PostStatus,
    IntegrationStatus,
    ContractStatus,
    BillingCycle
)
from nexushub.models.aggregate import ClientAggregate
from nexushub.models.integration import IntegrationKind

__all__ = [
    'User',
    'Client',
    'BlogPostRow',
    'IntegrationRow',
    'ProductRow',
    'ContractRow',
    'GlobalProduct',
    'ClientAggregate',
    'IntegrationKind',
    'UserRole',
    'SiteType',
    'PostStatus',
    'IntegrationStatus',
    'ContractStatus',
    'BillingCycle'
]
