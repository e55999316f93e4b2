"""
NexusHub - Integration Kinds
Each supported integration is an explicit kind with its own typed
configuration schema. The kind is resolved from the display name once,
when the integration row is written, and stored alongside it.
"""
from dataclasses import dataclass, fields, asdict
from enum import Enum
from typing import Dict, Optional, Type

from nexushub.errors import ValidationRejected


class IntegrationKind(str, Enum):
    GOOGLE_ANALYTICS_4 = 'google_analytics_4'
    WORDPRESS = 'wordpress'
    META_PIXEL = 'meta_pixel'
    MAILCHIMP = 'mailchimp'
    HUBSPOT = 'hubspot'
    CUSTOM = 'custom'
    
    @classmethod
    def from_name(cls, name: Optional[str]) -> 'IntegrationKind':
        """Resolve a display name ('Google Analytics 4', 'WordPress'...) to a kind"""
        key = (name or '').strip().lower().replace('-', ' ').replace('_', ' ')
        for kind in cls:
            if key == kind.value.replace('_', ' '):
                return kind
        return _NAME_ALIASES.get(key, cls.CUSTOM)
    
    @classmethod
    def parse(cls, value) -> 'IntegrationKind':
        """Accept a kind value or fall back to resolving a display name"""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.from_name(value)
    
    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]
    
    @property
    def default_icon(self) -> str:
        return _ICONS.get(self, '')
    
    @property
    def config_schema(self) -> Type['IntegrationConfig']:
        return CONFIG_SCHEMAS[self]


_NAME_ALIASES = {
    'google analytics 4': IntegrationKind.GOOGLE_ANALYTICS_4,
    'google analytics': IntegrationKind.GOOGLE_ANALYTICS_4,
    'ga4': IntegrationKind.GOOGLE_ANALYTICS_4,
    'wordpress': IntegrationKind.WORDPRESS,
    'meta pixel': IntegrationKind.META_PIXEL,
    'facebook pixel': IntegrationKind.META_PIXEL,
    'mailchimp': IntegrationKind.MAILCHIMP,
    'hubspot': IntegrationKind.HUBSPOT,
    'hubspot crm': IntegrationKind.HUBSPOT,
}

_DISPLAY_NAMES = {
    IntegrationKind.GOOGLE_ANALYTICS_4: 'Google Analytics 4',
    IntegrationKind.WORDPRESS: 'WordPress',
    IntegrationKind.META_PIXEL: 'Meta Pixel',
    IntegrationKind.MAILCHIMP: 'Mailchimp',
    IntegrationKind.HUBSPOT: 'HubSpot CRM',
    IntegrationKind.CUSTOM: 'Custom',
}

_ICONS = {
    IntegrationKind.GOOGLE_ANALYTICS_4: 'https://cdn.worldvectorlogo.com/logos/google-analytics-4.svg',
    IntegrationKind.WORDPRESS: 'https://s.w.org/style/images/about/WordPress-logotype-wmark.png',
    IntegrationKind.META_PIXEL: 'https://upload.wikimedia.org/wikipedia/commons/6/6c/Facebook_Logo_2023.png',
    IntegrationKind.MAILCHIMP: 'https://cdn.worldvectorlogo.com/logos/mailchimp-freddie-icon-5.svg',
    IntegrationKind.HUBSPOT: 'https://cdn.worldvectorlogo.com/logos/hubspot-1.svg',
}


# ============================================
# Configuration schemas
# ============================================

@dataclass
class IntegrationConfig:
    """Base schema: every declared field is a required non-empty string"""
    SECRET_FIELDS = ()
    
    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> 'IntegrationConfig':
        data = data or {}
        values = {}
        missing = []
        for f in fields(cls):
            value = data.get(f.name)
            if value is None or not str(value).strip():
                missing.append(f.name)
            else:
                values[f.name] = str(value).strip()
        if missing:
            raise ValidationRejected(f"Missing configuration: {', '.join(missing)}")
        return cls(**values)
    
    def to_dict(self, mask_secrets: bool = False) -> Dict:
        data = asdict(self)
        if mask_secrets:
            for name in self.SECRET_FIELDS:
                if data.get(name):
                    data[name] = '***'
        return data


@dataclass
class EmptyConfig(IntegrationConfig):
    pass


@dataclass
class WordPressConfig(IntegrationConfig):
    url: str
    username: str
    app_password: str
    SECRET_FIELDS = ('app_password',)


@dataclass
class GoogleAnalyticsConfig(IntegrationConfig):
    property_id: str


@dataclass
class MetaPixelConfig(IntegrationConfig):
    pixel_id: str


@dataclass
class MailchimpConfig(IntegrationConfig):
    api_key: str
    audience_id: str
    SECRET_FIELDS = ('api_key',)


@dataclass
class HubSpotConfig(IntegrationConfig):
    portal_id: str


CONFIG_SCHEMAS = {
    IntegrationKind.GOOGLE_ANALYTICS_4: GoogleAnalyticsConfig,
    IntegrationKind.WORDPRESS: WordPressConfig,
    IntegrationKind.META_PIXEL: MetaPixelConfig,
    IntegrationKind.MAILCHIMP: MailchimpConfig,
    IntegrationKind.HUBSPOT: HubSpotConfig,
    IntegrationKind.CUSTOM: EmptyConfig,
}

# Inserted, disconnected, for every new client
DEFAULT_INTEGRATIONS = (IntegrationKind.GOOGLE_ANALYTICS_4, IntegrationKind.WORDPRESS)


def validate_config(kind: IntegrationKind, data: Optional[Dict]) -> Dict:
    """Validate a configuration against the kind's schema, returning plain data"""
    return kind.config_schema.from_dict(data).to_dict()


def mask_config(kind: IntegrationKind, config: Optional[Dict]) -> Dict:
    """Hide the kind's secret fields in a stored configuration"""
    masked = dict(config or {})
    for name in kind.config_schema.SECRET_FIELDS:
        if masked.get(name):
            masked[name] = '***'
    return masked
