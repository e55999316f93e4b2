"""
NexusHub - Agency Settings Service
Single-row agency profile, cached on the Flask app after load/save
"""
import logging
import re
from dataclasses import dataclass, asdict, fields
from typing import Dict, Union

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from nexushub.database import db, utcnow
from nexushub.errors import BackendUnavailable, ValidationRejected
from nexushub.formatters import digits_only, format_phone_br, is_valid_cnpj
from nexushub.models.db_models import DBAgencySettings

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = 1
EXTENSION_KEY = 'agency_settings'

HEX_COLOR = re.compile(r'^#(?:[0-9a-fA-F]{3}){1,2}$')
EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')

# camelCase wire key -> dataclass field
_WIRE_KEYS = {
    'agencyName': 'agency_name',
    'contactEmail': 'contact_email',
    'contactPhone': 'contact_phone',
    'document': 'document',
    'website': 'website',
    'portalUrl': 'portal_url',
    'logoUrl': 'logo_url',
    'primaryColor': 'primary_color',
    'address': 'address',
}


@dataclass
class AgencySettings:
    agency_name: str = 'NexusHub Digital'
    contact_email: str = ''
    contact_phone: str = ''
    document: str = ''
    website: str = ''
    portal_url: str = ''
    logo_url: str = ''
    primary_color: str = '#4f46e5'
    address: str = ''

    @classmethod
    def from_dict(cls, data: Dict, base: 'AgencySettings' = None) -> 'AgencySettings':
        """Build from wire (camelCase) or field (snake_case) keys over base"""
        values = asdict(base or cls())
        names = {f.name for f in fields(cls)}
        for key, value in (data or {}).items():
            name = _WIRE_KEYS.get(key, key)
            if name not in names:
                raise ValidationRejected(f'Unknown setting: {key}')
            values[name] = '' if value is None else str(value).strip()
        return cls(**values)

    def to_dict(self) -> Dict:
        data = asdict(self)
        return {wire: data[name] for wire, name in _WIRE_KEYS.items()}


class SettingsService:
    """Repository for the agency profile"""

    def load(self) -> AgencySettings:
        try:
            row = db.session.get(DBAgencySettings, SETTINGS_ROW_ID)
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Load agency settings failed: {e}")
            raise BackendUnavailable()

        if row is None:
            settings = AgencySettings(portal_url=current_app.config.get('PORTAL_URL', ''))
        else:
            settings = AgencySettings(**{f.name: getattr(row, f.name) or '' for f in fields(AgencySettings)})
        current_app.extensions[EXTENSION_KEY] = settings
        return settings

    def save(self, settings: Union[AgencySettings, Dict]) -> AgencySettings:
        """Validate and persist; a dict is applied sparsely over the stored settings"""
        if isinstance(settings, dict):
            settings = AgencySettings.from_dict(settings, base=self.load())
        settings = self._validate(settings)

        try:
            row = db.session.get(DBAgencySettings, SETTINGS_ROW_ID)
            if row is None:
                row = DBAgencySettings(id=SETTINGS_ROW_ID)
                db.session.add(row)
            for f in fields(AgencySettings):
                setattr(row, f.name, getattr(settings, f.name))
            row.updated_at = utcnow()
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Save agency settings failed: {e}")
            raise BackendUnavailable()

        current_app.extensions[EXTENSION_KEY] = settings
        logger.info("Agency settings saved")
        return settings

    @staticmethod
    def _validate(settings: AgencySettings) -> AgencySettings:
        if not settings.agency_name:
            raise ValidationRejected('Agency name is required')

        if settings.contact_email and not EMAIL_PATTERN.match(settings.contact_email):
            raise ValidationRejected(f'Invalid contact email: {settings.contact_email}')

        if settings.document:
            document = digits_only(settings.document)
            if not is_valid_cnpj(document):
                raise ValidationRejected('Invalid CNPJ')
            settings.document = document

        if settings.contact_phone:
            settings.contact_phone = format_phone_br(settings.contact_phone)

        if settings.primary_color and not HEX_COLOR.match(settings.primary_color):
            raise ValidationRejected(f'Invalid color: {settings.primary_color}')

        return settings


def get_agency_settings() -> AgencySettings:
    """Settings cached on the app, loading them on first use"""
    settings = current_app.extensions.get(EXTENSION_KEY)
    if settings is None:
        settings = SettingsService().load()
    return settings


_settings_service = None


def get_settings_service() -> SettingsService:
    """Get or create settings service singleton"""
    global _settings_service
    if _settings_service is None:
        _settings_service = SettingsService()
    return _settings_service
