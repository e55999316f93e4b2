"""
NexusHub - Configuration
Environment-based configuration for different deployment stages
"""
import os
from datetime import timedelta


def _database_url(default: str) -> str:
    """Read DATABASE_URL, handling the postgres:// prefix used by hosting providers"""
    db_url = os.environ.get('DATABASE_URL', '')
    if not db_url:
        return default
    if db_url.startswith('postgres://'):
        db_url = db_url.replace('postgres://', 'postgresql+psycopg://', 1)
    elif db_url.startswith('postgresql://'):
        db_url = db_url.replace('postgresql://', 'postgresql+psycopg://', 1)
    return db_url


class BaseConfig:
    """Base configuration"""
    
    # Flask - Secret key (required in production)
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
    
    _is_production = os.environ.get('FLASK_ENV') == 'production'
    if SECRET_KEY == 'dev-secret-key-change-in-production' and _is_production:
        import warnings
        warnings.warn("SECRET_KEY is using default dev value in production! Set SECRET_KEY env var.")
    
    # CORS
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    
    @property
    def SQLALCHEMY_DATABASE_URI(self):
        return _database_url('sqlite:///nexushub.db')
    
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }
    
    # JWT Auth
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY', SECRET_KEY)
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.environ.get('JWT_EXPIRES_HOURS', '24')))
    
    # Sessions are revoked after this many minutes without user activity
    SESSION_IDLE_MINUTES = int(os.environ.get('SESSION_IDLE_MINUTES', '30'))
    
    # Provider keys (OPENAI_API_KEY, RESEND_API_KEY, EVOLUTION_*) are read from
    # the environment by each service at call time, not from app.config

    # Seeds the agency settings row on first boot
    PORTAL_URL = os.environ.get('PORTAL_URL', 'https://portal.nexushub.digital')
    
    # Demo seeding
    DEMO_PORTAL_PASSWORD = os.environ.get('DEMO_PORTAL_PASSWORD', '')
    
    # Rate limiting (flask-limiter)
    RATELIMIT_ENABLED = os.environ.get('RATE_LIMIT_ENABLED', 'true').lower() == 'true'


class DevelopmentConfig(BaseConfig):
    """Development configuration"""
    DEBUG = True
    TESTING = False


class ProductionConfig(BaseConfig):
    """Production configuration"""
    DEBUG = False
    TESTING = False
    
    @property
    def SQLALCHEMY_DATABASE_URI(self):
        # No SQLite fallback in production
        return _database_url('')


class TestingConfig(BaseConfig):
    """Testing configuration"""
    DEBUG = True
    TESTING = True
    
    @property
    def SQLALCHEMY_DATABASE_URI(self):
        """Use TEST_DATABASE_URL if set, otherwise in-memory SQLite"""
        return os.environ.get('TEST_DATABASE_URL', 'sqlite:///:memory:')
    
    SQLALCHEMY_ENGINE_OPTIONS = {}
    JWT_SECRET_KEY = 'test-jwt-secret'
    RATELIMIT_ENABLED = False


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
