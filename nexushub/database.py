"""
NexusHub - Database Configuration
SQLAlchemy ORM setup
"""
from datetime import datetime, timezone
import logging

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


db = SQLAlchemy(model_class=Base)


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def init_db(app):
    """Initialize database with app"""
    db.init_app(app)
    
    with app.app_context():
        # Import models to register them
        from nexushub.models import db_models  # noqa
        
        db.create_all()
        
        logger.info("Database tables created")
