"""Seed data for a fresh database."""

import logging
import secrets

from pymongo.database import Database

import config
from auth import hash_password
from database import count_documents, create_document
from lists import Registry

logger = logging.getLogger(__name__)


def ensure_indexes(db: Database, registry: Registry) -> None:
    for cfg in registry:
        for name in cfg.unique_fields:
            db[cfg.collection].create_index(name, unique=True, sparse=True)


def initialise_data(db: Database, registry: Registry) -> None:
    """Create the first admin user when there are no users yet."""
    ensure_indexes(db, registry)

    users = registry.get("User")
    if count_documents(db, users.collection) > 0:
        return

    password = secrets.token_urlsafe(12)
    create_document(
        db,
        users.collection,
        {
            "first_name": "Admin",
            "last_name": "User",
            "email": config.INITIAL_ADMIN_EMAIL,
            "is_admin": True,
            "is_member": True,
            "password": hash_password(password),
        },
        tracking=users.tracking,
    )
    logger.warning(
        f"User created: email={config.INITIAL_ADMIN_EMAIL} password={password} "
        "Please change this password after signing in."
    )
