"""
Startup bootstrap.

Runs once before the app serves traffic. Every step checks for existing
rows first, so running it again is a no-op.
"""

import logging

from sqlalchemy.orm import Session

from domus.core.config import settings
from domus.core.reference_data import AR_PROVINCES, COUNTRIES, PROVINCE_DEFAULT_ZOOM, ROLES
from domus.models import Base
from domus.models.geography import Country, Province
from domus.models.user import Role, RoleName, User
from domus.utils.auth import get_password_hash

logger = logging.getLogger(__name__)


def seed_roles(db: Session) -> int:
    existing = {name for (name,) in db.query(Role.name).all()}
    created = 0
    for name in ROLES:
        if name not in existing:
            db.add(Role(name=name))
            created += 1
    db.commit()
    if created:
        logger.info(f"Created {created} roles")
    return created


def seed_admin(db: Session, email: str, password: str) -> bool:
    """Create the administrator account unless it already exists."""
    if not email or not password:
        logger.warning("ADMIN_EMAIL / ADMIN_PASSWORD not set, skipping admin bootstrap")
        return False

    email = email.lower()
    if db.query(User).filter(User.email == email).first() is not None:
        return False

    admin_role = db.query(Role).filter(Role.name == RoleName.ADMIN.value).one()
    db.add(User(email=email, password_hash=get_password_hash(password), roles=[admin_role]))
    db.commit()
    logger.info(f"Admin user created: {email}")
    return True


def seed_geography(db: Session) -> dict:
    countries = 0
    for data in COUNTRIES:
        if db.query(Country).filter(Country.iso_code == data["iso_code"]).first() is None:
            db.add(Country(**data))
            countries += 1
    db.flush()

    argentina = db.query(Country).filter(Country.iso_code == "AR").one()
    provinces = 0
    for province_id, name, lat, lon in AR_PROVINCES:
        if db.get(Province, province_id) is None:
            db.add(Province(
                id=province_id,
                name=name,
                latitude=lat,
                longitude=lon,
                default_zoom=PROVINCE_DEFAULT_ZOOM,
                country=argentina,
            ))
            provinces += 1
    db.commit()

    if countries or provinces:
        logger.info(f"Geography seeded: {countries} countries, {provinces} provinces")
    return {"countries": countries, "provinces": provinces}


def bootstrap(db: Session) -> None:
    if settings.CREATE_TABLES:
        Base.metadata.create_all(bind=db.get_bind())
    seed_roles(db)
    seed_admin(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
    seed_geography(db)
