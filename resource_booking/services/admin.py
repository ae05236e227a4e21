import logging
from sqlalchemy.orm import Session

from ..core import security
from ..db import models

logger = logging.getLogger(__name__)


def ensure_admin_exists(session: Session, email: str, password: str) -> models.User:
    admin = session.query(models.User).filter_by(email=email).first()
    if admin:
        updated = False
        if not admin.password_hash or not security.verify_password(password, admin.password_hash):
            admin.password_hash = security.get_password_hash(password)
            updated = True
        if admin.role != models.UserRole.admin or not admin.is_active:
            admin.role = models.UserRole.admin
            admin.is_active = True
            updated = True
        if updated:
            session.commit()
            logger.info("Updated default admin user '%s'", email)
        else:
            logger.info("Admin user '%s' already exists", email)
        return admin

    admin = models.User(
        email=email,
        full_name="Administrator",
        password_hash=security.get_password_hash(password),
        role=models.UserRole.admin,
    )
    session.add(admin)
    session.commit()
    logger.info("Created default admin user '%s'", email)
    return admin
