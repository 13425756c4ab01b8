from sqlalchemy.orm import Session
import logging

from ..core.config import settings
from ..core.security import UserRole, get_password_hash
from ..models.user import User

logger = logging.getLogger(__name__)

def ensure_admin_user(db: Session) -> User:
    """Create the configured admin account unless it already exists."""
    admin = db.query(User).filter(User.email == settings.ADMIN_EMAIL).first()
    if admin:
        return admin

    admin = User(
        name=settings.ADMIN_NAME,
        email=settings.ADMIN_EMAIL,
        password_hash=get_password_hash(settings.ADMIN_PASSWORD),
        role=UserRole.ADMIN,
        phone=settings.ADMIN_PHONE,
        gender="other",
        is_active=True,
        is_verified=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info(f"Admin user {admin.email} created")
    return admin
