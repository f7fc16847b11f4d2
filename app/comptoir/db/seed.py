import logging

from sqlalchemy import select

from app.comptoir.core.config import settings
from app.comptoir.core.security import get_pin_hash
from app.comptoir.db.models import Tenant, User

logger = logging.getLogger(__name__)


def _get_or_create_tenant(db):
    tenant = db.execute(select(Tenant).where(Tenant.name == settings.DEFAULT_TENANT_NAME)).scalars().first()
    if tenant:
        return tenant
    tenant = Tenant(name=settings.DEFAULT_TENANT_NAME)
    db.add(tenant)
    db.flush()
    return tenant


def _get_or_create_admin(db, tenant):
    user = (
        db.execute(select(User).where(User.tenant_id == tenant.id, User.username == settings.ADMIN_USERNAME))
        .scalars()
        .first()
    )
    if user:
        return user
    user = User(
        tenant_id=tenant.id,
        username=settings.ADMIN_USERNAME,
        display_name=settings.ADMIN_DISPLAY_NAME,
        hashed_pin=get_pin_hash(settings.ADMIN_PIN),
        role="ADMIN",
        is_active=True,
    )
    db.add(user)
    db.flush()
    logger.info("Seeded admin user %s", user.username)
    return user


def run_seed(db) -> None:
    tenant = _get_or_create_tenant(db)
    _get_or_create_admin(db, tenant)
    db.commit()


if __name__ == "__main__":
    from app.comptoir.core.logging import configure_logging
    from app.comptoir.db.session import SessionLocal

    configure_logging()
    with SessionLocal() as session:
        run_seed(session)
