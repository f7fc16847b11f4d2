from sqlalchemy import select

from app.comptoir.db.models import User


class UserRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id_in_tenant(self, user_id: str, tenant_id: str):
        stmt = select(User).where(User.id == user_id, User.tenant_id == tenant_id)
        return self.db.execute(stmt).scalars().first()

    def list_by_username(self, username: str):
        stmt = select(User).where(User.username == username).order_by(User.created_at)
        return self.db.execute(stmt).scalars().all()
