from app.comptoir.core.error_catalog import AppError, ErrorCatalog
from app.comptoir.core.security import create_user_access_token, verify_pin
from app.comptoir.repos.users import UserRepository


class AuthService:
    def __init__(self, db):
        self.repo = UserRepository(db)

    def login(self, username: str, pin: str):
        """Return ``(user, token)`` for the first user whose PIN matches."""
        inactive_match = None
        for user in self.repo.list_by_username(username):
            if not verify_pin(pin, user.hashed_pin):
                continue
            if not user.is_active:
                inactive_match = user
                continue
            return user, create_user_access_token(user)

        if inactive_match is not None:
            raise AppError(ErrorCatalog.USER_INACTIVE)
        raise AppError(ErrorCatalog.INVALID_CREDENTIALS)
