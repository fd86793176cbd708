from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from realty.database import get_db
from realty.models.user import User, UserType
from realty.utils.security import verify_access_token
from realty.utils.exceptions import (
    UnauthorizedException,
    ForbiddenException,
    AccountInactiveException,
)

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


def _user_from_token(token: str, db: Session) -> User:
    payload = verify_access_token(token)
    user_id = payload.get("sub")
    if user_id is None or not str(user_id).isdigit():
        raise UnauthorizedException("Invalid token payload")

    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user:
        raise UnauthorizedException("User no longer exists")
    if not user.isActive:
        raise AccountInactiveException()
    return user


# ─── Get Current User ─────────────────────────────────────────────────────────
def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Validate JWT Bearer token and return the current User.
    Raises 401 if token is missing, invalid, or expired.
    Raises 403 if account is inactive.
    """
    if not credentials:
        raise UnauthorizedException("No authentication token provided")
    return _user_from_token(credentials.credentials, db)


def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User | None:
    """Like get_current_user, but anonymous requests resolve to None."""
    if not credentials:
        return None
    return _user_from_token(credentials.credentials, db)


# ─── User Type Guards ─────────────────────────────────────────────────────────
def require_user_types(*user_types: UserType):
    """
    Factory that returns a FastAPI dependency requiring one of the given user types.

    Usage:
        @router.get("/admin-only")
        def admin_route(current_user = Depends(require_user_types(UserType.ADMIN))):
            ...
    """
    allowed = {t.value for t in user_types}

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.userType not in allowed:
            raise ForbiddenException(
                f"This action requires one of these user types: {sorted(allowed)}"
            )
        return current_user
    return dependency


def get_admin_user(current_user: User = Depends(require_user_types(UserType.ADMIN))) -> User:
    return current_user
