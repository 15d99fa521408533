from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from servit.database import get_db
from servit.services.preferences import DatabasePreferencesBackend, PreferencesStore
from servit.utils.security import decode_access_token

# Security scheme
security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """
    Get current authenticated user from JWT token
    Returns user data with organization_id and role
    """
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    organization_id = payload.get("organization_id")

    if user_id is None or organization_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    return {
        "user_id": user_id,
        "organization_id": organization_id,
        "role": payload.get("role"),
        "email": payload.get("email"),
        "location_id": payload.get("location_id"),
    }


def require_role(*allowed_roles: str):
    """
    Dependency to check if user has required role
    Usage: Depends(require_role("CORPORATE", "ADMIN"))
    """
    def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        if current_user["role"] not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join(allowed_roles)}"
            )
        return current_user
    return role_checker


def get_organization_context(
    current_user: dict = Depends(get_current_user)
) -> str:
    """Organization of the current user, used to scope every query"""
    return current_user["organization_id"]


def get_preferences_store(db: Session = Depends(get_db)) -> PreferencesStore:
    return PreferencesStore(DatabasePreferencesBackend(db))


CATALOG_EDITORS = ("CORPORATE", "ADMIN")
SALES_ROLES = ("SERVER", "ADMIN")
