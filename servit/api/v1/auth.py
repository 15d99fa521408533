from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from pydantic import BaseModel, EmailStr
from datetime import timedelta
from functools import lru_cache

from supabase import AuthApiError, Client, create_client

from servit.database import get_db
from servit.config import settings
from servit.dependencies import get_current_user
from servit.models import User
from servit.utils.security import create_access_token

router = APIRouter()


@lru_cache()
def get_identity_client() -> Client:
    """Supabase client used to verify passwords, created on first login"""
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: dict


def _unauthorized():
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Incorrect email or password"
    )


@router.post("/login", response_model=LoginResponse)
def login(
    request: LoginRequest,
    db: Session = Depends(get_db),
    identity: Client = Depends(get_identity_client)
):
    """
    Verify the password with Supabase Auth, then issue our own JWT
    carrying the user's role, organization and location
    """
    try:
        identity.auth.sign_in_with_password({"email": request.email, "password": request.password})
    except AuthApiError:
        raise _unauthorized()

    user = db.execute(
        select(User).where(func.lower(User.email) == request.email.lower())
    ).scalar_one_or_none()

    if not user or not user.is_active:
        raise _unauthorized()

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={
            "sub": user.id,
            "email": user.email,
            "role": user.role,
            "organization_id": user.organization_id,
            "location_id": user.location_id,
        },
        expires_delta=access_token_expires
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "role": user.role,
            "organization_id": user.organization_id,
            "location_id": user.location_id,
            "server_code": user.server_code,
        }
    }


@router.get("/me")
def get_current_user_info(current_user: dict = Depends(get_current_user)):
    """Get current user information"""
    return current_user
