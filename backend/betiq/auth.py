# betiq/auth.py
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import Settings, get_settings
from .database import get_db
from .models import User
from .timeutil import utcnow

ALGORITHM = "HS256"

# -------------------------------------------------------------------
# Password hashing
# -------------------------------------------------------------------
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# Swagger will use this to send: Authorization: Bearer <token>
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def normalize_email(email: Optional[str]) -> str:
    """Emails are the entitlement subject id, so they must be stable."""
    return (email or "").strip().lower()


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# -------------------------------------------------------------------
# JWT create/verify
# -------------------------------------------------------------------
def create_access_token(
    *,
    user_id: int,
    subject: str,
    settings: Settings,
    expires_minutes: Optional[int] = None,
) -> str:
    """
    Token claims:
      sub: normalized email (entitlement subject id)
      uid: user id
      exp: expiry datetime
    """
    expire = utcnow() + timedelta(minutes=expires_minutes or settings.access_token_expire_minutes)
    payload = {
        "sub": subject,
        "uid": int(user_id),
        "exp": expire,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str, settings: Settings) -> dict:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
        if not payload.get("uid") or not payload.get("sub"):
            raise ValueError("Token missing required claims")
        return payload
    except (JWTError, ValueError) as e:
        raise ValueError("Invalid token") from e


def _auth_401() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


def authenticate(db: Session, email: str, password: str) -> Optional[User]:
    user = db.scalar(select(User).where(User.email == normalize_email(email)))
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user


# -------------------------------------------------------------------
# Dependencies
# -------------------------------------------------------------------
def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """Validates the Bearer token and loads the User by (uid, sub)."""
    try:
        payload = decode_token(token, settings)
        user_id = int(payload["uid"])
        subject = str(payload["sub"])
    except (ValueError, KeyError, TypeError):
        raise _auth_401()

    user = db.get(User, user_id)
    if not user or user.email != subject:
        raise _auth_401()

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")

    return user
