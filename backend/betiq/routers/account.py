# betiq/routers/account.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import select
from sqlalchemy.orm import Session

from betiq import auth, history, models, schemas
from betiq.config import Settings, get_settings
from betiq.database import get_db

router = APIRouter(tags=["account"])


# -------------------------------------------------
# AUTH
# -------------------------------------------------
@router.post("/auth/register", response_model=schemas.TokenOut, status_code=201)
def register(
    payload: schemas.RegisterIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    email = auth.normalize_email(payload.email)
    if db.scalar(select(models.User).where(models.User.email == email)):
        raise HTTPException(status_code=400, detail="Email already exists")

    user = models.User(
        email=email,
        hashed_password=auth.hash_password(payload.password),
        name=payload.name,
        language=payload.language or settings.default_language,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    token = auth.create_access_token(user_id=user.id, subject=user.email, settings=settings)
    return schemas.TokenOut(access_token=token, user_id=user.id)


@router.post("/auth/login", response_model=schemas.TokenOut)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = auth.authenticate(db, form_data.username, form_data.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    if not user.is_active:
        raise HTTPException(status_code=403, detail="User is inactive")

    token = auth.create_access_token(user_id=user.id, subject=user.email, settings=settings)
    return schemas.TokenOut(access_token=token, user_id=user.id)


# -------------------------------------------------
# PROFILE
# -------------------------------------------------
@router.get("/me", response_model=schemas.UserOut)
def me(user: models.User = Depends(auth.get_current_user)):
    return user


@router.patch("/me", response_model=schemas.UserOut)
def update_me(
    payload: schemas.UserUpdateMe,
    db: Session = Depends(get_db),
    user: models.User = Depends(auth.get_current_user),
):
    if payload.name is not None:
        user.name = payload.name
    if payload.language is not None:
        user.language = payload.language
    if payload.risk_level is not None:
        user.risk_level = payload.risk_level

    db.commit()
    db.refresh(user)
    return user


@router.get("/me/history", response_model=list[schemas.HistoryEntryOut])
def my_history(
    db: Session = Depends(get_db),
    user: models.User = Depends(auth.get_current_user),
):
    """Matches this user analysed, newest first (latest 30)."""
    return history.list_history(db, user.email)
