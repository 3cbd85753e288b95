import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from datetime import timedelta

from core.security import verify_password, hash_password, create_access_token, get_current_user
from core.config import settings
from db.session import get_db
from schemas.auth import LoginIn, Token, SignupIn
from schemas.user import UserOut
from models.user import User, ProvisioningError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def signup(data: SignupIn, db: Session = Depends(get_db)):
    existing = db.query(User).filter(User.email == data.email).first()
    if existing:
        raise HTTPException(status_code=400, detail="Email already registered")
    user = User(email=data.email, password_hash=hash_password(data.password), raw_user_meta_data=data.data or {})
    db.add(user)
    try:
        # the profile is written by the after_insert hook in this same flush
        db.commit()
    except (ProvisioningError, SQLAlchemyError) as e:
        db.rollback()
        logger.warning("Signup for %s failed: %s", data.email, e)
        raise HTTPException(status_code=400, detail="Database error saving new user")
    db.refresh(user)
    logger.info("Registered user %s as %s", user.id, user.role.value)
    return user


@router.post("/login", response_model=Token)
def login(data: LoginIn, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == data.email).first()
    if not user or not user.is_active or not verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    role = user.role.value if user.role else None
    token = create_access_token({"sub": str(user.id), "role": role}, expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    return {"access_token": token, "token_type": "bearer"}


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/logout")
def logout():
    # frontend should discard token; server can implement blacklist if desired
    return {"ok": True}
