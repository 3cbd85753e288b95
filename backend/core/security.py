from datetime import datetime, timedelta, timezone
import logging
import os
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from db.session import get_db
from sqlalchemy.orm import Session
from models.user import User
from core.config import settings
from core.policies import get_user_role, is_elevated

# Respect the `PASSWORD_SCHEME` setting which can be 'bcrypt', 'argon2',
# 'plaintext' or 'auto'. In 'auto' mode we try bcrypt first, then argon2,
# then fall back to plaintext.
logger = logging.getLogger(__name__)


def _try_scheme(name):
    try:
        ctx = CryptContext(schemes=[name], deprecated="auto")
        # smoke-test with a short string to force backend finalization
        ctx.hash("__passlib_init_check__")
        logger.debug("Using password scheme: %s", name)
        return ctx
    except Exception as e:
        logger.debug("Password scheme %s unavailable: %s", name, repr(e))
        return None


def _init_pwd_context():
    scheme = (getattr(settings, "PASSWORD_SCHEME", "auto") or "auto").lower()

    # TESTING forces plaintext for simplicity in tests
    if settings.TESTING or os.getenv("TESTING") in ("1", "true", "True"):
        return CryptContext(schemes=["plaintext"], deprecated="auto")

    if scheme == "plaintext":
        return CryptContext(schemes=["plaintext"], deprecated="auto")

    if scheme in ("bcrypt", "argon2"):
        candidates = [scheme]
    else:
        if scheme != "auto":
            logger.warning("Unknown PASSWORD_SCHEME=%s; trying auto", scheme)
        candidates = ["bcrypt", "argon2"]

    for name in candidates:
        ctx = _try_scheme(name)
        if ctx:
            return ctx
    logger.warning("No secure password backend available for %s; falling back to plaintext", scheme)
    return CryptContext(schemes=["plaintext"], deprecated="auto")


pwd_context = _init_pwd_context()
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def _truncate(password) -> str:
    # bcrypt has a maximum input size of 72 bytes; truncate by bytes to avoid ValueError.
    b = str(password).encode("utf-8")
    if len(b) > 72:
        return b[:72].decode("utf-8", errors="ignore")
    return b.decode("utf-8")


def hash_password(password: str) -> str:
    return pwd_context.hash(_truncate(password))


def verify_password(plain: str, hashed: str) -> bool:
    # same truncation as hashing
    return pwd_context.verify(_truncate(plain), hashed)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str):
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


def user_from_token(token: str, db: Session) -> User:
    payload = decode_token(token)
    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid token payload")
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token payload")
    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found")
    return user


# Dependency: get_current_user
def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    return user_from_token(token, db)


def require_staff(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> User:
    """Admin or police only; the role comes from the profile, not the token."""
    if not is_elevated(get_user_role(db, current_user.id)):
        raise HTTPException(status_code=403, detail="Admin or police privileges required")
    return current_user

