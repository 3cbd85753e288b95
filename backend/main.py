from fastapi import FastAPI
from db.session import engine
from db.base import Base
from contextlib import asynccontextmanager

from routers import auth, profiles, sessions, alerts, dashboard, websocket
from core.config import settings
from core.security import hash_password
from db.session import SessionLocal
from models.user import User
import logging

logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def ensure_default_admin():
    """Create the configured admin account; its profile is provisioned with
    the admin role like any other signup."""
    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.email == settings.ADMIN_EMAIL).first()
        if existing:
            logger.debug("Default admin user already exists: %s", settings.ADMIN_EMAIL)
            return existing
        admin = User(
            email=settings.ADMIN_EMAIL,
            password_hash=hash_password(settings.ADMIN_PASSWORD),
            raw_user_meta_data={"full_name": settings.ADMIN_NAME, "role": "admin"},
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        logger.info("Created default admin user %s", settings.ADMIN_EMAIL)
        return admin
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup: create tables
    Base.metadata.create_all(bind=engine)

    if settings.ADMIN_CREATE_ON_STARTUP and settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
        try:
            ensure_default_admin()
        except Exception:
            # don't fail startup if admin creation fails; log the traceback
            logger.warning("Failed to create default admin on startup", exc_info=True)

    yield


app = FastAPI(title="SafeTourist API", lifespan=lifespan)


app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(profiles.router, prefix="/profiles", tags=["profiles"])
app.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
app.include_router(alerts.router, prefix="/alerts", tags=["alerts"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
app.include_router(websocket.router, prefix="/ws")


@app.get("/")
def root():
    return {"message": "SafeTourist API"}
