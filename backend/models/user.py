import json
import logging

from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from db.base import Base
from sqlalchemy import event
from models.profile import Profile, AppRole
from models.tourist_session import TouristSession
from models.emergency_alert import EmergencyAlert

logger = logging.getLogger(__name__)

# metadata keys copied verbatim onto the new profile (null when absent)
PROFILE_METADATA_FIELDS = ("phone", "emergency_contact_name", "emergency_contact_phone", "country")


class ProvisioningError(ValueError):
    """Raised while provisioning a profile; aborts the whole signup."""


class User(Base):
    """Authentication record. Application data hangs off `profile`."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    # free-form payload supplied at signup
    raw_user_meta_data = Column(JSON, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    profile = relationship("Profile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    sessions = relationship(TouristSession, cascade="all, delete-orphan")
    alerts = relationship(EmergencyAlert, foreign_keys=[EmergencyAlert.user_id], cascade="all, delete-orphan")

    @property
    def role(self):
        return self.profile.role if self.profile else None


def _metadata_text(meta, key):
    value = meta.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _provision_profile(mapper, connection, target):
    """ORM event: every new user gets exactly one profile, written on the same
    connection so a failure here rolls back the user row as well.

    `full_name` falls back to "User" and `role` to tourist. A role that is not
    an `AppRole` value is an error, not a fallback.
    """
    meta = target.raw_user_meta_data or {}
    raw_role = _metadata_text(meta, "role")
    try:
        role = AppRole(raw_role) if raw_role is not None else AppRole.tourist
    except ValueError:
        raise ProvisioningError(f"invalid input value for enum app_role: {raw_role!r}")

    full_name = _metadata_text(meta, "full_name")
    values = {
        "user_id": target.id,
        "full_name": full_name if full_name is not None else "User",
        "role": role,
    }
    for field in PROFILE_METADATA_FIELDS:
        values[field] = _metadata_text(meta, field)
    connection.execute(Profile.__table__.insert().values(**values))
    logger.debug("Provisioned %s profile for user %s", role.value, target.id)


event.listen(User, "after_insert", _provision_profile)
