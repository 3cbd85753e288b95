import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from sqlalchemy import event

from db.base import Base, touch_updated_at


class AppRole(str, enum.Enum):
    tourist = "tourist"
    admin = "admin"
    police = "police"


# roles allowed to read every user's rows and triage alerts
ELEVATED_ROLES = (AppRole.admin, AppRole.police)


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    full_name = Column(String, nullable=False)
    role = Column(Enum(AppRole, name="app_role"), nullable=False, default=AppRole.tourist, server_default=AppRole.tourist.value)
    phone = Column(String, nullable=True)
    emergency_contact_name = Column(String, nullable=True)
    emergency_contact_phone = Column(String, nullable=True)
    country = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    user = relationship("User", back_populates="profile")


event.listen(Profile, "before_update", touch_updated_at)
