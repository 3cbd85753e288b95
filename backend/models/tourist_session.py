from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Numeric
from sqlalchemy.sql import func
from sqlalchemy import event

from db.base import Base, touch_updated_at


class TouristSession(Base):
    __tablename__ = "tourist_sessions"

    id = Column(Integer, primary_key=True, index=True)
    # one row per user; "start tracking" upserts on this key
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    is_active = Column(Boolean, nullable=False, default=False)
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    current_location_lat = Column(Numeric(10, 8, asdecimal=False), nullable=True)
    current_location_lng = Column(Numeric(11, 8, asdecimal=False), nullable=True)
    # free text; clients use safe / alert / emergency
    safety_status = Column(String, nullable=True, default="safe", server_default="safe")
    last_ping = Column(DateTime(timezone=True), nullable=True, server_default=func.now())
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


event.listen(TouristSession, "before_update", touch_updated_at)
