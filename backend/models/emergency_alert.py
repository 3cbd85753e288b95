from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Numeric
from sqlalchemy.sql import func

from db.base import Base

ALERT_ACTIVE = "active"
ALERT_RESOLVED = "resolved"


class EmergencyAlert(Base):
    __tablename__ = "emergency_alerts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    alert_type = Column(String, nullable=False, default="panic", server_default="panic")
    message = Column(Text, nullable=True)
    location_lat = Column(Numeric(10, 8, asdecimal=False), nullable=True)
    location_lng = Column(Numeric(11, 8, asdecimal=False), nullable=True)
    status = Column(String, nullable=True, default=ALERT_ACTIVE, server_default=ALERT_ACTIVE)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    # no cascade: a staff account that resolved alerts cannot be dropped silently
    resolved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
