from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

from schemas.alert import AlertOut
from schemas.profile import ProfileOut
from schemas.session import SessionOut


class Location(BaseModel):
    lat: float
    lng: float


class TrackedTourist(BaseModel):
    user_id: int
    full_name: str
    location: Location
    status: str
    last_seen: Optional[datetime] = None
    risk_level: str
    role: str
    session_id: int


class StaffAlert(AlertOut):
    tourist_name: str


class SafetyDistribution(BaseModel):
    high: int
    medium: int
    low: int


class DashboardStats(BaseModel):
    total_tourists: int
    active_now: int
    critical_alerts: int
    avg_safety_score: int
    active_alerts: int


class Overview(BaseModel):
    stats: DashboardStats
    safety_distribution: SafetyDistribution
    tourists: List[TrackedTourist]
    alerts: List[StaffAlert]


class TouristRecord(ProfileOut):
    current_session: Optional[SessionOut] = None
