from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from pydantic import ConfigDict


class LocationIn(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class PingIn(LocationIn):
    safety_status: Optional[str] = None


class SessionOut(BaseModel):
    id: int
    user_id: int
    is_active: bool
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    current_location_lat: Optional[float] = None
    current_location_lng: Optional[float] = None
    safety_status: Optional[str] = None
    last_ping: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
