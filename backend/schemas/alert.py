from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from pydantic import ConfigDict


class PanicIn(BaseModel):
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    message: Optional[str] = None


class AlertCreate(BaseModel):
    # defaults to the caller; anyone else's id is refused
    user_id: Optional[int] = None
    alert_type: str = "panic"
    message: Optional[str] = None
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)


class AlertOut(BaseModel):
    id: int
    user_id: int
    alert_type: str
    message: Optional[str] = None
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    status: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
