from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime
from pydantic import ConfigDict

from models.profile import AppRole


class ProfileOut(BaseModel):
    id: int
    user_id: int
    full_name: str
    role: AppRole
    phone: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    country: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    # no role field: owners cannot change their own role
    full_name: Optional[str] = None
    phone: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    country: Optional[str] = None

    @field_validator("full_name")
    @classmethod
    def full_name_not_null(cls, v):
        # may be omitted, but profiles.full_name is NOT NULL
        if v is None:
            raise ValueError("full_name cannot be null")
        return v
