from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from pydantic import ConfigDict

from schemas.profile import ProfileOut


class UserOut(BaseModel):
    id: int
    email: str
    is_active: bool
    created_at: Optional[datetime] = None
    profile: Optional[ProfileOut] = None

    model_config = ConfigDict(from_attributes=True)
