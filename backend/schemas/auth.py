from pydantic import BaseModel, EmailStr
from typing import Optional, Any, Dict


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LoginIn(BaseModel):
    email: str
    password: str


class SignupIn(BaseModel):
    email: EmailStr
    password: str
    # free-form; the profile is provisioned from full_name, role, phone,
    # emergency_contact_name, emergency_contact_phone and country
    data: Optional[Dict[str, Any]] = None
