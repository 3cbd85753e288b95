import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional

from core.policies import UPDATE, authorize, visible
from core.security import get_current_user
from db.session import get_db
from models.profile import Profile, AppRole
from models.user import User
from schemas.profile import ProfileOut, ProfileUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _own_profile(db: Session, current_user: User) -> Profile:
    profile = visible(db, current_user.id, Profile).filter(Profile.user_id == current_user.id).first()
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.get("/me", response_model=ProfileOut)
def get_my_profile(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _own_profile(db, current_user)


@router.patch("/me", response_model=ProfileOut)
def update_my_profile(payload: ProfileUpdate, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    profile = _own_profile(db, current_user)
    authorize(db, current_user.id, UPDATE, profile)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(profile, field, value)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Profile update for user %s failed: %s", current_user.id, e)
        raise HTTPException(status_code=400, detail="Failed to update profile")
    db.refresh(profile)
    return profile


@router.get("/", response_model=List[ProfileOut])
def list_profiles(role: Optional[AppRole] = None, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    query = visible(db, current_user.id, Profile)
    if role is not None:
        query = query.filter(Profile.role == role)
    return query.order_by(Profile.created_at.desc(), Profile.id.desc()).all()
