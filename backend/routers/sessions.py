import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional

from core.policies import INSERT, UPDATE, authorize, visible
from core.security import get_current_user
from db.session import get_db
from models.tourist_session import TouristSession
from models.user import User
from schemas.session import LocationIn, PingIn, SessionOut
from utils.websocket_manager import manager, change_event, SESSIONS_FEED

logger = logging.getLogger(__name__)

router = APIRouter()


def active_session_for(db: Session, user_id) -> Optional[TouristSession]:
    return (
        db.query(TouristSession)
        .filter(TouristSession.user_id == user_id, TouristSession.is_active.is_(True))
        .first()
    )


def _start_values(location: LocationIn) -> dict:
    now = datetime.now(timezone.utc)
    return {
        "is_active": True,
        "start_time": now,
        "end_time": None,
        "current_location_lat": location.lat,
        "current_location_lng": location.lng,
        "safety_status": "safe",
        "last_ping": now,
    }


def upsert_session(db: Session, user: User, location: LocationIn) -> TouristSession:
    """Start tracking: overwrite the user's session row, creating it the first
    time. The row is keyed on user id so repeats never add a second one."""
    values = _start_values(location)
    session = db.query(TouristSession).filter(TouristSession.user_id == user.id).first()
    if session is None:
        session = TouristSession(user_id=user.id, **values)
        authorize(db, user.id, INSERT, session)
        db.add(session)
        try:
            db.commit()
        except IntegrityError:
            # another client inserted the row first; fall through to update it
            db.rollback()
            session = db.query(TouristSession).filter(TouristSession.user_id == user.id).one()
        else:
            db.refresh(session)
            return session

    authorize(db, user.id, UPDATE, session)
    for field, value in values.items():
        setattr(session, field, value)
    db.commit()
    db.refresh(session)
    return session


def _require_active(db: Session, user: User) -> TouristSession:
    session = active_session_for(db, user.id)
    if not session:
        raise HTTPException(status_code=404, detail="No active tracking session")
    authorize(db, user.id, UPDATE, session)
    return session


async def _publish(action: str, session: TouristSession):
    await manager.broadcast(
        change_event("tourist_sessions", action, SessionOut.model_validate(session).model_dump(mode="json")),
        feed=SESSIONS_FEED,
    )


@router.post("/start", response_model=SessionOut)
async def start_tracking(location: LocationIn, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    session = upsert_session(db, current_user, location)
    logger.info("User %s started tracking (session %s)", current_user.id, session.id)
    await _publish("UPDATE", session)
    return session


@router.get("/me", response_model=Optional[SessionOut])
def get_my_session(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return active_session_for(db, current_user.id)


@router.post("/ping", response_model=SessionOut)
async def ping(payload: PingIn, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    session = _require_active(db, current_user)
    session.last_ping = datetime.now(timezone.utc)
    session.current_location_lat = payload.lat
    session.current_location_lng = payload.lng
    if payload.safety_status is not None:
        session.safety_status = payload.safety_status
    db.commit()
    db.refresh(session)
    await _publish("UPDATE", session)
    return session


@router.post("/stop", response_model=SessionOut)
async def stop_tracking(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    session = _require_active(db, current_user)
    session.is_active = False
    session.end_time = datetime.now(timezone.utc)
    session.safety_status = "safe"
    db.commit()
    db.refresh(session)
    logger.info("User %s stopped tracking (session %s)", current_user.id, session.id)
    await _publish("UPDATE", session)
    return session


@router.get("/", response_model=List[SessionOut])
def list_sessions(active: Optional[bool] = None, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    query = visible(db, current_user.id, TouristSession)
    if active is not None:
        query = query.filter(TouristSession.is_active.is_(active))
    return query.order_by(TouristSession.updated_at.desc(), TouristSession.id.desc()).all()
