"""Read-only staff views across every tourist's rows."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from typing import List, Optional

from core.policies import visible
from core.security import require_staff
from db.session import get_db
from models.emergency_alert import EmergencyAlert, ALERT_ACTIVE
from models.profile import Profile, AppRole
from models.tourist_session import TouristSession
from models.user import User
from schemas.alert import AlertOut
from schemas.dashboard import Overview, StaffAlert, TouristRecord
from schemas.session import SessionOut

router = APIRouter()

# shown on the map for sessions that never reported a position
DEFAULT_LOCATION = {"lat": 40.7128, "lng": -74.0060}

STATUS_RISK = {"emergency": "high", "alert": "medium", "safe": "low"}


def display_status(safety_status: Optional[str]) -> str:
    """Collapse free-text safety status onto emergency / alert / safe."""
    if safety_status in ("emergency", "alert"):
        return safety_status
    return "safe"


def _profiles_by_user(db: Session, staff: User) -> dict:
    return {p.user_id: p for p in visible(db, staff.id, Profile).all()}


def _with_names(alerts, profiles) -> List[StaffAlert]:
    out = []
    for alert in alerts:
        profile = profiles.get(alert.user_id)
        out.append(StaffAlert(
            **AlertOut.model_validate(alert).model_dump(),
            tourist_name=profile.full_name if profile else "Unknown",
        ))
    return out


def tracked_tourist(session: TouristSession, profile: Optional[Profile]) -> dict:
    status = display_status(session.safety_status)
    lat = session.current_location_lat
    lng = session.current_location_lng
    return {
        "user_id": session.user_id,
        "full_name": profile.full_name if profile else "Unknown",
        "location": {
            "lat": lat if lat is not None else DEFAULT_LOCATION["lat"],
            "lng": lng if lng is not None else DEFAULT_LOCATION["lng"],
        },
        "status": status,
        "last_seen": session.last_ping or session.updated_at,
        "risk_level": STATUS_RISK[status],
        "role": profile.role.value if profile else AppRole.tourist.value,
        "session_id": session.id,
    }


def summarize(tourists: List[dict], active_alerts: int) -> dict:
    total = len(tourists)
    safe = sum(1 for t in tourists if t["status"] == "safe")
    critical = sum(1 for t in tourists if t["status"] == "emergency")
    return {
        "stats": {
            "total_tourists": total,
            "active_now": total - critical,
            "critical_alerts": critical,
            "avg_safety_score": int(safe * 100 / total + 0.5) if total else 0,
            "active_alerts": active_alerts,
        },
        "safety_distribution": {
            "high": sum(1 for t in tourists if t["risk_level"] == "low"),
            "medium": sum(1 for t in tourists if t["risk_level"] == "medium"),
            "low": sum(1 for t in tourists if t["risk_level"] == "high"),
        },
    }


@router.get("/overview", response_model=Overview)
def overview(db: Session = Depends(get_db), staff: User = Depends(require_staff)):
    profiles = _profiles_by_user(db, staff)
    sessions = visible(db, staff.id, TouristSession).filter(TouristSession.is_active.is_(True)).all()
    tourists = [tracked_tourist(s, profiles.get(s.user_id)) for s in sessions]

    alerts = (
        visible(db, staff.id, EmergencyAlert)
        .filter(EmergencyAlert.status == ALERT_ACTIVE)
        .order_by(EmergencyAlert.created_at.desc(), EmergencyAlert.id.desc())
        .all()
    )
    return {**summarize(tourists, len(alerts)), "tourists": tourists, "alerts": _with_names(alerts, profiles)}


@router.get("/tourists", response_model=List[TouristRecord])
def list_tourists(search: Optional[str] = None, db: Session = Depends(get_db), staff: User = Depends(require_staff)):
    query = visible(db, staff.id, Profile).filter(Profile.role == AppRole.tourist)
    if search:
        term = f"%{search.lower()}%"
        query = query.filter(or_(func.lower(Profile.full_name).like(term), func.lower(Profile.country).like(term)))
    profiles = query.order_by(Profile.created_at.desc(), Profile.id.desc()).all()

    sessions = {
        s.user_id: s
        for s in visible(db, staff.id, TouristSession).filter(TouristSession.is_active.is_(True)).all()
    }
    out = []
    for profile in profiles:
        record = TouristRecord.model_validate(profile)
        session = sessions.get(profile.user_id)
        if session is not None:
            record.current_session = SessionOut.model_validate(session)
        out.append(record)
    return out


@router.get("/alerts", response_model=List[StaffAlert])
def list_staff_alerts(status_filter: Optional[str] = Query(None, alias="status"), db: Session = Depends(get_db), staff: User = Depends(require_staff)):
    query = visible(db, staff.id, EmergencyAlert)
    if status_filter and status_filter != "all":
        query = query.filter(EmergencyAlert.status == status_filter)
    alerts = query.order_by(EmergencyAlert.created_at.desc(), EmergencyAlert.id.desc()).all()
    return _with_names(alerts, _profiles_by_user(db, staff))
