import logging
from datetime import datetime, timezone

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional

from core.policies import INSERT, UPDATE, authorize, get_visible, visible
from core.security import get_current_user
from db.session import get_db
from models.emergency_alert import EmergencyAlert, ALERT_ACTIVE, ALERT_RESOLVED
from models.user import User
from routers.sessions import active_session_for
from schemas.alert import AlertCreate, AlertOut, PanicIn
from schemas.session import SessionOut
from utils.notifier import emergency_payload, notifications_enabled, notify_emergency
from utils.websocket_manager import manager, change_event, ALERTS_FEED, SESSIONS_FEED

logger = logging.getLogger(__name__)

router = APIRouter()

PANIC_MESSAGE = "Emergency panic button activated"


async def _publish_alert(action: str, alert: EmergencyAlert):
    await manager.broadcast(
        change_event("emergency_alerts", action, AlertOut.model_validate(alert).model_dump(mode="json")),
        feed=ALERTS_FEED,
    )


@router.post("/panic", response_model=AlertOut, status_code=status.HTTP_201_CREATED)
async def panic(payload: PanicIn, background_tasks: BackgroundTasks, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Raise a panic alert and flag the caller's active session as an
    emergency. Both writes commit together or not at all."""
    alert = EmergencyAlert(
        user_id=current_user.id,
        alert_type="panic",
        message=payload.message or PANIC_MESSAGE,
        location_lat=payload.lat,
        location_lng=payload.lng,
        status=ALERT_ACTIVE,
    )
    role = authorize(db, current_user.id, INSERT, alert)
    db.add(alert)

    session = active_session_for(db, current_user.id)
    if session is not None:
        authorize(db, current_user.id, UPDATE, session, role=role)
        session.safety_status = "emergency"
        if payload.lat is not None and payload.lng is not None:
            session.current_location_lat = payload.lat
            session.current_location_lng = payload.lng
        session.last_ping = datetime.now(timezone.utc)

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to record panic alert for user %s: %s", current_user.id, e)
        raise HTTPException(status_code=500, detail="Failed to send emergency alert. Please try again.")
    db.refresh(alert)
    logger.warning("Panic alert %s raised by user %s", alert.id, current_user.id)

    await _publish_alert("INSERT", alert)
    if session is not None:
        db.refresh(session)
        await manager.broadcast(
            change_event("tourist_sessions", "UPDATE", SessionOut.model_validate(session).model_dump(mode="json")),
            feed=SESSIONS_FEED,
        )
    if notifications_enabled():
        background_tasks.add_task(notify_emergency, emergency_payload(alert, current_user.profile))
    return alert


@router.post("/", response_model=AlertOut, status_code=status.HTTP_201_CREATED)
async def create_alert(payload: AlertCreate, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    alert = EmergencyAlert(
        user_id=payload.user_id if payload.user_id is not None else current_user.id,
        alert_type=payload.alert_type,
        message=payload.message,
        location_lat=payload.lat,
        location_lng=payload.lng,
        status=ALERT_ACTIVE,
    )
    authorize(db, current_user.id, INSERT, alert)
    db.add(alert)
    db.commit()
    db.refresh(alert)
    await _publish_alert("INSERT", alert)
    return alert


@router.get("/", response_model=List[AlertOut])
def list_alerts(status_filter: Optional[str] = Query(None, alias="status"), current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    query = visible(db, current_user.id, EmergencyAlert)
    if status_filter and status_filter != "all":
        query = query.filter(EmergencyAlert.status == status_filter)
    return query.order_by(EmergencyAlert.created_at.desc(), EmergencyAlert.id.desc()).all()


@router.get("/{alert_id}", response_model=AlertOut)
def get_alert(alert_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    alert = get_visible(db, current_user.id, EmergencyAlert, alert_id)
    if not alert:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert


@router.post("/{alert_id}/resolve", response_model=AlertOut)
async def resolve_alert(alert_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Staff triage: active -> resolved. Only the status fields are written
    and the tourist's session status is left as it is."""
    alert = get_visible(db, current_user.id, EmergencyAlert, alert_id)
    if not alert:
        raise HTTPException(status_code=404, detail="Alert not found")
    authorize(db, current_user.id, UPDATE, alert)

    # resolved is terminal; the status guard in the WHERE clause makes a
    # concurrent second resolve match no rows instead of overwriting
    result = db.execute(
        update(EmergencyAlert)
        .where(EmergencyAlert.id == alert.id, EmergencyAlert.status.is_distinct_from(ALERT_RESOLVED))
        .values(status=ALERT_RESOLVED, resolved_at=datetime.now(timezone.utc), resolved_by=current_user.id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        raise HTTPException(status_code=409, detail="Alert already resolved")
    db.commit()
    db.refresh(alert)
    logger.info("Alert %s resolved by user %s", alert.id, current_user.id)
    await _publish_alert("UPDATE", alert)
    return alert

