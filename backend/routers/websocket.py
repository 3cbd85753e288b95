from fastapi import APIRouter, WebSocket, Query, HTTPException
from fastapi import WebSocketDisconnect
from typing import Optional

from core.policies import get_user_role, is_elevated
from core.security import user_from_token
from db.session import SessionLocal
from utils.websocket_manager import manager, ALERTS_FEED, SESSIONS_FEED

router = APIRouter()


def _staff_token(token: Optional[str]) -> bool:
    if token is None:
        return False
    db = SessionLocal()
    try:
        user = user_from_token(token, db)
        return is_elevated(get_user_role(db, user.id))
    except HTTPException:
        return False
    finally:
        db.close()


async def _serve(websocket: WebSocket, token: Optional[str], feed: str):
    # change feeds carry every tourist's rows, so only staff may subscribe
    if not _staff_token(token):
        await websocket.close(code=1008)
        return
    await manager.connect(websocket, feed=feed)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(websocket, feed=feed)


@router.websocket("/alerts")
async def ws_alerts(websocket: WebSocket, token: Optional[str] = Query(None)):
    await _serve(websocket, token, ALERTS_FEED)


@router.websocket("/sessions")
async def ws_sessions(websocket: WebSocket, token: Optional[str] = Query(None)):
    await _serve(websocket, token, SESSIONS_FEED)
