import logging
from typing import List, Dict
from fastapi import WebSocket

logger = logging.getLogger(__name__)

ALERTS_FEED = "alerts"
SESSIONS_FEED = "sessions"


class ConnectionManager:
    def __init__(self):
        # one subscriber list per change feed
        self.active: Dict[str, List[WebSocket]] = {ALERTS_FEED: [], SESSIONS_FEED: []}

    async def connect(self, websocket: WebSocket, feed: str = ALERTS_FEED):
        await websocket.accept()
        self.active.setdefault(feed, []).append(websocket)

    def disconnect(self, websocket: WebSocket, feed: str = ALERTS_FEED):
        if feed in self.active and websocket in self.active[feed]:
            self.active[feed].remove(websocket)

    async def broadcast(self, message: dict, feed: str = ALERTS_FEED):
        conns = list(self.active.get(feed, []))
        for connection in conns:
            try:
                await connection.send_json(message)
            except Exception as e:
                # best-effort: remove broken connections
                logger.debug("Dropping %s subscriber: %r", feed, e)
                self.disconnect(connection, feed)


manager = ConnectionManager()


def change_event(table: str, action: str, record: dict) -> dict:
    """Envelope pushed to subscribers for one row change."""
    return {"table": table, "type": action, "record": record}
