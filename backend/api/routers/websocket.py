import logging
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from api.websocket.rooms import websocket_rooms_endpoint

router = APIRouter(tags=["websocket"])

logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for order and billing pushes."""
    try:
        await websocket_rooms_endpoint(websocket)
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"[WebSocket] Connection closed with error: {e}")
        await websocket.close(code=1011, reason=str(e))
