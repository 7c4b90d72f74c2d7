from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from ..models import User
from ..security import get_current_user_ws
from ..websocket import manager

router = APIRouter()

@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, user: User = Depends(get_current_user_ws)):
    user_id = str(user.id)
    await manager.connect(user_id, websocket)
    try:
        while True:
            # Kênh chỉ dùng để đẩy sự kiện xuống client
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(user_id, websocket)
