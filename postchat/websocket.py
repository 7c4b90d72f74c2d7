# postchat/websocket.py
import asyncio
import logging
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List
from fastapi import WebSocket

logger = logging.getLogger(__name__)


def to_json_ready(obj: Any) -> Any:
    """Chuyển datetime (kể cả lồng trong dict/list) thành ISO string."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {k: to_json_ready(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [to_json_ready(v) for v in obj]
    return obj


class ConnectionManager:
    """
    Giữ các kết nối WebSocket đang mở theo user_id để đẩy sự kiện chat xuống client.
    Một người dùng có thể mở nhiều thiết bị cùng lúc.
    """

    def __init__(self):
        self.active_connections: Dict[str, List[WebSocket]] = defaultdict(list)

    async def connect(self, user_id: str, websocket: WebSocket):
        await websocket.accept()
        self.active_connections[user_id].append(websocket)
        logger.info(f"User {user_id} connected ({len(self.active_connections[user_id])} sockets)")

    def disconnect(self, user_id: str, websocket: WebSocket):
        connections = self.active_connections.get(user_id)
        if not connections:
            return
        if websocket in connections:
            connections.remove(websocket)
        if not connections:
            del self.active_connections[user_id]

    async def send_to_user(self, user_id: str, data: dict):
        """Gửi một sự kiện tới mọi kết nối của một người dùng."""
        for connection in list(self.active_connections.get(user_id, [])):
            await connection.send_json(data)

    async def broadcast_to_users(self, user_ids: Iterable[str], event_type: str, payload: dict):
        """
        Phát sự kiện {type, payload} tới nhiều người dùng.
        Lỗi socket chỉ được ghi log, không làm hỏng thao tác đã lưu.
        """
        data = to_json_ready({"type": event_type, "payload": payload})
        recipients = [uid for uid in dict.fromkeys(user_ids) if self.is_user_online(uid)]
        results = await asyncio.gather(
            *[self.send_to_user(uid, data) for uid in recipients],
            return_exceptions=True
        )
        for uid, result in zip(recipients, results):
            if isinstance(result, Exception):
                logger.warning(f"Socket event '{event_type}' to {uid} failed: {result}")

    def is_user_online(self, user_id: str) -> bool:
        return bool(self.active_connections.get(user_id))


# Tạo một instance duy nhất dùng toàn app
manager = ConnectionManager()
