from datetime import datetime
from typing import List, Optional
from ..models import ChatRequest, Group, Message
from ..errors import NotFoundError, ValidationError
from ..utils import parse_object_id


class ChatContext:
    """Danh tính của một cuộc trò chuyện: yêu cầu đã chấp nhận hoặc nhóm."""

    def __init__(self, chatId: str, isGroup: bool, participantIds: List[str], group: Optional[Group] = None):
        self.chatId = chatId
        self.isGroup = isGroup
        self.participantIds = participantIds
        self.group = group

    def is_participant(self, user_id: str) -> bool:
        return user_id in self.participantIds


class ChatService:

    @staticmethod
    async def resolve_chat(chat_id: str) -> ChatContext:
        """
        Xác định cuộc trò chuyện từ chatId.
        Hai không gian ID (yêu cầu / nhóm) không trùng nhau nên tra lần lượt.
        """
        object_id = parse_object_id(chat_id)
        if object_id is None:
            raise NotFoundError("Không tìm thấy cuộc trò chuyện.")

        request = await ChatRequest.get(object_id)
        if request:
            if request.status != 'accepted':
                raise ValidationError("Yêu cầu trò chuyện chưa được chấp nhận.")
            return ChatContext(
                chatId=str(request.id),
                isGroup=False,
                participantIds=request.participant_ids
            )

        group = await Group.get(object_id)
        if group:
            return ChatContext(
                chatId=str(group.id),
                isGroup=True,
                participantIds=group.member_ids,
                group=group
            )

        raise NotFoundError("Không tìm thấy cuộc trò chuyện.")

    @staticmethod
    async def mark_read(context: ChatContext, user_id: str) -> datetime:
        """Ghi lại thời điểm user_id đọc cuộc trò chuyện, dùng để đếm tin chưa đọc."""
        now = datetime.utcnow()
        document_model = Group if context.isGroup else ChatRequest
        await document_model.get_motor_collection().update_one(
            {"_id": parse_object_id(context.chatId)},
            {"$set": {f"lastReadAt.{user_id}": now}}
        )
        return now

    @staticmethod
    async def count_unread(
        chat_id: str,
        viewer_id: str,
        last_read_at: Optional[datetime] = None,
        joined_at: Optional[datetime] = None
    ) -> int:
        """Số tin nhắn viewer nhìn thấy, do người khác gửi, sau lần đọc gần nhất."""
        query = Message.visible_query(chat_id, viewer_id, joined_at=joined_at)
        query["senderId"] = {"$ne": viewer_id}
        if last_read_at is not None:
            query.setdefault("createdAt", {})["$gt"] = last_read_at
        return await Message.find(query).count()
