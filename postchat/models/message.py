from beanie import Document
from pydantic import Field
from typing import List, Literal, Optional
from datetime import datetime, timedelta

from .. import configs

MessageKind = Literal['text', 'image', 'video', 'audio', 'pdf']

class Message(Document):
    """
    Đại diện cho một tin nhắn trong một cuộc trò chuyện (cá nhân hoặc nhóm).
    """
    chatId: str = Field(..., description="ID của cuộc trò chuyện: ID yêu cầu đã chấp nhận hoặc ID nhóm.")
    senderId: str = Field(..., description="ID của người gửi tin nhắn.")
    kind: MessageKind = Field(default='text', description="Loại tin nhắn.")
    content: str = Field(..., description="Nội dung văn bản hoặc URL của media.")
    fileName: Optional[str] = Field(default=None, description="Tên file gốc (tin nhắn media).")
    size: Optional[int] = Field(default=None, description="Dung lượng file tính bằng byte (tin nhắn media).")
    createdAt: datetime = Field(default_factory=datetime.utcnow, description="Thời điểm tin nhắn được gửi.")
    editedAt: Optional[datetime] = Field(default=None, description="Thời điểm người gửi sửa tin nhắn lần cuối.")
    deletedForUserIds: List[str] = Field(default_factory=list, description="Những người đã xóa tin nhắn ở phía mình.")
    deletedForEveryone: bool = Field(default=False, description="Tin nhắn đã bị thu hồi với mọi người.")
    deletedAt: Optional[datetime] = Field(default=None, description="Thời điểm thu hồi với mọi người.")

    @staticmethod
    def visible_query(chat_id: str, viewer_id: str, joined_at: Optional[datetime] = None) -> dict:
        """
        Quy tắc hiển thị duy nhất cho mọi truy vấn tin nhắn:
        bỏ tin đã thu hồi, tin viewer đã xóa phía mình và tin trước khi viewer vào nhóm.
        """
        query = {
            "chatId": chat_id,
            "deletedForEveryone": False,
            "deletedForUserIds": {"$ne": viewer_id},
        }
        if joined_at is not None:
            query["createdAt"] = {"$gte": joined_at}
        return query

    def edit_window_expired(self, now: Optional[datetime] = None) -> bool:
        """MESSAGE_EDIT_WINDOW_HOURS = 0 tắt giới hạn thời gian sửa."""
        hours = configs.MESSAGE_EDIT_WINDOW_HOURS
        if hours <= 0:
            return False
        return (now or datetime.utcnow()) > self.createdAt + timedelta(hours=hours)

    def can_be_edited_by(self, user_id: str) -> bool:
        return (
            self.senderId == user_id
            and self.kind == 'text'
            and not self.deletedForEveryone
            and not self.edit_window_expired()
        )

    class Settings:
        name = "messages"
        indexes = [
            [("chatId", 1), ("createdAt", -1)],
            "createdAt",
        ]
