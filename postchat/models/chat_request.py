from beanie import Document
from pydantic import Field
from typing import Dict, Literal, Optional
from datetime import datetime

# Chỉ mục unique một phần trên pairKey: mỗi cặp người dùng có tối đa một yêu cầu còn hiệu lực
LIVE_PAIR_INDEX = "uniq_live_pair"

def make_pair_key(user_a: str, user_b: str) -> str:
    """Khóa không phụ thuộc chiều gửi của một cặp người dùng."""
    return ":".join(sorted([user_a, user_b]))

class ChatRequest(Document):
    """
    Đại diện cho một yêu cầu trò chuyện cá nhân.
    Khi được chấp nhận, ID của yêu cầu chính là ID của cuộc trò chuyện (chatId).
    """
    senderId: str = Field(..., description="ID của người gửi yêu cầu.")
    receiverId: str = Field(..., description="ID của người nhận yêu cầu (tác giả bài viết).")
    originPostId: Optional[str] = Field(default=None, description="ID bài viết dùng để xác định người nhận.")
    status: Literal['pending', 'accepted', 'rejected'] = Field(default='pending', description="Trạng thái của yêu cầu.")
    pairKey: Optional[str] = Field(default=None, description="Khóa của cặp người dùng; bị gỡ khi yêu cầu bị từ chối.")
    lastReadAt: Dict[str, datetime] = Field(default_factory=dict, description="Thời điểm đọc gần nhất của từng người.")
    createdAt: datetime = Field(default_factory=datetime.utcnow, description="Thời điểm yêu cầu được tạo.")
    updatedAt: datetime = Field(default_factory=datetime.utcnow, description="Thời điểm yêu cầu được phản hồi.")

    @property
    def participant_ids(self) -> list[str]:
        return [self.senderId, self.receiverId]

    def counterpart_of(self, user_id: str) -> str:
        """Trả về ID của người còn lại trong cuộc trò chuyện."""
        return self.receiverId if self.senderId == user_id else self.senderId

    class Settings:
        name = "chatRequests"
        indexes = [
            "senderId",
            "receiverId",
            "status",
            "createdAt",
        ]
