from datetime import datetime
from typing import Optional
from beanie import Document
from pydantic import Field


class Notification(Document):
    """
    Bản ghi sự kiện nhóm (tạo nhóm, đổi thành viên, đổi hồ sơ, xóa nhóm) gửi tới từng thành viên.
    """
    userId: str = Field(..., description="ID của người nhận.")
    type: str = Field(..., description="Loại sự kiện: group_created, group_members_added, group_profile_updated, ...")
    groupId: Optional[str] = Field(default=None, description="Nhóm phát sinh sự kiện.")
    title: str
    message: str
    metadata: dict = Field(default_factory=dict, description="Dữ liệu kèm theo sự kiện.")
    isRead: bool = False
    createdAt: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "notifications"
        indexes = [
            [("userId", 1), ("createdAt", -1)],
            "groupId",
        ]
