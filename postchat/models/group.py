from beanie import Document
from pydantic import Field, BaseModel
from typing import Dict, Optional, List
from datetime import datetime

class GroupMember(BaseModel):
    """Thành viên của nhóm. isAdmin = quản trị viên hệ thống, chỉ được xem hồ sơ nhóm."""
    userId: str
    isAdmin: bool = False
    joinedAt: datetime = Field(default_factory=datetime.utcnow)


class Group(Document):
    """
    Đại diện cho một nhóm chat trong collection 'groups'.
    ID của nhóm là chatId của các tin nhắn trong nhóm.
    """
    creatorId: str = Field(..., description="ID của người tạo nhóm.")
    name: Optional[str] = Field(default=None, description="Tên nhóm.")
    imageUrl: Optional[str] = Field(default=None, description="Ảnh đại diện nhóm.")
    members: List[GroupMember] = Field(default_factory=list, description="Danh sách thành viên, luôn gồm người tạo.")
    version: int = Field(default=0, description="Phiên bản danh sách thành viên, dùng cho cập nhật lạc quan.")
    lastReadAt: Dict[str, datetime] = Field(default_factory=dict, description="Thời điểm đọc gần nhất của từng thành viên.")
    createdAt: datetime = Field(default_factory=datetime.utcnow, description="Thời điểm nhóm được tạo.")
    updatedAt: datetime = Field(default_factory=datetime.utcnow, description="Thời điểm nhóm được cập nhật lần cuối.")

    @property
    def member_ids(self) -> List[str]:
        return [m.userId for m in self.members]

    def get_member(self, user_id: str) -> Optional[GroupMember]:
        return next((m for m in self.members if m.userId == user_id), None)

    class Settings:
        name = "groups"
        indexes = [
            "creatorId",
            "members.userId",
            "updatedAt",
        ]
