from beanie import Document
from pydantic import Field, EmailStr
from typing import Optional, List
from datetime import datetime

class User(Document):
    """
    Đại diện cho một người dùng trong collection 'users'.
    Được quản lý bởi dịch vụ định danh, ở đây chỉ đọc để kiểm tra quyền và hiển thị.
    """
    username: str = Field(..., description="Tên đăng nhập duy nhất của người dùng.")
    email: EmailStr = Field(..., description="Địa chỉ email duy nhất của người dùng.")
    displayName: str = Field(..., description="Tên hiển thị của người dùng.")
    avatarUrl: Optional[str] = Field(default=None, description="URL ảnh đại diện của người dùng.")
    deviceTokens: List[str] = Field(default_factory=list, description="Danh sách device tokens để gửi thông báo đẩy trên nhiều thiết bị.")
    isAdmin: bool = Field(default=False, description="Quản trị viên hệ thống (chỉ được xem hồ sơ nhóm).")
    status: Optional[str] = Field(default=None, description="Trạng thái tài khoản: None (mặc định), 'available', 'deleted'.")
    createdAt: datetime = Field(default_factory=datetime.utcnow, description="Thời điểm người dùng được tạo.")

    class Settings:
        name = "users"
        indexes = [
            "username",
            "email",
        ]
