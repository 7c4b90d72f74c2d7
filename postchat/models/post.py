from beanie import Document
from pydantic import Field
from datetime import datetime

class Post(Document):
    """
    Bài viết của người dùng. Phân hệ chat chỉ dùng authorId để xác định người nhận yêu cầu trò chuyện.
    """
    authorId: str = Field(..., description="ID của tác giả bài đăng.")
    content: str = Field(default="", description="Nội dung văn bản của bài đăng.")
    createdAt: datetime = Field(default_factory=datetime.utcnow, description="Thời điểm bài đăng được tạo.")

    class Settings:
        name = "posts"
        indexes = [
            "authorId",
            "createdAt",
        ]
