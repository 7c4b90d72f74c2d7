import os
import cloudinary
from dotenv import load_dotenv
from typing import Optional
from pydantic import BaseModel

# Tải các biến môi trường từ tệp .env
load_dotenv()

MONGO_URI = os.getenv("MONGO_URI")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "postchat")

# Token do dịch vụ định danh cấp, ở đây chỉ cần cùng khóa để xác minh
SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 120))

# Thời gian (giờ) cho phép sửa tin nhắn sau khi gửi, 0 = không giới hạn
MESSAGE_EDIT_WINDOW_HOURS = int(os.getenv("MESSAGE_EDIT_WINDOW_HOURS", 12))


class MediaLimits(BaseModel):
    """Giới hạn dung lượng (MB) cho từng loại media."""
    image: int = 10
    video: int = 50
    audio: int = 20
    pdf: int = 10

    def ceiling_bytes(self, category: str) -> int:
        return getattr(self, category) * 1024 * 1024

    def as_payload(self) -> dict:
        """Bảng giới hạn trả về cho client khi file quá lớn."""
        return {
            "imageMaxMB": self.image,
            "videoMaxMB": self.video,
            "audioMaxMB": self.audio,
            "pdfMaxMB": self.pdf,
        }


def get_media_limits() -> MediaLimits:
    """Đọc giới hạn media từ biến môi trường (IMAGE_MAX_MB, VIDEO_MAX_MB, AUDIO_MAX_MB, PDF_MAX_MB)."""
    return MediaLimits(
        image=int(os.getenv("IMAGE_MAX_MB", 10)),
        video=int(os.getenv("VIDEO_MAX_MB", 50)),
        audio=int(os.getenv("AUDIO_MAX_MB", 20)),
        pdf=int(os.getenv("PDF_MAX_MB", 10)),
    )


def init_cloudinary():
    """Khởi tạo cấu hình Cloudinary từ biến môi trường."""
    cloudinary.config(
        cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME"),
        api_key=os.getenv("CLOUDINARY_API_KEY"),
        api_secret=os.getenv("CLOUDINARY_API_SECRET"),
        secure=True,
    )


def get_firebase_service_account() -> Optional[dict]:
    """Thông tin service account Firebase từ biến môi trường FIREBASE_*, None nếu chưa cấu hình."""
    project_id = os.getenv("FIREBASE_PROJECT_ID")
    private_key = os.getenv("FIREBASE_PRIVATE_KEY")
    client_email = os.getenv("FIREBASE_CLIENT_EMAIL")
    if not (project_id and private_key and client_email):
        return None

    return {
        "type": "service_account",
        "project_id": project_id,
        # Khóa trong .env thường được bọc ngoặc kép và escape xuống dòng
        "private_key": private_key.strip('"').replace('\\n', '\n'),
        "private_key_id": os.getenv("FIREBASE_PRIVATE_KEY_ID", ""),
        "client_email": client_email,
        "client_id": os.getenv("FIREBASE_CLIENT_ID", ""),
        "token_uri": os.getenv("FIREBASE_TOKEN_URI", "https://oauth2.googleapis.com/token"),
    }
