import os
import logging
from typing import Awaitable, Callable, Optional, Sequence
from fastapi import UploadFile
from pydantic import BaseModel
from ..configs import MediaLimits, get_media_limits
from ..errors import PayloadTooLargeError, ValidationError
from ..utils import upload_to_cloudinary

logger = logging.getLogger(__name__)

# Bảng phân loại theo phần mở rộng của file
CATEGORY_EXTENSIONS = {
    "image": {".jpg", ".jpeg", ".png", ".gif", ".webp"},
    "video": {".mp4", ".mov", ".avi", ".mkv", ".webm"},
    "audio": {".mp3", ".wav", ".aac", ".m4a", ".ogg"},
    "pdf": {".pdf"},
}

ALL_CATEGORIES = ("image", "video", "audio", "pdf")

Uploader = Callable[[UploadFile, str], Awaitable[dict]]


class ClassifiedUpload(BaseModel):
    """Kết quả của một file đã được phân loại và lưu trữ."""
    category: str
    url: str
    size: int
    fileName: Optional[str] = None


def resolve_upload_size(file: UploadFile) -> int:
    """Lấy dung lượng file; nếu framework chưa tính thì đo trực tiếp trên stream."""
    if file.size is not None:
        return file.size
    position = file.file.tell()
    file.file.seek(0, os.SEEK_END)
    size = file.file.tell()
    file.file.seek(position)
    return size


class MediaClassifier:
    """
    Phân loại file media theo phần mở rộng và kiểm tra giới hạn dung lượng.
    Giới hạn được truyền vào khi khởi tạo, không đọc biến môi trường.
    """

    def __init__(self, limits: MediaLimits, uploader: Uploader = upload_to_cloudinary):
        self.limits = limits
        self.uploader = uploader

    def category_for(self, filename: Optional[str], categories: Sequence[str] = ALL_CATEGORIES) -> str:
        ext = os.path.splitext(filename or "")[1].lower()
        for category in categories:
            if ext in CATEGORY_EXTENSIONS[category]:
                return category
        raise ValidationError(
            f"Chỉ chấp nhận file {' hoặc '.join(categories)}.",
            {"allowedCategories": list(categories)}
        )

    def hard_cap_bytes(self, categories: Sequence[str] = ALL_CATEGORIES) -> int:
        """Giới hạn thô cho một điểm gọi: lớn nhất trong các loại được phép."""
        return max(self.limits.ceiling_bytes(c) for c in categories)

    def _too_large(self) -> PayloadTooLargeError:
        return PayloadTooLargeError("File quá lớn.", self.limits.as_payload())

    def check_size(self, category: str, size: int):
        if size > self.limits.ceiling_bytes(category):
            raise self._too_large()

    def classify(self, filename: Optional[str], size: int, categories: Sequence[str] = ALL_CATEGORIES) -> str:
        """Trả về loại media của file hoặc ném lỗi Validation / PayloadTooLarge."""
        category = self.category_for(filename, categories)
        if size > self.hard_cap_bytes(categories):
            raise self._too_large()
        self.check_size(category, size)
        return category

    async def accept(
        self,
        file: UploadFile,
        categories: Sequence[str] = ALL_CATEGORIES,
        folder: str = "chat_media"
    ) -> ClassifiedUpload:
        """Phân loại, kiểm tra dung lượng rồi mới upload file lên kho lưu trữ."""
        size = resolve_upload_size(file)
        category = self.classify(file.filename, size, categories)

        result = await self.uploader(file, folder)
        logger.info(f"Stored {category} upload {file.filename} ({size} bytes) in {folder}")

        return ClassifiedUpload(
            category=category,
            url=result["url"],
            size=size,
            fileName=file.filename
        )


def get_media_classifier() -> MediaClassifier:
    """Dependency cho router: giới hạn được đọc từ cấu hình tại biên của ứng dụng."""
    return MediaClassifier(get_media_limits())
