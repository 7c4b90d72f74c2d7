import logging
import cloudinary.uploader
from fastapi import UploadFile

logger = logging.getLogger(__name__)

async def upload_to_cloudinary(file: UploadFile, folder: str = "chat_media"):
    """
    Upload 1 file (image/video/audio/pdf) lên Cloudinary.
    Tự động xác định loại (resource_type="auto").
    """
    try:
        file.file.seek(0)
        result = cloudinary.uploader.upload(
            file.file,
            resource_type="auto",  # cho phép image, video, audio, pdf
            folder=folder,         # tùy chọn: lưu vào thư mục Cloudinary
            filename_override=file.filename,
        )
        return {
            "url": result["secure_url"],
            "public_id": result["public_id"],
            "resource_type": result["resource_type"],
            "format": result.get("format"),
            "bytes": result.get("bytes")
        }
    except Exception as e:
        logger.error(f"Upload to Cloudinary failed for {file.filename}: {e}")
        raise e
