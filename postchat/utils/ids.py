from typing import Optional
from bson import ObjectId

def parse_object_id(value: Optional[str]) -> Optional[ObjectId]:
    """Chuyển chuỗi thành ObjectId, trả về None nếu không đúng định dạng."""
    if not value or not ObjectId.is_valid(str(value)):
        return None
    return ObjectId(str(value))
