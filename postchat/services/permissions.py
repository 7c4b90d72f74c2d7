"""
Các hàm kiểm tra quyền theo từng thao tác.
Quyền được tính từ thuộc tính của bản ghi tại thời điểm gọi (creatorId, isAdmin), không qua kế thừa.
"""
from ..models import Group, Message


def is_group_creator(group: Group, user_id: str) -> bool:
    return group.creatorId == user_id


def is_group_member(group: Group, user_id: str) -> bool:
    return group.get_member(user_id) is not None


def can_manage_group(group: Group, user_id: str) -> bool:
    """Thêm/xóa thành viên, đổi tên, xóa nhóm: chỉ người tạo nhóm."""
    return is_group_creator(group, user_id)


def can_edit_group_profile(group: Group, user_id: str, actor_is_admin: bool = False) -> bool:
    """
    Mọi thành viên được sửa tên/ảnh nhóm, trừ quản trị viên hệ thống (chỉ được xem).
    Người tạo nhóm luôn được sửa, kể cả khi tài khoản có cờ isAdmin.
    """
    member = group.get_member(user_id)
    if member is None:
        return False
    if is_group_creator(group, user_id):
        return True
    return not (member.isAdmin or actor_is_admin)


def can_edit_message(message: Message, user_id: str) -> bool:
    return message.senderId == user_id
