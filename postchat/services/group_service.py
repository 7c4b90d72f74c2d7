import logging
from datetime import datetime
from typing import List, Optional
from ..models import Group, GroupMember, Message, User
from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..utils import parse_object_id
from .notification_service import NotificationService
from .permissions import can_edit_group_profile, can_manage_group, is_group_creator

logger = logging.getLogger(__name__)


def _clean_ids(member_ids: List[str]) -> List[str]:
    """Loại bỏ khoảng trắng, chuỗi rỗng và ID trùng, giữ nguyên thứ tự."""
    return list(dict.fromkeys(str(v).strip() for v in member_ids if str(v).strip()))


class GroupService:

    @staticmethod
    async def get_group(group_id: str) -> Group:
        object_id = parse_object_id(group_id)
        group = await Group.get(object_id) if object_id else None
        if not group:
            raise NotFoundError("Không tìm thấy nhóm.")
        return group

    @staticmethod
    async def _load_users(user_ids: List[str]) -> List[User]:
        """Lấy người dùng theo ID, ném NotFound nếu có ID không tồn tại."""
        object_ids = [parse_object_id(uid) for uid in user_ids]
        if any(oid is None for oid in object_ids):
            raise NotFoundError("Một hoặc nhiều ID người dùng không tồn tại.")
        users = await User.find({"_id": {"$in": object_ids}, "status": {"$ne": "deleted"}}).to_list()
        found = {str(u.id) for u in users}
        missing = [uid for uid in user_ids if uid not in found]
        if missing:
            raise NotFoundError("Một hoặc nhiều ID người dùng không tồn tại.", {"missingIds": missing})
        return users

    @staticmethod
    async def validate_invites(creator_id: str, member_ids: List[str]) -> List[User]:
        """Kiểm tra danh sách được mời (khác người tạo, đều tồn tại) trước khi tạo nhóm."""
        invited_ids = [uid for uid in _clean_ids(member_ids) if uid != creator_id]
        if not invited_ids:
            raise ValidationError("memberIds phải chứa ít nhất một người dùng khác người tạo nhóm.")
        users = await GroupService._load_users(invited_ids)
        users_map = {str(u.id): u for u in users}
        return [users_map[uid] for uid in invited_ids]

    @staticmethod
    async def create_group(
        creator_id: str,
        member_ids: List[str],
        name: Optional[str] = None,
        image_url: Optional[str] = None
    ) -> Group:
        """
        Tạo nhóm mới. Thành viên = người tạo ∪ member_ids (đã loại trùng).
        """
        invited = await GroupService.validate_invites(creator_id, member_ids)

        now = datetime.utcnow()
        members = [GroupMember(userId=creator_id, isAdmin=False, joinedAt=now)]
        members += [GroupMember(userId=str(u.id), isAdmin=u.isAdmin, joinedAt=now) for u in invited]

        group = Group(
            creatorId=creator_id,
            name=(name or "").strip() or None,
            imageUrl=image_url,
            members=members,
            createdAt=now,
            updatedAt=now
        )
        await group.insert()
        logger.info(f"Group {group.id} created by {creator_id} with {len(members)} members")

        await NotificationService.notify_users(
            group.member_ids,
            "group_created",
            title="Nhóm mới",
            message=f"Bạn đã được thêm vào nhóm {group.name or 'mới'}",
            metadata={"groupId": str(group.id), "creatorId": creator_id}
        )
        return group

    @staticmethod
    async def edit_membership(
        group_id: str,
        actor_id: str,
        op: str,
        member_ids: List[str],
        expected_version: Optional[int] = None
    ) -> Group:
        """
        Thêm hoặc xóa thành viên (chỉ người tạo nhóm).
        Ghi theo kiểu compare-and-set trên `version` để không mất cập nhật khi chỉnh sửa đồng thời.
        """
        if op not in ('add', 'remove'):
            raise ValidationError("type phải là 'add' hoặc 'remove'.")

        target_ids = _clean_ids(member_ids)
        if not target_ids:
            raise ValidationError("memberIds phải là một mảng không rỗng.")

        group = await GroupService.get_group(group_id)
        if not can_manage_group(group, actor_id):
            raise ForbiddenError("Chỉ người tạo nhóm mới được cập nhật thành viên.")

        if expected_version is not None and expected_version != group.version:
            raise ConflictError(
                "Nhóm đã được cập nhật bởi thao tác khác, vui lòng tải lại.",
                {"currentVersion": group.version}
            )

        now = datetime.utcnow()
        if op == 'add':
            new_ids = [uid for uid in target_ids if not group.get_member(uid)]
            users = await GroupService._load_users(new_ids) if new_ids else []
            admin_flags = {str(u.id): u.isAdmin for u in users}
            members = group.members + [
                GroupMember(userId=uid, isAdmin=admin_flags[uid], joinedAt=now) for uid in new_ids
            ]
            changed_ids = new_ids
        else:
            if group.creatorId in target_ids:
                raise ValidationError("Không thể xóa người tạo nhóm khỏi nhóm.")
            remove_set = set(target_ids)
            members = [m for m in group.members if m.userId not in remove_set]
            if not members:
                raise ValidationError("Nhóm phải còn ít nhất một thành viên.")
            changed_ids = [uid for uid in target_ids if group.get_member(uid)]

        result = await Group.get_motor_collection().update_one(
            {"_id": group.id, "version": group.version},
            {
                "$set": {"members": [m.model_dump() for m in members], "updatedAt": now},
                "$inc": {"version": 1}
            }
        )
        if result.matched_count == 0:
            raise ConflictError("Nhóm đã được cập nhật bởi thao tác khác, vui lòng tải lại.")

        previous_ids = group.member_ids
        group.members = members
        group.version += 1
        group.updatedAt = now
        logger.info(f"Group {group.id} {op} {changed_ids} by {actor_id} (version {group.version})")

        if changed_ids:
            action_text = "thêm vào" if op == 'add' else "xóa khỏi"
            await NotificationService.notify_users(
                # Người bị xóa cũng nhận được thông báo
                list(dict.fromkeys(previous_ids + group.member_ids)),
                "group_members_added" if op == 'add' else "group_members_removed",
                title=group.name or "Nhóm",
                message=f"{len(changed_ids)} thành viên đã được {action_text} nhóm",
                metadata={"groupId": str(group.id), "memberIds": changed_ids, "actorId": actor_id}
            )

        return group

    @staticmethod
    async def delete_group(group_id: str, actor_id: str) -> Group:
        """Xóa nhóm (chỉ người tạo) cùng toàn bộ tin nhắn của nhóm."""
        group = await GroupService.get_group(group_id)
        if not can_manage_group(group, actor_id):
            raise ForbiddenError("Chỉ người tạo nhóm mới được xóa nhóm.")

        deleted = await Message.find({"chatId": str(group.id)}).delete()
        await group.delete()
        logger.info(
            f"Group {group.id} deleted by {actor_id}, "
            f"{deleted.deleted_count if deleted else 0} messages removed"
        )

        await NotificationService.notify_users(
            group.member_ids,
            "group_deleted",
            title=group.name or "Nhóm",
            message="Nhóm đã bị xóa bởi người tạo nhóm",
            metadata={"groupId": str(group.id)}
        )
        return group

    @staticmethod
    def check_profile_editor(group: Group, actor_id: str, actor_is_admin: bool = False):
        if not group.get_member(actor_id):
            raise ForbiddenError("Bạn không phải là thành viên của nhóm này.")
        if not can_edit_group_profile(group, actor_id, actor_is_admin):
            raise ForbiddenError("Quản trị viên chỉ được xem hồ sơ nhóm, không được cập nhật.")

    @staticmethod
    async def update_profile(
        group_id: str,
        actor_id: str,
        name: Optional[str] = None,
        image_url: Optional[str] = None,
        actor_is_admin: bool = False
    ) -> Group:
        """
        Cập nhật tên và/hoặc ảnh nhóm.
        Mọi thành viên đều được sửa, trừ thành viên có cờ isAdmin (chỉ được xem).
        """
        group = await GroupService.get_group(group_id)
        GroupService.check_profile_editor(group, actor_id, actor_is_admin)

        changes = {}
        trimmed_name = (name or "").strip()
        if trimmed_name and trimmed_name != group.name:
            changes["name"] = trimmed_name
        trimmed_image = (image_url or "").strip()
        if trimmed_image and trimmed_image != group.imageUrl:
            changes["imageUrl"] = trimmed_image

        if not trimmed_name and not trimmed_image:
            raise ValidationError("Cần cung cấp tên hoặc ảnh nhóm.")

        if changes:
            now = datetime.utcnow()
            await Group.get_motor_collection().update_one(
                {"_id": group.id},
                {"$set": {**changes, "updatedAt": now}}
            )
            group.name = changes.get("name", group.name)
            group.imageUrl = changes.get("imageUrl", group.imageUrl)
            group.updatedAt = now
            logger.info(f"Group {group.id} profile updated by {actor_id}: {list(changes)}")

            await NotificationService.notify_users(
                group.member_ids,
                "group_profile_updated",
                title=group.name or "Nhóm",
                message="Hồ sơ nhóm đã được cập nhật",
                metadata={
                    "groupId": str(group.id),
                    "name": group.name,
                    "image": group.imageUrl,
                    "changedBy": actor_id,
                    "isCreator": is_group_creator(group, actor_id)
                }
            )

        return group
