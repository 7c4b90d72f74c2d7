import logging
from datetime import datetime
from typing import List
from ..models import Message
from ..errors import ForbiddenError, ValidationError
from ..websocket import manager
from ..utils import parse_object_id
from .chat_service import ChatService

logger = logging.getLogger(__name__)

DELETE_TARGETS = ('me', 'everyone')

FULL_OWNERSHIP_REQUIRED = "Thu hồi với mọi người yêu cầu tất cả tin nhắn được chọn là của bạn."


class DeletionService:

    @staticmethod
    async def delete_messages(
        chat_id: str,
        requester_id: str,
        message_ids: List[str],
        delete_for: str
    ) -> dict:
        """
        Xóa hàng loạt tin nhắn trong một cuộc trò chuyện.

        - 'me': ẩn mọi tin nhắn được chọn (của mình hay của người khác) với riêng người yêu cầu.
        - 'everyone': chỉ khi mọi tin nhắn được chọn đều do người yêu cầu gửi; nếu không,
          toàn bộ thao tác bị từ chối và không tin nhắn nào thay đổi.
        """
        if delete_for not in DELETE_TARGETS:
            raise ValidationError("deleteFor phải là 'me' hoặc 'everyone'.")

        requested_ids = list(dict.fromkeys(str(mid).strip() for mid in (message_ids or []) if str(mid).strip()))
        if not requested_ids:
            raise ValidationError("messageIds phải là một mảng không rỗng.")

        context = await ChatService.resolve_chat(chat_id)
        if not context.is_participant(requester_id):
            raise ForbiddenError("Bạn không phải là thành viên của cuộc trò chuyện này.")

        object_ids = [parse_object_id(mid) for mid in requested_ids]
        invalid_ids = [mid for mid, oid in zip(requested_ids, object_ids) if oid is None]
        if invalid_ids:
            raise ValidationError("Một hoặc nhiều ID tin nhắn không hợp lệ.", {"invalidIds": invalid_ids})

        messages = await Message.find({"_id": {"$in": object_ids}, "chatId": context.chatId}).to_list()
        found_ids = {str(m.id) for m in messages}
        missing_ids = [mid for mid in requested_ids if mid not in found_ids]
        if missing_ids:
            raise ValidationError(
                "Một hoặc nhiều tin nhắn không tồn tại trong cuộc trò chuyện này.",
                {"missingIds": missing_ids}
            )

        own = [m for m in messages if m.senderId == requester_id]
        others = [m for m in messages if m.senderId != requester_id]
        selected_oids = [m.id for m in messages]

        if delete_for == 'me':
            await Message.get_motor_collection().update_many(
                {"_id": {"$in": selected_oids}},
                {"$addToSet": {"deletedForUserIds": requester_id}}
            )
            recipients = [requester_id]
        else:
            if others:
                counts = {"ownCount": len(own), "othersCount": len(others)}
                if not own:
                    raise ForbiddenError(FULL_OWNERSHIP_REQUIRED, counts)
                raise ValidationError(FULL_OWNERSHIP_REQUIRED, counts)

            await Message.get_motor_collection().update_many(
                {"_id": {"$in": selected_oids}},
                {"$set": {"deletedForEveryone": True, "deletedAt": datetime.utcnow()}}
            )
            recipients = context.participantIds

        deleted_ids = [str(oid) for oid in selected_oids]
        logger.info(
            f"Bulk delete ({delete_for}) of {len(deleted_ids)} messages in chat {context.chatId} by {requester_id}"
        )

        result = {
            "deletedCount": len(deleted_ids),
            "deletedMessageIds": deleted_ids,
            "deleteFor": delete_for,
            "chatId": context.chatId
        }
        await manager.broadcast_to_users(recipients, "messages_deleted", {**result, "requesterId": requester_id})
        return result
