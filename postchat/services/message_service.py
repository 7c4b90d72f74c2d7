import logging
import re
from datetime import datetime
from typing import Optional
from fastapi import UploadFile
from ..models import Message
from .. import configs
from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..websocket import manager
from ..utils import map_message_to_public, map_message_to_public_dict, normalize_page, page_meta, parse_object_id
from .chat_service import ChatContext, ChatService
from .media_classifier import MediaClassifier
from .permissions import can_edit_message

logger = logging.getLogger(__name__)


class MessageService:

    @staticmethod
    async def _resolve_for_sender(chat_id: str, sender_id: str) -> ChatContext:
        context = await ChatService.resolve_chat(chat_id)
        if not context.is_participant(sender_id):
            raise ValidationError("Người gửi không thuộc cuộc trò chuyện này.")
        return context

    @staticmethod
    async def _broadcast(context: ChatContext, event_type: str, message: Message):
        await manager.broadcast_to_users(
            context.participantIds,
            event_type,
            {
                "chatId": context.chatId,
                "isGroup": context.isGroup,
                "message": map_message_to_public_dict(message, message.senderId)
            }
        )

    @staticmethod
    async def send_text(chat_id: str, sender_id: str, text: str) -> Message:
        """
        Gửi tin nhắn văn bản vào một cuộc trò chuyện (cá nhân hoặc nhóm).
        """
        content = (text or "").strip()
        if not content:
            raise ValidationError("Nội dung tin nhắn không được để trống.")

        context = await MessageService._resolve_for_sender(chat_id, sender_id)

        message = Message(chatId=context.chatId, senderId=sender_id, kind='text', content=content)
        await message.insert()
        logger.info(f"Text message {message.id} sent to chat {context.chatId} by {sender_id}")

        await MessageService._broadcast(context, "new_message", message)
        return message

    @staticmethod
    async def send_media(
        chat_id: str,
        sender_id: str,
        file: UploadFile,
        classifier: MediaClassifier
    ) -> Message:
        """
        Gửi tin nhắn media. File được phân loại, kiểm tra dung lượng và upload
        xong thì mới tạo tin nhắn, kind = loại media, content = URL.
        """
        if file is None or not file.filename:
            raise ValidationError("Cần chọn một file để gửi.")

        context = await MessageService._resolve_for_sender(chat_id, sender_id)

        upload = await classifier.accept(file, folder=f"chat_media/{context.chatId}")

        message = Message(
            chatId=context.chatId,
            senderId=sender_id,
            kind=upload.category,
            content=upload.url,
            fileName=upload.fileName,
            size=upload.size
        )
        await message.insert()
        logger.info(f"{upload.category} message {message.id} sent to chat {context.chatId} by {sender_id}")

        await MessageService._broadcast(context, "new_message", message)
        return message

    @staticmethod
    async def edit_message(
        message_id: str,
        actor_id: str,
        new_content: str,
        chat_id: Optional[str] = None
    ) -> Message:
        """
        Sửa nội dung tin nhắn văn bản của chính mình.
        Thứ tự kiểm tra: tồn tại -> quyền -> nội dung -> đã thu hồi -> loại tin nhắn -> thời hạn sửa.
        """
        message_oid = parse_object_id(message_id)
        message = await Message.get(message_oid) if message_oid else None
        if not message or (chat_id is not None and message.chatId != chat_id):
            raise NotFoundError("Không tìm thấy tin nhắn.")

        if not can_edit_message(message, actor_id):
            raise ForbiddenError("Chỉ người gửi mới được sửa tin nhắn này.")

        content = (new_content or "").strip()
        if not content:
            raise ValidationError("Nội dung tin nhắn không được để trống.")

        if message.deletedForEveryone:
            raise ConflictError("Tin nhắn đã bị thu hồi, không thể sửa.")

        if message.kind != 'text':
            raise ValidationError("Chỉ có thể sửa tin nhắn văn bản.")

        if message.edit_window_expired():
            hours = configs.MESSAGE_EDIT_WINDOW_HOURS
            raise ValidationError(
                f"Chỉ có thể sửa tin nhắn trong vòng {hours} giờ sau khi gửi.",
                {"editWindowHours": hours}
            )

        now = datetime.utcnow()
        # Thu hồi đồng thời sẽ làm điều kiện không khớp
        result = await Message.get_motor_collection().update_one(
            {"_id": message.id, "deletedForEveryone": False},
            {"$set": {"content": content, "editedAt": now}}
        )
        if result.matched_count == 0:
            raise ConflictError("Tin nhắn đã bị thu hồi, không thể sửa.")

        message.content = content
        message.editedAt = now
        logger.info(f"Message {message.id} edited by {actor_id}")

        try:
            context = await ChatService.resolve_chat(message.chatId)
        except (NotFoundError, ValidationError) as e:
            logger.warning(f"Skip broadcasting edit of message {message.id}: {e}")
        else:
            await MessageService._broadcast(context, "message_edited", message)

        return message

    @staticmethod
    async def list_messages(
        chat_id: str,
        viewer_id: str,
        page: int = 1,
        limit: int = 20,
        search: str = ""
    ) -> dict:
        """
        Lấy tin nhắn của cuộc trò chuyện theo góc nhìn của viewer_id.
        Trang 1 là các tin mới nhất; trong một trang tin nhắn xếp từ cũ đến mới.
        """
        context = await ChatService.resolve_chat(chat_id)
        if not context.is_participant(viewer_id):
            raise ForbiddenError("Bạn không phải là thành viên của cuộc trò chuyện này.")

        page, limit = normalize_page(page, limit)

        # Thành viên vào nhóm sau không thấy lịch sử trước thời điểm tham gia
        member = context.group.get_member(viewer_id) if context.group is not None else None
        query = Message.visible_query(context.chatId, viewer_id, joined_at=member.joinedAt if member else None)

        needle = (search or "").strip()
        if needle:
            query["kind"] = "text"
            query["content"] = {"$regex": re.escape(needle), "$options": "i"}

        total = await Message.find(query).count()
        messages = (
            await Message.find(query)
            .sort("-createdAt", "-_id")
            .skip((page - 1) * limit)
            .limit(limit)
            .to_list()
        )

        # Mở trang mới nhất (không tìm kiếm) nghĩa là đã đọc tới hiện tại
        if page == 1 and not needle:
            await ChatService.mark_read(context, viewer_id)

        return {
            "items": [map_message_to_public(m, viewer_id) for m in reversed(messages)],
            **page_meta(total, page, limit),
            "chatId": context.chatId,
        }
