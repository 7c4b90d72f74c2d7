import logging
from datetime import datetime
from typing import List, Optional
from pymongo.errors import DuplicateKeyError
from ..models import ChatRequest, Group, Message, Post, User, make_pair_key
from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..schemas import ChatListItem, UserSummary
from ..utils import map_message_to_public, paginate, parse_object_id
from ..websocket import manager
from .chat_service import ChatService

logger = logging.getLogger(__name__)

REQUEST_LIST_TYPES = ('received', 'sent', 'accepted', 'group')


class ChatRequestService:

    @staticmethod
    async def send_request(sender_id: str, post_id: str) -> ChatRequest:
        """
        Gửi yêu cầu trò chuyện tới tác giả của một bài viết.
        """
        post_oid = parse_object_id(post_id)
        post = await Post.get(post_oid) if post_oid else None
        if not post:
            raise NotFoundError("Không tìm thấy bài viết.")

        receiver_id = post.authorId
        if sender_id == receiver_id:
            raise ValidationError("Không thể gửi yêu cầu trò chuyện cho chính mình.")

        receiver_oid = parse_object_id(receiver_id)
        receiver = await User.get(receiver_oid) if receiver_oid else None
        if not receiver or receiver.status == 'deleted':
            raise NotFoundError("Không tìm thấy người nhận.")

        # Kiểm tra xem một yêu cầu đang chờ xử lý hoặc đã được chấp nhận có tồn tại không (cả hai chiều)
        existing_request = await ChatRequest.find_one(
            {
                "$or": [
                    {"senderId": sender_id, "receiverId": receiver_id},
                    {"senderId": receiver_id, "receiverId": sender_id}
                ],
                "status": {"$in": ["pending", "accepted"]}
            }
        )
        if existing_request:
            raise ConflictError(
                "Một yêu cầu trò chuyện đã tồn tại hoặc đang chờ xử lý.",
                {"requestId": str(existing_request.id), "status": existing_request.status}
            )

        new_request = ChatRequest(
            senderId=sender_id,
            receiverId=receiver_id,
            originPostId=post_id,
            pairKey=make_pair_key(sender_id, receiver_id)
        )
        try:
            await new_request.insert()
        except DuplicateKeyError:
            # Hai yêu cầu gửi đồng thời cùng vượt qua bước kiểm tra ở trên
            raise ConflictError("Một yêu cầu trò chuyện đã tồn tại hoặc đang chờ xử lý.")
        logger.info(f"Chat request {new_request.id} sent from {sender_id} to {receiver_id}")

        # Gửi thông báo real-time đến người nhận yêu cầu
        await manager.broadcast_to_users(
            [receiver_id],
            "chat_request_received",
            {"requestId": str(new_request.id), "senderId": sender_id, "postId": post_id}
        )

        return new_request

    @staticmethod
    async def resolve_request(request_id: str, actor_id: str, action: str) -> ChatRequest:
        """
        Phản hồi một yêu cầu trò chuyện ('accept' hoặc 'reject').
        Chấp nhận thì ID yêu cầu trở thành chatId; từ chối là trạng thái cuối.
        """
        if action not in ('accept', 'reject'):
            raise ValidationError("Hành động phải là 'accept' hoặc 'reject'.")

        request_oid = parse_object_id(request_id)
        chat_request = await ChatRequest.get(request_oid) if request_oid else None
        if not chat_request:
            raise NotFoundError("Không tìm thấy yêu cầu trò chuyện.")

        if chat_request.receiverId != actor_id:
            raise ForbiddenError("Chỉ người nhận mới được phản hồi yêu cầu này.")

        if chat_request.status != 'pending':
            raise ConflictError("Yêu cầu trò chuyện này đã được phản hồi.", {"status": chat_request.status})

        new_status = 'accepted' if action == 'accept' else 'rejected'
        now = datetime.utcnow()
        update = {"$set": {"status": new_status, "updatedAt": now}}
        if new_status == 'rejected':
            # Gỡ khóa cặp để hai người có thể gửi yêu cầu mới
            update["$unset"] = {"pairKey": ""}

        # Chỉ chuyển trạng thái khi yêu cầu vẫn đang pending
        result = await ChatRequest.get_motor_collection().update_one(
            {"_id": chat_request.id, "status": "pending"},
            update
        )
        if result.matched_count == 0:
            raise ConflictError("Yêu cầu trò chuyện này đã được phản hồi.")

        chat_request.status = new_status
        if new_status == 'rejected':
            chat_request.pairKey = None
        chat_request.updatedAt = now
        logger.info(f"Chat request {chat_request.id} {new_status} by {actor_id}")

        await manager.broadcast_to_users(
            chat_request.participant_ids,
            f"chat_request_{new_status}",
            {"requestId": str(chat_request.id), "status": new_status}
        )

        return chat_request

    @staticmethod
    async def _last_visible_message(chat_id: str, viewer_id: str, joined_at: Optional[datetime] = None) -> Optional[Message]:
        query = Message.visible_query(chat_id, viewer_id, joined_at=joined_at)
        return await Message.find(query).sort("-createdAt", "-_id").first_or_none()

    @staticmethod
    def _matches_user(user: Optional[User], search: str) -> bool:
        if not user:
            return False
        needle = search.lower()
        fields = [user.displayName, user.username, str(user.email)]
        return any(needle in (value or "").lower() for value in fields)

    @staticmethod
    async def _find_individual(user_id: str, list_type: str, search: str) -> List[tuple]:
        """Lọc yêu cầu theo loại và từ khóa; trả về các cặp (yêu cầu, người còn lại)."""
        if list_type == 'received':
            query = {"receiverId": user_id, "status": "pending"}
        elif list_type == 'sent':
            query = {"senderId": user_id, "status": "pending"}
        else:
            query = {"$or": [{"senderId": user_id}, {"receiverId": user_id}], "status": "accepted"}

        requests = await ChatRequest.find(query).sort("-updatedAt").to_list()

        counterpart_ids = list({r.counterpart_of(user_id) for r in requests})
        object_ids = [oid for oid in (parse_object_id(uid) for uid in counterpart_ids) if oid]
        users = await User.find({"_id": {"$in": object_ids}}).to_list() if object_ids else []
        users_map = {str(u.id): u for u in users}

        rows = [(req, users_map.get(req.counterpart_of(user_id))) for req in requests]
        if search:
            rows = [(req, user) for req, user in rows if ChatRequestService._matches_user(user, search)]
        return rows

    @staticmethod
    async def _individual_item(user_id: str, req: ChatRequest, counterpart: Optional[User]) -> ChatListItem:
        last_message = None
        unread_count = 0
        if req.status == 'accepted':
            chat_id = str(req.id)
            msg = await ChatRequestService._last_visible_message(chat_id, user_id)
            last_message = map_message_to_public(msg, user_id) if msg else None
            unread_count = await ChatService.count_unread(chat_id, user_id, last_read_at=req.lastReadAt.get(user_id))

        return ChatListItem(
            id=str(req.id),
            type='individual',
            status=req.status,
            senderId=req.senderId,
            receiverId=req.receiverId,
            counterpart=UserSummary(
                id=str(counterpart.id),
                username=counterpart.username,
                displayName=counterpart.displayName,
                avatarUrl=counterpart.avatarUrl
            ) if counterpart else None,
            lastMessage=last_message,
            unreadCount=unread_count,
            createdAt=req.createdAt,
            updatedAt=req.updatedAt
        )

    @staticmethod
    async def _find_groups(user_id: str, search: str) -> List[Group]:
        groups = await Group.find({"members.userId": user_id}).sort("-updatedAt").to_list()
        if search:
            groups = [g for g in groups if search.lower() in (g.name or "").lower()]
        return groups

    @staticmethod
    async def _group_item(user_id: str, group: Group) -> ChatListItem:
        member = group.get_member(user_id)
        joined_at = member.joinedAt if member else None
        chat_id = str(group.id)

        msg = await ChatRequestService._last_visible_message(chat_id, user_id, joined_at=joined_at)
        unread_count = await ChatService.count_unread(
            chat_id, user_id, last_read_at=group.lastReadAt.get(user_id), joined_at=joined_at
        )
        return ChatListItem(
            id=chat_id,
            type='group',
            name=group.name,
            imageUrl=group.imageUrl,
            memberCount=len(group.members),
            lastMessage=map_message_to_public(msg, user_id) if msg else None,
            unreadCount=unread_count,
            createdAt=group.createdAt,
            updatedAt=group.updatedAt
        )

    @staticmethod
    async def list_by_type(user_id: str, list_type: str, page: int = 1, limit: int = 10, search: str = "") -> dict:
        """
        Lấy danh sách theo loại: received | sent | accepted | group, có phân trang và tìm kiếm.
        Tin nhắn cuối và số tin chưa đọc chỉ được tính cho các dòng thuộc trang trả về.
        Chỉ đọc, không thay đổi dữ liệu.
        """
        if list_type not in REQUEST_LIST_TYPES:
            raise ValidationError(f"type phải là một trong: {', '.join(REQUEST_LIST_TYPES)}.")

        search = (search or "").strip()
        if list_type == 'group':
            result = paginate(await ChatRequestService._find_groups(user_id, search), page, limit)
            result["items"] = [await ChatRequestService._group_item(user_id, g) for g in result["items"]]
        else:
            rows = await ChatRequestService._find_individual(user_id, list_type, search)
            result = paginate(rows, page, limit)
            result["items"] = [
                await ChatRequestService._individual_item(user_id, req, user) for req, user in result["items"]
            ]
        return result
