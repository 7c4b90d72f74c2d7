from ..schemas.message_schema import MessagePublic
from ..schemas.group_schema import GroupPublic, GroupMemberPublic
from ..models.message import Message
from ..models.group import Group

# Các hàm trợ giúp để chuyển đổi các đối tượng mô hình thành từ điển để trả về hoặc phát sóng
def map_message_to_public(msg: Message, viewer_id: str) -> MessagePublic:
    """Chuyển đổi một Message thành MessagePublic theo góc nhìn của viewer_id."""
    is_own = msg.senderId == viewer_id
    return MessagePublic(
        id=str(msg.id),
        chatId=msg.chatId,
        senderId=msg.senderId,
        kind=msg.kind,
        content=msg.content,
        fileName=msg.fileName,
        size=msg.size,
        createdAt=msg.createdAt,
        editedAt=msg.editedAt,
        isEdited=msg.editedAt is not None,
        canEdit=msg.can_be_edited_by(viewer_id),
        type="send" if is_own else "receive",
    )

def map_message_to_public_dict(msg: Message, viewer_id: str) -> dict:
    """Chuyển đổi một Message thành một từ điển có thể tuần tự hóa JSON."""
    return map_message_to_public(msg, viewer_id).model_dump()

def map_group_to_public_dict(group: Group) -> dict:
    """Chuyển đổi một Group thành một từ điển có thể tuần tự hóa JSON."""
    public_group = GroupPublic(
        groupId=str(group.id),
        creatorId=group.creatorId,
        name=group.name,
        image=group.imageUrl,
        members=[
            GroupMemberPublic(
                userId=m.userId,
                isAdmin=m.isAdmin,
                isCreator=m.userId == group.creatorId,
                joinedAt=m.joinedAt
            )
            for m in group.members
        ],
        version=group.version,
        updatedAt=group.updatedAt
    )
    return public_group.model_dump()
