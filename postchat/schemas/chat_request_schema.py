from pydantic import BaseModel
from typing import List, Literal, Optional
from datetime import datetime
from .message_schema import MessagePublic

class ChatRequestCreate(BaseModel):
    postId: str

class ChatRequestAction(BaseModel):
    action: Literal['accept', 'reject']

class ChatRequestResult(BaseModel):
    requestId: str
    status: str

class UserSummary(BaseModel):
    id: str
    username: str
    displayName: str
    avatarUrl: Optional[str] = None

class ChatListItem(BaseModel):
    """Một dòng trong danh sách yêu cầu / cuộc trò chuyện."""
    id: str
    type: Literal['individual', 'group']
    status: Optional[str] = None
    senderId: Optional[str] = None
    receiverId: Optional[str] = None
    counterpart: Optional[UserSummary] = None
    name: Optional[str] = None
    imageUrl: Optional[str] = None
    memberCount: Optional[int] = None
    lastMessage: Optional[MessagePublic] = None
    unreadCount: int = 0
    createdAt: datetime
    updatedAt: datetime

class ChatListPage(BaseModel):
    items: List[ChatListItem]
    page: int
    limit: int
    total: int
    totalPages: int
