from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import datetime

class MessageCreate(BaseModel):
    message: str

class MessageEdit(BaseModel):
    content: str

class BulkDeleteRequest(BaseModel):
    messageIds: List[str] = Field(default_factory=list)
    deleteFor: Literal['me', 'everyone']

class MessageSent(BaseModel):
    messageId: str
    kind: str
    createdAt: datetime
    url: Optional[str] = None

class MessageEdited(BaseModel):
    messageId: str
    content: str
    editedAt: datetime

class BulkDeleteResult(BaseModel):
    deletedCount: int
    deletedMessageIds: List[str]
    deleteFor: str
    chatId: str

# Schema cho tin nhắn hiển thị với một người xem cụ thể
class MessagePublic(BaseModel):
    id: str
    chatId: str
    senderId: str
    kind: str
    content: str
    fileName: Optional[str] = None
    size: Optional[int] = None
    createdAt: datetime
    editedAt: Optional[datetime] = None
    isEdited: bool = False
    canEdit: bool = False
    type: Literal['send', 'receive'] = 'receive'

class MessagePage(BaseModel):
    chatId: str
    items: List[MessagePublic]
    page: int
    limit: int
    total: int
    totalPages: int
