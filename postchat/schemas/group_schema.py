from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import datetime

class GroupMembershipEdit(BaseModel):
    groupId: str
    type: Literal['add', 'remove']
    memberIds: List[str] = Field(default_factory=list)
    version: Optional[int] = None

class GroupMemberPublic(BaseModel):
    userId: str
    isAdmin: bool = False
    isCreator: bool = False
    joinedAt: datetime

class GroupPublic(BaseModel):
    groupId: str
    creatorId: str
    name: Optional[str] = None
    image: Optional[str] = None
    members: List[GroupMemberPublic]
    version: int
    updatedAt: datetime

class GroupProfilePublic(BaseModel):
    groupId: str
    name: Optional[str] = None
    image: Optional[str] = None
