from .message_schema import (
    MessageCreate,
    MessageEdit,
    BulkDeleteRequest,
    MessageSent,
    MessageEdited,
    BulkDeleteResult,
    MessagePublic,
    MessagePage
)
from .chat_request_schema import (
    ChatRequestCreate,
    ChatRequestAction,
    ChatRequestResult,
    UserSummary,
    ChatListItem,
    ChatListPage
)
from .group_schema import GroupMembershipEdit, GroupMemberPublic, GroupPublic, GroupProfilePublic
