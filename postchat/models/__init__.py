from .user import User
from .post import Post
from .chat_request import ChatRequest, make_pair_key
from .group import Group, GroupMember
from .message import Message
from .notification import Notification
from .database import init_db, ensure_indexes, DOCUMENT_MODELS
