import logging
from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie
from typing import Type

from ..configs import MONGO_DB_NAME, MONGO_URI
from .user import User
from .post import Post
from .chat_request import ChatRequest, LIVE_PAIR_INDEX
from .group import Group
from .message import Message
from .notification import Notification

logger = logging.getLogger(__name__)

# Các collection mà phân hệ chat đọc / ghi
DOCUMENT_MODELS: list[Type] = [User, Post, ChatRequest, Group, Message, Notification]

client = None

async def ensure_indexes():
    """
    Tạo các chỉ mục mà Settings.indexes không diễn tả được.
    pairKey chỉ tồn tại trên yêu cầu pending/accepted nên chỉ mục unique một phần
    chặn hai yêu cầu còn hiệu lực cho cùng một cặp, kể cả khi gửi đồng thời.
    """
    await ChatRequest.get_motor_collection().create_index(
        "pairKey",
        unique=True,
        name=LIVE_PAIR_INDEX,
        partialFilterExpression={"pairKey": {"$exists": True}}
    )

async def init_db():
    """Mở client MongoDB dùng chung cho cả vòng đời app và khởi tạo Beanie."""
    global client
    if client is not None:
        return client

    if not MONGO_URI:
        raise ValueError("Không tìm thấy MONGO_URI trong các biến môi trường.")

    client = AsyncIOMotorClient(MONGO_URI)
    await init_beanie(database=client.get_database(MONGO_DB_NAME), document_models=DOCUMENT_MODELS)
    await ensure_indexes()
    logger.info(f"Connected to MongoDB database '{MONGO_DB_NAME}'")
    return client
