import io
from typing import Optional

import pytest
from beanie import init_beanie
from fastapi import UploadFile
from mongomock_motor import AsyncMongoMockClient

from postchat.configs import MediaLimits
from postchat.models import DOCUMENT_MODELS, Post, User, ensure_indexes
from postchat.services import ChatRequestService, FCMService, MediaClassifier

MB = 1024 * 1024


@pytest.fixture(autouse=True)
async def db():
    client = AsyncMongoMockClient()
    database = client.postchat_test
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    await ensure_indexes()
    yield database


@pytest.fixture(autouse=True)
def push_calls(monkeypatch):
    """Chặn gửi push thật, ghi lại các lần gọi."""
    calls = []

    async def fake_send_to_users(user_ids, title, body, data=None):
        calls.append({"user_ids": list(user_ids), "title": title, "data": data or {}})
        return len(calls)

    monkeypatch.setattr(FCMService, "send_to_users", staticmethod(fake_send_to_users))
    return calls


async def create_user(username: str, is_admin: bool = False, status: Optional[str] = None) -> User:
    user = User(
        username=username,
        email=f"{username}@postchat.vn",
        displayName=username.capitalize(),
        isAdmin=is_admin,
        status=status
    )
    await user.insert()
    return user


async def create_post(author: User, content: str = "Xin chào") -> Post:
    post = Post(authorId=str(author.id), content=content)
    await post.insert()
    return post


async def open_chat(sender: User, receiver: User) -> str:
    """Tạo yêu cầu từ bài viết của receiver và chấp nhận, trả về chatId."""
    post = await create_post(receiver)
    request = await ChatRequestService.send_request(str(sender.id), str(post.id))
    await ChatRequestService.resolve_request(str(request.id), str(receiver.id), "accept")
    return str(request.id)


def make_upload(filename: str, size: int, content: bytes = b"data") -> UploadFile:
    return UploadFile(file=io.BytesIO(content), filename=filename, size=size)


@pytest.fixture
def uploads():
    """Danh sách các lần upload qua uploader giả."""
    return []


@pytest.fixture
def classifier(uploads):
    async def fake_uploader(file, folder):
        uploads.append((folder, file.filename))
        return {"url": f"https://cdn.postchat.vn/{folder}/{file.filename}"}

    return MediaClassifier(MediaLimits(), uploader=fake_uploader)


@pytest.fixture
async def alice():
    return await create_user("alice")


@pytest.fixture
async def bob():
    return await create_user("bob")


@pytest.fixture
async def carol():
    return await create_user("carol")
