import asyncio

import pytest
from bson import ObjectId

from postchat.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from postchat.models import ChatRequest, make_pair_key
from postchat.services import ChatRequestService, ChatService, DeletionService, GroupService, MessageService

from conftest import create_post, create_user, open_chat


async def test_request_accept_makes_chat(alice, bob):
    post = await create_post(bob)
    request = await ChatRequestService.send_request(str(alice.id), str(post.id))
    assert request.status == "pending"
    assert request.receiverId == str(bob.id)
    assert request.originPostId == str(post.id)

    resolved = await ChatRequestService.resolve_request(str(request.id), str(bob.id), "accept")
    assert resolved.status == "accepted"

    context = await ChatService.resolve_chat(str(request.id))
    assert context.chatId == str(request.id)
    assert not context.isGroup
    assert set(context.participantIds) == {str(alice.id), str(bob.id)}


async def test_request_on_own_post_is_rejected(alice):
    post = await create_post(alice)
    with pytest.raises(ValidationError):
        await ChatRequestService.send_request(str(alice.id), str(post.id))


async def test_request_on_missing_post(alice):
    with pytest.raises(NotFoundError):
        await ChatRequestService.send_request(str(alice.id), str(ObjectId()))
    with pytest.raises(NotFoundError):
        await ChatRequestService.send_request(str(alice.id), "not-an-id")


async def test_duplicate_request_in_either_direction(alice, bob):
    post_by_bob = await create_post(bob)
    post_by_alice = await create_post(alice)
    await ChatRequestService.send_request(str(alice.id), str(post_by_bob.id))

    with pytest.raises(ConflictError):
        await ChatRequestService.send_request(str(alice.id), str(post_by_bob.id))
    with pytest.raises(ConflictError):
        await ChatRequestService.send_request(str(bob.id), str(post_by_alice.id))
    assert await ChatRequest.find_all().count() == 1


async def test_live_pair_unique_index_blocks_concurrent_requests(alice, bob, monkeypatch):
    post_by_bob = await create_post(bob)
    post_by_alice = await create_post(alice)

    # Cả hai yêu cầu cùng vượt qua bước kiểm tra như khi gửi đồng thời
    async def no_existing_request(*args, **kwargs):
        return None

    monkeypatch.setattr(ChatRequest, "find_one", staticmethod(no_existing_request))

    first = await ChatRequestService.send_request(str(alice.id), str(post_by_bob.id))
    with pytest.raises(ConflictError):
        await ChatRequestService.send_request(str(bob.id), str(post_by_alice.id))

    stored = await ChatRequest.find_all().to_list()
    assert [r.id for r in stored] == [first.id]
    assert stored[0].pairKey == make_pair_key(str(alice.id), str(bob.id))


async def test_new_request_allowed_after_rejection(alice, bob):
    post = await create_post(bob)
    first = await ChatRequestService.send_request(str(alice.id), str(post.id))
    await ChatRequestService.resolve_request(str(first.id), str(bob.id), "reject")

    second = await ChatRequestService.send_request(str(alice.id), str(post.id))
    assert second.id != first.id
    assert second.status == "pending"


async def test_only_receiver_resolves(alice, bob, carol):
    post = await create_post(bob)
    request = await ChatRequestService.send_request(str(alice.id), str(post.id))

    for actor in (alice, carol):
        with pytest.raises(ForbiddenError):
            await ChatRequestService.resolve_request(str(request.id), str(actor.id), "accept")

    stored = await ChatRequest.get(request.id)
    assert stored.status == "pending"


async def test_resolve_twice_conflicts(alice, bob):
    post = await create_post(bob)
    request = await ChatRequestService.send_request(str(alice.id), str(post.id))
    await ChatRequestService.resolve_request(str(request.id), str(bob.id), "reject")

    with pytest.raises(ConflictError):
        await ChatRequestService.resolve_request(str(request.id), str(bob.id), "accept")
    stored = await ChatRequest.get(request.id)
    assert stored.status == "rejected"


async def test_resolve_unknown_action_and_missing_request(bob):
    with pytest.raises(ValidationError):
        await ChatRequestService.resolve_request(str(ObjectId()), str(bob.id), "maybe")
    with pytest.raises(NotFoundError):
        await ChatRequestService.resolve_request(str(ObjectId()), str(bob.id), "accept")


async def test_pending_request_is_not_a_chat(alice, bob):
    post = await create_post(bob)
    request = await ChatRequestService.send_request(str(alice.id), str(post.id))
    with pytest.raises(ValidationError):
        await MessageService.send_text(str(request.id), str(alice.id), "xin chào")


async def test_list_by_type(alice, bob, carol):
    dave = await create_user("dave")
    await ChatRequestService.send_request(str(alice.id), str((await create_post(bob)).id))
    await ChatRequestService.send_request(str(carol.id), str((await create_post(alice)).id))
    chat_id = await open_chat(alice, dave)
    await MessageService.send_text(chat_id, str(dave.id), "chào Alice")

    sent = await ChatRequestService.list_by_type(str(alice.id), "sent")
    assert [item.counterpart.username for item in sent["items"]] == ["bob"]

    received = await ChatRequestService.list_by_type(str(alice.id), "received")
    assert [item.counterpart.username for item in received["items"]] == ["carol"]

    accepted = await ChatRequestService.list_by_type(str(alice.id), "accepted")
    assert accepted["total"] == 1
    item = accepted["items"][0]
    assert item.id == chat_id
    assert item.lastMessage.content == "chào Alice"
    assert item.lastMessage.type == "receive"

    assert (await ChatRequestService.list_by_type(str(bob.id), "received"))["total"] == 1
    assert (await ChatRequestService.list_by_type(str(bob.id), "sent"))["total"] == 0


async def test_list_search_and_pagination(alice):
    for name in ("bao", "binh", "chi"):
        user = await create_user(name)
        await ChatRequestService.send_request(str(user.id), str((await create_post(alice)).id))

    found = await ChatRequestService.list_by_type(str(alice.id), "received", search="B")
    assert {item.counterpart.username for item in found["items"]} == {"bao", "binh"}

    by_email = await ChatRequestService.list_by_type(str(alice.id), "received", search="chi@postchat")
    assert [item.counterpart.username for item in by_email["items"]] == ["chi"]

    page = await ChatRequestService.list_by_type(str(alice.id), "received", page=2, limit=2)
    assert page["total"] == 3
    assert page["totalPages"] == 2
    assert len(page["items"]) == 1


async def test_list_groups_by_name(alice, bob, carol):
    await GroupService.create_group(str(alice.id), [str(bob.id)], name="Du lịch Đà Lạt")
    await GroupService.create_group(str(carol.id), [str(bob.id)], name="Nhóm học")

    groups = await ChatRequestService.list_by_type(str(bob.id), "group")
    assert groups["total"] == 2

    found = await ChatRequestService.list_by_type(str(bob.id), "group", search="đà lạt")
    assert [item.name for item in found["items"]] == ["Du lịch Đà Lạt"]
    assert found["items"][0].memberCount == 2

    assert (await ChatRequestService.list_by_type(str(alice.id), "group"))["total"] == 1


async def test_list_unknown_type(alice):
    with pytest.raises(ValidationError):
        await ChatRequestService.list_by_type(str(alice.id), "archived")


async def test_rejection_releases_pair_for_reverse_request(alice, bob):
    post_by_bob = await create_post(bob)
    post_by_alice = await create_post(alice)
    first = await ChatRequestService.send_request(str(alice.id), str(post_by_bob.id))
    await ChatRequestService.resolve_request(str(first.id), str(bob.id), "reject")

    rejected = await ChatRequest.get(first.id)
    assert rejected.status == "rejected"
    assert rejected.pairKey is None

    reverse = await ChatRequestService.send_request(str(bob.id), str(post_by_alice.id))
    assert reverse.status == "pending"
    assert await ChatRequest.find({"status": "pending"}).count() == 1


async def test_unread_count_for_individual_chat(alice, bob):
    chat_id = await open_chat(alice, bob)
    await MessageService.send_text(chat_id, str(bob.id), "alo")
    await MessageService.send_text(chat_id, str(bob.id), "Alice ơi")
    await MessageService.send_text(chat_id, str(alice.id), "đây")

    for_alice = (await ChatRequestService.list_by_type(str(alice.id), "accepted"))["items"][0]
    assert for_alice.unreadCount == 2
    for_bob = (await ChatRequestService.list_by_type(str(bob.id), "accepted"))["items"][0]
    assert for_bob.unreadCount == 1

    # Mở trang tin nhắn mới nhất thì được tính là đã đọc
    await MessageService.list_messages(chat_id, str(alice.id))
    stored = await ChatRequest.get(ObjectId(chat_id))
    assert str(alice.id) in stored.lastReadAt
    assert (await ChatRequestService.list_by_type(str(alice.id), "accepted"))["items"][0].unreadCount == 0

    await asyncio.sleep(0.01)
    await MessageService.send_text(chat_id, str(bob.id), "còn đó không?")
    assert (await ChatRequestService.list_by_type(str(alice.id), "accepted"))["items"][0].unreadCount == 1

    # Tìm kiếm hoặc xem trang cũ không đánh dấu đã đọc
    await MessageService.list_messages(chat_id, str(alice.id), search="alo")
    await MessageService.list_messages(chat_id, str(alice.id), page=2, limit=2)
    assert (await ChatRequestService.list_by_type(str(alice.id), "accepted"))["items"][0].unreadCount == 1


async def test_unread_count_skips_hidden_messages(alice, bob):
    chat_id = await open_chat(alice, bob)
    hidden = await MessageService.send_text(chat_id, str(bob.id), "xóa phía Alice")
    recalled = await MessageService.send_text(chat_id, str(bob.id), "thu hồi")
    await MessageService.send_text(chat_id, str(bob.id), "còn lại")

    await DeletionService.delete_messages(chat_id, str(alice.id), [str(hidden.id)], "me")
    await DeletionService.delete_messages(chat_id, str(bob.id), [str(recalled.id)], "everyone")

    item = (await ChatRequestService.list_by_type(str(alice.id), "accepted"))["items"][0]
    assert item.unreadCount == 1
    assert item.lastMessage.content == "còn lại"


async def test_unread_count_for_group_starts_at_join(alice, bob):
    group = await GroupService.create_group(str(alice.id), [str(bob.id)], name="G")
    await MessageService.send_text(str(group.id), str(alice.id), "trước khi Carol vào")
    await asyncio.sleep(0.01)

    carol = await create_user("carol")
    await GroupService.edit_membership(str(group.id), str(alice.id), "add", [str(carol.id)])
    await MessageService.send_text(str(group.id), str(bob.id), "chào Carol")
    await MessageService.send_text(str(group.id), str(carol.id), "chào mọi người")

    for_carol = (await ChatRequestService.list_by_type(str(carol.id), "group"))["items"][0]
    assert for_carol.unreadCount == 1
    assert for_carol.lastMessage.content == "chào mọi người"

    for_bob = (await ChatRequestService.list_by_type(str(bob.id), "group"))["items"][0]
    assert for_bob.unreadCount == 2

    await MessageService.list_messages(str(group.id), str(bob.id))
    assert (await ChatRequestService.list_by_type(str(bob.id), "group"))["items"][0].unreadCount == 0
    assert (await ChatRequestService.list_by_type(str(carol.id), "group"))["items"][0].unreadCount == 1


async def test_preview_only_computed_for_returned_page(alice, monkeypatch):
    for name in ("bao", "binh", "chi"):
        user = await create_user(name)
        await open_chat(user, alice)

    looked_up = []
    original = ChatRequestService._last_visible_message

    async def tracking_last_message(chat_id, viewer_id, joined_at=None):
        looked_up.append(chat_id)
        return await original(chat_id, viewer_id, joined_at=joined_at)

    monkeypatch.setattr(ChatRequestService, "_last_visible_message", staticmethod(tracking_last_message))

    page = await ChatRequestService.list_by_type(str(alice.id), "accepted", page=1, limit=2)
    assert page["total"] == 3
    assert looked_up == [item.id for item in page["items"]]
