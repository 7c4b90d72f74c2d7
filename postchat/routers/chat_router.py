from fastapi import APIRouter, Depends, File, Query, UploadFile
from ..services import ChatRequestService, DeletionService, MediaClassifier, MessageService, get_media_classifier
from ..schemas import (
    BulkDeleteRequest,
    BulkDeleteResult,
    ChatListPage,
    ChatRequestAction,
    ChatRequestCreate,
    ChatRequestResult,
    MessageCreate,
    MessageEdit,
    MessageEdited,
    MessagePage,
    MessageSent
)
from ..models import User
from ..security import get_current_user

router = APIRouter(tags=["Chat"])

@router.post("/request", response_model=ChatRequestResult, status_code=201)
async def send_chat_request(
    request_data: ChatRequestCreate,
    current_user: User = Depends(get_current_user)
):
    """Gửi yêu cầu trò chuyện tới tác giả của một bài viết."""
    chat_request = await ChatRequestService.send_request(str(current_user.id), request_data.postId)
    return ChatRequestResult(requestId=str(chat_request.id), status=chat_request.status)

@router.put("/request/{request_id}", response_model=ChatRequestResult)
async def resolve_chat_request(
    request_id: str,
    action_data: ChatRequestAction,
    current_user: User = Depends(get_current_user)
):
    """Chấp nhận hoặc từ chối một yêu cầu trò chuyện (chỉ người nhận)."""
    chat_request = await ChatRequestService.resolve_request(request_id, str(current_user.id), action_data.action)
    return ChatRequestResult(requestId=str(chat_request.id), status=chat_request.status)

@router.get("/requests", response_model=ChatListPage)
async def list_chat_requests(
    type: str = Query(..., description="received | sent | accepted | group"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str = Query(""),
    current_user: User = Depends(get_current_user)
):
    """Lấy danh sách yêu cầu / cuộc trò chuyện theo loại, có phân trang và tìm kiếm."""
    return await ChatRequestService.list_by_type(str(current_user.id), type, page, limit, search)

@router.post("/{chat_id}/message", response_model=MessageSent, status_code=201)
async def send_text_message(
    chat_id: str,
    message_data: MessageCreate,
    current_user: User = Depends(get_current_user)
):
    """Gửi tin nhắn văn bản."""
    message = await MessageService.send_text(chat_id, str(current_user.id), message_data.message)
    return MessageSent(messageId=str(message.id), kind=message.kind, createdAt=message.createdAt)

@router.post("/{chat_id}/media", response_model=MessageSent, status_code=201)
async def send_media_message(
    chat_id: str,
    file: UploadFile = File(...),
    classifier: MediaClassifier = Depends(get_media_classifier),
    current_user: User = Depends(get_current_user)
):
    """Gửi tin nhắn ảnh / video / âm thanh / PDF."""
    message = await MessageService.send_media(chat_id, str(current_user.id), file, classifier)
    return MessageSent(
        messageId=str(message.id),
        kind=message.kind,
        url=message.content,
        createdAt=message.createdAt
    )

@router.put("/{chat_id}/message/{message_id}", response_model=MessageEdited)
async def edit_message(
    chat_id: str,
    message_id: str,
    edit_data: MessageEdit,
    current_user: User = Depends(get_current_user)
):
    """Sửa nội dung tin nhắn văn bản của chính mình."""
    message = await MessageService.edit_message(message_id, str(current_user.id), edit_data.content, chat_id=chat_id)
    return MessageEdited(messageId=str(message.id), content=message.content, editedAt=message.editedAt)

@router.delete("/{chat_id}/messages", response_model=BulkDeleteResult)
async def delete_messages(
    chat_id: str,
    delete_data: BulkDeleteRequest,
    current_user: User = Depends(get_current_user)
):
    """Xóa hàng loạt tin nhắn: 'me' (ẩn với mình) hoặc 'everyone' (thu hồi)."""
    return await DeletionService.delete_messages(
        chat_id,
        str(current_user.id),
        delete_data.messageIds,
        delete_data.deleteFor
    )

@router.get("/{chat_id}", response_model=MessagePage)
async def get_chat_messages(
    chat_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str = Query(""),
    current_user: User = Depends(get_current_user)
):
    """Lấy tin nhắn của một cuộc trò chuyện, trang 1 là các tin mới nhất."""
    return await MessageService.list_messages(chat_id, str(current_user.id), page, limit, search)
