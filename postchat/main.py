import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from postchat.routers import chat_router, group_router, websocket_router
from postchat.models import init_db
from postchat.configs import init_cloudinary
from postchat.errors import ChatError

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

#Khởi tạo kết nối đến Cloudinary
init_cloudinary()

# Khởi tạo app FastAPI với thông tin Swagger UI
app = FastAPI(
    title="PostChat",
    description="Phân hệ nhắn tin của mạng xã hội.\n\n"
                "Hỗ trợ yêu cầu trò chuyện từ bài viết, nhóm chat, gửi / sửa tin nhắn "
                "văn bản và media, xóa tin nhắn cho mình hoặc cho mọi người.",
    version="1.0.0"
)

# Exception handler cho RequestValidationError (Pydantic validation)
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Format lỗi validation cho user-friendly
    errors = exc.errors()
    error_messages = []
    for error in errors:
        field = " -> ".join(str(loc) for loc in error["loc"])
        message = error.get("msg", "Validation error")
        error_messages.append(f"{field}: {message}")

    detail = "; ".join(error_messages) if error_messages else "Lỗi validation dữ liệu"

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": detail, "kind": "validation"}
    )

# Lỗi nghiệp vụ của chat: trả về mã HTTP và dữ liệu theo loại lỗi
@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError):
    logger.info(f"{request.method} {request.url.path} rejected ({exc.kind}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

# Kết nối với cơ sở dữ liệu khi khởi động
@app.on_event("startup")
async def startup_db_client():
    await init_db()

# Gắn các router (router nhóm trước để /group không bị hiểu là chatId)
app.include_router(group_router.router, prefix="/api/chat/group", tags=["Nhóm"])
app.include_router(chat_router.router, prefix="/api/chat", tags=["Chat"])
app.include_router(websocket_router.router, prefix="/websocket", tags=["Connect real-time"])

@app.get("/")
def read_root():
    return {"message": "Máy chủ đang chạy"}
