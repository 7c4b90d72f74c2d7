from typing import Optional


class ChatError(Exception):
    """
    Lỗi nghiệp vụ của phân hệ chat.
    Mỗi lỗi mang theo `kind`, mã HTTP và dữ liệu bổ sung để client tự giải thích lỗi.
    """
    kind = "error"
    status_code = 400

    def __init__(self, message: str, data: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.data = data or {}

    def to_dict(self) -> dict:
        return {"detail": self.message, "kind": self.kind, **self.data}


class ValidationError(ChatError, ValueError):
    """Dữ liệu đầu vào không hợp lệ."""
    kind = "validation"
    status_code = 400


class ForbiddenError(ChatError, PermissionError):
    """Người dùng không có quyền thực hiện thao tác."""
    kind = "forbidden"
    status_code = 403


class NotFoundError(ChatError, LookupError):
    kind = "not_found"
    status_code = 404


class ConflictError(ChatError):
    """Trạng thái hiện tại không cho phép thao tác (trùng lặp, đã xử lý, phiên bản cũ...)."""
    kind = "conflict"
    status_code = 409


class PayloadTooLargeError(ChatError):
    kind = "payload_too_large"
    status_code = 413

    def __init__(self, message: str, limits: dict):
        super().__init__(message, {"limits": limits})
        self.limits = limits
