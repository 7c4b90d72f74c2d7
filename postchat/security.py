import logging
from fastapi import Depends, HTTPException, status, WebSocket
from fastapi.security import OAuth2PasswordBearer
from .services import jwt_service
from .models import User
from .utils import parse_object_id

logger = logging.getLogger(__name__)

# Token được cấp bởi dịch vụ định danh bên ngoài
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

credentials_exception = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)

async def get_user_from_token(token: str) -> User:
    """Xác định người gọi (kèm cờ isAdmin) từ bearer token."""
    claims = jwt_service.decode_access_token(token)
    if claims is None:
        logger.warning("Rejected token: invalid, expired or missing subject")
        raise credentials_exception

    user_oid = parse_object_id(claims.user_id)
    user = await User.get(user_oid) if user_oid else None
    if user is None or user.status == 'deleted':
        logger.warning(f"Rejected token for unknown or deleted user {claims.user_id}")
        raise credentials_exception

    return user

async def get_current_user(token: str = Depends(oauth2_scheme)) -> User:
    return await get_user_from_token(token)

async def get_current_user_ws(websocket: WebSocket) -> User:
    token = websocket.query_params.get("token")
    try:
        if not token:
            raise credentials_exception
        return await get_user_from_token(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        raise
