from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from pydantic import BaseModel
from ..configs import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY


class TokenClaims(BaseModel):
    """Các claim dùng để xác định người gọi: `sub` là ID người dùng."""
    user_id: str
    expires_at: Optional[datetime] = None


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Ký token cho một người dùng (dùng khi phát triển và kiểm thử)."""
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    return jwt.encode({"sub": user_id, "exp": expire}, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[TokenClaims]:
    """Trả về claims nếu token hợp lệ và còn hạn, ngược lại trả về None."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None
    exp = payload.get("exp")
    return TokenClaims(user_id=user_id, expires_at=datetime.utcfromtimestamp(exp) if exp else None)
