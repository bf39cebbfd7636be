"""安全模块：生成与解析携带角色声明的 JWT 令牌。"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional

from jose import JWTError, jwt

from .config import get_settings
from .logger import logger


def create_access_token(
    subject: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
    *,
    roles: Optional[Iterable[str]] = None,
) -> str:
    """根据传入载荷生成带有过期时间的签名 JWT，``roles`` 写入同名声明。"""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta if expires_delta else timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode = subject.copy()
    if roles is not None:
        to_encode["roles"] = list(roles)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """解析并校验 JWT，合法时返回业务载荷，否则返回 ``None``。"""
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as exc:
        logger.warning("Failed to decode JWT: %s", exc)
        return None
