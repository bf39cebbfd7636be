"""依赖注入模块：封装路由中复用度高的依赖函数。"""

from collections.abc import Generator
from typing import Optional, Tuple

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from resource_admin.core.constants import ACCESS_TOKEN_TYPE
from resource_admin.core.roles import role_registry
from resource_admin.core.security import decode_token
from resource_admin.db import session as db_session
from resource_admin.resource import RequestContext

security_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """生成一个数据库会话，并在请求结束后自动关闭。"""
    db = db_session.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_roles(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
) -> Tuple[str, ...]:
    """解析 ``Authorization`` 头部中的角色声明；匿名请求只匹配注册角色。"""
    if not credentials:
        return role_registry.matched_roles({})

    if credentials.scheme.lower() != ACCESS_TOKEN_TYPE:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="认证类型无效")

    payload = decode_token(credentials.credentials)
    if payload is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token 无效或已过期")
    return role_registry.matched_roles(payload)


def get_request_context(
    db: Session = Depends(get_db),
    roles: Tuple[str, ...] = Depends(get_current_roles),
) -> RequestContext:
    return RequestContext(db=db, roles=roles)
