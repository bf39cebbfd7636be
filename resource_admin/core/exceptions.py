"""异常处理模块：定义资源处理层的错误类型与统一响应格式。

错误分三类：
- 权限不足（``PermissionDeniedError``）：立即返回，不重试；
- 记录不存在（``RecordNotFoundError``/``FailedToFindError``）：主键条件无法构造，或存储中没有匹配行；
- 底层存储错误：SQLAlchemy 抛出的异常原样向上传播。
"""

from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .constants import HTTP_STATUS_UNPROCESSABLE_ENTITY
from .logger import logger


class AppException(HTTPException):
    """携带统一响应结构的业务异常，方便在全局处理中转换响应体。"""

    def __init__(self, msg: str, code: int = status.HTTP_400_BAD_REQUEST, data=None) -> None:
        super().__init__(status_code=code, detail=msg)
        self.data = data


class PermissionDeniedError(AppException):
    """当前请求的角色不具备目标动作的权限。"""

    def __init__(self, msg: str = "permission denied", data=None) -> None:
        super().__init__(msg, status.HTTP_403_FORBIDDEN, data)


class RecordNotFoundError(AppException):
    """存储中没有与主键条件匹配的记录。"""

    def __init__(self, msg: str = "record not found", data=None) -> None:
        super().__init__(msg, status.HTTP_404_NOT_FOUND, data)


class FailedToFindError(RecordNotFoundError):
    """无法根据请求构造主键查询条件。"""

    def __init__(self, msg: str = "failed to find", data=None) -> None:
        super().__init__(msg, data)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:  # pragma: no cover - framework glue
    """将 FastAPI 的 ``HTTPException`` 转换为统一响应格式。"""
    payload = {"msg": exc.detail, "data": getattr(exc, "data", None), "code": exc.status_code}
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(payload))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    payload = {
        "msg": "请求参数校验失败",
        "data": jsonable_encoder(exc.errors()),
        "code": HTTP_STATUS_UNPROCESSABLE_ENTITY,
    }
    return JSONResponse(status_code=HTTP_STATUS_UNPROCESSABLE_ENTITY, content=payload)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # pragma: no cover - framework glue
    """兜底处理：将未捕获异常转换为标准的 500 响应结构。"""
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    payload = {
        "msg": "服务器内部错误",
        "data": None,
        "code": status.HTTP_500_INTERNAL_SERVER_ERROR,
    }
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)
