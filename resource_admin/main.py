"""应用入口：根据资源注册中心创建 FastAPI 实例并绑定生命周期事件。"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from resource_admin.admin import Admin
from resource_admin.api.v1 import build_api_router
from resource_admin.core.config import get_settings
from resource_admin.core.exceptions import (
    generic_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from resource_admin.core.logger import logger, setup_logging
from resource_admin.db.init_db import init_db
from resource_admin.middleware.request_id import RequestIdMiddleware


def create_app(admin: Optional[Admin] = None) -> FastAPI:
    """为 ``admin`` 中登记的全部资源挂载路由，并在启动时建表。"""
    setup_logging()
    settings = get_settings()
    admin = admin if admin is not None else Admin()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db()
        logger.info(
            "SUCCESS - %s resources mounted at http://127.0.0.1:%s%s",
            len(admin),
            settings.app_port,
            settings.api_v1_str,
        )
        yield

    app = FastAPI(title=settings.project_name, debug=settings.debug, lifespan=lifespan)
    app.state.admin = admin

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(build_api_router(admin), prefix=settings.api_v1_str)
    return app
