"""API v1 汇总路由：为注册中心中的每个资源挂载子路由。"""

from fastapi import APIRouter

from resource_admin.admin import Admin
from resource_admin.api.v1.endpoints.resources import build_resource_router


def build_api_router(admin: Admin) -> APIRouter:
    api_router = APIRouter()
    for resource in admin:
        api_router.include_router(build_resource_router(resource))
    return api_router
