"""资源通用路由：为每个已注册资源生成列表、详情、新建、更新与删除接口。"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Query
from fastapi.encoders import jsonable_encoder
from sqlalchemy import inspect

from resource_admin.core.config import get_settings
from resource_admin.core.constants import DESTROY_META_NAME, HTTP_STATUS_CREATED
from resource_admin.core.dependencies import get_request_context
from resource_admin.core.enums import PermissionModeEnum
from resource_admin.core.exceptions import FailedToFindError, PermissionDeniedError
from resource_admin.core.logger import logger
from resource_admin.core.responses import create_response
from resource_admin.crud.base import QueryScope
from resource_admin.resource import MetaValues, RequestContext, Resource


def serialize_record(record: Any) -> Dict[str, Any]:
    """按列属性导出记录，时间等类型交给 ``jsonable_encoder`` 处理。"""
    mapper = inspect(type(record))
    return jsonable_encoder({attr.key: getattr(record, attr.key) for attr in mapper.column_attrs})


def _require_single_record(resource: Resource, resource_id: str) -> None:
    """写操作的资源 ID 必须完整给出复合主键，避免按第一个主键字段命中多行。"""
    if not resource.identifies_single_record(resource_id):
        raise FailedToFindError()


def _paginate(page: int, page_size: int) -> QueryScope:
    offset = (page - 1) * page_size

    def scope(query):
        return query.offset(offset).limit(page_size)

    return scope


def build_resource_router(resource: Resource) -> APIRouter:
    settings = get_settings()
    router = APIRouter(prefix=f"/{resource.name}", tags=[resource.name])

    @router.get("")
    def list_records(
        count_only: bool = Query(False, description="仅返回总数"),
        page: int = Query(1, ge=1, description="页码，从 1 开始"),
        page_size: int = Query(
            settings.default_page_size, ge=1, le=settings.max_page_size, description="每页数量"
        ),
        context: RequestContext = Depends(get_request_context),
    ) -> dict:
        total = resource.call_find_many(replace(context, count_only=True))
        if count_only:
            return create_response("获取总数成功", {"total": total})

        records = resource.call_find_many(replace(context, scopes=(*context.scopes, _paginate(page, page_size))))
        return create_response(
            "获取列表成功",
            {
                "items": [serialize_record(record) for record in records],
                "total": total,
                "page": page,
                "page_size": page_size,
            },
        )

    @router.get("/{resource_id}")
    def get_record(resource_id: str, context: RequestContext = Depends(get_request_context)) -> dict:
        result = resource.call_find_one(context.with_resource_id(resource_id))
        return create_response("获取详情成功", serialize_record(result.record))

    @router.post("", status_code=HTTP_STATUS_CREATED)
    def create_record(
        payload: Dict[str, Any] = Body(...),
        context: RequestContext = Depends(get_request_context),
    ) -> dict:
        record = resource.decode(resource.model(), MetaValues.from_mapping(payload))
        record = resource.call_save(record, context)
        logger.info("Created %s record %s", resource.name, serialize_record(record))
        return create_response("创建成功", serialize_record(record), HTTP_STATUS_CREATED)

    @router.put("/{resource_id}")
    def update_record(
        resource_id: str,
        payload: Dict[str, Any] = Body(...),
        context: RequestContext = Depends(get_request_context),
    ) -> dict:
        _require_single_record(resource, resource_id)
        result = resource.call_find_one(context.with_resource_id(resource_id))
        record = resource.decode(result.record, MetaValues.from_mapping(payload))
        record = resource.call_save(record, context)
        return create_response("更新成功", serialize_record(record))

    @router.delete("/{resource_id}")
    def delete_record(resource_id: str, context: RequestContext = Depends(get_request_context)) -> dict:
        if not resource.has_permission(PermissionModeEnum.DELETE, context):
            raise PermissionDeniedError()

        _require_single_record(resource, resource_id)
        context = context.with_resource_id(resource_id)
        # 先确认记录存在，不存在时由 find-one 抛出 404
        resource.call_find_one(context)

        meta_values = resource.primary_meta_values(resource_id, context)
        meta_values.add(DESTROY_META_NAME, "1")
        result = resource.call_find_one(context, meta_values)
        if not result.stopped:
            raise PermissionDeniedError()
        return create_response("删除成功", {"id": resource_id})

    return router
