"""默认处理器：带权限检查的单条查询、列表、保存与删除。

处理器之间互不依赖，只共享资源上的主键字段信息。权限不足时抛出
``PermissionDeniedError`` 且不触碰存储；存储层异常原样向上传播。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Optional, Union

from resource_admin.core.enums import HandlerOutcomeEnum, PermissionModeEnum
from resource_admin.core.exceptions import FailedToFindError, PermissionDeniedError, RecordNotFoundError
from resource_admin.core.logger import logger
from resource_admin.resource.context import RequestContext
from resource_admin.resource.meta_values import MetaValues, is_destroy_requested

if TYPE_CHECKING:
    from resource_admin.resource.resource import Resource


@dataclass(frozen=True)
class HandlerResult:
    """处理结果：``CONTINUE`` 携带记录，``STOP`` 表示已主动短路（例如已按删除标记删除）。"""

    outcome: HandlerOutcomeEnum
    record: Any = None

    @property
    def stopped(self) -> bool:
        return self.outcome is HandlerOutcomeEnum.STOP

    @classmethod
    def proceed(cls, record: Any) -> "HandlerResult":
        return cls(HandlerOutcomeEnum.CONTINUE, record)

    @classmethod
    def stop(cls) -> "HandlerResult":
        return cls(HandlerOutcomeEnum.STOP)


def _permission_denied(resource: "Resource", mode: PermissionModeEnum, context: RequestContext) -> PermissionDeniedError:
    logger.info(
        "Permission denied: resource=%s mode=%s roles=%s",
        resource.name,
        mode.value,
        ",".join(context.roles) or "-",
        extra={"resource": resource.name, "mode": mode.value},
    )
    return PermissionDeniedError()


def find_one_handler(
    resource: "Resource",
    context: RequestContext,
    meta_values: Optional[MetaValues] = None,
) -> HandlerResult:
    """按资源 ID（或提交值中的主键字段）查询单条记录。

    提交值带有删除标记且拥有删除权限时，直接删除匹配的记录并返回 ``STOP``。
    """
    if not resource.has_permission(PermissionModeEnum.READ, context):
        raise _permission_denied(resource, PermissionModeEnum.READ, context)

    if meta_values is None:
        primary_query = resource.to_primary_query_params(context.resource_id, context)
    else:
        primary_query = resource.to_primary_query_params_from_meta_values(meta_values, context)

    if not primary_query:
        raise FailedToFindError()

    clause = primary_query.to_clause()
    if is_destroy_requested(meta_values) and resource.has_permission(PermissionModeEnum.DELETE, context):
        affected = resource.crud.delete(context.db, clause)
        logger.info(
            "Destroyed %s row(s) from %s where %s %s",
            affected,
            resource.name,
            primary_query.sql,
            primary_query.params,
            extra={"resource": resource.name, "mode": PermissionModeEnum.DELETE.value},
        )
        return HandlerResult.stop()

    record = resource.crud.first(context.db, clause)
    if record is None:
        raise RecordNotFoundError()
    return HandlerResult.proceed(record)


def find_many_handler(resource: "Resource", context: RequestContext) -> Union[List[Any], int]:
    if not resource.has_permission(PermissionModeEnum.READ, context):
        raise _permission_denied(resource, PermissionModeEnum.READ, context)

    if context.count_only:
        return resource.crud.count(context.db, scopes=context.scopes)
    return resource.crud.find(context.db, scopes=context.scopes)


def save_handler(resource: "Resource", record: Any, context: RequestContext) -> Any:
    """主键为空时要求创建权限，否则要求更新权限；通过后插入或合并写回。"""
    is_new = context.get_query_builder().primary_key_zero(record)
    mode = PermissionModeEnum.CREATE if is_new else PermissionModeEnum.UPDATE
    if not resource.has_permission(mode, context):
        raise _permission_denied(resource, mode, context)

    return resource.crud.save(context.db, record, is_new=is_new)


def delete_handler(resource: "Resource", record: Any, context: RequestContext) -> Any:
    # 实际删除发生在 find-one 的删除标记分支，这里只做权限把关
    if not resource.has_permission(PermissionModeEnum.DELETE, context):
        raise _permission_denied(resource, PermissionModeEnum.DELETE, context)
    raise RecordNotFoundError()
