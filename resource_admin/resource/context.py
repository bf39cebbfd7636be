"""请求上下文：每次请求显式传给处理器的数据库会话与请求状态。"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from resource_admin.crud.base import QueryScope
from resource_admin.resource.query_builder import QueryBuilder, SQLAlchemyQueryBuilder


@dataclass
class RequestContext:
    db: Optional[Session]
    # 请求路径中的资源 ID，复合主键以逗号分隔，例如 "1,2"
    resource_id: str = ""
    roles: Tuple[str, ...] = ()
    # 仅统计总数，find-many 返回行数而不是记录列表
    count_only: bool = False
    # 外层查询构造（分页、过滤）追加到列表查询上的作用域
    scopes: Tuple[QueryScope, ...] = field(default_factory=tuple)
    query_builder: Optional[QueryBuilder] = None

    def get_query_builder(self) -> QueryBuilder:
        if self.query_builder is None:
            self.query_builder = SQLAlchemyQueryBuilder(self.db.get_bind().dialect)
        return self.query_builder

    def with_resource_id(self, resource_id: str) -> "RequestContext":
        return replace(self, resource_id=resource_id)
