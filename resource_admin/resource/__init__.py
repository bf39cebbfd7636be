"""资源抽象：主键条件构造、提交值与默认增删改查处理器。"""

from .context import RequestContext
from .crud import HandlerResult
from .meta_values import MetaValue, MetaValues
from .query_builder import PrimaryField, QueryBuilder, SQLAlchemyQueryBuilder
from .resource import PrimaryQuery, Resource

__all__ = [
    "HandlerResult",
    "MetaValue",
    "MetaValues",
    "PrimaryField",
    "PrimaryQuery",
    "QueryBuilder",
    "RequestContext",
    "Resource",
    "SQLAlchemyQueryBuilder",
]
