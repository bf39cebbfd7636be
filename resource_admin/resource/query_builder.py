"""查询构造能力：把主键条件构造所需的 ORM 元数据收敛为一个窄接口。

主键条件构造只依赖这里的四个能力（引用表名、引用列名、探测主键、判断主键为空），
因此可以在不连接数据库的情况下针对任意方言进行测试。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol

from sqlalchemy import inspect
from sqlalchemy.engine import Dialect


@dataclass(frozen=True)
class PrimaryField:
    """主键字段描述：模型属性名与数据库列名。"""

    name: str
    db_name: str


class QueryBuilder(Protocol):
    def quoted_table_name(self, model: Any) -> str:
        ...

    def quote(self, identifier: str) -> str:
        ...

    def primary_field(self, model: Any) -> Optional[PrimaryField]:
        ...

    def primary_key_zero(self, record: Any) -> bool:
        ...


def mapped_primary_fields(model: Any) -> list[PrimaryField]:
    """按声明顺序返回模型映射的主键字段。"""
    mapper = inspect(model)
    return [
        PrimaryField(name=mapper.get_property_by_column(column).key, db_name=column.name)
        for column in mapper.primary_key
    ]


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, str):
        return value == ""
    return False


class SQLAlchemyQueryBuilder:
    """基于 SQLAlchemy 方言的实现，标识符总是加引号。"""

    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect
        self.preparer = dialect.identifier_preparer

    def quote(self, identifier: str) -> str:
        return self.preparer.quote_identifier(identifier)

    def quoted_table_name(self, model: Any) -> str:
        table = inspect(model).local_table
        if table.schema:
            return ".".join(self.quote(part) for part in (*table.schema.split("."), table.name))
        return self.quote(table.name)

    def primary_field(self, model: Any) -> Optional[PrimaryField]:
        fields = mapped_primary_fields(model)
        if not fields:
            return None
        for field in fields:
            if field.db_name == "id":
                return field
        return fields[0]

    def primary_key_zero(self, record: Any) -> bool:
        """任一主键属性为空值（None、""、0）即视为新记录。"""
        fields = mapped_primary_fields(type(record))
        return any(is_blank(getattr(record, field.name, None)) for field in fields)
