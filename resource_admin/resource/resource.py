"""资源定义：把 ORM 模型绑定为可增删改查的后台资源。

``Resource`` 负责三件事：
- 维护主键字段列表，并据此把资源 ID 或提交值翻译为带参数的主键查询条件；
- 通过权限检查器回答某个动作是否被允许；
- 持有四个可替换的处理器，``call_*`` 方法只做转发，外层框架可以整体替换默认实现。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Type

from sqlalchemy import bindparam, inspect, text
from sqlalchemy.sql.elements import TextClause

from resource_admin.core.constants import PRIMARY_VALUE_SEPARATOR
from resource_admin.core.enums import PermissionModeEnum
from resource_admin.core.roles import PermissionChecker
from resource_admin.crud.base import ResourceCRUD
from resource_admin.resource import crud as handlers
from resource_admin.resource.context import RequestContext
from resource_admin.resource.meta_values import MetaValues, to_string
from resource_admin.resource.query_builder import PrimaryField, is_blank, mapped_primary_fields

FindOneHandler = Callable[["Resource", RequestContext, Optional[MetaValues]], handlers.HandlerResult]
FindManyHandler = Callable[["Resource", RequestContext], Any]
SaveHandler = Callable[["Resource", Any, RequestContext], Any]
DeleteHandler = Callable[["Resource", Any, RequestContext], Any]


@dataclass
class PrimaryQuery:
    """参数化的主键条件：``conditions`` 形如 ``"table"."col" = ?``，``params`` 与之一一对应。"""

    conditions: List[str] = field(default_factory=list)
    params: List[str] = field(default_factory=list)

    @property
    def sql(self) -> str:
        return " AND ".join(self.conditions)

    def __bool__(self) -> bool:
        return bool(self.conditions)

    def to_clause(self) -> TextClause:
        """转换为 SQLAlchemy 文本条件，占位符改写为命名参数 ``pk_0``、``pk_1``……"""
        sqls = []
        binds = []
        for index, (condition, value) in enumerate(zip(self.conditions, self.params)):
            name = f"pk_{index}"
            # 标识符中的冒号需转义，否则会被 text() 当作绑定参数
            sqls.append(condition[:-1].replace(":", "\\:") + f":{name}")
            binds.append(bindparam(name, value))
        return text(" AND ".join(sqls)).bindparams(*binds)


class Resource:
    """后台资源：模型、主键字段、权限与处理器的组合。"""

    def __init__(
        self,
        model: Type[Any],
        name: Optional[str] = None,
        *,
        permission: Optional[PermissionChecker] = None,
        primary_fields: Optional[Sequence[str]] = None,
    ) -> None:
        self.model = model
        self.name = name or inspect(model).local_table.name
        self.permission = permission
        self.crud = ResourceCRUD(model)
        self.primary_fields: List[PrimaryField] = mapped_primary_fields(model)
        if primary_fields is not None:
            self.set_primary_fields(*primary_fields)

        self.find_one_handler: FindOneHandler = handlers.find_one_handler
        self.find_many_handler: FindManyHandler = handlers.find_many_handler
        self.save_handler: SaveHandler = handlers.save_handler
        self.delete_handler: DeleteHandler = handlers.delete_handler

    def __repr__(self) -> str:
        return f"Resource(name={self.name!r}, model={self.model.__name__})"

    def set_primary_fields(self, *names: str) -> None:
        """以模型属性名重新指定主键字段，顺序即条件顺序。"""
        column_attrs = inspect(self.model).column_attrs
        fields = []
        for name in names:
            if name not in column_attrs:
                raise ValueError(f"{self.model.__name__} has no column attribute named {name!r}")
            fields.append(PrimaryField(name=name, db_name=column_attrs[name].columns[0].name))
        self.primary_fields = fields

    def has_permission(self, mode: PermissionModeEnum, context: RequestContext) -> bool:
        if self.permission is None:
            return True
        return self.permission.has_permission(mode, context)

    def _condition(self, context: RequestContext, field: PrimaryField) -> str:
        builder = context.get_query_builder()
        return f"{builder.quoted_table_name(self.model)}.{builder.quote(field.db_name)} = ?"

    def to_primary_query_params(self, primary_value: str, context: RequestContext) -> PrimaryQuery:
        """把资源 ID 翻译为主键条件；复合主键的值以逗号分隔且段数必须与主键字段数一致。"""
        if not primary_value:
            return PrimaryQuery()

        if len(self.primary_fields) > 1:
            primary_values = primary_value.split(PRIMARY_VALUE_SEPARATOR)
            if len(primary_values) == len(self.primary_fields):
                return PrimaryQuery(
                    conditions=[self._condition(context, field) for field in self.primary_fields],
                    params=primary_values,
                )

        # 段数不匹配时退回第一个主键字段
        if self.primary_fields:
            return PrimaryQuery(
                conditions=[self._condition(context, self.primary_fields[0])],
                params=[primary_value],
            )

        primary_field = context.get_query_builder().primary_field(self.model)
        if primary_field is not None:
            return PrimaryQuery(conditions=[self._condition(context, primary_field)], params=[primary_value])

        return PrimaryQuery()

    def to_primary_query_params_from_meta_values(
        self, meta_values: Optional[MetaValues], context: RequestContext
    ) -> PrimaryQuery:
        """按主键字段声明顺序取提交值，缺失的字段直接跳过；未声明主键字段时使用探测到的主键。"""
        query = PrimaryQuery()
        if meta_values is None:
            return query

        fields = self.primary_fields
        if not fields:
            detected = context.get_query_builder().primary_field(self.model)
            fields = [detected] if detected is not None else []

        for field in fields:
            meta_value = meta_values.get(field.name)
            if meta_value is not None:
                query.conditions.append(self._condition(context, field))
                query.params.append(to_string(meta_value.value))
        return query

    def identifies_single_record(self, primary_value: str) -> bool:
        """复合主键的资源 ID 段数与主键字段数一致时才唯一定位一条记录。"""
        if len(self.primary_fields) <= 1:
            return bool(primary_value)
        return len(primary_value.split(PRIMARY_VALUE_SEPARATOR)) == len(self.primary_fields)

    def primary_meta_values(self, primary_value: str, context: RequestContext) -> MetaValues:
        """``to_primary_query_params`` 的逆向辅助：把资源 ID 拆成以主键字段命名的提交值。

        未声明主键字段时与条件构造一致，退回 ORM 探测到的主键。
        """
        meta_values = MetaValues()
        if not primary_value:
            return meta_values

        parts = primary_value.split(PRIMARY_VALUE_SEPARATOR)
        if len(self.primary_fields) > 1 and len(parts) == len(self.primary_fields):
            for field, value in zip(self.primary_fields, parts):
                meta_values.add(field.name, value)
            return meta_values

        if self.primary_fields:
            primary_field = self.primary_fields[0]
        else:
            primary_field = context.get_query_builder().primary_field(self.model)
        if primary_field is not None:
            meta_values.add(primary_field.name, primary_value)
        return meta_values

    def decode(self, record: Any, meta_values: Optional[MetaValues]) -> Any:
        """把提交值写入记录的列属性；以下划线开头的控制字段与未知字段被忽略。"""
        if meta_values is None:
            return record

        mapper = inspect(self.model)
        primary_names = {mapper.get_property_by_column(column).key for column in mapper.primary_key}
        key_is_zero = any(is_blank(getattr(record, name, None)) for name in primary_names)
        for meta_value in meta_values:
            if meta_value.name.startswith("_") or meta_value.name not in mapper.column_attrs:
                continue
            if meta_value.name in primary_names and not key_is_zero:
                continue
            setattr(record, meta_value.name, meta_value.value)
        return record

    def call_find_one(
        self, context: RequestContext, meta_values: Optional[MetaValues] = None
    ) -> handlers.HandlerResult:
        return self.find_one_handler(self, context, meta_values)

    def call_find_many(self, context: RequestContext) -> Any:
        return self.find_many_handler(self, context)

    def call_save(self, record: Any, context: RequestContext) -> Any:
        return self.save_handler(self, record, context)

    def call_delete(self, record: Any, context: RequestContext) -> Any:
        return self.delete_handler(self, record, context)
