"""CRUD 基类：为资源处理器提供绑定到单个模型的数据访问方法。"""

from typing import Callable, Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy import inspect
from sqlalchemy.orm import Query, Session
from sqlalchemy.sql.elements import ClauseElement

from resource_admin.core.constants import SOFT_DELETE_COLUMN
from resource_admin.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)
QueryScope = Callable[[Query], Query]


class ResourceCRUD(Generic[ModelType]):
    """封装单行查询、列表、计数、保存与删除，统一处理软删除与事务提交。"""

    def __init__(self, model: Type[ModelType]):
        self.model = model

    @property
    def soft_delete(self) -> bool:
        return hasattr(self.model, SOFT_DELETE_COLUMN)

    def query(self, db: Session, *, include_deleted: bool = False) -> Query:
        query = db.query(self.model)
        if self.soft_delete and not include_deleted:
            query = query.filter(getattr(self.model, SOFT_DELETE_COLUMN).is_(False))
        return query

    def first(self, db: Session, clause: ClauseElement) -> Optional[ModelType]:
        return self.query(db).filter(clause).first()

    def find(
        self,
        db: Session,
        *,
        scopes: Iterable[QueryScope] = (),
        order_by_primary_desc: bool = True,
    ) -> List[ModelType]:
        query = self.query(db)
        # 排序先于作用域，分页作用域会追加 LIMIT/OFFSET
        if order_by_primary_desc:
            query = query.order_by(*[column.desc() for column in inspect(self.model).primary_key])
        return self._apply_scopes(query, scopes).all()

    def count(self, db: Session, *, scopes: Iterable[QueryScope] = ()) -> int:
        return self._apply_scopes(self.query(db), scopes).count()

    def save(self, db: Session, db_obj: ModelType, *, is_new: bool, auto_commit: bool = True) -> ModelType:
        """新记录直接插入，已有主键的记录通过 ``merge`` 写回（不存在时同样插入）。"""
        if is_new:
            db.add(db_obj)
        else:
            db_obj = db.merge(db_obj)
        if auto_commit:
            self._commit(db)
            db.refresh(db_obj)
        return db_obj

    def delete(self, db: Session, clause: ClauseElement, *, auto_commit: bool = True) -> int:
        """删除匹配条件的行，返回受影响行数；支持软删除的模型仅做标记。"""
        query = self.query(db).filter(clause)
        if self.soft_delete:
            affected = query.update({SOFT_DELETE_COLUMN: True}, synchronize_session=False)
        else:
            affected = query.delete(synchronize_session=False)
        if auto_commit:
            self._commit(db)
        return affected

    @staticmethod
    def _apply_scopes(query: Query, scopes: Iterable[QueryScope]) -> Query:
        for scope in scopes:
            query = scope(query)
        return query

    @staticmethod
    def _commit(db: Session) -> None:
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
