"""ORM 模型包：对外暴露声明式基类与通用字段混入。"""

from .base import Base, SoftDeleteMixin, TimestampMixin

__all__ = ["Base", "SoftDeleteMixin", "TimestampMixin"]
