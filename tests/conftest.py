"""测试夹具：为 pytest 提供隔离的 SQLite 数据库、资源注册中心与客户端。"""

import os
import shutil
import tempfile
from typing import Generator

TEST_DIR = tempfile.mkdtemp(prefix="resource_admin_tests_")
TEST_DB_PATH = os.path.join(TEST_DIR, "test.db")

# 必须在导入 resource_admin 之前写入，配置对象会被缓存
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["LOG_DIR"] = TEST_DIR
os.environ["JWT_SECRET_KEY"] = "test-secret"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlalchemy.orm import Session

from resource_admin.admin import Admin
from resource_admin.core.enums import PermissionModeEnum
from resource_admin.core.roles import Permission
from resource_admin.db import session as db_session
from resource_admin.main import create_app
from resource_admin.models.base import Base
from resource_admin.resource import RequestContext
from sample_models import Article, Note, OrderItem


@pytest.fixture(scope="session", autouse=True)
def cleanup_test_directory() -> Generator[None, None, None]:
    yield
    db_session.engine.dispose()
    shutil.rmtree(TEST_DIR, ignore_errors=True)


@pytest.fixture(autouse=True)
def reset_tables() -> Generator[None, None, None]:
    """每个用例使用全新的表，避免数据互相影响。"""
    Base.metadata.drop_all(bind=db_session.engine)
    Base.metadata.create_all(bind=db_session.engine)
    yield


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    session = db_session.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_context(db: Session):
    """按角色构造请求上下文：``make_context("admin", resource_id="1")``。"""

    def _make(*roles: str, **kwargs) -> RequestContext:
        return RequestContext(db=db, roles=tuple(roles), **kwargs)

    return _make


@pytest.fixture()
def sql_statements() -> Generator[list, None, None]:
    """记录测试期间发往数据库的 SQL 语句。"""
    statements: list = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(db_session.engine, "before_cursor_execute", _record)
    yield statements
    event.remove(db_session.engine, "before_cursor_execute", _record)


def article_permission() -> Permission:
    return (
        Permission()
        .allow(PermissionModeEnum.READ, "*")
        .allow(PermissionModeEnum.CREATE, "editor")
        .allow(PermissionModeEnum.UPDATE, "editor")
        .allow(PermissionModeEnum.CRUD, "admin")
    )


@pytest.fixture()
def admin() -> Admin:
    registry = Admin()
    registry.add_resource(Article, permission=article_permission())
    registry.add_resource(OrderItem, permission=Permission().allow(PermissionModeEnum.CRUD, "admin"))
    registry.add_resource(Note)
    return registry


@pytest.fixture()
def client(admin: Admin) -> Generator[TestClient, None, None]:
    app = create_app(admin)
    with TestClient(app) as test_client:
        yield test_client
