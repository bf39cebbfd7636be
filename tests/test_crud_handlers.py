"""默认增删改查处理器的测试：权限分支、删除标记与保存语义。"""

import pytest

from resource_admin.core.enums import HandlerOutcomeEnum, PermissionModeEnum
from resource_admin.core.exceptions import FailedToFindError, PermissionDeniedError, RecordNotFoundError
from resource_admin.core.roles import Permission
from resource_admin.db import session as db_session
from resource_admin.resource import MetaValues, Resource
from sample_models import Article, Note, OrderItem, Tag


def _article_resource() -> Resource:
    permission = (
        Permission()
        .allow(PermissionModeEnum.READ, "reader", "writer", "creator", "updater")
        .allow(PermissionModeEnum.CREATE, "creator", "writer")
        .allow(PermissionModeEnum.UPDATE, "updater", "writer")
        .allow(PermissionModeEnum.DELETE, "remover")
    )
    return Resource(Article, permission=permission)


def _seed_articles(db, *titles):
    articles = [Article(title=title) for title in titles]
    db.add_all(articles)
    db.commit()
    return [article.id for article in articles]


def _article_titles():
    with db_session.SessionLocal() as session:
        return sorted(article.title for article in session.query(Article).all())


# ---------------------------------------------------------------------------
# find-one
# ---------------------------------------------------------------------------


def test_find_one_without_read_permission_never_touches_store(make_context, sql_statements):
    resource = _article_resource()

    with pytest.raises(PermissionDeniedError):
        resource.call_find_one(make_context("remover", resource_id="1"))

    assert sql_statements == []


def test_find_one_by_resource_id(db, make_context):
    [article_id] = _seed_articles(db, "hello")

    result = _article_resource().call_find_one(make_context("reader", resource_id=str(article_id)))

    assert result.outcome is HandlerOutcomeEnum.CONTINUE
    assert result.record.title == "hello"


def test_find_one_missing_row_raises_not_found(make_context):
    with pytest.raises(RecordNotFoundError) as exc_info:
        _article_resource().call_find_one(make_context("reader", resource_id="404"))

    assert not isinstance(exc_info.value, FailedToFindError)


def test_find_one_without_predicate_fails_to_find(make_context):
    with pytest.raises(FailedToFindError) as exc_info:
        _article_resource().call_find_one(make_context("reader"))

    assert exc_info.value.status_code == 404
    assert exc_info.value.detail == "failed to find"


def test_find_one_from_meta_values_without_primary_fields_fails_to_find(make_context):
    with pytest.raises(FailedToFindError):
        _article_resource().call_find_one(make_context("reader"), MetaValues.from_mapping({"title": "x"}))


def test_find_one_with_destroy_flag_deletes_and_stops(db, make_context):
    article_id, _ = _seed_articles(db, "drop me", "keep me")
    meta_values = MetaValues.from_mapping({"id": article_id, "_destroy": "1"})

    result = _article_resource().call_find_one(make_context("reader", "remover"), meta_values)

    assert result.stopped
    assert result.record is None
    assert _article_titles() == ["keep me"]


def test_find_one_with_zero_destroy_flag_fetches(db, make_context):
    [article_id] = _seed_articles(db, "still here")
    meta_values = MetaValues.from_mapping({"id": str(article_id), "_destroy": "0"})

    result = _article_resource().call_find_one(make_context("reader", "remover"), meta_values)

    assert not result.stopped
    assert result.record.title == "still here"
    assert _article_titles() == ["still here"]


def test_find_one_destroy_flag_without_delete_permission_fetches(db, make_context):
    [article_id] = _seed_articles(db, "protected")
    meta_values = MetaValues.from_mapping({"id": article_id, "_destroy": "1"})

    result = _article_resource().call_find_one(make_context("reader"), meta_values)

    assert result.record.title == "protected"
    assert _article_titles() == ["protected"]


def test_find_one_composite_key(db, make_context):
    db.add_all([OrderItem(order_id=1, product_id=2, quantity=5), OrderItem(order_id=1, product_id=3, quantity=7)])
    db.commit()

    result = Resource(OrderItem).call_find_one(make_context(resource_id="1,3"))

    assert (result.record.order_id, result.record.product_id, result.record.quantity) == (1, 3, 7)


def test_destroy_on_soft_delete_model_marks_row(db, make_context):
    note = Note(content="draft")
    db.add(note)
    db.commit()
    resource = Resource(Note)

    result = resource.call_find_one(make_context(), MetaValues.from_mapping({"id": note.id, "_destroy": "1"}))

    assert result.stopped
    with db_session.SessionLocal() as session:
        assert session.get(Note, note.id).is_deleted is True
    with pytest.raises(RecordNotFoundError):
        resource.call_find_one(make_context(resource_id=str(note.id)))


# ---------------------------------------------------------------------------
# find-many
# ---------------------------------------------------------------------------


def test_find_many_orders_by_primary_key_descending(db, make_context):
    _seed_articles(db, "first", "second", "third")

    records = _article_resource().call_find_many(make_context("reader"))

    assert [record.title for record in records] == ["third", "second", "first"]


def test_find_many_count_only(db, make_context):
    _seed_articles(db, "a", "b")

    assert _article_resource().call_find_many(make_context("reader", count_only=True)) == 2


def test_find_many_applies_context_scopes(db, make_context):
    _seed_articles(db, "a", "b", "c")
    only_b = (lambda query: query.filter(Article.title == "b"),)

    records = _article_resource().call_find_many(make_context("reader", scopes=only_b))

    assert [record.title for record in records] == ["b"]
    assert _article_resource().call_find_many(make_context("reader", scopes=only_b, count_only=True)) == 1


def test_find_many_pages_after_primary_key_ordering(db, make_context):
    _seed_articles(db, "a", "b", "c", "d")
    second_page = (lambda query: query.offset(1).limit(2),)

    records = _article_resource().call_find_many(make_context("reader", scopes=second_page))

    assert [record.title for record in records] == ["c", "b"]


def test_find_many_requires_read_permission(make_context, sql_statements):
    with pytest.raises(PermissionDeniedError):
        _article_resource().call_find_many(make_context("creator-only"))

    assert sql_statements == []


def test_find_one_with_colon_in_column_name(db, make_context):
    tag = Tag(label="urgent")
    db.add(tag)
    db.commit()

    result = Resource(Tag).call_find_one(make_context(resource_id=str(tag.id)))

    assert result.record.label == "urgent"


# ---------------------------------------------------------------------------
# save
# ---------------------------------------------------------------------------


def test_save_new_record_requires_create_permission(make_context):
    resource = _article_resource()

    saved = resource.call_save(Article(title="new"), make_context("creator"))

    assert saved.id is not None
    assert _article_titles() == ["new"]


def test_save_new_record_with_only_update_permission_is_denied(make_context):
    with pytest.raises(PermissionDeniedError):
        _article_resource().call_save(Article(title="new"), make_context("updater"))

    assert _article_titles() == []


def test_save_existing_record_requires_update_permission(db, make_context):
    [article_id] = _seed_articles(db, "before")
    record = db.get(Article, article_id)
    record.title = "after"

    _article_resource().call_save(record, make_context("updater"))

    assert _article_titles() == ["after"]


def test_save_existing_record_with_only_create_permission_is_denied(db, make_context):
    [article_id] = _seed_articles(db, "before")
    record = db.get(Article, article_id)
    record.title = "after"

    with pytest.raises(PermissionDeniedError):
        _article_resource().call_save(record, make_context("creator"))

    assert _article_titles() == ["before"]


def test_save_detached_record_with_key_upserts(make_context):
    resource = Resource(OrderItem)

    resource.call_save(OrderItem(order_id=4, product_id=5, quantity=1), make_context())
    resource.call_save(OrderItem(order_id=4, product_id=5, quantity=9), make_context())

    with db_session.SessionLocal() as session:
        rows = session.query(OrderItem).all()
        assert [(row.order_id, row.product_id, row.quantity) for row in rows] == [(4, 5, 9)]


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------


def test_delete_handler_always_reports_not_found(db, make_context):
    [article_id] = _seed_articles(db, "survivor")
    record = db.get(Article, article_id)

    with pytest.raises(RecordNotFoundError):
        _article_resource().call_delete(record, make_context("remover"))

    assert _article_titles() == ["survivor"]


def test_delete_handler_requires_delete_permission(make_context):
    with pytest.raises(PermissionDeniedError):
        _article_resource().call_delete(Article(id=1), make_context("writer"))


# ---------------------------------------------------------------------------
# dispatch
# ---------------------------------------------------------------------------


def test_call_wrappers_route_to_replaced_handlers(make_context):
    resource = Resource(Article)
    calls = []

    def find_many(res, context):
        calls.append((res, context.roles))
        return ["custom"]

    resource.find_many_handler = find_many

    assert resource.call_find_many(make_context("anyone")) == ["custom"]
    assert calls == [(resource, ("anyone",))]


def test_resource_without_permission_allows_every_action(make_context):
    resource = Resource(Article)

    saved = resource.call_save(Article(title="open"), make_context())

    assert resource.call_find_one(make_context(resource_id=str(saved.id))).record.title == "open"
