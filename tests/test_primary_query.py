"""主键条件构造的单元测试（仅依赖方言，不访问数据库）。"""

import pytest
from sqlalchemy.dialects import postgresql, sqlite

from resource_admin.resource import MetaValues, RequestContext, Resource, SQLAlchemyQueryBuilder
from sample_models import Article, OrderItem, Tag

ORDER_ID = '"order_items"."order_id" = ?'
PRODUCT_ID = '"order_items"."product_id" = ?'


@pytest.fixture()
def context() -> RequestContext:
    return RequestContext(db=None, query_builder=SQLAlchemyQueryBuilder(sqlite.dialect()))


def test_composite_value_builds_conjunction_in_declared_order(context):
    query = Resource(OrderItem).to_primary_query_params("1,2", context)

    assert query.sql == f"{ORDER_ID} AND {PRODUCT_ID}"
    assert query.params == ["1", "2"]


def test_single_primary_field(context):
    query = Resource(Article).to_primary_query_params("5", context)

    assert query.sql == '"articles"."id" = ?'
    assert query.params == ["5"]


@pytest.mark.parametrize("model", [Article, OrderItem])
def test_empty_value_yields_empty_predicate(context, model):
    query = Resource(model).to_primary_query_params("", context)

    assert query.sql == ""
    assert query.params == []
    assert not query


@pytest.mark.parametrize("value", ["7", "1,2,3"])
def test_mismatched_part_count_falls_back_to_first_field(context, value):
    query = Resource(OrderItem).to_primary_query_params(value, context)

    assert query.sql == ORDER_ID
    assert query.params == [value]


def test_configured_field_order_wins_over_mapping_order(context):
    resource = Resource(OrderItem, primary_fields=["product_id", "order_id"])

    query = resource.to_primary_query_params("3,4", context)

    assert query.sql == f"{PRODUCT_ID} AND {ORDER_ID}"
    assert query.params == ["3", "4"]


def test_without_configured_fields_uses_detected_primary_key(context):
    resource = Resource(Article)
    resource.primary_fields = []

    query = resource.to_primary_query_params("9", context)

    assert query.sql == '"articles"."id" = ?'
    assert query.params == ["9"]


def test_unknown_primary_field_is_rejected():
    with pytest.raises(ValueError):
        Resource(Article, primary_fields=["slug"])


def test_meta_values_follow_declared_order(context):
    meta_values = MetaValues.from_mapping({"quantity": 3, "product_id": 2, "order_id": 1})

    query = Resource(OrderItem).to_primary_query_params_from_meta_values(meta_values, context)

    assert query.sql == f"{ORDER_ID} AND {PRODUCT_ID}"
    assert query.params == ["1", "2"]


def test_meta_values_skip_missing_primary_fields(context):
    meta_values = MetaValues.from_mapping({"product_id": ["8"]})

    query = Resource(OrderItem).to_primary_query_params_from_meta_values(meta_values, context)

    assert query.sql == PRODUCT_ID
    assert query.params == ["8"]


def test_missing_meta_values_yield_empty_predicate(context):
    resource = Resource(OrderItem)

    assert not resource.to_primary_query_params_from_meta_values(None, context)
    assert not resource.to_primary_query_params_from_meta_values(MetaValues(), context)


def test_to_clause_binds_params_by_position(context):
    clause = Resource(OrderItem).to_primary_query_params("1,2", context).to_clause()
    compiled = clause.compile(dialect=sqlite.dialect())

    assert str(compiled) == '"order_items"."order_id" = ? AND "order_items"."product_id" = ?'
    assert compiled.params == {"pk_0": "1", "pk_1": "2"}


def test_quoting_follows_dialect():
    context = RequestContext(db=None, query_builder=SQLAlchemyQueryBuilder(postgresql.dialect()))

    query = Resource(Article).to_primary_query_params("5", context)

    assert query.sql == '"articles"."id" = ?'


def test_primary_meta_values_split_composite_identifier(context):
    resource = Resource(OrderItem)

    meta_values = resource.primary_meta_values("1,2", context)

    assert meta_values.names() == ["order_id", "product_id"]
    assert [item.value for item in meta_values] == ["1", "2"]
    assert resource.primary_meta_values("1", context).names() == ["order_id"]
    assert len(resource.primary_meta_values("", context)) == 0


def test_primary_key_zero():
    builder = SQLAlchemyQueryBuilder(sqlite.dialect())

    assert builder.primary_key_zero(Article())
    assert not builder.primary_key_zero(Article(id=3))
    assert builder.primary_key_zero(OrderItem(order_id=1))
    assert not builder.primary_key_zero(OrderItem(order_id=1, product_id=2))


def test_primary_meta_values_fall_back_to_detected_primary_key(context):
    resource = Resource(Article)
    resource.primary_fields = []

    meta_values = resource.primary_meta_values("9", context)
    query = resource.to_primary_query_params_from_meta_values(meta_values, context)

    assert meta_values.names() == ["id"]
    assert query.sql == '"articles"."id" = ?'
    assert query.params == ["9"]


def test_identifies_single_record():
    composite = Resource(OrderItem)
    single = Resource(Article)

    assert composite.identifies_single_record("1,2")
    assert not composite.identifies_single_record("1")
    assert not composite.identifies_single_record("1,2,3")
    assert single.identifies_single_record("1,2")
    assert not single.identifies_single_record("")


def test_to_clause_escapes_colons_in_identifiers(context):
    clause = Resource(Tag).to_primary_query_params("3", context).to_clause()
    compiled = clause.compile(dialect=sqlite.dialect())

    assert str(compiled) == '"tags"."tag:id" = ?'
    assert compiled.params == {"pk_0": "3"}
