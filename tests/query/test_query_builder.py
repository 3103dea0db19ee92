"""Tests for ``polydb.query.base`` — chain semantics shared by every dialect.

Exercised through the PostgreSQL builder so the rendered SQL can be
inspected with ``build()``.
"""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from polydb.errors import QueryBuilderError
from polydb.query.base import Delete, Insert, Select, Update
from polydb.query.postgresql import PostgreSQLQueryBuilder


@pytest.fixture
def users(pg_pool) -> PostgreSQLQueryBuilder:
    return PostgreSQLQueryBuilder(pg_pool, "users")


class TestImmutability:
    def test_chain_returns_new_builder(self, users):
        filtered = users.eq("status", "active")
        assert filtered is not users
        assert users.state.conditions == ()
        assert len(filtered.state.conditions) == 1

    def test_branches_do_not_interfere(self, users):
        base = users.eq("a", 1)
        left = base.eq("b", 2)
        right = base.eq("c", 3)

        assert base.build().params == (1,)
        assert left.build().sql == "SELECT * FROM users WHERE a = $1 AND b = $2"
        assert right.build().sql == "SELECT * FROM users WHERE a = $1 AND c = $2"
        assert right.build().params == (1, 3)

    @pytest.mark.asyncio
    async def test_awaiting_twice_executes_twice(self, users, pg_pool):
        query = users.eq("id", 1)
        await query
        await query
        assert pg_pool.fetch.await_count == 2


class TestMutationVariant:
    def test_default_is_select(self, users):
        assert isinstance(users.state.mutation, Select)

    @pytest.mark.parametrize(
        "chain, expected",
        [
            (lambda q: q.insert({"id": 1}), Insert),
            (lambda q: q.upsert({"id": 1}), Insert),
            (lambda q: q.update({"name": "x"}), Update),
            (lambda q: q.delete(), Delete),
        ],
    )
    def test_mutation_kinds(self, users, chain, expected):
        assert isinstance(chain(users).state.mutation, expected)

    def test_second_mutation_rejected(self, users):
        with pytest.raises(QueryBuilderError, match="already set"):
            users.insert({"id": 1}).update({"name": "x"})

    def test_upsert_then_delete_rejected(self, users):
        with pytest.raises(QueryBuilderError):
            users.upsert({"id": 1}).delete()

    def test_select_after_mutation_keeps_mutation(self, users):
        query = users.delete().select("id")
        assert isinstance(query.state.mutation, Delete)
        assert query.state.columns == "id"

    def test_insert_columns_are_key_union(self, users):
        insert = users.insert([{"id": 1, "name": "a"}, {"email": "b@x", "id": 2}]).state.mutation
        assert insert.columns == ["id", "name", "email"]

    def test_conflict_columns(self):
        assert Insert(rows=({"id": 1},), upsert=True).conflict_columns == ["id"]
        assert Insert(rows=({"id": 1},), upsert=True, on_conflict="store_id, metric_date").conflict_columns == [
            "store_id",
            "metric_date",
        ]


class TestValidation:
    def test_empty_table(self, pg_pool):
        with pytest.raises(QueryBuilderError):
            PostgreSQLQueryBuilder(pg_pool, "")

    @pytest.mark.parametrize("rows", [[], [{}], {}])
    def test_empty_insert(self, users, rows):
        with pytest.raises(QueryBuilderError):
            users.insert(rows)

    def test_empty_update(self, users):
        with pytest.raises(QueryBuilderError):
            users.update({})

    @pytest.mark.parametrize("value", [-1, True, 1.5, "10"])
    def test_bad_limit(self, users, value):
        with pytest.raises(QueryBuilderError):
            users.limit(value)

    def test_bad_offset(self, users):
        with pytest.raises(QueryBuilderError):
            users.offset(-5)

    def test_range_end_before_start(self, users):
        with pytest.raises(QueryBuilderError, match="before start"):
            users.range(10, 9)

    def test_unknown_filter_operator(self, users):
        with pytest.raises(QueryBuilderError, match="Unknown filter operator"):
            users.filter("age", "between", 1)

    def test_unknown_not_operator(self, users):
        with pytest.raises(QueryBuilderError):
            users.not_("age", "contains", 1)

    def test_unknown_count_method(self, users):
        with pytest.raises(QueryBuilderError, match="count method"):
            users.select("*", count="approximate")


class TestPagination:
    def test_range_is_inclusive_window(self, users):
        query = users.range(10, 19)
        assert (query.state.limit, query.state.offset) == (10, 10)

    def test_range_equals_limit_plus_offset(self, users):
        assert users.range(10, 19).build().sql == users.limit(10).offset(10).build().sql

    def test_single_row_range(self, users):
        assert users.range(0, 0).build().sql == "SELECT * FROM users LIMIT 1 OFFSET 0"


class TestOrWarnings:
    def test_rejected_segments_recorded(self, users):
        query = users.or_("name.eq.Bob,garbage,age.gt.30")
        assert query.warnings == ("garbage",)
        assert users.warnings == ()

    def test_rejections_logged(self, users):
        with capture_logs() as logs:
            users.or_("garbage,also bad")
        [entry] = [e for e in logs if e["event"] == "query.or_filter.rejected"]
        assert entry["log_level"] == "warning"
        assert entry["segments"] == ["garbage", "also bad"]
        assert entry["table"] == "users"

    def test_fully_malformed_adds_no_condition(self, users):
        query = users.or_("garbage")
        assert query.state.conditions == ()
        assert query.build().sql == "SELECT * FROM users"

    def test_clean_expression_has_no_warnings(self, users):
        with capture_logs() as logs:
            query = users.or_("name.eq.Bob")
        assert query.warnings == ()
        assert logs == []


class TestConvenienceFilters:
    def test_match_is_eq_per_key(self, users):
        assert users.match({"a": 1, "b": 2}).build() == users.eq("a", 1).eq("b", 2).build()

    def test_filter_generic_form(self, users):
        assert users.filter("age", "gte", 18).build() == users.gte("age", 18).build()

    def test_filter_in_normalizes_list(self, users):
        assert users.filter("id", "in", [1, 2]).build() == users.in_("id", [1, 2]).build()


class TestTerminal:
    @pytest.mark.asyncio
    async def test_await_is_execute(self, users, pg_pool):
        pg_pool.fetch.return_value = [{"id": 1}]
        result = await users.eq("id", 1)
        assert result.data == [{"id": 1}]
        pg_pool.fetch.assert_awaited_once_with("SELECT * FROM users WHERE id = $1", 1)

    @pytest.mark.asyncio
    async def test_single_returns_first_row(self, users, pg_pool):
        pg_pool.fetch.return_value = [{"id": 1}, {"id": 2}]
        result = await users.single()
        assert result.data == {"id": 1}
        assert result.error is None
        assert result.count == 2

    @pytest.mark.asyncio
    async def test_maybe_single_no_row_is_not_an_error(self, users, pg_pool):
        pg_pool.fetch.return_value = []
        result = await users.eq("id", 404).maybe_single()
        assert result.data is None
        assert result.error is None
        assert result.count == 0

    def test_repr(self, users):
        assert repr(users.eq("a", 1)) == "PostgreSQLQueryBuilder(table='users', mutation=Select, conditions=1)"
