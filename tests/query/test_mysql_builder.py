"""Tests for ``polydb.query.mysql`` — %s rendering and aiomysql execution."""

from __future__ import annotations

import pytest
from conftest import FakeCursor, FakeMySQLPool

from polydb.dialect import MYSQL_MAX_LIMIT
from polydb.query.mysql import MySQLQueryBuilder, rows_as_dicts


def builder(pool: FakeMySQLPool, table: str = "users") -> MySQLQueryBuilder:
    return MySQLQueryBuilder(pool, table)


class TestRendering:
    def test_end_to_end_sql(self, mysql_pool):
        compiled = (
            builder(mysql_pool)
            .select("*")
            .eq("status", "active")
            .order("created_at", ascending=False)
            .limit(2)
            .build()
        )
        assert compiled.sql == "SELECT * FROM users WHERE status = %s ORDER BY created_at DESC LIMIT 2"
        assert compiled.params == ("active",)

    def test_ilike_lowers_column_and_pattern(self, mysql_pool):
        compiled = builder(mysql_pool).ilike("name", "%BoB%").build()
        assert compiled.sql == "SELECT * FROM users WHERE LOWER(name) LIKE %s"
        assert compiled.params == ("%bob%",)

    def test_or_group(self, mysql_pool):
        compiled = builder(mysql_pool).or_("name.eq.Bob,garbage,age.gt.30").build()
        assert compiled.sql == "SELECT * FROM users WHERE (name = %s OR age > %s)"
        assert compiled.params == ("Bob", "30")

    def test_or_ilike_is_emulated(self, mysql_pool):
        compiled = builder(mysql_pool).or_("name.ilike.%BOB%,email.like.%@x.io").build()
        assert compiled.sql == "SELECT * FROM users WHERE (LOWER(name) LIKE %s OR email LIKE %s)"
        assert compiled.params == ("%bob%", "%@x.io")

    def test_update_params_in_textual_order(self, mysql_pool):
        compiled = builder(mysql_pool).eq("id", 5).gt("age", 1).update({"name": "x"}).build()
        assert compiled.sql == "UPDATE users SET name = %s WHERE id = %s AND age > %s"
        assert compiled.params == ("x", 5, 1)

    def test_upsert_ignores_conflict_key(self, mysql_pool):
        compiled = builder(mysql_pool).upsert({"id": 1, "name": "x"}, on_conflict="email").build()
        assert compiled.sql == (
            "INSERT INTO users (id, name) VALUES (%s, %s) "
            "ON DUPLICATE KEY UPDATE id = VALUES(id), name = VALUES(name)"
        )

    def test_no_returning(self, mysql_pool):
        assert builder(mysql_pool).insert({"name": "x"}).build().sql == "INSERT INTO users (name) VALUES (%s)"
        assert builder(mysql_pool).delete().eq("id", 1).build().sql == "DELETE FROM users WHERE id = %s"

    def test_offset_without_limit(self, mysql_pool):
        assert builder(mysql_pool).offset(5).build().sql == (
            f"SELECT * FROM users LIMIT {MYSQL_MAX_LIMIT} OFFSET 5"
        )

    def test_range(self, mysql_pool):
        assert builder(mysql_pool).range(10, 19).build().sql == "SELECT * FROM users LIMIT 10 OFFSET 10"

    def test_in_empty(self, mysql_pool):
        compiled = builder(mysql_pool).in_("id", []).build()
        assert compiled.sql == "SELECT * FROM users WHERE 1=0"
        assert compiled.params == ()

    def test_placeholders_match_params(self, mysql_pool):
        compiled = (
            builder(mysql_pool)
            .in_("id", [1, 2])
            .is_("deleted_at", None)
            .or_("a.eq.1,bad,b.lt.2")
            .update({"c": 3})
            .build()
        )
        assert compiled.sql.count("%s") == len(compiled.params) == 5


class TestRowsAsDicts:
    def test_tuple_rows_zip_description(self):
        cursor = FakeCursor()
        cursor.description = [("id",), ("name",)]
        assert rows_as_dicts(cursor, [(1, "a"), (2, "b")]) == [
            {"id": 1, "name": "a"},
            {"id": 2, "name": "b"},
        ]

    def test_dict_rows_pass_through(self):
        assert rows_as_dicts(FakeCursor(), [{"id": 1}]) == [{"id": 1}]

    def test_empty(self):
        assert rows_as_dicts(FakeCursor(), []) == []


class TestExecution:
    @pytest.mark.asyncio
    async def test_select(self):
        pool = FakeMySQLPool(FakeCursor([[{"id": 1}, {"id": 2}]]))
        result = await builder(pool).eq("status", "active").limit(2)

        assert pool.cursor.executed == [("SELECT * FROM users WHERE status = %s LIMIT 2", ("active",))]
        assert result.data == [{"id": 1}, {"id": 2}]
        assert result.count == 2
        assert result.error is None

    @pytest.mark.asyncio
    async def test_no_params_passes_none(self):
        pool = FakeMySQLPool(FakeCursor([[]]))
        await builder(pool)
        assert pool.cursor.executed == [("SELECT * FROM users", None)]

    @pytest.mark.asyncio
    async def test_tuple_rows(self):
        pool = FakeMySQLPool(FakeCursor([[(1, "a")]], description=[("id",), ("name",)]))
        result = await builder(pool).select("id, name")
        assert result.data == [{"id": 1, "name": "a"}]

    @pytest.mark.asyncio
    async def test_count_query(self):
        pool = FakeMySQLPool(FakeCursor([[{"id": 1}, {"id": 2}], [{"COUNT(*)": 42}]]))
        result = await builder(pool).select("*", count="exact").eq("a", 1).eq("b", 2).limit(2)

        assert len(pool.cursor.executed) == 2
        assert pool.cursor.executed[1] == ("SELECT COUNT(*) FROM users WHERE a = %s AND b = %s", (1, 2))
        assert result.count == 42
        assert len(result.data) == 2

    @pytest.mark.asyncio
    async def test_insert_reports_driver_summary(self):
        pool = FakeMySQLPool(FakeCursor(rowcount=1, lastrowid=7))
        result = await builder(pool).insert({"name": "x"})

        assert result.data == [{"affected_rows": 1, "last_insert_id": 7}]
        assert result.count == 1
        assert pool.connection.commits == 1

    @pytest.mark.asyncio
    async def test_update_count_is_affected_rows(self):
        pool = FakeMySQLPool(FakeCursor(rowcount=3, lastrowid=0))
        result = await builder(pool).update({"active": False}).eq("plan", "free")
        assert result.count == 3
        assert pool.cursor.executed == [("UPDATE users SET active = %s WHERE plan = %s", (False, "free"))]

    @pytest.mark.asyncio
    async def test_maybe_single_empty(self):
        pool = FakeMySQLPool(FakeCursor([[]]))
        result = await builder(pool).eq("id", 404).maybe_single()
        assert result.data is None
        assert result.count == 0

    @pytest.mark.asyncio
    async def test_driver_error_propagates(self):
        pool = FakeMySQLPool(FakeCursor(error=RuntimeError("Lost connection to MySQL server")))
        with pytest.raises(RuntimeError, match="Lost connection"):
            await builder(pool).eq("id", 1)
