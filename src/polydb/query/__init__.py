"""Chainable, provider-neutral query builders.

Architecture::

    QueryBuilder (base.py)            immutable chain + terminal coroutines
        |-- SQLQueryBuilder (sql.py)  dialect-driven SQL rendering
        |     |-- PostgreSQLQueryBuilder   asyncpg, $n placeholders
        |     |-- MySQLQueryBuilder        aiomysql, %s placeholders
        |-- VendorQueryBuilder        replay onto a supabase/postgrest client
"""

from .base import COUNT_METHODS, Delete, Insert, Ordering, QueryBuilder, QueryState, Select, Update
from .mysql import MySQLQueryBuilder
from .postgresql import PostgreSQLQueryBuilder
from .sql import CompiledQuery, SQLQueryBuilder, quote_identifier
from .vendor import VendorQueryBuilder, execute_vendor_query

__all__ = [
    "COUNT_METHODS",
    "QueryBuilder",
    "QueryState",
    "Select",
    "Insert",
    "Update",
    "Delete",
    "Ordering",
    "SQLQueryBuilder",
    "CompiledQuery",
    "quote_identifier",
    "PostgreSQLQueryBuilder",
    "MySQLQueryBuilder",
    "VendorQueryBuilder",
    "execute_vendor_query",
]
