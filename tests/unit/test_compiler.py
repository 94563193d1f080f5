"""
Tests for QueryCompiler: SQL shape, bind order and paramstyles.
"""

import pytest

from resultset.domain.query.compiler import CompiledQuery, QueryCompiler, convert_paramstyle
from resultset.domain.query.conditions import SubQuery, column_ref, literal
from resultset.domain.query.spec import QuerySpec
from resultset.errors import ErrorCode, ResultSetError
from resultset.shared.types.models import ColumnSpec, FilterAnd, FilterCondition, FilterOr


def placeholders(compiled: CompiledQuery) -> int:
    return convert_paramstyle(compiled.sql, "qmark")[1]


@pytest.fixture
def compiler(music_schema):
    return QueryCompiler("sqlite", schema=music_schema)


def artist_spec(**kwargs) -> QuerySpec:
    return QuerySpec(source="artist", **kwargs)


class TestSelect:
    """SELECT rendering."""

    def test_default_projection_uses_schema_columns(self, compiler):
        compiled = compiler.compile_select(artist_spec())
        assert compiled.sql.startswith("SELECT ")
        assert '"me"."id"' in compiled.sql
        assert '"me"."name"' in compiled.sql
        assert 'FROM "artist" AS "me"' in compiled.sql
        assert compiled.params == ()
        assert compiled.kind == "select"

    def test_star_without_schema(self):
        compiled = QueryCompiler("sqlite").compile_select(artist_spec())
        assert '"me".*' in compiled.sql

    def test_simple_equality(self, compiler):
        compiled = compiler.compile_select(artist_spec(where=({"name": "Bob"},)))
        assert '"me"."name" = ?' in compiled.sql
        assert compiled.params == ("Bob",)

    def test_null_becomes_is_null(self, compiler):
        compiled = compiler.compile_select(QuerySpec(source="album", where=({"rank": None},)))
        assert "IS NULL" in compiled.sql
        assert compiled.params == ()

    def test_ne_null_becomes_not_is_null(self, compiler):
        compiled = compiler.compile_select(QuerySpec(source="album", where=({"rank": {"!=": None}},)))
        assert "NOT" in compiled.sql and "IS NULL" in compiled.sql

    def test_list_becomes_in(self, compiler):
        compiled = compiler.compile_select(artist_spec(where=({"id": [1, 2, 3]},)))
        assert "IN (?, ?, ?)" in compiled.sql
        assert compiled.params == (1, 2, 3)

    def test_empty_in_is_always_false(self, compiler):
        compiled = compiler.compile_select(artist_spec(where=({"id": []},)))
        assert "1 = 0" in compiled.sql
        assert compiled.params == ()

    def test_empty_not_in_is_always_true(self, compiler):
        compiled = compiler.compile_select(artist_spec(where=({"id": {"not_in": []}},)))
        assert "1 = 1" in compiled.sql

    def test_operators_in_one_dict_are_anded(self, compiler):
        compiled = compiler.compile_select(
            QuerySpec(source="album", where=({"year": {">=": 1998, "<": 2001}},))
        )
        assert '"me"."year" >= ?' in compiled.sql
        assert '"me"."year" < ?' in compiled.sql
        assert " AND " in compiled.sql
        assert compiled.params == (1998, 2001)

    def test_between(self, compiler):
        compiled = compiler.compile_select(
            QuerySpec(source="album", where=({"year": {"between": [1997, 1999]}},))
        )
        assert "BETWEEN ? AND ?" in compiled.sql
        assert compiled.params == (1997, 1999)

    def test_between_needs_two_values(self, compiler):
        with pytest.raises(ResultSetError) as exc:
            compiler.compile_select(QuerySpec(source="album", where=({"year": {"between": [1]}},)))
        assert exc.value.code == ErrorCode.ERR_INVALID_CONDITION

    def test_pattern_operators(self, compiler):
        compiled = compiler.compile_select(artist_spec(where=(
            {"name": {"starts_with": "Cat"}},
            {"name": {"contains": "aul"}},
            {"name": {"ends_with": "Crae"}},
        )))
        assert compiled.sql.count("LIKE") == 3
        assert compiled.params == ("Cat%", "%aul%", "%Crae")
        assert compiled.sql.count("ESCAPE") == 3

    def test_pattern_operators_match_wildcards_literally(self, compiler):
        compiled = compiler.compile_select(artist_spec(where=({"name": {"contains": "50%_off\\"}},)))
        assert compiled.params == ("%50\\%\\_off\\\\%",)
        assert "LIKE ? ESCAPE '\\'" in compiled.sql

    def test_pattern_operator_rejects_none(self, compiler):
        with pytest.raises(ResultSetError) as exc:
            compiler.compile_select(artist_spec(where=({"name": {"contains": None}},)))
        assert exc.value.code == ErrorCode.ERR_INVALID_CONDITION

    def test_or_and_not(self, compiler):
        compiled = compiler.compile_select(artist_spec(where=(
            {"or": [{"name": "A"}, {"and": [{"id": {">": 1}}, {"not": {"name": "B"}}]}]},
        )))
        assert " OR " in compiled.sql
        assert "NOT" in compiled.sql
        assert compiled.params == ("A", 1, "B")

    def test_or_over_dict_splits_keys(self, compiler):
        compiled = compiler.compile_select(artist_spec(where=({"-or": {"id": 1, "name": "B"}},)))
        assert " OR " in compiled.sql
        assert compiled.params == (1, "B")

    def test_filter_models(self, compiler):
        where = FilterOr(**{"or": [
            FilterCondition(field="year", op="gte", value=2001),
            FilterAnd(**{"and": [
                FilterCondition(field="rank", op="is_null"),
                FilterCondition(field="year", op="between", **{"from": 1990, "to": 1999}),
            ]}),
        ]})
        compiled = compiler.compile_select(QuerySpec(source="album", where=(where,)))
        assert " OR " in compiled.sql
        assert "IS NULL" in compiled.sql
        assert compiled.params == (2001, 1990, 1999)

    def test_engine_dict_form(self, compiler):
        compiled = compiler.compile_select(
            artist_spec(where=({"field": "id", "op": "in", "values": [1, 2]},))
        )
        assert "IN (?, ?)" in compiled.sql
        assert compiled.params == (1, 2)

    def test_literal_with_binds(self, compiler):
        compiled = compiler.compile_select(artist_spec(where=(literal("LENGTH(me.name) > ?", 5),)))
        assert "LENGTH" in compiled.sql.upper()
        assert compiled.params == (5,)

    def test_literal_bind_count_checked(self, compiler):
        with pytest.raises(ResultSetError) as exc:
            compiler.compile_select(artist_spec(where=(literal("me.id = ?"),)))
        assert exc.value.code == ErrorCode.ERR_INVALID_CONDITION

    def test_column_ref_compares_columns(self, compiler):
        compiled = compiler.compile_select(
            QuerySpec(source="album", where=({"id": column_ref("me.artist_id")},))
        )
        assert '"me"."id" = "me"."artist_id"' in compiled.sql
        assert compiled.params == ()

    def test_unknown_operator(self, compiler):
        with pytest.raises(ResultSetError) as exc:
            compiler.compile_select(artist_spec(where=({"id": {"gte_": 1}},)))
        assert exc.value.code == ErrorCode.ERR_UNKNOWN_OPERATOR
        assert "gte" in exc.value.suggestion

    def test_invalid_condition_type(self, compiler):
        with pytest.raises(ResultSetError) as exc:
            compiler.compile_select(artist_spec(where=(42,)))
        assert exc.value.code == ErrorCode.ERR_INVALID_CONDITION

    def test_distinct(self, compiler):
        compiled = compiler.compile_select(artist_spec(distinct=True))
        assert compiled.sql.startswith("SELECT DISTINCT")

    def test_column_alias(self, compiler):
        spec = artist_spec(columns=(ColumnSpec(expr="name", alias="artist_name"),))
        compiled = compiler.compile_select(spec)
        assert 'AS "artist_name"' in compiled.sql


class TestOrderingAndWindow:
    """ORDER BY, LIMIT, OFFSET."""

    def test_order_by_direction(self, compiler):
        spec = QuerySpec(source="album").merge(None, order_by=["year desc", "title"])
        compiled = compiler.compile_select(spec)
        assert 'ORDER BY "me"."year" DESC, "me"."title"' in compiled.sql

    def test_explicit_nulls_first(self):
        spec = QuerySpec(source="album").merge(None, order_by={"field": "rank", "nulls": "first"})
        compiled = QueryCompiler("postgres").compile_select(spec)
        assert "NULLS FIRST" in compiled.sql

    def test_natural_null_ordering_not_spelled_out(self):
        spec = QuerySpec(source="album").merge(None, order_by=["rank", "year desc"])
        for dialect in ("postgres", "sqlite", "duckdb"):
            compiled = QueryCompiler(dialect).compile_select(spec)
            assert "NULLS" not in compiled.sql

    def test_limit_offset_from_page(self, compiler):
        compiled = compiler.compile_select(artist_spec(limit=10, page=3))
        assert "LIMIT 10" in compiled.sql
        assert "OFFSET 20" in compiled.sql

    def test_offset_without_limit_sqlite(self, compiler):
        compiled = compiler.compile_select(artist_spec(offset=2))
        assert "LIMIT -1" in compiled.sql
        assert "OFFSET 2" in compiled.sql

    def test_offset_without_limit_postgres(self):
        compiled = QueryCompiler("postgres").compile_select(artist_spec(offset=2))
        assert "LIMIT" not in compiled.sql
        assert "OFFSET 2" in compiled.sql

    def test_offset_without_limit_mysql(self):
        compiled = QueryCompiler("mysql").compile_select(artist_spec(offset=2))
        assert "18446744073709551615" in compiled.sql


class TestJoinsAndBindOrder:
    """Joins and the order of bind parameters."""

    def test_join_rendered(self, music_schema, compiler):
        joins = music_schema.resolve_joins("artist", "me", "albums")
        compiled = compiler.compile_select(artist_spec(joins=joins))
        assert 'JOIN "album" AS "albums"' in compiled.sql
        assert '"albums"."artist_id" = "me"."id"' in compiled.sql
        assert "LEFT" in compiled.sql

    def test_binds_follow_clause_order(self, music_schema, compiler):
        joins = music_schema.resolve_joins("artist", "me", "albums")
        spec = artist_spec(
            joins=joins,
            where=({"albums.year": {"gt": 1990}},),
            columns=(ColumnSpec(expr="me.name"),),
            group_by=("me.id", "me.name"),
            having=({"COUNT(albums.id)": {"gte": 2}},),
        )
        compiled = compiler.compile_select(spec)
        assert compiled.sql.index("WHERE") < compiled.sql.index("GROUP BY") < compiled.sql.index("HAVING")
        assert compiled.params == (1990, 2)
        assert placeholders(compiled) == len(compiled.params)

    def test_subquery_binds_inline(self, compiler):
        inner = QuerySpec(
            source="album",
            columns=(ColumnSpec(expr="artist_id"),),
            where=({"year": 2001},),
        )
        spec = artist_spec(where=({"name": {"!=": "X"}}, {"id": {"in": SubQuery(inner)}}))
        compiled = compiler.compile_select(spec)
        assert "IN (SELECT" in compiled.sql
        assert compiled.params == ("X", 2001)

    def test_tuple_unpacking(self, compiler):
        sql, params = compiler.compile_select(artist_spec(where=({"id": 1},)))
        assert isinstance(sql, str)
        assert params == [1]


class TestCount:
    """COUNT(*) compilation."""

    def test_plain_count_drops_order(self, compiler):
        spec = artist_spec(where=({"id": {">": 1}},)).merge(None, order_by="name")
        compiled = compiler.compile_count(spec)
        assert "COUNT(*)" in compiled.sql
        assert "ORDER BY" not in compiled.sql
        assert "count_subq" not in compiled.sql
        assert compiled.params == (1,)
        assert compiled.kind == "count"

    @pytest.mark.parametrize("attrs", [
        {"distinct": True},
        {"group_by": ("me.name",)},
        {"limit": 2},
        {"offset": 1},
    ])
    def test_count_wraps_subquery(self, compiler, attrs):
        compiled = compiler.compile_count(artist_spec(**attrs))
        assert "count_subq" in compiled.sql


class TestDml:
    """UPDATE / DELETE / INSERT."""

    def test_plain_update(self, compiler):
        compiled = compiler.compile_update(artist_spec(where=({"name": "Old"},)), {"name": "New"})
        assert compiled.sql.startswith('UPDATE "artist" SET "name" = ?')
        assert 'WHERE "name" = ?' in compiled.sql
        assert '"me"' not in compiled.sql
        assert compiled.params == ("New", "Old")

    def test_update_with_join_uses_primary_key_subquery(self, music_schema, compiler):
        joins = music_schema.resolve_joins("artist", "me", "albums")
        spec = artist_spec(joins=joins, where=({"albums.year": 2001},))
        compiled = compiler.compile_update(spec, {"name": "X"})
        assert '"id" IN (SELECT "me"."id"' in compiled.sql
        assert compiled.params == ("X", 2001)

    def test_delete_with_limit_needs_primary_key(self):
        compiler = QueryCompiler("sqlite")
        with pytest.raises(ResultSetError) as exc:
            compiler.compile_delete(artist_spec(limit=1))
        assert exc.value.code == ErrorCode.ERR_NO_PRIMARY_KEY

    def test_delete_without_conditions(self, compiler):
        compiled = compiler.compile_delete(QuerySpec(source="track"))
        assert compiled.sql == 'DELETE FROM "track"'
        assert compiled.params == ()

    def test_update_requires_values(self, compiler):
        with pytest.raises(ResultSetError):
            compiler.compile_update(artist_spec(), {})

    def test_insert(self, compiler):
        compiled = compiler.compile_insert("artist", {"id": 9, "name": "New Band"})
        assert compiled.sql.startswith('INSERT INTO "artist" ("id", "name") VALUES (?, ?)')
        assert compiled.params == (9, "New Band")


class TestDialectsAndParamstyles:
    """Dialect selection and placeholder styles."""

    def test_postgres_defaults_to_format(self):
        compiled = QueryCompiler("postgresql").compile_select(artist_spec(where=({"id": 1},)))
        assert compiled.paramstyle == "format"
        assert "%s" in compiled.sql
        assert compiled.dialect == "postgres"

    def test_numeric_paramstyle(self):
        compiler = QueryCompiler("sqlite", paramstyle="numeric")
        compiled = compiler.compile_select(artist_spec(where=({"id": 1}, {"name": "x"})))
        assert ":1" in compiled.sql and ":2" in compiled.sql

    def test_dollar_paramstyle(self):
        compiled = QueryCompiler("duckdb", paramstyle="dollar").compile_select(
            artist_spec(where=({"id": [1, 2]},))
        )
        assert "$1" in compiled.sql and "$2" in compiled.sql

    def test_mysql_uses_backticks(self):
        compiled = QueryCompiler("mysql").compile_select(artist_spec())
        assert "`me`" in compiled.sql

    def test_unknown_dialect(self):
        with pytest.raises(ResultSetError) as exc:
            QueryCompiler("postgrse")
        assert exc.value.code == ErrorCode.ERR_UNSUPPORTED_DIALECT
        assert "postgres" in exc.value.suggestion

    def test_unknown_paramstyle(self):
        with pytest.raises(ResultSetError) as exc:
            QueryCompiler("sqlite", paramstyle="named")
        assert exc.value.code == ErrorCode.ERR_UNSUPPORTED_PARAMSTYLE

    def test_supported_dialects_sorted(self):
        dialects = QueryCompiler.supported_dialects()
        assert dialects == sorted(dialects)
        assert {"sqlite", "postgres", "duckdb", "mysql"} <= set(dialects)


class TestConvertParamstyle:
    """Placeholder rewriting leaves quoted text alone."""

    def test_quoted_question_mark_untouched(self):
        sql, count = convert_paramstyle("SELECT '?' AS q, \"a?\" FROM t WHERE x = ?", "numeric")
        assert sql == "SELECT '?' AS q, \"a?\" FROM t WHERE x = :1"
        assert count == 1

    def test_format_doubles_literal_percent(self):
        sql, count = convert_paramstyle("SELECT '100%' WHERE a LIKE ? AND b = 5 % 2", "format")
        assert sql == "SELECT '100%%' WHERE a LIKE %s AND b = 5 %% 2"
        assert count == 1

    def test_escaped_quote(self):
        sql, count = convert_paramstyle("SELECT 'it''s ?' WHERE a = ?", "dollar")
        assert sql == "SELECT 'it''s ?' WHERE a = $1"
        assert count == 1

    def test_percent_s_counts_as_placeholder(self):
        sql, count = convert_paramstyle("a = %s AND b = ?", "qmark")
        assert sql == "a = ? AND b = ?"
        assert count == 2

    def test_brackets_only_for_tsql(self):
        assert convert_paramstyle("SELECT [a?] WHERE b = ?", "numeric")[1] == 2
        assert convert_paramstyle("SELECT [a?] WHERE b = ?", "numeric", bracket_quotes=True)[1] == 1
