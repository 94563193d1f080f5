"""
Tests for QuerySpec construction, merging and condition normalization.
"""

import pytest
from pydantic import ValidationError

from resultset.domain.query.conditions import (
    SubQuery,
    condition_is_empty,
    literal,
    normalize_columns,
    normalize_join_on,
    normalize_operator,
    normalize_order_by,
)
from resultset.domain.query.compiler import QueryCompiler
from resultset.domain.query.spec import QuerySpec
from resultset.errors import ErrorCode, ResultSetError
from resultset.shared.types.models import ColumnSpec, FilterCondition, JoinSpec, OrderBy


class TestQuerySpecImmutability:
    """A spec never changes after construction."""

    def test_spec_is_frozen(self):
        spec = QuerySpec(source="artist")
        with pytest.raises(ValidationError):
            spec.source = "album"

    def test_merge_returns_new_instance(self):
        spec = QuerySpec(source="artist")
        refined = spec.merge({"name": "Bob"})
        assert refined is not spec
        assert spec.where == ()
        assert refined.where == ({"name": "Bob"},)

    def test_caller_mutation_does_not_leak(self):
        where = {"name": "Bob"}
        spec = QuerySpec(source="artist").merge(where)
        where["name"] = "Alice"
        where["id"] = 3
        assert spec.where == ({"name": "Bob"},)

    def test_stored_conditions_are_read_only(self):
        spec = QuerySpec(source="album").merge({"year": {"in": [1999, 2001]}}, having={"COUNT(*)": {"gt": 1}})
        with pytest.raises(TypeError):
            spec.where[0]["year"] = 1997
        with pytest.raises(TypeError):
            spec.where[0]["year"].update(in_=[1997])
        with pytest.raises(TypeError):
            spec.having[0].pop("COUNT(*)")
        assert spec.where[0]["year"]["in"] == (1999, 2001)

    def test_read_only_conditions_keep_compiling_the_same(self):
        spec = QuerySpec(source="a").merge({"x": 1})
        with pytest.raises(TypeError):
            spec.where[0]["x"] = 2
        assert QueryCompiler().compile_select(spec).params == (1,)

    def test_direct_construction_freezes_conditions(self):
        where = {"name": ["Bob", "Alice"]}
        spec = QuerySpec(source="artist", where=(where,))
        where["name"].append("Eve")
        assert spec.where[0]["name"] == ("Bob", "Alice")

    def test_filter_models_are_stored_as_dicts(self):
        spec = QuerySpec(source="album").merge(FilterCondition(field="year", op="gte", value=2001))
        assert spec.where == ({"field": "year", "op": "gte", "value": 2001},)

    def test_empty_merge_returns_same_spec(self):
        spec = QuerySpec(source="artist")
        assert spec.merge(None) is spec
        assert spec.merge({}) is spec


class TestMergeSemantics:
    """Chained search() rules."""

    def test_where_is_anded(self):
        spec = QuerySpec(source="album").merge({"year": 2001}).merge({"rank": 1})
        assert spec.where == ({"year": 2001}, {"rank": 1})

    def test_having_is_anded(self):
        spec = QuerySpec(source="album").merge(None, having={"COUNT(*)": {"gt": 1}})
        spec = spec.merge(None, having={"MAX(year)": {"lt": 2000}})
        assert len(spec.having) == 2

    def test_columns_replace(self):
        spec = QuerySpec(source="artist").merge(None, columns=["id", "name"])
        spec = spec.merge(None, columns="name")
        assert spec.columns == (ColumnSpec(expr="name"),)

    def test_add_columns_appends(self):
        spec = QuerySpec(source="artist").merge(None, columns=["id"])
        spec = spec.merge(None, add_columns={"n": "COUNT(albums.id)"})
        assert spec.columns == (ColumnSpec(expr="id"), ColumnSpec(expr="COUNT(albums.id)", alias="n"))

    def test_order_by_replaces(self):
        spec = QuerySpec(source="artist").merge(None, order_by="name desc")
        spec = spec.merge(None, order_by={"asc": "id"})
        assert spec.order_by == (OrderBy(field="id", direction="asc"),)
        assert spec.is_ordered

    def test_rows_and_limit_are_synonyms(self):
        assert QuerySpec(source="a").merge(None, rows=5).limit == 5
        assert QuerySpec(source="a").merge(None, limit=7).limit == 7

    def test_joins_deduplicated(self):
        join = JoinSpec(table="album", alias="albums", on=(("albums.artist_id", "me.id"),))
        spec = QuerySpec(source="artist").merge(None, joins=(join,))
        spec = spec.merge(None, joins=(join,))
        assert spec.joins == (join,)
        assert spec.join_aliases == ("albums",)

    def test_unknown_attribute_rejected(self):
        with pytest.raises(ResultSetError) as exc:
            QuerySpec(source="artist").merge(None, limt=5)
        assert exc.value.code == ErrorCode.ERR_INVALID_ATTRIBUTE


class TestWindow:
    """rows / offset / page validation and arithmetic."""

    def test_effective_offset(self):
        spec = QuerySpec(source="a", limit=10, offset=5, page=3)
        assert spec.effective_offset == 25
        assert spec.is_paged
        assert spec.is_windowed

    def test_page_requires_rows(self):
        with pytest.raises(ResultSetError) as exc:
            QuerySpec(source="a", page=2)
        assert exc.value.code == ErrorCode.ERR_INVALID_PAGE

    def test_page_must_be_positive(self):
        with pytest.raises(ResultSetError):
            QuerySpec(source="a", limit=10, page=0)

    def test_rows_must_be_positive(self):
        with pytest.raises(ResultSetError) as exc:
            QuerySpec(source="a").merge(None, rows=0)
        assert exc.value.code == ErrorCode.ERR_INVALID_ATTRIBUTE

    def test_negative_offset_rejected(self):
        with pytest.raises(ResultSetError):
            QuerySpec(source="a", offset=-1)

    def test_unwindowed(self):
        spec = QuerySpec(source="a", limit=10, offset=5, page=2).unwindowed()
        assert spec.limit is None and spec.offset is None and spec.page is None
        assert not spec.is_windowed


class TestNormalization:
    """Attribute normalizers."""

    @pytest.mark.parametrize("op,expected", [
        ("=", "eq"), ("<>", "ne"), (">=", "gte"), ("NOT IN", "not_in"),
        ("-like", "like"), ("gt", "gt"),
    ])
    def test_operator_aliases(self, op, expected):
        assert normalize_operator(op) == expected

    def test_order_by_forms(self):
        order = normalize_order_by([
            "name",
            "year DESC",
            {"desc": ["rank", "id"]},
            {"field": "title", "direction": "DESC", "nulls": "last"},
        ])
        assert [(o.field, o.direction) for o in order] == [
            ("name", "asc"), ("year", "desc"), ("rank", "desc"), ("id", "desc"), ("title", "desc"),
        ]
        assert order[-1].nulls == "last"

    @pytest.mark.parametrize("bad", ["name sideways", {"up": "name"}, 42])
    def test_invalid_order_by(self, bad):
        with pytest.raises(ResultSetError) as exc:
            normalize_order_by(bad)
        assert exc.value.code == ErrorCode.ERR_INVALID_ORDER

    def test_columns_forms(self):
        columns = normalize_columns(["id", {"total": "SUM(year)"}, ColumnSpec(expr="name", alias="n")])
        assert [c.alias for c in columns] == [None, "total", "n"]

    def test_columns_reject_literals(self):
        with pytest.raises(ResultSetError) as exc:
            normalize_columns(["id", literal("COUNT(*)")])
        assert exc.value.code == ErrorCode.ERR_INVALID_ATTRIBUTE
        assert "string" in exc.value.message

    def test_join_on_forms(self):
        assert normalize_join_on({"albums.artist_id": "me.id"}) == (("albums.artist_id", "me.id"),)
        with pytest.raises(ResultSetError):
            normalize_join_on([])

    def test_condition_is_empty(self):
        assert condition_is_empty(None)
        assert condition_is_empty({})
        assert condition_is_empty([])
        assert not condition_is_empty({"id": 1})

    def test_subquery_survives_deepcopy(self):
        inner = QuerySpec(source="album", columns=(ColumnSpec(expr="artist_id"),))
        sub = SubQuery(inner)
        spec = QuerySpec(source="artist").merge({"id": {"in": sub}})
        assert spec.where[0]["id"]["in"] is sub
