from app.patterns.sql_builder import QueryState, as_json, decode_json, resolve_sort, values_groups
from app.models.order import TransferSlip

COLUMNS = {"id": '"o"."id"', "status": '"o"."status"'}


def test_bind_numbers_placeholders_contiguously():
    state = QueryState()
    assert state.bind("a") == [":p1"]
    assert state.bind("b", "c") == [":p2", ":p3"]
    assert state.last_index == 3
    assert state.params == {"p1": "a", "p2": "b", "p3": "c"}


def test_reset_clears_query_and_values():
    state = QueryState()
    state.append("SELECT 1")
    state.bind(1)
    state.reset()
    assert state.query == ""
    assert state.params == {}
    assert state.bind("x") == [":p1"]


def test_resolve_sort_maps_known_keys():
    assert resolve_sort("status", "desc", COLUMNS, "id") == ('"o"."status"', "DESC")
    assert resolve_sort(" Status ", "Asc", COLUMNS, "id") == ('"o"."status"', "ASC")


def test_resolve_sort_never_returns_caller_input():
    column, direction = resolve_sort('id"; DROP TABLE orders; --', "sideways", COLUMNS, "id")
    assert column == '"o"."id"'
    assert direction == "ASC"


def test_resolve_sort_default_direction_can_be_overridden():
    assert resolve_sort("", "", COLUMNS, "status", default_direction="DESC") == ('"o"."status"', "DESC")


def test_values_groups_binds_every_row_with_casts():
    state = QueryState()
    state.bind("already")
    sql = values_groups(state, [("O1", 2, "{}"), ("O1", 1, "{}")], casts=("", "", "CAST({} AS jsonb)"))
    assert sql == "(:p2, :p3, CAST(:p4 AS jsonb)),\n(:p5, :p6, CAST(:p7 AS jsonb))"
    assert len(state.values) == 7


def test_json_helpers():
    slip = TransferSlip(id="t1", filename="a.png", url="http://x/a.png", created_at="2024-01-01")
    assert decode_json(as_json(slip)) == slip.model_dump()
    assert decode_json(b'[1, 2]') == [1, 2]
    assert decode_json([{"id": 1}]) == [{"id": 1}]
    assert decode_json(None) is None
