import pytest

from pardot_api_client.encoding import (
    build_query,
    encode_fields,
    is_blank,
    lookup,
    snake_case,
)


@pytest.mark.parametrize(
    "object_type,expected",
    [
        ("prospect", "prospect"),
        ("Prospect", "prospect"),
        ("VisitorActivity", "visitor_activity"),
        ("visitorActivity", "visitor_activity"),
        ("visitor activity", "visitor_activity"),
        ("Visitor Activity", "visitor_activity"),
        ("ListMembership", "list_membership"),
        ("list_membership", "list_membership"),
        ("ProspectAccount", "prospect_account"),
        ("URL", "u_r_l"),
    ],
)
def test_snake_case(object_type, expected):
    assert snake_case(object_type) == expected


def test_encode_fields_keeps_order_and_drops_none():
    fields = {"b": 2, "a": "x", "skip": None, "c": 1.5}

    assert encode_fields(fields) == [("b", "2"), ("a", "x"), ("c", "1.5")]


def test_encode_fields_booleans():
    assert encode_fields({"yes": True, "no": False}) == [("yes", "1"), ("no", "0")]


def test_encode_fields_nested():
    fields = {"list": ["a", "b"], "attrs": {"x": 1, "y": {"z": None, "w": "v"}}}

    assert encode_fields(fields) == [
        ("list[0]", "a"),
        ("list[1]", "b"),
        ("attrs[x]", "1"),
        ("attrs[y][w]", "v"),
    ]


def test_build_query_encodes_values():
    query = build_query({"email": "me@example.com", "name": "Jane Doe", "ids": [3]})

    assert query == "email=me%40example.com&name=Jane+Doe&ids%5B0%5D=3"


def test_build_query_empty():
    assert build_query({}) == ""
    assert build_query({"api_key": None}) == ""


def test_lookup():
    data = {"result": {"prospect": [{"id": 1}], "total_results": 1, "empty": None}}

    assert lookup(data, "result.prospect", []) == [{"id": 1}]
    assert lookup(data, "result.visitor", []) == []
    assert lookup(data, "result.total_results.deeper", "missing") == "missing"
    assert lookup(data, "result.empty", {}) == {}
    assert lookup([], "result", {}) == {}


@pytest.mark.parametrize("value", [None, False, 0, 0.0, "", "0", [], {}, ()])
def test_is_blank(value):
    assert is_blank(value)


@pytest.mark.parametrize("value", [True, 1, 42, "42", "read", "00", [0], {"a": 1}])
def test_is_not_blank(value):
    assert not is_blank(value)
