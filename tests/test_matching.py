import pytest

from query_events.exceptions import InvalidIdentifierError
from query_events.identifiers import Descriptor, Name, to_identifier, to_identifiers
from query_events.matching import loose_equals, match_query


def test_names_match_only_equal_names():
    assert match_query("ready", "ready")
    assert not match_query("ready", "done")
    assert match_query(Name("ready"), "ready")


def test_names_never_match_descriptors():
    assert not match_query({"x": 1}, "x")
    assert not match_query("x", {"x": 1})
    assert not match_query("x", {})


def test_pattern_is_a_subset_filter():
    event = {"type": "click", "button": "left", "x": 10}
    assert match_query(event, {"type": "click"})
    assert match_query(event, {"type": "click", "button": "left"})
    assert not match_query(event, {"type": "click", "button": "right"})
    assert not match_query({"type": "click"}, event)


def test_empty_pattern_matches_any_descriptor():
    assert match_query({"anything": True}, {})
    assert match_query({}, {})


def test_identical_objects_match():
    nan_event = {"value": float("nan")}
    assert match_query(nan_event, nan_event)
    assert not match_query(nan_event, {"value": float("nan")})


def test_loose_equality_coerces_numbers_and_strings():
    assert match_query({"count": 3}, {"count": "3"})
    assert match_query({"count": "3"}, {"count": 3})
    assert match_query({"ratio": 0.5}, {"ratio": " 0.5 "})
    assert not match_query({"count": 4}, {"count": "3"})


def test_missing_key_only_matches_none():
    assert match_query({"a": 1}, {"b": None})
    assert not match_query({"a": 1}, {"b": 0})
    assert not match_query({"a": 1}, {"b": ""})


@pytest.mark.parametrize(
    "left, right, expected",
    [
        (1, True, True),
        (0, False, True),
        ("1", True, True),
        ("", 0, True),
        ("abc", 0, False),
        ("1.0", "1", False),
        ("a", "a", True),
        (None, 0, False),
        (None, None, True),
        ([1, 2], [1, 2], True),
        ({"k": 1}, {"k": 1}, True),
        (float("nan"), float("nan"), False),
    ],
)
def test_loose_equals_policy(left, right, expected):
    assert loose_equals(left, right) is expected


def test_to_identifier_resolves_variants():
    assert to_identifier("x") == Name("x")
    descriptor = to_identifier({"a": 1})
    assert isinstance(descriptor, Descriptor)
    assert to_identifier(descriptor) is descriptor
    assert [type(i) for i in to_identifiers(["x", {"a": 1}])] == [Name, Descriptor]
    assert len(to_identifiers({"a": 1})) == 1


def test_invalid_identifier_rejected():
    with pytest.raises(InvalidIdentifierError):
        to_identifier(42)
    with pytest.raises(InvalidIdentifierError):
        match_query(None, {"a": 1})


@pytest.mark.parametrize("value", [42, 10**12, 3.5, None, ["x"]])
def test_identical_non_identifiers_are_still_rejected(value):
    with pytest.raises(InvalidIdentifierError):
        match_query(value, value)


@pytest.mark.parametrize("text", ["1_000", "inf", "-Infinity", "nan"])
def test_unusual_numeric_strings_do_not_coerce(text):
    number = float(text.replace("_", ""))
    assert not loose_equals(text, number)
    assert not match_query({"n": number}, {"n": text})
