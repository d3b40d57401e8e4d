"""Tests for ABAC condition evaluation."""

from pdp_server.abac import ConditionEvaluator


def test_operators():
    evaluator = ConditionEvaluator()
    attrs = {"level": 3, "roles": ["a", "b"], "name": "report.pdf", "ip": "10.1.2.3"}

    assert evaluator.evaluate_conditions({"level": {"gte": 3, "lt": 5}}, attrs)
    assert evaluator.evaluate_conditions({"roles": {"any_of": ["b", "z"]}}, attrs)
    assert not evaluator.evaluate_conditions({"roles": {"all_of": ["a", "z"]}}, attrs)
    assert evaluator.evaluate_conditions({"name": {"ends_with": ".pdf"}}, attrs)
    assert evaluator.evaluate_conditions({"ip": {"ip_in_range": "10.0.0.0/8"}}, attrs)
    assert not evaluator.evaluate_conditions({"level": {"unknown_op": 1}}, attrs)


def test_or_logic():
    evaluator = ConditionEvaluator()
    conditions = {"_logic": "or", "level": {"gt": 10}, "name": "report.pdf"}

    assert evaluator.evaluate_conditions(conditions, {"level": 1, "name": "report.pdf"})
    assert "_logic" in conditions


def test_reference_to_other_section():
    evaluator = ConditionEvaluator()
    root = {"user": {"key": "u1"}, "resource": {"owners": ["u1", "u2"]}}
    conditions = {"owners": {"contains": {"$ref": "user.key"}}}

    assert evaluator.evaluate_conditions(conditions, root["resource"], root=root)

    root["user"]["key"] = "u3"
    assert not evaluator.evaluate_conditions(conditions, root["resource"], root=root)


def test_missing_attribute_does_not_match_and_is_recorded():
    evaluator = ConditionEvaluator()
    missing: list[str] = []

    assert not evaluator.evaluate_conditions(
        {"clearance": {"gte": 1}}, {}, prefix="user.", missing=missing
    )
    assert not evaluator.evaluate_conditions(
        {"clearance": {"neq": 1}}, {}, prefix="user.", missing=missing
    )
    assert missing == ["user.clearance"]


def test_missing_reference_does_not_match():
    evaluator = ConditionEvaluator()
    missing: list[str] = []
    root = {"user": {}, "resource": {"owner": "u1"}}

    assert not evaluator.evaluate_conditions(
        {"owner": {"$ref": "user.key"}}, root["resource"], root=root, missing=missing
    )
    assert missing == ["user.key"]


def test_presence_operators_observe_absence():
    evaluator = ConditionEvaluator()

    assert evaluator.evaluate_conditions({"flag": {"exists": False}}, {})
    assert evaluator.evaluate_conditions({"flag": {"not_exists": True}}, {})
    assert evaluator.evaluate_conditions({"flag": {"exists": True}}, {"flag": 0})


def test_nested_path():
    evaluator = ConditionEvaluator()

    assert evaluator.evaluate_conditions({"address.country": "KE"}, {"address": {"country": "KE"}})
    assert not evaluator.evaluate_conditions({"address.city": "Nairobi"}, {"address": {"country": "KE"}})


def test_time_between_accepts_iso_strings():
    evaluator = ConditionEvaluator()

    assert evaluator.evaluate_conditions({"time": {"time_between": ["22:00", "06:00"]}}, {"time": "23:30"})
    assert not evaluator.evaluate_conditions({"time": {"time_between": ["09:00", "17:00"]}}, {"time": "23:30"})


def test_unhashable_items_do_not_match():
    evaluator = ConditionEvaluator()
    attrs = {"grid": [[1, 2], [3]], "labels": [{"k": "v"}], "tags": {"a", "b"}}

    assert not evaluator.evaluate_conditions({"grid": {"any_of": [1, 2]}}, attrs)
    assert not evaluator.evaluate_conditions({"grid": {"all_of": [1]}}, attrs)
    assert not evaluator.evaluate_conditions({"labels": {"none_of": ["x"]}}, attrs)
    assert not evaluator.evaluate_conditions({"tags": {"contains": ["a"]}}, attrs)
    assert not evaluator.evaluate_conditions({"tags": {"not_contains": ["a"]}}, attrs)
    assert evaluator.evaluate_conditions({"tags": {"any_of": ["a", "z"]}}, attrs)
