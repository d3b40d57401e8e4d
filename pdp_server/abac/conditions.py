# (c) Copyright Datacraft, 2026
"""Condition DSL shared by every rule section."""
import logging
import operator
import re
from datetime import datetime, time
from functools import partial, wraps
from ipaddress import ip_address, ip_network
from typing import Any, Callable, Mapping

from pdp_server.errors import MissingAttributeError

logger = logging.getLogger(__name__)

REF_KEY = '$ref'

# Operators that observe absence directly instead of failing on it
PRESENCE_OPERATORS = frozenset({'exists', 'not_exists'})

_ABSENT = object()
_COLLECTIONS = (list, tuple, set, frozenset)

OperatorFunc = Callable[[Any, Any], bool]


def get_path(data: Mapping[str, Any], path: str) -> Any:
	"""
	Get nested value using dot notation.

	Raises MissingAttributeError when any segment is absent. A present
	key holding None is returned as None.
	"""
	value: Any = data
	for key in path.split('.'):
		if isinstance(value, Mapping) and key in value:
			value = value[key]
		else:
			raise MissingAttributeError(path)
	return value


def is_ref(value: Any) -> bool:
	return isinstance(value, Mapping) and set(value) == {REF_KEY}


def _ordered(compare: Callable[[Any, Any], bool], value: Any, expected: Any) -> bool:
	if value is None:
		return False
	try:
		return compare(value, expected)
	except TypeError:
		return False


def _as_collection(expected: Any) -> Any:
	return expected if isinstance(expected, _COLLECTIONS) else [expected]


def _unhashable_is_false(func: OperatorFunc) -> OperatorFunc:
	"""Set-based checks on unhashable items (nested lists, dicts) do not match."""
	@wraps(func)
	def check(value: Any, expected: Any) -> bool:
		try:
			return func(value, expected)
		except TypeError:
			return False
	return check


@_unhashable_is_false
def _member(value: Any, expected: Any) -> bool:
	if isinstance(expected, str):
		return isinstance(value, str) and value in expected
	return isinstance(expected, _COLLECTIONS) and value in expected


@_unhashable_is_false
def _contains(value: Any, expected: Any) -> bool:
	if isinstance(value, str):
		return isinstance(expected, str) and expected in value
	return isinstance(value, _COLLECTIONS) and expected in value


def _text(method: str, value: Any, expected: Any) -> bool:
	return isinstance(value, str) and isinstance(expected, str) and getattr(value, method)(expected)


def _regex(value: Any, pattern: str) -> bool:
	if not isinstance(value, str):
		return False
	try:
		return re.match(pattern, value) is not None
	except re.error:
		logger.error(f"Invalid regex pattern: {pattern}")
		return False


def _between(value: Any, bounds: Any) -> bool:
	if value is None or not isinstance(bounds, (list, tuple)) or len(bounds) != 2:
		return False
	low, high = bounds
	try:
		return low <= value <= high
	except TypeError:
		return False


@_unhashable_is_false
def _overlap(value: Any, expected: Any) -> bool:
	expected = _as_collection(expected)
	if isinstance(value, _COLLECTIONS):
		return not set(value).isdisjoint(expected)
	return value in expected


@_unhashable_is_false
def _superset(value: Any, expected: Any) -> bool:
	return isinstance(value, _COLLECTIONS) and set(value).issuperset(_as_collection(expected))


def _in_network(value: Any, networks: str | list[str]) -> bool:
	"""Address falls in one of the given CIDR blocks."""
	if not value:
		return False
	if isinstance(networks, str):
		networks = [networks]
	try:
		address = ip_address(value)
		return any(address in ip_network(cidr, strict=False) for cidr in networks)
	except ValueError as e:
		logger.error(f"Invalid IP/CIDR: {e}")
		return False


def _clock_time(value: Any) -> time | None:
	if isinstance(value, datetime):
		return value.time()
	if isinstance(value, time):
		return value
	if isinstance(value, str):
		return time.fromisoformat(value)
	return None


def _within_hours(value: Any, window: Any) -> bool:
	"""HH:MM window; a start later than the end wraps past midnight."""
	if not isinstance(window, (list, tuple)) or len(window) != 2:
		return False
	try:
		now = _clock_time(value)
		start, end = (time.fromisoformat(bound) for bound in window)
	except ValueError as e:
		logger.error(f"Invalid time format: {e}")
		return False
	if now is None:
		return False
	if start <= end:
		return start <= now <= end
	return now >= start or now <= end


def _negate(func: OperatorFunc) -> OperatorFunc:
	check = getattr(func, '__wrapped__', func)
	return _unhashable_is_false(lambda value, expected: not check(value, expected))


OPERATORS: dict[str, OperatorFunc] = {
	'eq': operator.eq,
	'neq': operator.ne,
	'gt': partial(_ordered, operator.gt),
	'gte': partial(_ordered, operator.ge),
	'lt': partial(_ordered, operator.lt),
	'lte': partial(_ordered, operator.le),
	'in': _member,
	'not_in': _negate(_member),
	'contains': _contains,
	'not_contains': _negate(_contains),
	'starts_with': partial(_text, 'startswith'),
	'ends_with': partial(_text, 'endswith'),
	'matches': _regex,
	'exists': lambda value, expected: (value is not None) == expected,
	'not_exists': lambda value, expected: (value is None) == expected,
	'between': _between,
	'any_of': _overlap,
	'all_of': _superset,
	'none_of': _negate(_overlap),
	'ip_in_range': _in_network,
	'time_between': _within_hours,
}


class ConditionEvaluator:
	"""
	Evaluates ABAC conditions against attributes.

	Stateless: condition dicts are never modified, so the same policy
	objects can be evaluated concurrently.
	"""

	def __init__(self, operators: Mapping[str, OperatorFunc] | None = None):
		self._operators = dict(OPERATORS if operators is None else operators)

	@property
	def operators(self) -> frozenset[str]:
		return frozenset(self._operators)

	def evaluate_conditions(
		self,
		conditions: Mapping[str, Any] | None,
		attributes: Mapping[str, Any],
		root: Mapping[str, Any] | None = None,
		prefix: str = '',
		missing: list[str] | None = None,
	) -> bool:
		"""
		Evaluate a set of conditions against attributes.

		Condition format:
		{
			"attribute_name": {"operator": "value"},
			"roles": {"any_of": ["admin", "manager"]},
			"owners": {"contains": {"$ref": "user.key"}},
			"_logic": "and"  # or "or", default is "and"
		}

		`$ref` values are resolved against `root` (the full evaluation
		input). A condition on an absent attribute does not match; its
		path is appended to `missing`.
		"""
		if not conditions:
			return True

		root = attributes if root is None else root
		results = [
			self._evaluate_attribute(name, condition, attributes, root, prefix, missing)
			for name, condition in conditions.items()
			if not name.startswith('_')
		]
		if not results:
			return True

		if str(conditions.get('_logic', 'and')).lower() == 'or':
			return any(results)
		return all(results)

	def _evaluate_attribute(
		self,
		attr_name: str,
		condition: Any,
		attributes: Mapping[str, Any],
		root: Mapping[str, Any],
		prefix: str,
		missing: list[str] | None,
	) -> bool:
		try:
			attr_value = get_path(attributes, attr_name)
		except MissingAttributeError:
			if isinstance(condition, Mapping) and condition and set(condition) <= PRESENCE_OPERATORS:
				attr_value = _ABSENT
			else:
				self._record_missing(missing, f"{prefix}{attr_name}")
				return False

		try:
			return self._evaluate_single(attr_value, condition, root)
		except MissingAttributeError as e:
			self._record_missing(missing, e.path)
			return False

	def _record_missing(self, missing: list[str] | None, path: str):
		logger.debug(f"Attribute {path} is missing, condition does not match")
		if missing is not None and path not in missing:
			missing.append(path)

	def _resolve(self, expected: Any, root: Mapping[str, Any]) -> Any:
		if is_ref(expected):
			return get_path(root, expected[REF_KEY])
		return expected

	def _evaluate_single(
		self,
		attr_value: Any,
		condition: Mapping[str, Any] | Any,
		root: Mapping[str, Any],
	) -> bool:
		"""Evaluate a single condition."""
		# Simple equality if condition is not an operator dict
		if not isinstance(condition, Mapping) or is_ref(condition):
			return attr_value == self._resolve(condition, root)

		for name, expected in condition.items():
			func = self._operators.get(name)
			if func is None:
				logger.warning(f"Unknown operator: {name}")
				return False

			if name in PRESENCE_OPERATORS:
				matched = func(None if attr_value is _ABSENT else attr_value, expected)
			else:
				matched = func(attr_value, self._resolve(expected, root))
			if not matched:
				return False
		return True


_evaluator = ConditionEvaluator()


def get_condition_evaluator() -> ConditionEvaluator:
	return _evaluator
