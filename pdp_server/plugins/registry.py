# (c) Copyright Datacraft, 2026
"""Registry of custom derived-attribute rules."""
import logging
from copy import deepcopy
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping

from pdp_server.errors import PluginRegistrationError, PluginExecutionError

logger = logging.getLogger(__name__)

# The only package/rule pair the evaluator looks up
CUSTOM_PACKAGE = 'permit.custom'
CUSTOM_RULE = 'custom_attributes'
CUSTOM_RULE_KEY = (CUSTOM_PACKAGE, CUSTOM_RULE)

RuleFunc = Callable[[Mapping[str, Any], Mapping[str, Any]], Any]


@dataclass(frozen=True)
class CustomAttributeRule:
	"""Side-effect-free function deriving one attribute from user and resource attributes."""
	name: str
	func: RuleFunc
	default: Any = False


@dataclass
class DerivedAttributes:
	"""Values computed for one check, plus per-rule failures."""
	values: dict[str, Any] = field(default_factory=dict)
	errors: dict[str, str] = field(default_factory=dict)


def custom_attribute(name: str | None = None, default: Any = False):
	"""Decorator turning a function into a CustomAttributeRule."""
	def wrap(func: RuleFunc) -> CustomAttributeRule:
		return CustomAttributeRule(name=name or func.__name__, func=func, default=default)
	return wrap


def _normalize(rules: Mapping[str, RuleFunc] | Iterable[CustomAttributeRule]) -> list[CustomAttributeRule]:
	if isinstance(rules, Mapping):
		return [CustomAttributeRule(name=name, func=func) for name, func in rules.items()]

	normalized = []
	for rule in rules:
		if not isinstance(rule, CustomAttributeRule):
			raise PluginRegistrationError(f"Expected CustomAttributeRule, got {type(rule).__name__}")
		normalized.append(rule)
	return normalized


class CustomAttributeRegistry:
	"""
	Maps the well-known (package, rule) key to derived-attribute rules.

	Rules are invoked on every check with fresh read-only copies of the
	user and resource attributes, so nothing carries over between calls.
	A failing rule yields its default; other rules are unaffected.
	"""

	def __init__(self):
		self._rules: dict[tuple[str, str], tuple[CustomAttributeRule, ...]] = {}

	def register(
		self,
		package: str,
		rule_name: str,
		rules: Mapping[str, RuleFunc] | Iterable[CustomAttributeRule],
	) -> None:
		key = (package, rule_name)
		if key != CUSTOM_RULE_KEY:
			raise PluginRegistrationError(
				f"Custom rules must be registered as {CUSTOM_PACKAGE}.{CUSTOM_RULE}, got {package}.{rule_name}"
			)

		existing = list(self._rules.get(key, ()))
		names = {r.name for r in existing}
		for rule in _normalize(rules):
			if not callable(rule.func):
				raise PluginRegistrationError(f"Custom attribute rule '{rule.name}' is not callable")
			if rule.name in names:
				raise PluginRegistrationError(f"Custom attribute rule '{rule.name}' is already registered")
			names.add(rule.name)
			existing.append(rule)

		self._rules[key] = tuple(existing)
		logger.info(f"Registered custom attribute rules: {sorted(names)}")

	@property
	def rules(self) -> tuple[CustomAttributeRule, ...]:
		return self._rules.get(CUSTOM_RULE_KEY, ())

	def compute(
		self,
		user_attributes: Mapping[str, Any],
		resource_attributes: Mapping[str, Any],
	) -> DerivedAttributes:
		"""Run every registered rule against the current attribute view."""
		derived = DerivedAttributes()

		for rule in self.rules:
			user_view = MappingProxyType(deepcopy(dict(user_attributes)))
			resource_view = MappingProxyType(deepcopy(dict(resource_attributes)))
			try:
				derived.values[rule.name] = rule.func(user_view, resource_view)
			except Exception as e:
				error = PluginExecutionError(rule.name, e)
				logger.warning(str(error))
				derived.values[rule.name] = deepcopy(rule.default)
				derived.errors[rule.name] = str(error)

		return derived
