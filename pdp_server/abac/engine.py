# (c) Copyright Datacraft, 2026
"""ABAC Policy Evaluation Engine."""
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from .models import PolicySet, PolicyRule, PolicyEffect, CombiningAlgorithm
from .conditions import ConditionEvaluator, get_condition_evaluator

logger = logging.getLogger(__name__)

CONDITION_SECTIONS = ('user', 'resource', 'tenant', 'context', 'custom')


@dataclass
class RuleResult:
	"""Result of evaluating a single rule."""
	rule_name: str
	effect: PolicyEffect
	matched: bool
	reason: str | None = None


@dataclass
class Decision:
	"""Final authorization decision for one evaluation input."""
	allowed: bool
	effect: PolicyEffect
	reason: str | None = None
	rule_results: list[RuleResult] = field(default_factory=list)
	missing_attributes: list[str] = field(default_factory=list)


class PolicyEvaluator:
	"""
	Attribute-Based Access Control evaluator.

	Evaluates a PolicySet against an evaluation input document:

		{
			"user": {"key": ..., "roles": [...], "tenants": [...], **attributes},
			"resource": {"type": ..., "key": ..., "tenant": ..., **attributes},
			"tenant": {"key": ..., **attributes},
			"action": "read",
			"context": {...},
			"custom": {...derived attributes...},
		}

	The decision is a pure function of the input and the policy set.
	Role grants from `PolicySet.roles` act as implicit allow rules and
	are considered before the explicit rules.
	"""

	def __init__(self, evaluator: ConditionEvaluator | None = None):
		self.evaluator = evaluator or get_condition_evaluator()

	def evaluate(
		self,
		policy: PolicySet,
		data: Mapping[str, Any],
		trace: bool = False,
	) -> Decision:
		"""
		Evaluate one request.

		Args:
			policy: Roles, rules and combining algorithm to apply
			data: Evaluation input document
			trace: Evaluate every rule and keep non-matching results,
				instead of stopping at the first decisive match

		Returns:
			Decision with the final authorization result
		"""
		algorithm = policy.combining_algorithm
		missing: list[str] = []
		rule_results: list[RuleResult] = []

		for result in self._iter_results(policy, data, missing):
			if result.matched or trace:
				rule_results.append(result)
			if not trace and result.matched and self._is_decisive(algorithm, result.effect):
				break

		decision = self._combine_results(algorithm, rule_results)
		decision.rule_results = rule_results if trace else [r for r in rule_results if r.matched]
		decision.missing_attributes = missing
		logger.debug(
			f"{data['user']['key']} {data['action']} {data['resource']['type']}: "
			f"{decision.effect.value} ({decision.reason})"
		)
		return decision

	def _iter_results(self, policy: PolicySet, data: Mapping[str, Any], missing: list[str]):
		resource_type = data['resource']['type']
		action = data['action']

		for role in data['user'].get('roles', []):
			if role not in policy.roles:
				continue
			granted = policy.role_grants(role, resource_type, action)
			yield RuleResult(
				rule_name=f"role:{role}",
				effect=PolicyEffect.ALLOW,
				matched=granted,
				reason=None if granted else f"role lacks {resource_type}:{action}",
			)

		for rule in policy.rules:
			yield self._evaluate_rule(rule, data, missing)

	def _evaluate_rule(
		self,
		rule: PolicyRule,
		data: Mapping[str, Any],
		missing: list[str],
	) -> RuleResult:
		"""Evaluate a single rule."""
		if not rule.matches_target(data['action'], data['resource']['type']):
			return RuleResult(rule.name, rule.effect, False, "target does not match")

		user = data['user']
		if rule.roles is not None and not set(rule.roles) & set(user.get('roles', [])):
			return RuleResult(rule.name, rule.effect, False, "user lacks required role")

		if rule.tenant_members and data['tenant']['key'] not in user.get('tenants', []):
			return RuleResult(rule.name, rule.effect, False, "user is not a tenant member")

		# All condition blocks must match for rule to apply
		for section in CONDITION_SECTIONS:
			conditions = getattr(rule, f'{section}_conditions')
			if not conditions:
				continue
			if not self.evaluator.evaluate_conditions(
				conditions,
				data.get(section) or {},
				root=data,
				prefix=f'{section}.',
				missing=missing,
			):
				return RuleResult(rule.name, rule.effect, False, f"{section} conditions do not match")

		return RuleResult(rule.name, rule.effect, True)

	def _is_decisive(self, algorithm: CombiningAlgorithm, effect: PolicyEffect) -> bool:
		if algorithm == CombiningAlgorithm.FIRST_APPLICABLE:
			return True
		if algorithm == CombiningAlgorithm.DENY_OVERRIDES:
			return effect == PolicyEffect.DENY
		return effect == PolicyEffect.ALLOW

	def _combine_results(
		self,
		algorithm: CombiningAlgorithm,
		results: list[RuleResult],
	) -> Decision:
		"""Combine rule results into final decision."""
		matched = [r for r in results if r.matched]

		if algorithm == CombiningAlgorithm.FIRST_APPLICABLE:
			if matched:
				return self._decision(matched[0])

		elif algorithm == CombiningAlgorithm.DENY_OVERRIDES:
			for result in matched:
				if result.effect == PolicyEffect.DENY:
					return self._decision(result)
			for result in matched:
				if result.effect == PolicyEffect.ALLOW:
					return self._decision(result)

		elif algorithm == CombiningAlgorithm.PERMIT_OVERRIDES:
			for result in matched:
				if result.effect == PolicyEffect.ALLOW:
					return self._decision(result)
			for result in matched:
				if result.effect == PolicyEffect.DENY:
					return self._decision(result)

		return Decision(allowed=False, effect=PolicyEffect.DENY, reason="No matching rules")

	def _decision(self, result: RuleResult) -> Decision:
		verb = 'Allowed' if result.effect == PolicyEffect.ALLOW else 'Denied'
		return Decision(
			allowed=result.effect == PolicyEffect.ALLOW,
			effect=result.effect,
			reason=f"{verb} by {result.rule_name}",
		)
