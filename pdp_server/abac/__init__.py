# (c) Copyright Datacraft, 2026
"""Attribute-Based Access Control (ABAC) policy evaluation."""
from .engine import PolicyEvaluator, Decision, RuleResult
from .models import PolicySet, PolicyRule, PolicyEffect, CombiningAlgorithm
from .conditions import ConditionEvaluator
from .parser import PolicyParser

__all__ = [
	'PolicyEvaluator',
	'Decision',
	'RuleResult',
	'PolicySet',
	'PolicyRule',
	'PolicyEffect',
	'CombiningAlgorithm',
	'ConditionEvaluator',
	'PolicyParser',
]
