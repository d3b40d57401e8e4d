# (c) Copyright Datacraft, 2026
"""Policy definitions evaluated by the decision point."""
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from pdp_server.errors import PolicyLoadError

logger = logging.getLogger(__name__)

WILDCARD = '*'


class PolicyEffect(str, Enum):
	"""Effect of a policy rule."""
	ALLOW = 'allow'
	DENY = 'deny'


class CombiningAlgorithm(str, Enum):
	"""Rule combining algorithms."""
	DENY_OVERRIDES = 'deny_overrides'
	PERMIT_OVERRIDES = 'permit_overrides'
	FIRST_APPLICABLE = 'first_applicable'


class PolicyRule(BaseModel):
	"""
	Single ABAC rule.

	A rule applies when action and resource type match its target, the
	user holds one of `roles` (if given) in the request tenant, the user
	belongs to the resource tenant (if `tenant_members`), and every
	condition block matches. Rules may also be written as `policy_text`,
	which is compiled into the same fields when the rule is loaded.
	"""
	model_config = ConfigDict(frozen=True)

	name: str
	effect: PolicyEffect = PolicyEffect.ALLOW
	actions: list[str] = Field(default_factory=lambda: [WILDCARD])
	resource_types: list[str] = Field(default_factory=list)
	roles: list[str] | None = None
	tenant_members: bool = False
	user_conditions: dict[str, Any] | None = None
	resource_conditions: dict[str, Any] | None = None
	tenant_conditions: dict[str, Any] | None = None
	context_conditions: dict[str, Any] | None = None
	custom_conditions: dict[str, Any] | None = None
	policy_text: str | None = None

	@model_validator(mode='before')
	@classmethod
	def _compile_policy_text(cls, data: Any) -> Any:
		if not isinstance(data, dict) or not data.get('policy_text'):
			return data
		from .parser import PolicyParser

		parser = PolicyParser()
		compiled = parser.to_dict(parser.parse(data['policy_text']))
		# explicit fields win over compiled text
		return {**compiled, **{k: v for k, v in data.items() if v is not None}}

	def matches_target(self, action: str, resource_type: str) -> bool:
		if WILDCARD not in self.actions and action not in self.actions:
			return False
		if self.resource_types and WILDCARD not in self.resource_types:
			return resource_type in self.resource_types
		return True


class PolicySet(BaseModel):
	"""Roles, rules and combining algorithm served by one shard."""
	model_config = ConfigDict(frozen=True)

	roles: dict[str, list[str]] = Field(default_factory=dict)
	rules: list[PolicyRule] = Field(default_factory=list)
	combining_algorithm: CombiningAlgorithm = CombiningAlgorithm.DENY_OVERRIDES

	@field_validator('roles')
	@classmethod
	def _check_permissions(cls, roles: dict[str, list[str]]) -> dict[str, list[str]]:
		for role, permissions in roles.items():
			for permission in permissions:
				if permission.count(':') != 1:
					raise ValueError(
						f"Permission '{permission}' of role '{role}' must be <resource_type>:<action>"
					)
		return roles

	def role_grants(self, role: str, resource_type: str, action: str) -> bool:
		"""Check if a role's permissions cover resource_type:action."""
		for permission in self.roles.get(role, []):
			perm_type, perm_action = permission.split(':')
			if perm_type in (resource_type, WILDCARD) and perm_action in (action, WILDCARD):
				return True
		return False

	@classmethod
	def from_file(cls, path: str | Path) -> "PolicySet":
		try:
			data = json.loads(Path(path).read_text())
			policy = cls.model_validate(data)
		except (OSError, json.JSONDecodeError, ValidationError) as e:
			raise PolicyLoadError(f"Cannot load policy set from {path}: {e}") from e
		logger.info(
			f"Loaded policy set from {path}: {len(policy.roles)} roles, {len(policy.rules)} rules"
		)
		return policy
