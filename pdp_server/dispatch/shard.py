# (c) Copyright Datacraft, 2026
"""Policy shard: one independently addressable evaluation instance."""
import asyncio
import logging
from typing import Any

from pdp_server.abac import PolicyEvaluator, PolicySet, Decision
from pdp_server.plugins import CustomAttributeRegistry, DerivedAttributes
from pdp_server.resolver import AttributeResolver
from pdp_server.schema import CheckRequest, CheckResult

logger = logging.getLogger(__name__)


class PolicyShard:
	"""
	Evaluates requests for the tenants routed to it.

	Each shard limits its own in-flight evaluations, so a tenant with
	heavy traffic on one shard cannot starve tenants on another.
	"""

	def __init__(
		self,
		name: str,
		policy: PolicySet,
		resolver: AttributeResolver,
		registry: CustomAttributeRegistry | None = None,
		evaluator: PolicyEvaluator | None = None,
		max_concurrency: int = 64,
	):
		self.name = name
		self.policy = policy
		self.resolver = resolver
		self.registry = registry or CustomAttributeRegistry()
		self.evaluator = evaluator or PolicyEvaluator()
		self.max_concurrency = max_concurrency
		self._semaphore = asyncio.Semaphore(max_concurrency)

	async def prepare(
		self,
		request: CheckRequest,
		tenant: str,
	) -> tuple[dict[str, Any], DerivedAttributes]:
		"""Resolve attributes and derived custom attributes for a request."""
		data = await self.resolver.resolve(request, tenant)
		derived = self.registry.compute(data['user'], data['resource'])
		data['custom'] = derived.values
		return data, derived

	async def evaluate(
		self,
		request: CheckRequest,
		tenant: str,
		trace: bool = False,
	) -> tuple[dict[str, Any], DerivedAttributes, Decision]:
		async with self._semaphore:
			data, derived = await self.prepare(request, tenant)
			decision = self.evaluator.evaluate(self.policy, data, trace=trace)
		return data, derived, decision

	async def check(self, request: CheckRequest, tenant: str) -> CheckResult:
		_, _, decision = await self.evaluate(request, tenant)
		return CheckResult(allow=decision.allowed, tenant=tenant, reason=decision.reason)

	def __repr__(self):
		return f"PolicyShard({self.name})"
