# (c) Copyright Datacraft, 2026
"""Policy Decision Point facade."""
import asyncio
import logging
from typing import Any, Sequence

from pdp_server.abac import PolicySet
from pdp_server.config import Settings
from pdp_server.dispatch import BatchDispatcher, PolicyShard, ShardRouter
from pdp_server.errors import PDPError, RoutingError, CheckTimeoutError
from pdp_server.plugins import CustomAttributeRegistry, load_custom_rules
from pdp_server.resolver import AttributeResolver
from pdp_server.schema import (
	CheckRequest, CheckResult, CheckError, ErrorKind, EvaluationTrace, Resource, User
)
from pdp_server.store import AttributeStore, get_attribute_store
from pdp_server.trace import TraceEmitter

logger = logging.getLogger(__name__)


class PolicyDecisionPoint:
	"""
	Entry point for authorization checks.

	Single checks go through the same dispatch path as bulk checks, so
	routing, timeouts and error scoping behave identically.
	"""

	def __init__(
		self,
		resolver: AttributeResolver,
		router: ShardRouter,
		timeout: float = 1.0,
	):
		self.resolver = resolver
		self.router = router
		self.timeout = timeout
		self.dispatcher = BatchDispatcher(resolver, router, timeout=timeout)
		self.tracer = TraceEmitter(resolver, router)

	async def check(
		self,
		user: str | User | dict,
		action: str,
		resource: str | Resource | dict,
		context: dict[str, Any] | None = None,
	) -> CheckResult:
		"""
		Check a single permission.

		Raises:
			RoutingError: resource cannot be routed to a known tenant/shard
			CheckTimeoutError: evaluation exceeded the query timeout
		"""
		request = CheckRequest(user=user, action=action, resource=resource, context=context or {})
		return await self.check_request(request)

	async def check_request(self, request: CheckRequest) -> CheckResult:
		[outcome] = await self.dispatcher.bulk_check([request])
		if isinstance(outcome, CheckError):
			raise self._to_exception(outcome)
		return outcome

	async def bulk_check(
		self,
		requests: Sequence[CheckRequest],
		timeout: float | None = None,
	) -> list[CheckResult | CheckError]:
		return await self.dispatcher.bulk_check(requests, timeout=timeout)

	async def check_all_tenants(
		self,
		user: str | User | dict,
		action: str,
		resource: str | Resource | dict,
		context: dict[str, Any] | None = None,
	) -> list[str]:
		"""Return the tenants, among those the user belongs to, where the check is allowed."""
		request = CheckRequest(user=user, action=action, resource=resource, context=context or {})
		tenants = await self.resolver.store.get_user_tenants(request.user.key)
		requests = [
			request.model_copy(update={'resource': request.resource.model_copy(update={'tenant': tenant})})
			for tenant in tenants
		]
		outcomes = await self.bulk_check(requests)
		return [
			tenant for tenant, outcome in zip(tenants, outcomes)
			if isinstance(outcome, CheckResult) and outcome.allow
		]

	async def explain(self, request: CheckRequest) -> EvaluationTrace:
		try:
			return await asyncio.wait_for(self.tracer.explain(request), timeout=self.timeout)
		except asyncio.TimeoutError:
			raise CheckTimeoutError("Explain did not complete within the query timeout")

	def _to_exception(self, error: CheckError) -> PDPError:
		if error.error == ErrorKind.ROUTING:
			return RoutingError(error.message, tenant=error.tenant)
		if error.error == ErrorKind.TIMEOUT:
			return CheckTimeoutError(error.message, tenant=error.tenant)
		return PDPError(error.message)


def build_pdp(
	settings: Settings,
	store: AttributeStore | None = None,
	registry: CustomAttributeRegistry | None = None,
) -> PolicyDecisionPoint:
	"""Wire store, custom rules, policy sets, shards and routing from configuration."""
	store = store or get_attribute_store(settings)
	if registry is None:
		registry = CustomAttributeRegistry()
		if settings.custom_rules_path:
			load_custom_rules(settings.custom_rules_path, registry)

	resolver = AttributeResolver(store, default_tenant=settings.default_tenant)

	if settings.policy_path:
		default_policy = PolicySet.from_file(settings.policy_path)
	else:
		logger.warning("No policy configured, every check will be denied")
		default_policy = PolicySet()

	shards: dict[str, PolicyShard] = {}
	for name, shard_settings in settings.shards.items():
		shards[name] = PolicyShard(
			name=name,
			policy=PolicySet.from_file(shard_settings.policy_path)
			if shard_settings.policy_path else default_policy,
			resolver=resolver,
			registry=registry,
			max_concurrency=shard_settings.max_concurrency or settings.max_concurrency,
		)
	if settings.default_shard and settings.default_shard not in shards:
		shards[settings.default_shard] = PolicyShard(
			name=settings.default_shard,
			policy=default_policy,
			resolver=resolver,
			registry=registry,
			max_concurrency=settings.max_concurrency,
		)

	router = ShardRouter.from_assignments(
		shards,
		{name: s.tenants for name, s in settings.shards.items()},
		default_shard=settings.default_shard,
	)
	logger.info(f"Configured shards {sorted(shards)} with routes {router.routes}")
	return PolicyDecisionPoint(resolver, router, timeout=settings.query_timeout)
