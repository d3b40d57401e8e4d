# (c) Copyright Datacraft, 2026
"""On-demand evaluation traces for debugging decisions."""
import logging

from pdp_server.abac import Decision
from pdp_server.dispatch import ShardRouter
from pdp_server.resolver import AttributeResolver
from pdp_server.schema import CheckRequest, EvaluationTrace, RuleTrace

logger = logging.getLogger(__name__)


class TraceEmitter:
	"""
	Re-runs a check with tracing enabled and exposes its internals.

	Never used on the decision path. Output is scoped to the request's
	tenant: roles and memberships from other tenants are left out, and
	stored resource attributes are only present when the resource
	belongs to that tenant.
	"""

	def __init__(self, resolver: AttributeResolver, router: ShardRouter):
		self.resolver = resolver
		self.router = router

	async def explain(self, request: CheckRequest) -> EvaluationTrace:
		tenant = await self.resolver.resolve_tenant(request.resource)
		shard = self.router.route(tenant)
		data, derived, decision = await shard.evaluate(request, tenant, trace=True)
		logger.debug(f"Explained {request.action} on {request.resource.type} for tenant {tenant}")
		return self._build_trace(tenant, data, derived.errors, decision, shard.policy.combining_algorithm.value)

	def _build_trace(
		self,
		tenant: str,
		data: dict,
		plugin_errors: dict[str, str],
		decision: Decision,
		combining_algorithm: str,
	) -> EvaluationTrace:
		user = dict(data['user'])
		user['tenants'] = [t for t in user.get('tenants', []) if t == tenant]

		return EvaluationTrace(
			tenant=tenant,
			action=data['action'],
			user=user,
			resource=data['resource'],
			tenant_attributes=data['tenant'],
			context=data['context'],
			custom=data['custom'],
			plugin_errors=plugin_errors,
			missing_attributes=decision.missing_attributes,
			rules=[
				RuleTrace(
					name=r.rule_name,
					effect=r.effect.value,
					matched=r.matched,
					reason=r.reason,
				)
				for r in decision.rule_results
			],
			combining_algorithm=combining_algorithm,
			allow=decision.allowed,
			reason=decision.reason,
		)
