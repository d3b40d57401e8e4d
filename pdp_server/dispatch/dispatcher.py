# (c) Copyright Datacraft, 2026
"""Batch dispatcher: tenant-partitioned, order-preserving bulk checks."""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Sequence

from pdp_server.errors import RoutingError
from pdp_server.resolver import AttributeResolver
from pdp_server.schema import CheckRequest, CheckResult, CheckError, ErrorKind
from .router import ShardRouter
from .shard import PolicyShard

logger = logging.getLogger(__name__)

Outcome = CheckResult | CheckError


@dataclass
class TenantGroup:
	"""Requests of one tenant, with their positions in the input batch."""
	tenant: str
	shard: PolicyShard
	items: list[tuple[int, CheckRequest]] = field(default_factory=list)


class BatchDispatcher:
	"""
	Evaluates a batch of check requests.

	Requests are grouped by tenant (stable order), each group runs on the
	shard its tenant is routed to, and results are written back by
	original index. The whole batch is bounded by `timeout`; entries
	still unresolved when it expires get a timeout marker, as do entries
	of a group that was cancelled. Failures never spread beyond the
	smallest affected unit.
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

	async def bulk_check(
		self,
		requests: Sequence[CheckRequest],
		timeout: float | None = None,
	) -> list[Outcome]:
		"""
		Evaluate requests; result[i] always corresponds to requests[i].

		Args:
			requests: Ordered check requests
			timeout: Override of the configured timeout, in seconds

		Returns:
			CheckResult or CheckError for every request
		"""
		if not requests:
			return []

		loop = asyncio.get_running_loop()
		deadline = loop.time() + (timeout if timeout is not None else self.timeout)
		results: list[Outcome | None] = [None] * len(requests)
		tenants: list[str | None] = [None] * len(requests)

		await self._resolve_tenants(requests, results, tenants, deadline)
		groups = self._group(requests, results, tenants)

		tasks = {
			asyncio.create_task(
				self._run_group(group, results),
				name=f"bulk_check_{group.tenant}",
			): group
			for group in groups
		}
		if tasks:
			remaining = max(0.0, deadline - loop.time())
			done, pending = await asyncio.wait(tasks, timeout=remaining)

			for task in pending:
				logger.warning(
					f"Checks for tenant {tasks[task].tenant} exceeded the query timeout, cancelling"
				)
				task.cancel()
			if pending:
				await asyncio.gather(*pending, return_exceptions=True)

			for task in done:
				if task.cancelled() or task.exception() is None:
					continue
				group = tasks[task]
				logger.error(
					f"Checks for tenant {group.tenant} failed: {task.exception()!r}"
				)
				for index, _ in group.items:
					if results[index] is None:
						results[index] = CheckError(
							error=ErrorKind.INTERNAL,
							message=str(task.exception()),
							tenant=group.tenant,
						)

		outcomes: list[Outcome] = []
		for index, result in enumerate(results):
			if result is None:
				result = CheckError(
					error=ErrorKind.TIMEOUT,
					message="Check did not complete within the query timeout",
					tenant=tenants[index],
				)
			outcomes.append(result)
		return outcomes

	async def _resolve_tenants(
		self,
		requests: Sequence[CheckRequest],
		results: list[Outcome | None],
		tenants: list[str | None],
		deadline: float,
	):
		"""Fill `tenants`; routing failures are written to `results`."""
		async def resolve(index: int, request: CheckRequest):
			try:
				tenants[index] = await self.resolver.resolve_tenant(request.resource)
			except RoutingError as e:
				results[index] = CheckError(error=ErrorKind.ROUTING, message=str(e), tenant=e.tenant)
			except Exception as e:
				logger.exception(f"Failed to resolve tenant for request {index}")
				results[index] = CheckError(error=ErrorKind.INTERNAL, message=str(e))

		tasks = [asyncio.create_task(resolve(i, r)) for i, r in enumerate(requests)]
		remaining = max(0.0, deadline - asyncio.get_running_loop().time())
		_, pending = await asyncio.wait(tasks, timeout=remaining)
		for task in pending:
			task.cancel()
		if pending:
			await asyncio.gather(*pending, return_exceptions=True)

	def _group(
		self,
		requests: Sequence[CheckRequest],
		results: list[Outcome | None],
		tenants: list[str | None],
	) -> list[TenantGroup]:
		groups: dict[str, TenantGroup] = {}
		for index, request in enumerate(requests):
			tenant = tenants[index]
			if tenant is None or results[index] is not None:
				continue

			group = groups.get(tenant)
			if group is None:
				try:
					shard = self.router.route(tenant)
				except RoutingError as e:
					results[index] = CheckError(error=ErrorKind.ROUTING, message=str(e), tenant=tenant)
					continue
				group = groups[tenant] = TenantGroup(tenant=tenant, shard=shard)
			group.items.append((index, request))
		return list(groups.values())

	async def _run_group(self, group: TenantGroup, results: list[Outcome | None]):
		async def run_one(index: int, request: CheckRequest):
			try:
				results[index] = await group.shard.check(request, group.tenant)
			except RoutingError as e:
				results[index] = CheckError(
					error=ErrorKind.ROUTING, message=str(e), tenant=group.tenant
				)
			except Exception as e:
				logger.exception(f"Check {index} for tenant {group.tenant} failed")
				results[index] = CheckError(
					error=ErrorKind.INTERNAL, message=str(e), tenant=group.tenant
				)

		await asyncio.gather(*(run_one(index, request) for index, request in group.items))
