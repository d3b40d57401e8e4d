# (c) Copyright Datacraft, 2026
"""Static tenant to shard routing table."""
import logging
from typing import Mapping

from pdp_server.errors import RoutingError
from .shard import PolicyShard

logger = logging.getLogger(__name__)


class ShardRouter:
	"""
	Routes tenants to shards using a table fixed at configuration time.

	Tenants absent from the table go to the fallback shard, if one is
	configured; otherwise routing fails for that request.
	"""

	def __init__(
		self,
		shards: Mapping[str, PolicyShard],
		routes: Mapping[str, str] | None = None,
		default_shard: str | None = None,
	):
		self.shards = dict(shards)
		self.default_shard = default_shard
		self._routes: dict[str, str] = {}

		for tenant, shard_name in (routes or {}).items():
			if shard_name not in self.shards:
				raise ValueError(f"Tenant {tenant} routed to unknown shard {shard_name}")
			self._routes[tenant] = shard_name

		if default_shard is not None and default_shard not in self.shards:
			raise ValueError(f"Default shard {default_shard} is not configured")

	@classmethod
	def from_assignments(
		cls,
		shards: Mapping[str, PolicyShard],
		assignments: Mapping[str, list[str]],
		default_shard: str | None = None,
	) -> "ShardRouter":
		"""Build from shard name -> tenants; a tenant may belong to one shard only."""
		routes: dict[str, str] = {}
		for shard_name, tenants in assignments.items():
			for tenant in tenants:
				if tenant in routes:
					raise ValueError(
						f"Tenant {tenant} assigned to both {routes[tenant]} and {shard_name}"
					)
				routes[tenant] = shard_name
		return cls(shards, routes, default_shard)

	@property
	def routes(self) -> dict[str, str]:
		return dict(self._routes)

	def route(self, tenant: str) -> PolicyShard:
		shard_name = self._routes.get(tenant, self.default_shard)
		if shard_name is None:
			raise RoutingError(f"No shard serves tenant {tenant}", tenant=tenant)
		return self.shards[shard_name]
