# (c) Copyright Datacraft, 2026
"""Builds evaluation input documents from the attribute store."""
import logging
from copy import deepcopy
from typing import Any

from pdp_server.errors import RoutingError
from pdp_server.schema import CheckRequest, Resource
from pdp_server.store import AttributeStore

logger = logging.getLogger(__name__)


class AttributeResolver:
	"""
	Resolves the attribute snapshot for a request.

	Stored attributes are overlaid with the request's inline attributes.
	Every document is a fresh copy, so inline values never leak into the
	store or into other requests.
	"""

	def __init__(self, store: AttributeStore, default_tenant: str = 'default'):
		self.store = store
		self.default_tenant = default_tenant

	async def resolve_tenant(self, resource: Resource) -> str:
		"""
		Resolve the single tenant owning a resource.

		Order: explicit resource.tenant, the stored instance's tenant,
		the configured default tenant.
		"""
		stored_tenant = None
		if resource.key:
			record = await self.store.get_resource(resource.type, resource.key)
			if record is not None:
				stored_tenant = record.tenant

		if resource.tenant and stored_tenant and resource.tenant != stored_tenant:
			raise RoutingError(
				f"Resource {resource.type}:{resource.key} belongs to tenant "
				f"{stored_tenant}, not {resource.tenant}",
				tenant=resource.tenant,
			)
		return resource.tenant or stored_tenant or self.default_tenant

	async def resolve(self, request: CheckRequest, tenant: str) -> dict[str, Any]:
		"""Build the evaluation input for a request routed to `tenant`."""
		tenant_record = await self.store.get_tenant(tenant)
		if tenant_record is None:
			raise RoutingError(f"Unknown tenant: {tenant}", tenant=tenant)

		user = request.user
		user_record = await self.store.get_user(user.key)
		roles = await self.store.get_user_roles(user.key, tenant)
		tenants = await self.store.get_user_tenants(user.key)

		user_doc: dict[str, Any] = {}
		if user_record is not None:
			user_doc.update(deepcopy(user_record.attributes))
		user_doc.update(deepcopy(user.attributes))
		user_doc.update(key=user.key, roles=list(roles), tenants=list(tenants))

		resource = request.resource
		resource_doc: dict[str, Any] = {}
		if resource.key:
			record = await self.store.get_resource(resource.type, resource.key)
			if record is not None and record.tenant == tenant:
				resource_doc.update(deepcopy(record.attributes))
		resource_doc.update(deepcopy(resource.attributes))
		resource_doc.update(type=resource.type, key=resource.key, tenant=tenant)

		tenant_doc = deepcopy(tenant_record.attributes)
		tenant_doc['key'] = tenant_record.key

		return {
			'user': user_doc,
			'resource': resource_doc,
			'tenant': tenant_doc,
			'action': request.action,
			'context': deepcopy(request.context),
			'custom': {},
		}
