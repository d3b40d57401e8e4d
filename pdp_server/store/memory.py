# (c) Copyright Datacraft, 2026
"""In-memory attribute store, seeded from a dict or JSON file."""
import json
import logging
from pathlib import Path
from typing import Any, Iterable

from .base import (
	AttributeStore, TenantRecord, UserRecord, RoleAssignment, ResourceRecord
)

logger = logging.getLogger(__name__)


class InMemoryAttributeStore(AttributeStore):
	"""
	Attribute store kept in process memory.

	Seed format:
	{
		"tenants": [{"key": "default", "attributes": {}}],
		"users": [{"key": "john@doe.com", "attributes": {"dept": "eng"}}],
		"role_assignments": [{"user": "john@doe.com", "role": "viewer", "tenant": "default"}],
		"resources": [{"type": "document", "key": "doc-1", "tenant": "default", "attributes": {}}]
	}
	"""

	def __init__(
		self,
		tenants: Iterable[TenantRecord] = (),
		users: Iterable[UserRecord] = (),
		role_assignments: Iterable[RoleAssignment] = (),
		resources: Iterable[ResourceRecord] = (),
	):
		self._tenants = {t.key: t for t in tenants}
		self._users = {u.key: u for u in users}
		self._assignments = list(role_assignments)
		self._resources = {(r.type, r.key): r for r in resources}

	@classmethod
	def from_dict(cls, data: dict[str, Any]) -> "InMemoryAttributeStore":
		return cls(
			tenants=[TenantRecord(**t) for t in data.get('tenants', [])],
			users=[UserRecord(**u) for u in data.get('users', [])],
			role_assignments=[
				RoleAssignment(**a) for a in data.get('role_assignments', [])
			],
			resources=[ResourceRecord(**r) for r in data.get('resources', [])],
		)

	@classmethod
	def from_file(cls, path: str | Path) -> "InMemoryAttributeStore":
		data = json.loads(Path(path).read_text())
		store = cls.from_dict(data)
		logger.info(
			f"Loaded attribute data from {path}: {len(store._tenants)} tenants, "
			f"{len(store._users)} users, {len(store._resources)} resources"
		)
		return store

	async def get_tenant(self, tenant_key: str) -> TenantRecord | None:
		return self._tenants.get(tenant_key)

	async def list_tenants(self) -> list[str]:
		return sorted(self._tenants)

	async def get_user(self, user_key: str) -> UserRecord | None:
		return self._users.get(user_key)

	async def get_user_roles(self, user_key: str, tenant_key: str) -> list[str]:
		return sorted({
			a.role for a in self._assignments
			if a.user == user_key and a.tenant == tenant_key
		})

	async def get_user_tenants(self, user_key: str) -> list[str]:
		return sorted({a.tenant for a in self._assignments if a.user == user_key})

	async def get_resource(
		self,
		resource_type: str,
		resource_key: str,
	) -> ResourceRecord | None:
		return self._resources.get((resource_type, resource_key))
