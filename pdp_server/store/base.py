# (c) Copyright Datacraft, 2026
"""Read-only attribute store interface."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class TenantRecord:
	key: str
	attributes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class UserRecord:
	key: str
	attributes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RoleAssignment:
	user: str
	role: str
	tenant: str


@dataclass(frozen=True)
class ResourceRecord:
	type: str
	key: str
	tenant: str
	attributes: dict[str, Any] = field(default_factory=dict)


class AttributeStore(ABC):
	"""
	Narrow query interface over externally managed attribute data.

	The decision point never writes through this interface; consistency
	and lifecycle belong to whatever backs the store.
	"""

	@abstractmethod
	async def get_tenant(self, tenant_key: str) -> TenantRecord | None:
		...

	@abstractmethod
	async def list_tenants(self) -> list[str]:
		...

	@abstractmethod
	async def get_user(self, user_key: str) -> UserRecord | None:
		...

	@abstractmethod
	async def get_user_roles(self, user_key: str, tenant_key: str) -> list[str]:
		"""Roles assigned to the user within a single tenant."""
		...

	@abstractmethod
	async def get_user_tenants(self, user_key: str) -> list[str]:
		"""Tenants in which the user holds at least one role."""
		...

	@abstractmethod
	async def get_resource(
		self,
		resource_type: str,
		resource_key: str,
	) -> ResourceRecord | None:
		...
