# (c) Copyright Datacraft, 2026
"""SQLAlchemy-backed attribute store."""
import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from pdp_server.db import models
from .base import (
	AttributeStore, TenantRecord, UserRecord, ResourceRecord
)

logger = logging.getLogger(__name__)


class SQLAttributeStore(AttributeStore):
	"""
	Reads attribute snapshots from the pdp_* tables.

	Only SELECT statements are issued; rows are maintained by an
	external administrative process. Each query runs in a worker thread,
	so the event loop keeps running while it is in flight.
	"""

	def __init__(self, session_factory: sessionmaker[Session]):
		self.session_factory = session_factory

	async def get_tenant(self, tenant_key: str) -> TenantRecord | None:
		return await asyncio.to_thread(self._get_tenant, tenant_key)

	async def list_tenants(self) -> list[str]:
		return await asyncio.to_thread(self._list_tenants)

	async def get_user(self, user_key: str) -> UserRecord | None:
		return await asyncio.to_thread(self._get_user, user_key)

	async def get_user_roles(self, user_key: str, tenant_key: str) -> list[str]:
		return await asyncio.to_thread(self._get_user_roles, user_key, tenant_key)

	async def get_user_tenants(self, user_key: str) -> list[str]:
		return await asyncio.to_thread(self._get_user_tenants, user_key)

	async def get_resource(
		self,
		resource_type: str,
		resource_key: str,
	) -> ResourceRecord | None:
		return await asyncio.to_thread(self._get_resource, resource_type, resource_key)

	def _get_tenant(self, tenant_key: str) -> TenantRecord | None:
		with self.session_factory() as db:
			tenant = db.get(models.Tenant, tenant_key)
			if tenant is None:
				return None
			return TenantRecord(key=tenant.key, attributes=dict(tenant.attributes or {}))

	def _list_tenants(self) -> list[str]:
		stmt = select(models.Tenant.key).order_by(models.Tenant.key)
		with self.session_factory() as db:
			return list(db.scalars(stmt))

	def _get_user(self, user_key: str) -> UserRecord | None:
		with self.session_factory() as db:
			user = db.get(models.User, user_key)
			if user is None:
				return None
			return UserRecord(key=user.key, attributes=dict(user.attributes or {}))

	def _get_user_roles(self, user_key: str, tenant_key: str) -> list[str]:
		stmt = (
			select(models.RoleAssignment.role)
			.where(
				models.RoleAssignment.user_key == user_key,
				models.RoleAssignment.tenant_key == tenant_key,
			)
			.distinct()
			.order_by(models.RoleAssignment.role)
		)
		with self.session_factory() as db:
			return list(db.scalars(stmt))

	def _get_user_tenants(self, user_key: str) -> list[str]:
		stmt = (
			select(models.RoleAssignment.tenant_key)
			.where(models.RoleAssignment.user_key == user_key)
			.distinct()
			.order_by(models.RoleAssignment.tenant_key)
		)
		with self.session_factory() as db:
			return list(db.scalars(stmt))

	def _get_resource(self, resource_type: str, resource_key: str) -> ResourceRecord | None:
		stmt = select(models.ResourceInstance).where(
			models.ResourceInstance.resource_type == resource_type,
			models.ResourceInstance.key == resource_key,
		)
		with self.session_factory() as db:
			instance = db.scalar(stmt)
			if instance is None:
				return None
			return ResourceRecord(
				type=instance.resource_type,
				key=instance.key,
				tenant=instance.tenant_key,
				attributes=dict(instance.attributes or {}),
			)
