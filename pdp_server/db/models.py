# (c) Copyright Datacraft, 2026
"""Tables backing the SQL attribute store."""
import uuid
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import String, ForeignKey, Index, UniqueConstraint, JSON, Uuid, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Tenant(Base):
	"""Isolation boundary scoping users, resources and shards."""

	__tablename__ = "pdp_tenants"

	key: Mapped[str] = mapped_column(String(100), primary_key=True)
	attributes: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
	created_at: Mapped[datetime] = mapped_column(
		DateTime(timezone=True), server_default=func.now()
	)

	def __repr__(self):
		return f"Tenant({self.key})"


class User(Base):
	__tablename__ = "pdp_users"

	key: Mapped[str] = mapped_column(String(255), primary_key=True)
	attributes: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
	created_at: Mapped[datetime] = mapped_column(
		DateTime(timezone=True), server_default=func.now()
	)

	def __repr__(self):
		return f"User({self.key})"


class RoleAssignment(Base):
	"""Role granted to a user within one tenant."""

	__tablename__ = "pdp_role_assignments"

	id: Mapped[UUID] = mapped_column(
		Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
	)
	user_key: Mapped[str] = mapped_column(
		ForeignKey("pdp_users.key", ondelete="CASCADE"),
		nullable=False,
	)
	role: Mapped[str] = mapped_column(String(100), nullable=False)
	tenant_key: Mapped[str] = mapped_column(
		ForeignKey("pdp_tenants.key", ondelete="CASCADE"),
		nullable=False,
	)

	__table_args__ = (
		UniqueConstraint("user_key", "role", "tenant_key", name="uq_role_assignment"),
		Index("idx_role_assignment_user_tenant", "user_key", "tenant_key"),
	)

	def __repr__(self):
		return f"RoleAssignment({self.user_key} is {self.role} in {self.tenant_key})"


class ResourceInstance(Base):
	"""Stored resource instance with its owning tenant."""

	__tablename__ = "pdp_resource_instances"

	id: Mapped[UUID] = mapped_column(
		Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
	)
	resource_type: Mapped[str] = mapped_column(String(100), nullable=False)
	key: Mapped[str] = mapped_column(String(255), nullable=False)
	tenant_key: Mapped[str] = mapped_column(
		ForeignKey("pdp_tenants.key", ondelete="CASCADE"),
		nullable=False,
	)
	attributes: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

	__table_args__ = (
		UniqueConstraint("resource_type", "key", name="uq_resource_instance"),
		Index("idx_resource_instance_tenant", "tenant_key"),
	)

	def __repr__(self):
		return f"ResourceInstance({self.resource_type}:{self.key})"
