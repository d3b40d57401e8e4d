# (c) Copyright Datacraft, 2026
"""Database module for the SQL attribute store."""
from .base import Base
from .models import Tenant, User, RoleAssignment, ResourceInstance
from .engine import get_engine, get_session_factory

__all__ = [
	'Base',
	'Tenant',
	'User',
	'RoleAssignment',
	'ResourceInstance',
	'get_engine',
	'get_session_factory',
]
