# (c) Copyright Datacraft, 2026
"""Tenant-sharded dispatch of check requests."""
from .shard import PolicyShard
from .router import ShardRouter
from .dispatcher import BatchDispatcher, TenantGroup

__all__ = [
	'PolicyShard',
	'ShardRouter',
	'BatchDispatcher',
	'TenantGroup',
]
