# (c) Copyright Datacraft, 2026
"""Attribute store backends."""
import logging

from pdp_server.config import Settings, StoreBackend
from .base import (
	AttributeStore, TenantRecord, UserRecord, RoleAssignment, ResourceRecord
)
from .memory import InMemoryAttributeStore

logger = logging.getLogger(__name__)

__all__ = [
	'AttributeStore',
	'TenantRecord',
	'UserRecord',
	'RoleAssignment',
	'ResourceRecord',
	'InMemoryAttributeStore',
	'get_attribute_store',
]


def get_attribute_store(settings: Settings) -> AttributeStore:
	"""Build the attribute store selected by configuration."""
	if settings.attribute_store == StoreBackend.SQL:
		if not settings.db_url:
			raise ValueError("db_url is expected to be non-empty for the sql attribute store")
		from pdp_server.db import get_engine, get_session_factory
		from .sql import SQLAttributeStore

		engine = get_engine(settings.db_url)
		logger.info(f"Using SQL attribute store at {engine.url.render_as_string(hide_password=True)}")
		return SQLAttributeStore(get_session_factory(engine))

	if settings.data_path:
		return InMemoryAttributeStore.from_file(settings.data_path)
	logger.warning("No attribute data configured, starting with an empty in-memory store")
	return InMemoryAttributeStore()
