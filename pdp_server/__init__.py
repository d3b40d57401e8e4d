# (c) Copyright Datacraft, 2026
"""Multi-tenant Policy Decision Point."""
from .pdp import PolicyDecisionPoint, build_pdp
from .schema import CheckRequest, CheckResult, CheckError, ErrorKind, Resource, User

__all__ = [
	'PolicyDecisionPoint',
	'build_pdp',
	'CheckRequest',
	'CheckResult',
	'CheckError',
	'ErrorKind',
	'Resource',
	'User',
]
