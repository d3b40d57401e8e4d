# (c) Copyright Datacraft, 2026
"""Error taxonomy for the decision point."""


class PDPError(Exception):
	"""Base decision point error."""
	pass


class MissingAttributeError(PDPError):
	"""An attribute referenced by a condition is absent."""

	def __init__(self, path: str):
		super().__init__(f"Missing attribute: {path}")
		self.path = path


class PluginRegistrationError(PDPError):
	"""Custom rule registered under an unrecognized key."""
	pass


class PluginExecutionError(PDPError):
	"""A custom attribute rule failed while computing its value."""

	def __init__(self, rule_name: str, cause: BaseException):
		super().__init__(f"Custom attribute rule '{rule_name}' failed: {cause!r}")
		self.rule_name = rule_name
		self.cause = cause


class RoutingError(PDPError):
	"""Request cannot be resolved to a known tenant or shard."""

	def __init__(self, message: str, tenant: str | None = None):
		super().__init__(message)
		self.tenant = tenant


class CheckTimeoutError(PDPError):
	"""Evaluation exceeded the configured query timeout."""

	def __init__(self, message: str, tenant: str | None = None):
		super().__init__(message)
		self.tenant = tenant


class PolicyLoadError(PDPError, ValueError):
	"""Policy definition could not be loaded or parsed."""
	pass
