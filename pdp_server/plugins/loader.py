# (c) Copyright Datacraft, 2026
"""File-based loading of custom attribute rules."""
import importlib.util
import logging
from pathlib import Path

from pdp_server.errors import PluginRegistrationError
from .registry import CustomAttributeRegistry, CUSTOM_PACKAGE, CUSTOM_RULE

logger = logging.getLogger(__name__)


def load_rule_file(path: Path, registry: CustomAttributeRegistry) -> bool:
	"""
	Load one rule file into the registry.

	The file must declare `PACKAGE = "permit.custom"` and define
	`custom_attributes`, either a mapping of attribute name to function
	or a list of CustomAttributeRule. Files naming anything else are
	skipped.

	Returns:
		True if rules were registered
	"""
	spec = importlib.util.spec_from_file_location(f"pdp_custom_rules.{path.stem}", path)
	if spec is None or spec.loader is None:
		raise PluginRegistrationError(f"Cannot load custom rules from {path}")

	module = importlib.util.module_from_spec(spec)
	try:
		spec.loader.exec_module(module)
	except Exception as e:
		raise PluginRegistrationError(f"Failed to import custom rules from {path}: {e}") from e

	package = getattr(module, 'PACKAGE', None)
	if package != CUSTOM_PACKAGE:
		logger.warning(f"Ignoring {path}: package {package!r} is not {CUSTOM_PACKAGE!r}")
		return False

	rules = getattr(module, CUSTOM_RULE, None)
	if rules is None:
		logger.warning(f"Ignoring {path}: no '{CUSTOM_RULE}' rule defined")
		return False

	registry.register(package, CUSTOM_RULE, rules)
	logger.info(f"Loaded custom attribute rules from {path}")
	return True


def load_custom_rules(
	path: str | Path,
	registry: CustomAttributeRegistry | None = None,
) -> CustomAttributeRegistry:
	"""Load a rule file, or every *.py file of a directory, into a registry."""
	registry = registry or CustomAttributeRegistry()
	path = Path(path)

	if path.is_dir():
		files = sorted(p for p in path.glob('*.py') if not p.name.startswith('_'))
	elif path.is_file():
		files = [path]
	else:
		raise PluginRegistrationError(f"Custom rules path does not exist: {path}")

	for file in files:
		load_rule_file(file, registry)
	return registry
