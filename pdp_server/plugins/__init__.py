# (c) Copyright Datacraft, 2026
"""Custom attribute plugins."""
from .registry import (
	CustomAttributeRegistry, CustomAttributeRule, DerivedAttributes,
	custom_attribute, CUSTOM_PACKAGE, CUSTOM_RULE, CUSTOM_RULE_KEY,
)
from .loader import load_custom_rules, load_rule_file

__all__ = [
	'CustomAttributeRegistry',
	'CustomAttributeRule',
	'DerivedAttributes',
	'custom_attribute',
	'CUSTOM_PACKAGE',
	'CUSTOM_RULE',
	'CUSTOM_RULE_KEY',
	'load_custom_rules',
	'load_rule_file',
]
