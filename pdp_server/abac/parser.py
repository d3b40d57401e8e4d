# (c) Copyright Datacraft, 2026
"""Policy language parser for human-readable rules."""
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from pdp_server.errors import PolicyLoadError
from .conditions import REF_KEY

logger = logging.getLogger(__name__)


@dataclass
class PolicyCondition:
	"""Parsed policy condition."""
	attribute: str
	operator: str
	value: Any
	negated: bool = False


@dataclass
class ParsedPolicy:
	"""Complete parsed policy structure."""
	effect: str = 'deny'
	actions: list[str] = field(default_factory=list)
	resource_types: list[str] = field(default_factory=list)
	roles: list[str] = field(default_factory=list)
	tenant_members: bool = False
	conditions: dict[str, list[PolicyCondition]] = field(default_factory=dict)
	raw_text: str = ''


class PolicyParser:
	"""
	Parser for human-readable policy language.

	Policy format:
	```
	ALLOW/DENY action[, action] ON resource_type[, resource_type]
	FOR ROLE role[, role]
	FOR TENANT MEMBERS
	WHEN section.attr operator value
	AND section.attr operator value
	```

	Sections are user, resource, tenant, context and custom. A value
	written as an unquoted section path (e.g. `user.key`) refers to the
	evaluation input instead of being a literal.

	Example:
	```
	ALLOW read, update ON document
	FOR TENANT MEMBERS
	WHEN resource.owners CONTAINS user.key
	AND context.ip IP IN "10.0.0.0/8"
	```
	"""

	SECTIONS = ('user', 'resource', 'tenant', 'context', 'custom')

	OPERATORS = {
		'=': 'eq',
		'==': 'eq',
		'!=': 'neq',
		'<>': 'neq',
		'>': 'gt',
		'>=': 'gte',
		'<': 'lt',
		'<=': 'lte',
		'IN': 'in',
		'NOT IN': 'not_in',
		'CONTAINS': 'contains',
		'NOT CONTAINS': 'not_contains',
		'STARTS WITH': 'starts_with',
		'ENDS WITH': 'ends_with',
		'MATCHES': 'matches',
		'IS': 'eq',
		'IS NOT': 'neq',
		'ANY OF': 'any_of',
		'ALL OF': 'all_of',
		'NONE OF': 'none_of',
		'BETWEEN': 'between',
		'IP IN': 'ip_in_range',
		'EXISTS': 'exists',
	}

	NEGATIONS = {
		'eq': 'neq',
		'neq': 'eq',
		'in': 'not_in',
		'not_in': 'in',
		'contains': 'not_contains',
		'not_contains': 'contains',
		'any_of': 'none_of',
		'none_of': 'any_of',
		'exists': 'not_exists',
	}

	LITERALS = {'true': True, 'false': False, 'null': None, 'none': None}

	def __init__(self):
		# longest keyword first so NOT IN wins over IN
		keywords = '|'.join(
			r'\s+'.join(re.escape(word) for word in op.split())
			for op in sorted(self.OPERATORS, key=len, reverse=True)
		)
		self._operator_re = re.compile(rf'\s+({keywords})\s+', re.IGNORECASE)
		self._section_ref = re.compile(
			rf"^(?:{'|'.join(self.SECTIONS)})\.[A-Za-z_][\w.]*$"
		)

	def parse(self, policy_text: str) -> ParsedPolicy:
		"""Parse policy text into structured format."""
		result = ParsedPolicy(raw_text=policy_text)

		for line in self._normalize(policy_text):
			self._parse_line(line, result)

		if not result.actions:
			raise PolicyLoadError(f"Policy text has no ALLOW/DENY line: {policy_text!r}")
		return result

	def _normalize(self, text: str) -> list[str]:
		"""Normalize policy text into non-empty logical lines."""
		# Handle line continuations
		text = re.sub(r'\\\s*\n', ' ', text)

		# Remove comments
		text = re.sub(r'#.*$', '', text, flags=re.MULTILINE)

		lines = []
		for line in text.split('\n'):
			line = re.sub(r'\s+', ' ', line).strip()
			if line:
				lines.append(line)
		return lines

	def _parse_line(self, line: str, result: ParsedPolicy):
		"""Parse a single policy line."""
		upper = line.upper()

		# Effect and target
		if upper.startswith('ALLOW ') or upper.startswith('DENY '):
			self._parse_effect_line(line, result)
		elif upper == 'FOR TENANT MEMBERS':
			result.tenant_members = True
		elif upper.startswith('FOR ROLE'):
			roles = re.sub(r'^FOR ROLES?\s+', '', line, flags=re.IGNORECASE)
			result.roles.extend(r.strip() for r in roles.split(',') if r.strip())
		elif upper.startswith(('WHEN ', 'AND ', 'IF ')):
			self._parse_condition_line(line, result)
		else:
			raise PolicyLoadError(f"Unrecognized policy line: {line}")

	def _parse_effect_line(self, line: str, result: ParsedPolicy):
		"""Parse effect line: ALLOW/DENY actions ON resources."""
		effect, _, rest = line.partition(' ')
		result.effect = effect.lower()

		# Split at ON
		parts = re.split(r'\s+ON\s+', rest, flags=re.IGNORECASE)

		# Parse actions
		actions = [a.strip() for a in parts[0].split(',') if a.strip()]
		result.actions.extend(actions)

		if len(parts) >= 2:
			# Parse resource types
			resources = [r.strip() for r in parts[1].split(',') if r.strip()]
			result.resource_types.extend(resources)

	def _parse_condition_line(self, line: str, result: ParsedPolicy):
		"""Parse condition line: WHEN/AND section.attr op value."""
		# Remove leading keyword
		line = re.sub(r'^(WHEN|AND|IF)\s+', '', line, flags=re.IGNORECASE).strip()

		condition = self._parse_condition(line)
		if not condition:
			raise PolicyLoadError(f"Could not parse condition: {line}")

		section, _, attribute = condition.attribute.partition('.')
		if section not in self.SECTIONS or not attribute:
			raise PolicyLoadError(
				f"Condition attribute must start with one of {self.SECTIONS}: {condition.attribute}"
			)
		condition.attribute = attribute

		if condition.negated:
			negated_op = self.NEGATIONS.get(condition.operator)
			if not negated_op:
				raise PolicyLoadError(f"Operator {condition.operator} cannot be negated: {line}")
			condition.operator = negated_op
			condition.negated = False

		result.conditions.setdefault(section, []).append(condition)

	def _parse_condition(self, expr: str) -> PolicyCondition | None:
		"""Split `[NOT] attr OP value`, `attr EXISTS` or a bare flag attribute."""
		negated = bool(re.match(r'NOT\s', expr, flags=re.IGNORECASE))
		if negated:
			expr = expr[4:].strip()

		presence = re.fullmatch(r'(.+?)\s+EXISTS', expr, flags=re.IGNORECASE)
		if presence:
			return PolicyCondition(presence.group(1).strip(), 'exists', True, negated)

		match = self._operator_re.search(expr)
		if match:
			op_code = self.OPERATORS[re.sub(r'\s+', ' ', match.group(1)).upper()]
			return PolicyCondition(
				attribute=expr[:match.start()].strip(),
				operator=op_code,
				value=self._parse_value(expr[match.end():]),
				negated=negated,
			)

		if re.fullmatch(r'[A-Za-z_][\w.]*', expr):
			return PolicyCondition(expr, 'eq', True, negated)
		return None

	def _parse_value(self, value_str: str) -> Any:
		"""Literal, list, quoted string, number or section reference."""
		text = value_str.strip()

		if text[:1] == '[' and text[-1:] == ']':
			items = text[1:-1].strip()
			return [self._parse_value(item) for item in items.split(',')] if items else []

		if len(text) >= 2 and text[0] == text[-1] and text[0] in '"\'':
			return text[1:-1]

		if text.lower() in self.LITERALS:
			return self.LITERALS[text.lower()]

		if any(ch.isdigit() for ch in text):
			for number in (int, float):
				try:
					return number(text)
				except ValueError:
					continue

		if self._section_ref.match(text):
			return {REF_KEY: text}
		return text

	def to_dict(self, parsed: ParsedPolicy) -> dict:
		"""Convert parsed policy to PolicyRule fields."""
		blocks: dict[str, dict | None] = {}
		for section in self.SECTIONS:
			conditions: dict[str, dict] = {}
			for c in parsed.conditions.get(section, []):
				operators = conditions.setdefault(c.attribute, {})
				if c.operator in operators:
					raise PolicyLoadError(
						f"{section}.{c.attribute} uses {c.operator} more than once, "
						"combine the values with ALL OF or ANY OF instead"
					)
				operators[c.operator] = c.value
			blocks[f'{section}_conditions'] = conditions or None

		return {
			'effect': parsed.effect,
			'actions': parsed.actions,
			'resource_types': parsed.resource_types,
			'roles': parsed.roles or None,
			'tenant_members': parsed.tenant_members,
			**blocks,
		}
