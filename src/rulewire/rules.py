"""Construction rules and their registry.

A :class:`Rule` tells the container how to build instances of a type: whether to
share one instance, which values to pass to the constructor, which methods to
call afterwards and which types to substitute. Rules are stored under a type
name pattern and resolved by exact match, by inheritance, or by falling back to
the wildcard rule ``*``.
"""

import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, Iterable, Mapping, Optional, Union

from rulewire.errors import ConfigurationError
from rulewire.introspection import TypeIndex, TypeKey, ancestor_names, normalize_name

__all__ = ["WILDCARD", "Rule", "RuleRegistry"]

logger = logging.getLogger(__name__)

WILDCARD = "*"

_ALIASES = {
    "constructParams": "construct_params",
    "shareInstances": "share_instances",
    "instanceOf": "instance_of",
}


@dataclass(frozen=True)
class Rule:
    """Construction configuration for one type name pattern.

    Attributes:
        shared: Memoise the first constructed instance and return it for every
            later request.
        construct_params: Values added to the argument pool of every construction.
        share_instances: Types constructed up front and injected, by type, into
            this type and all of its dependencies.
        call: ``(method_name, values)`` pairs invoked in order right after
            construction.
        inherit: Whether requests for subclasses of the pattern's type may use
            this rule.
        substitutions: Values used instead of auto-constructing parameters
            declared with the keyed type. Keys are classes or fully qualified type
            names (``"myapp.storage.Database"``), stored normalised; a bare class
            name never matches a declared type.
        instance_of: Type constructed instead of the requested one.
    """

    shared: bool = False
    construct_params: tuple = ()
    share_instances: tuple = ()
    call: tuple = ()
    inherit: bool = True
    substitutions: Mapping[str, Any] = field(default_factory=dict)
    instance_of: Optional[TypeKey] = None

    def merged(self, overrides: Mapping[str, Any]) -> "Rule":
        """Return a copy of this rule with the named fields replaced.

        Fields missing from ``overrides`` keep their current values. Keys may use
        either the snake_case field names or their camelCase spelling.

        Raises:
            ConfigurationError: If ``overrides`` names an unknown field.
        """
        known = {f.name for f in fields(self)}
        changes = {}
        for key, value in overrides.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise ConfigurationError(f"Unknown rule field {key!r}")
            changes[name] = _coerce(name, value)
        return replace(self, **changes)

    @staticmethod
    def of(value: Union["Rule", Mapping[str, Any]]) -> Mapping[str, Any]:
        """Return the field overrides a rule or mapping stands for.

        A complete :class:`Rule` record overrides every field.
        """
        if isinstance(value, Rule):
            return {f.name: getattr(value, f.name) for f in fields(value)}
        return value


def _coerce(name: str, value: Any) -> Any:
    if name in ("construct_params", "share_instances"):
        return tuple(value)
    if name == "call":
        return tuple((method, tuple(args)) for method, args in value)
    if name == "substitutions":
        return {normalize_name(key): substitute for key, substitute in value.items()}
    if name in ("shared", "inherit"):
        return bool(value)
    return value


class RuleRegistry:
    """Rules keyed by normalised type name pattern."""

    def __init__(self, types: TypeIndex, default_rule: Optional[Mapping[str, Any]] = None):
        self._types = types
        self._rules: dict[str, Rule] = {WILDCARD: Rule().merged(Rule.of(default_rule or {}))}

    def add_rule(
        self,
        match: TypeKey,
        rule: Union[Rule, Mapping[str, Any], None] = None,
        **overrides: Any,
    ):
        """Merge a rule onto the rule currently in effect for ``match`` and store it.

        Args:
            match: The class or type name pattern the rule applies to.
            rule: A mapping of rule fields, or a complete :class:`Rule`.
            **overrides: Rule fields given as keyword arguments, applied after ``rule``.

        Example:
            >>> registry.add_rule(Database, shared=True)
            >>> registry.add_rule("myapp.Service", {"constructParams": ["prod"]})
        """
        if not isinstance(match, str):
            self._types.remember(match)
        effective = self.get_rule(match).merged({**Rule.of(rule or {}), **overrides})
        key = normalize_name(match)
        self._rules[key] = effective
        logger.debug("Added rule for %s: %s", key, effective)

    def add_rules(self, rules: Iterable[tuple[TypeKey, Union[Rule, Mapping[str, Any]]]]):
        """Add ``(pattern, rule)`` pairs in order, as produced by a rule loader."""
        for match, rule in rules:
            self.add_rule(match, rule)

    def get_rule(self, match: TypeKey) -> Rule:
        """Return the rule in effect for a class or type name.

        Resolution order:
            1. The rule stored under the exact normalised name.
            2. The first stored rule, in insertion order, for a strict ancestor of
               the type that has no ``instance_of`` and allows inheritance.
            3. The wildcard rule.
        """
        key = normalize_name(match)
        if key in self._rules:
            return self._rules[key]

        cls = self._types.find(match)
        if cls is not None:
            ancestors = ancestor_names(cls)
            for rule_key, rule in self._rules.items():
                if (
                    rule_key != WILDCARD
                    and rule_key in ancestors
                    and rule.instance_of is None
                    and rule.inherit
                ):
                    return rule

        return self._rules[WILDCARD]
