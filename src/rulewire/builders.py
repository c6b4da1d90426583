"""High level entry points for constructing containers."""

from typing import Any, Iterable, Mapping, Optional, Union

from rulewire.container import Container
from rulewire.introspection import TypeKey
from rulewire.rules import Rule

__all__ = ["make_container"]


def make_container(
    rules: Optional[Iterable[tuple[TypeKey, Union[Rule, Mapping[str, Any]]]]] = None,
    default_rule: Optional[Mapping[str, Any]] = None,
) -> Container:
    """Create a :class:`Container` configured with the given rules.

    Rules are added in order, so a later rule for the same pattern is merged onto
    an earlier one, and inheritance lookups see patterns in the order given.

    Args:
        rules: ``(pattern, rule)`` pairs, where each rule is a mapping of rule
            fields or a complete :class:`Rule`. Any rule loader can produce these.
        default_rule: Fields overriding the wildcard rule applied to types without
            a rule of their own.

    Returns:
        The configured :class:`Container`.

    Raises:
        ConfigurationError: If a rule names an unknown field.

    Example:
        >>> container = make_container([
        ...     (Database, {"shared": True}),
        ...     ("myapp.Cache", {"instanceOf": "myapp.RedisCache"}),
        ... ])
    """
    container = Container(default_rule)
    container.add_rules(rules or [])
    return container
