"""Domain models used throughout the framework."""

from dataclasses import dataclass
from typing import Any, Optional, Sequence

__all__ = ["Parameter", "Instance"]


@dataclass(frozen=True)
class Parameter:
    """One entry of a constructor or method parameter signature.

    Attributes:
        name: The parameter name in the callable's signature.
        declared_type: The class the parameter is annotated with, or None when the
            parameter is unannotated or annotated with a builtin type.
        allows_null: Whether None may be bound to this parameter.
        default: The declared default value, or None if there is none.
        has_substitution: Whether the rule in effect substitutes the declared type.
    """

    name: str
    declared_type: Optional[type]
    allows_null: bool
    default: Any
    has_substitution: bool = False


@dataclass(frozen=True)
class Instance:
    """A lazy instance directive embedded in a rule.

    The directive is expanded when arguments are resolved, not when the rule is added.

    Attributes:
        target: A class or type name to construct through the container, or any other
            callable acting as a factory.
        params: Values passed to a factory. When omitted, the factory receives the
            container as its sole argument.

    Example:
        >>> container.add_rule(Service, substitutions={Cache: Instance(RedisCache)})
        >>> container.add_rule(Service, construct_params=[Instance(make_pool, [4])])
    """

    target: Any
    params: Optional[Sequence[Any]] = None

    @staticmethod
    def from_mapping(value: dict) -> "Instance":
        return Instance(value["instance"], value.get("params"))
