"""Expansion of lazy instance directives embedded in rules."""

import inspect
from typing import Any, Sequence

from rulewire.domain import Instance
from rulewire.errors import ConfigurationError, invoke

__all__ = ["Expander"]


class Expander:
    """Resolve :class:`~rulewire.domain.Instance` directives into concrete values.

    Literals are returned unchanged, lists, tuples and dicts are expanded element by
    element to any depth, and directives are resolved at the time of expansion. A
    dict whose ``"instance"`` key is set (not None) is read as a directive. Factory
    failures are raised as :class:`~rulewire.errors.ConstructionError`.
    """

    def __init__(self, container):
        self._container = container

    def expand(self, value: Any, share: Sequence[Any] = ()) -> Any:
        if isinstance(value, dict) and value.get("instance") is not None:
            value = Instance.from_mapping(value)

        if isinstance(value, Instance):
            return self._resolve(value, share)
        if type(value) is dict:
            return {key: self.expand(item, share) for key, item in value.items()}
        if type(value) is list:
            return [self.expand(item, share) for item in value]
        if type(value) is tuple:
            return tuple(self.expand(item, share) for item in value)
        return value

    def _resolve(self, directive: Instance, share: Sequence[Any]) -> Any:
        target = directive.target
        if isinstance(target, str) or inspect.isclass(target):
            return self._container.create(target, (), share)
        if not callable(target):
            raise ConfigurationError(
                f"Lazy instance target {target!r} is neither a type nor a callable"
            )
        description = getattr(target, "__qualname__", repr(target))
        if directive.params is not None:
            return invoke(target, self.expand(list(directive.params)), description)
        return invoke(target, (self._container,), description)
