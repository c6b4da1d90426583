"""Resolution of the argument list for a constructor or method call."""

from typing import Any, Optional, Sequence

from rulewire.domain import Parameter
from rulewire.expansion import Expander
from rulewire.introspection import normalize_name
from rulewire.rules import Rule

__all__ = ["ParameterResolver"]


class ParameterResolver:
    """Produce call arguments for one parameter signature under one rule.

    The signature is analysed once; every call then builds a fresh argument list
    with exactly one value per declared parameter, in declaration order:

    1. Types named in the rule's ``share_instances`` are constructed and added to
       the shared instances passed in.
    2. The pool of candidate values is the caller's arguments, followed by the
       expanded ``construct_params``, followed by the shared instances.
    3. A parameter with a declared type takes the first pool value that is an
       instance of that type (or None, where None is allowed), wherever it sits in
       the pool. Failing that, it takes the rule's substitution for the type, or a
       new instance of the type built by the container.
    4. A parameter without a declared type takes the expansion of the first
       remaining pool value, or its default when the pool is empty.
    """

    def __init__(self, container, expander: Expander, parameters: list[Parameter], rule: Rule):
        self._container = container
        self._expander = expander
        self._parameters = parameters
        self._rule = rule

    @property
    def parameters(self) -> list[Parameter]:
        return self._parameters

    def __call__(self, args: Sequence[Any] = (), share: Sequence[Any] = ()) -> list[Any]:
        rule = self._rule
        share = list(share)
        if rule.share_instances:
            share.extend(self._container.create(name) for name in rule.share_instances)

        pool = list(args)
        if share or rule.construct_params:
            pool.extend(self._expander.expand(list(rule.construct_params)))
            pool.extend(share)

        resolved = []
        for parameter in self._parameters:
            declared_type = parameter.declared_type

            if pool and declared_type is not None:
                index = _first_match(pool, parameter)
                if index is not None:
                    resolved.append(pool.pop(index))
                    continue

            if declared_type is not None:
                if parameter.has_substitution:
                    substitute = rule.substitutions[normalize_name(declared_type)]
                    resolved.append(self._expander.expand(substitute, share))
                else:
                    resolved.append(self._container.create(declared_type, (), share))
                continue

            resolved.append(self._expander.expand(pool.pop(0)) if pool else parameter.default)

        return resolved


def _first_match(pool: list[Any], parameter: Parameter) -> Optional[int]:
    for index, candidate in enumerate(pool):
        if isinstance(candidate, parameter.declared_type) or (
            candidate is None and parameter.allows_null
        ):
            return index
    return None
