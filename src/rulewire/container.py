"""
The construction pipeline.

A :class:`Container` owns the rules, a cache of construction strategies and the
shared instances it has built. Asking it to ``create`` a type resolves the rule in
effect for that type, analyses the constructor once, and caches a strategy that
builds (and, for shared types, memoises) instances from then on.

Containers are not thread safe; use one container per thread or guard it with a
lock.
"""

import inspect
import logging
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Union

from rulewire.errors import ConstructionError, invoke
from rulewire.expansion import Expander
from rulewire.introspection import TypeIndex, TypeKey, describe, has_constructor, normalize_name
from rulewire.parameters import ParameterResolver
from rulewire.rules import Rule, RuleRegistry

__all__ = ["Container", "Strategy"]

logger = logging.getLogger(__name__)

Strategy = Callable[[Sequence[Any], Sequence[Any]], Any]
"""A cached unit of construction work: ``(args, share) -> instance``."""


class Container:
    """Build object graphs from construction rules.

    Example:
        >>> container = Container()
        >>> container.add_rule(Database, shared=True, construct_params=["db://prod"])
        >>> service = container.create(Service)
        >>> service.db is container.create(Database)
        True
    """

    def __init__(self, default_rule: Optional[Mapping[str, Any]] = None):
        self._types = TypeIndex()
        self._rules = RuleRegistry(self._types, default_rule)
        self._expander = Expander(self)
        self._strategies: dict[str, Strategy] = {}
        self._instances: dict[str, Any] = {}

    def add_rule(
        self,
        match: TypeKey,
        rule: Union[Rule, Mapping[str, Any], None] = None,
        **overrides: Any,
    ):
        """Merge a rule onto the rule in effect for ``match``.

        See :meth:`rulewire.rules.RuleRegistry.add_rule`.
        """
        self._rules.add_rule(match, rule, **overrides)

    def add_rules(self, rules: Iterable[tuple[TypeKey, Union[Rule, Mapping[str, Any]]]]):
        self._rules.add_rules(rules)

    def get_rule(self, match: TypeKey) -> Rule:
        return self._rules.get_rule(match)

    def create(self, target: TypeKey, args: Sequence[Any] = (), share: Sequence[Any] = ()) -> Any:
        """Return an instance of ``target`` with its dependencies resolved.

        Args:
            target: The class or type name to build.
            args: Values offered to the constructor. Values are matched to
                parameters by type, so their order only matters for parameters
                without a declared type.
            share: Instances made available, by type, to the whole dependency graph.

        Returns:
            A new instance, or the existing instance of a shared type. Once a shared
            type has been built, ``args`` and ``share`` are ignored.

        Raises:
            UnresolvableTypeError: If the type cannot be found or introspected.
            ConstructionError: If a constructor, factory or post-construction method fails.
            ConfigurationError: If ``target`` is a class whose name is already bound
                to a different class.
        """
        if inspect.isclass(target):
            self._types.remember(target)
        name = normalize_name(target)

        if name in self._instances:
            return self._instances[name]

        strategy = self._strategies.get(name)
        if strategy is None:
            strategy = self._build_strategy(name, target)
            self._strategies[name] = strategy

        return strategy(args, share)

    def _build_strategy(self, name: str, target: TypeKey) -> Strategy:
        rule = self._rules.get_rule(target)
        cls = self._types.lookup(rule.instance_of or target)
        logger.debug("Building strategy for %s using %s", name, cls.__qualname__)

        strategy = self._base_strategy(name, rule, cls)
        if rule.call:
            strategy = self._with_calls(name, strategy, rule)
        return strategy

    def _base_strategy(self, name: str, rule: Rule, cls: type) -> Strategy:
        params = None
        if has_constructor(cls):
            parameters = describe(cls.__init__, rule.substitutions.keys(), skip_first=True)
            params = ParameterResolver(self, self._expander, parameters, rule)

        if rule.shared:
            def build_shared(args, share):
                if params is None:
                    instance = invoke(cls, (), cls.__qualname__)
                else:
                    instance = self._preallocate(name, cls)
                    if instance is None:
                        instance = invoke(cls, params(args, share), cls.__qualname__)
                    else:
                        try:
                            invoke(instance.__init__, params(args, share), cls.__qualname__)
                        except BaseException:
                            self._instances.pop(name, None)
                            raise
                self._instances[name] = instance
                logger.debug("Registered shared instance of %s", name)
                return instance

            return build_shared

        if params is not None:
            def build(args, share):
                return invoke(cls, params(args, share), cls.__qualname__)

            return build

        return lambda args, share: invoke(cls, (), cls.__qualname__)

    def _preallocate(self, name: str, cls: type) -> Any:
        """Allocate an uninitialised instance and register it as the shared instance.

        Registering before ``__init__`` runs lets circular dependencies between shared
        types see the instance rather than recurse. Returns None when the class
        cannot be allocated without its constructor arguments.
        """
        try:
            instance = cls.__new__(cls)
        except TypeError:
            return None
        self._instances[name] = instance
        return instance

    def _with_calls(self, name: str, strategy: Strategy, rule: Rule) -> Strategy:
        def build_and_call(args, share):
            instance = strategy(args, share)
            try:
                self._call_methods(instance, rule)
            except BaseException:
                if rule.shared:
                    self._instances.pop(name, None)
                raise
            return instance

        return build_and_call

    def _call_methods(self, instance: Any, rule: Rule):
        for method_name, values in rule.call:
            method = getattr(instance, method_name, None)
            if not callable(method):
                raise ConstructionError(
                    f"{type(instance).__qualname__} has no method {method_name!r}"
                )
            resolver = ParameterResolver(
                self,
                self._expander,
                describe(method, rule.substitutions.keys()),
                rule,
            )
            invoke(
                method,
                resolver(self._expander.expand(list(values))),
                f"{type(instance).__qualname__}.{method_name}",
            )
