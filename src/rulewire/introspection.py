"""Type name resolution and signature introspection.

Everything the container knows about a class comes through this module: the
canonical name rules are stored under, the class a name refers to, the names of
its ancestors and the parameter signature of its constructor or methods.
"""

import builtins
import importlib
import inspect
import types
from typing import (
    Annotated,
    Any,
    Callable,
    Iterable,
    Optional,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from rulewire.domain import Parameter
from rulewire.errors import ConfigurationError, UnresolvableTypeError

__all__ = [
    "TypeKey",
    "TypeIndex",
    "normalize_name",
    "qualified_name",
    "resolve_type",
    "ancestor_names",
    "has_constructor",
    "describe",
]


TypeKey = Union[str, type]
"""Type alias for anything that identifies a class to the container.

Example:
    >>> container.create(Database)                 # by class
    >>> container.create("myapp.storage.Database")  # by dotted name
"""

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def qualified_name(cls: type) -> str:
    """Return the dotted name of a class, leaving builtins unqualified.

    Example:
        >>> qualified_name(collections.OrderedDict)  # Returns "collections.OrderedDict"
        >>> qualified_name(dict)                     # Returns "dict"
    """
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def normalize_name(target: TypeKey) -> str:
    """Return the canonical, case-insensitive name rules and caches are keyed by.

    Args:
        target: A class, or a type name which may carry leading separators.

    Returns:
        The lowercased dotted name with leading separators stripped.

    Example:
        >>> normalize_name(".MyApp.Database")  # Returns "myapp.database"
        >>> normalize_name("*")                # Returns "*"
    """
    if inspect.isclass(target):
        target = qualified_name(target)
    return target.strip().lstrip(".").lower()


def resolve_type(name: str) -> type:
    """Import the class a dotted name refers to.

    Names without a module part are looked up among the builtins.

    Raises:
        UnresolvableTypeError: If no class can be found under the name.
    """
    name = name.strip().lstrip(".")
    parts = name.split(".")

    if len(parts) == 1:
        target = getattr(builtins, name, None)
        if inspect.isclass(target):
            return target
        raise UnresolvableTypeError(f"Type {name!r} cannot be resolved")

    for split in range(len(parts) - 1, 0, -1):
        try:
            target = importlib.import_module(".".join(parts[:split]))
        except ImportError:
            continue
        try:
            for attribute in parts[split:]:
                target = _attribute(target, attribute)
        except AttributeError:
            break
        if inspect.isclass(target):
            return target
        raise UnresolvableTypeError(f"{name!r} does not name a class")

    raise UnresolvableTypeError(f"Type {name!r} cannot be resolved")


def _attribute(owner: Any, name: str) -> Any:
    """Look up an attribute, falling back to a case-insensitive match."""
    try:
        return getattr(owner, name)
    except AttributeError:
        lowered = name.lower()
        for candidate in dir(owner):
            if candidate.lower() == lowered:
                return getattr(owner, candidate)
        raise


class TypeIndex:
    """Classes known to a container, indexed by normalised name.

    Classes handed to the container directly are remembered, so they can later be
    referred to by name even when they cannot be imported (e.g. classes defined in
    a function body).
    """

    def __init__(self):
        self._types: dict[str, type] = {}

    def remember(self, cls: type) -> type:
        """Record a class under its normalised name.

        Raises:
            ConfigurationError: If a different class is already known by that name.
        """
        key = normalize_name(cls)
        known = self._types.setdefault(key, cls)
        if known is not cls:
            raise ConfigurationError(
                f"{cls!r} and {known!r} share the name {key!r}; "
                "refer to one of them through a rule alias instead"
            )
        return cls

    def lookup(self, target: TypeKey) -> type:
        """Return the class for a class or type name.

        Raises:
            UnresolvableTypeError: If the name is neither known nor importable.
        """
        if inspect.isclass(target):
            return self.remember(target)
        known = self._types.get(normalize_name(target))
        if known is not None:
            return known
        return self.remember(resolve_type(target))

    def find(self, target: TypeKey) -> Optional[type]:
        """As :meth:`lookup`, but return None for unresolvable names."""
        try:
            return self.lookup(target)
        except UnresolvableTypeError:
            return None


def ancestor_names(cls: type) -> set[str]:
    """Normalised names of every strict ancestor of a class."""
    return {normalize_name(base) for base in inspect.getmro(cls)[1:]}


def has_constructor(cls: type) -> bool:
    """Whether a class defines an ``__init__`` written in Python."""
    return inspect.isfunction(getattr(cls, "__init__", None))


def describe(
    func: Callable,
    substitutions: Iterable[str] = (),
    skip_first: bool = False,
) -> list[Parameter]:
    """Describe the positional parameters of a callable.

    Keyword-only and variadic parameters are not described; keyword-only
    parameters keep their declared defaults.

    Args:
        func: The function or bound method to describe.
        substitutions: Normalised names of types the rule in effect substitutes.
        skip_first: Drop the first parameter (``self`` of an unbound ``__init__``).

    Returns:
        A list of :class:`Parameter` objects in declaration order.

    Raises:
        UnresolvableTypeError: If the signature or its annotations cannot be read.

    Example:
        >>> class Service:
        ...     def __init__(self, db: Database, name, cache: Optional[Cache] = None): ...
        >>> describe(Service.__init__, skip_first=True)
        >>> # Returns:
        >>> # [Parameter("db", Database, False, None),
        >>> #  Parameter("name", None, True, None),
        >>> #  Parameter("cache", Cache, True, None)]
    """
    try:
        signature = inspect.signature(func)
        hints = get_type_hints(func, include_extras=True)
    except (NameError, TypeError, ValueError) as e:
        raise UnresolvableTypeError(f"Cannot introspect {func!r}: {e}") from e

    substitutions = set(substitutions)
    parameters = list(signature.parameters.values())
    if skip_first:
        parameters = parameters[1:]

    return [
        _make_parameter(parameter, hints.get(parameter.name), substitutions)
        for parameter in parameters
        if parameter.kind in _POSITIONAL
    ]


def _make_parameter(
    parameter: inspect.Parameter, annotation: Any, substitutions: set[str]
) -> Parameter:
    declared_type, optional = _declared_type(annotation)
    default = None if parameter.default is inspect.Parameter.empty else parameter.default
    allows_null = (
        declared_type is None
        or optional
        or (parameter.default is None)
    )
    return Parameter(
        parameter.name,
        declared_type,
        allows_null,
        default,
        declared_type is not None and normalize_name(declared_type) in substitutions,
    )


def _declared_type(annotation: Any) -> tuple[Optional[type], bool]:
    """Reduce an annotation to an injectable class and whether it is optional."""
    if annotation is None:
        return None, False

    if get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]

    if get_origin(annotation) in (Union, types.UnionType):
        members = get_args(annotation)
        non_null = [member for member in members if member is not type(None)]
        if len(non_null) == 1:
            return _injectable(non_null[0]), len(non_null) < len(members)
        return None, False

    return _injectable(annotation), False


def _injectable(annotation: Any) -> Optional[type]:
    if (
        inspect.isclass(annotation)
        and get_origin(annotation) is None
        and annotation is not Any
        and annotation.__module__ != "builtins"
    ):
        return annotation
    return None
