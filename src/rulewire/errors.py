from typing import Any, Callable, Sequence

__all__ = [
    "DependencyError",
    "UnresolvableTypeError",
    "ConstructionError",
    "ConfigurationError",
    "invoke",
]


class DependencyError(Exception):
    """Base class for every error raised while resolving or constructing an object graph."""

    pass


class UnresolvableTypeError(DependencyError):
    """Raised when a type name cannot be resolved to a class, or its signature cannot be read."""

    pass


class ConstructionError(DependencyError):
    """Raised when a constructor or post-construction method fails."""

    pass


class ConfigurationError(DependencyError):
    """Raised when a rule or lazy instance directive is malformed."""

    pass


def invoke(func: Callable, arguments: Sequence[Any], description: str) -> Any:
    """Call ``func`` with ``arguments``, reporting failures as :class:`ConstructionError`.

    Errors already raised by the container, and ``RecursionError`` from dependency
    cycles, propagate unchanged.
    """
    try:
        return func(*arguments)
    except (DependencyError, RecursionError):
        raise
    except Exception as e:
        raise ConstructionError(f"{description} raised {e!r}") from e
