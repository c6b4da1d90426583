"""Rulewire object graph construction.

Rulewire builds fully initialised objects from a class and a set of declarative
construction rules. Constructor dependencies are discovered from type hints and
built recursively, so callers never write wiring code for the common case, and
rules cover the rest.

Key Features:
    - Type-directed injection using standard type hints
    - Shared (singleton) types, including circular dependencies between them
    - Rules inherited by subclasses, with a wildcard default rule
    - Constructor parameters, substitutions and aliasing declared per type
    - Lazy instance directives resolved when arguments are built
    - Post-construction method calls

Basic Usage:
    >>> from rulewire.container import Container
    >>> from rulewire.domain import Instance
    >>>
    >>> container = Container()
    >>> container.add_rule(Database, shared=True, construct_params=["db://prod"])
    >>> container.add_rule(Service, substitutions={Cache: Instance(RedisCache)})
    >>>
    >>> service = container.create(Service)

The framework consists of several core modules:
    - container: The construction pipeline and its caches
    - rules: Rule records, merging and rule lookup
    - parameters: Argument resolution for constructors and methods
    - expansion: Lazy instance directive expansion
    - introspection: Type name resolution and signature analysis
    - builders: High-level container construction
    - domain: Core domain models (Parameter, Instance)
    - errors: Framework-specific exceptions
"""
