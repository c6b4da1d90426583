from collections import OrderedDict
from typing import Annotated, Any, Optional, Union

import pytest

from rulewire.domain import Parameter
from rulewire.errors import ConfigurationError, UnresolvableTypeError
from rulewire.introspection import (
    TypeIndex,
    ancestor_names,
    describe,
    has_constructor,
    normalize_name,
    qualified_name,
    resolve_type,
)


class Database:
    pass


class Cache:
    pass


class Service:
    def __init__(
        self,
        db: Database,
        name,
        cache: Optional[Cache] = None,
        port: int = 8080,
        *extra,
        verbose: bool = False,
        **options,
    ):
        pass


class NoConstructor:
    pass


def test_normalize_name_of_class():
    assert normalize_name(Database) == f"{__name__}.database".lower()


def test_normalize_name_of_string():
    assert normalize_name(".MyApp.Database ") == "myapp.database"
    assert normalize_name("*") == "*"


def test_builtins_are_unqualified():
    assert qualified_name(dict) == "dict"
    assert qualified_name(OrderedDict) == "collections.OrderedDict"


def test_resolve_type_imports_dotted_names():
    assert resolve_type("collections.OrderedDict") is OrderedDict
    assert resolve_type(f"{__name__}.Database") is Database


def test_resolve_type_finds_builtins():
    assert resolve_type("dict") is dict


@pytest.mark.parametrize(
    "name", ["NoSuchBuiltin", "no_such_module.Thing", "collections.NoSuchThing", "collections.abc"]
)
def test_resolve_type_raises_for_unknown_names(name):
    with pytest.raises(UnresolvableTypeError):
        resolve_type(name)


def test_type_index_remembers_classes_it_has_seen():
    class Local:
        pass

    index = TypeIndex()
    index.remember(Local)

    assert index.lookup(qualified_name(Local).upper()) is Local
    assert index.find("nowhere.Local") is None


def test_ancestor_names_are_strict():
    class Derived(Database):
        pass

    assert ancestor_names(Derived) == {normalize_name(Database), "object"}


def test_has_constructor():
    assert has_constructor(Service)
    assert not has_constructor(NoConstructor)
    assert not has_constructor(dict)


def test_describe_constructor():
    parameters = describe(Service.__init__, skip_first=True)

    assert parameters == [
        Parameter("db", Database, False, None),
        Parameter("name", None, True, None),
        Parameter("cache", Cache, True, None),
        Parameter("port", None, True, 8080),
    ]


def test_describe_marks_substituted_types():
    parameters = describe(Service.__init__, {normalize_name(Cache)}, skip_first=True)

    assert [p.has_substitution for p in parameters] == [False, False, True, False]


def test_describe_bound_method_excludes_self():
    class Target:
        def configure(self, db: Database, level):
            pass

    assert [p.name for p in describe(Target().configure)] == ["db", "level"]


def test_describe_unwraps_annotated_and_pipe_unions():
    def factory(
        db: Annotated[Database, "primary"],
        cache: Cache | None,
        either: Union[Database, Cache],
        anything: Any,
    ):
        pass

    parameters = describe(factory)

    assert parameters[0].declared_type is Database
    assert parameters[1].declared_type is Cache
    assert parameters[1].allows_null
    assert parameters[2].declared_type is None
    assert parameters[3].declared_type is None


def test_describe_raises_for_unresolvable_annotations():
    def factory(db: "MissingType"):  # noqa: F821
        pass

    with pytest.raises(UnresolvableTypeError, match="Cannot introspect"):
        describe(factory)


def test_type_index_rejects_distinct_classes_with_one_name():
    def make():
        class Twin:
            pass

        return Twin

    index = TypeIndex()
    index.remember(make())

    with pytest.raises(ConfigurationError, match="share the name"):
        index.remember(make())
