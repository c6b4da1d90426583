import pytest

from rulewire.errors import ConfigurationError
from rulewire.introspection import TypeIndex, normalize_name
from rulewire.rules import WILDCARD, Rule, RuleRegistry


class Base:
    pass


class OtherBase:
    pass


class Derived(Base, OtherBase):
    pass


class Unrelated:
    pass


@pytest.fixture
def registry() -> RuleRegistry:
    return RuleRegistry(TypeIndex())


def test_unknown_type_gets_default_rule(registry):
    assert registry.get_rule(Unrelated) == Rule()
    assert registry.get_rule("no.such.Thing") == Rule()


def test_rules_are_merged_field_by_field(registry):
    registry.add_rule(Base, construct_params=["x"])
    registry.add_rule(Base, shared=True)

    rule = registry.get_rule(Base)
    assert rule.shared
    assert rule.construct_params == ("x",)


def test_later_rule_replaces_named_fields(registry):
    registry.add_rule(Base, construct_params=["x"])
    registry.add_rule(Base, construct_params=["y", "z"])

    assert registry.get_rule(Base).construct_params == ("y", "z")


def test_complete_rule_record_overrides_every_field(registry):
    registry.add_rule(Base, construct_params=["x"])
    registry.add_rule(Base, Rule(shared=True))

    assert registry.get_rule(Base) == Rule(shared=True)


def test_camel_case_keys_are_accepted(registry):
    registry.add_rule(
        Base,
        {"constructParams": [1], "shareInstances": [Unrelated], "instanceOf": Derived},
    )

    rule = registry.get_rule(Base)
    assert rule.construct_params == (1,)
    assert rule.share_instances == (Unrelated,)
    assert rule.instance_of is Derived


def test_unknown_rule_field_raises(registry):
    with pytest.raises(ConfigurationError, match="Unknown rule field 'sharde'"):
        registry.add_rule(Base, sharde=True)


def test_names_are_case_insensitive_and_stripped(registry):
    registry.add_rule("MyApp.Storage.Database", shared=True)

    assert registry.get_rule("myapp.storage.database").shared
    assert registry.get_rule(".MYAPP.STORAGE.DATABASE").shared


def test_rule_for_class_matches_its_name(registry):
    registry.add_rule(Base, shared=True)

    assert registry.get_rule(f"{Base.__module__}.Base").shared


def test_substitution_keys_are_normalised(registry):
    registry.add_rule(Derived, substitutions={Base: "replacement"})

    assert registry.get_rule(Derived).substitutions == {normalize_name(Base): "replacement"}


def test_subclass_inherits_rule_of_base(registry):
    registry.add_rule(Base, shared=True)

    assert registry.get_rule(Derived).shared


def test_subclass_inherits_rule_of_base_given_by_name(registry):
    registry.add_rule(Base, shared=True)

    assert registry.get_rule(f"{Derived.__module__}.Derived").shared


def test_rule_without_inherit_is_not_used_for_subclass(registry):
    registry.add_rule(Base, shared=True, inherit=False)

    assert registry.get_rule(Derived) == registry.get_rule(WILDCARD)


def test_rule_with_instance_of_is_not_used_for_subclass(registry):
    registry.add_rule(Base, shared=True, instance_of=Unrelated)

    assert not registry.get_rule(Derived).shared


def test_first_added_ancestor_rule_wins(registry):
    registry.add_rule(OtherBase, construct_params=["other"])
    registry.add_rule(Base, construct_params=["base"])

    assert registry.get_rule(Derived).construct_params == ("other",)


def test_rule_is_not_inherited_by_base(registry):
    registry.add_rule(Derived, shared=True)

    assert not registry.get_rule(Base).shared


def test_default_rule_can_be_overridden():
    registry = RuleRegistry(TypeIndex(), {"shared": True})

    assert registry.get_rule(Unrelated).shared
    assert registry.get_rule(Unrelated).inherit


def test_rules_can_be_added_in_bulk(registry):
    registry.add_rules([(Base, {"shared": True}), (Base, {"constructParams": [3]})])

    assert registry.get_rule(Base) == Rule(shared=True, construct_params=(3,))


def test_substitution_keys_need_qualified_names(registry):
    registry.add_rule(Derived, substitutions={"Base": 1, f"{Base.__module__}.Base": 2})

    substitutions = registry.get_rule(Derived).substitutions
    assert substitutions[normalize_name(Base)] == 2
    assert substitutions["base"] == 1
