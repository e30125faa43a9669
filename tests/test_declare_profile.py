"""
Tests for declaring validation profiles on model types.
"""
import logging

import pytest

from validation_profiles import (
    ConfigurationError,
    DuplicateDefaultError,
    DuplicateProfileError,
    Model,
    MultiDefaultError,
    Record,
    RuleSet,
    UnknownOperation,
    UnknownProfileError,
    configure,
    declare_profile,
    get_registry,
    has_profile,
    has_many,
    belongs_to,
)


@pytest.fixture
def name_rules():
    """Rule set requiring a name."""
    rules = RuleSet("NameRules")
    rules.validates_presence_of("name")
    return rules


@pytest.fixture
def hard_rules():
    """Rule set with a name format and an author presence rule."""
    rules = RuleSet("HardRules")
    rules.validates("name", format=r"\A\w+\Z")
    rules.validates_presence_of("author")
    return rules


class TestDeclareProfile:
    """Test declare_profile() registration."""

    def test_registers_profiles(self, name_rules, hard_rules):
        """Test that profiles and their guarded rules are registered."""

        class Book(Model):
            fields = ("name", "author", "rating")

        Book.declare_profile("soft", name_rules)
        Book.declare_profile("hard", hard_rules)
        Book.validates_numericality_of("rating")

        assert Book.profile_names() == ["soft", "hard"]
        assert has_profile(Book, "soft")
        assert not Book.has_profile("bogus")
        # 1 unguarded, 1 soft, 2 hard
        assert len(Book.validators()) == 4
        assert len(get_registry(Book).get("hard").rules) == 2

    def test_module_and_builder(self, name_rules):
        """Test that rules from a rule set and a builder are both used."""

        class Song(Model):
            fields = ("name", "artist")

        Song.declare_profile("soft", builder=lambda model: model.validates_presence_of("name"))
        Song.declare_profile("hard", name_rules,
                             builder=lambda model: model.validates_presence_of("artist"))

        song = Song()
        song.switch_to("hard")
        assert not song.is_valid()
        assert len(song.errors) == 2
        assert song.errors.fields() == ["name", "artist"]

        song.switch_to("soft")
        assert not song.is_valid()
        assert song.errors.fields() == ["name"]

    def test_builder_include(self, name_rules):
        """Test including a rule set from within a builder."""

        class Human(Model):
            fields = ("name", "age")

        def base(model):
            model.include(name_rules)
            model.validates_numericality_of("age")

        Human.declare_profile("base", builder=base)
        human = Human()
        human.switch_to("base")
        assert not human.is_valid()
        assert len(human.errors.on("name")) == 1
        assert len(human.errors.on("age")) == 1
        assert len(get_registry(Human).get("base").rules) == 2

    def test_builder_rejects_unknown_operation(self):
        """Test that builders only accept rule declarations."""

        class Human(Model):
            fields = ("name",)

        with pytest.raises(UnknownOperation):
            Human.declare_profile("base", builder=lambda model: model.delete_all())

    def test_name_only_declaration(self):
        """Test declaring a profile without rules."""

        class Post(Model):
            pass

        Post.declare_profile("draft")
        Post.declare_profile("published")
        assert Post.has_profile("draft")
        assert Post.has_profile("published")
        post = Post()
        post.switch_to("draft")
        assert post.is_valid()

    def test_name_required(self, name_rules):
        """Test that a declaration without names fails."""

        class Post(Model):
            pass

        with pytest.raises(ConfigurationError, match="profile name is required"):
            Post.declare_profile(name_rules)

    def test_rejects_other_positional_values(self):
        """Test that positional values must be names or rule sets."""

        class Post(Model):
            pass

        with pytest.raises(TypeError):
            Post.declare_profile("soft", 42)

    def test_rules_keyword(self, name_rules):
        """Test passing the rule set by keyword."""

        class Person(Model):
            fields = ("name",)

        Person.declare_profile("soft", rules=name_rules)
        person = Person()
        person.switch_to("soft")
        assert not person.is_valid()


class TestPlainRecords:
    """Test declaring profiles on types that are not models."""

    def test_declare_profile_on_plain_record_raises(self, name_rules):
        """Test that a plain record type cannot hold profiles."""

        class Plain(Record):
            fields = ("name",)

        with pytest.raises(ConfigurationError, match="only be declared on Model types, not Plain"):
            declare_profile(Plain, "soft", name_rules)
        assert Plain().is_valid()
        assert Plain.validators() == []


class TestDefaultProfile:
    """Test the default option."""

    def test_default_set_on_construction(self, name_rules):
        """Test that new records start with the default profile."""

        class Human(Model):
            fields = ("name",)

        Human.declare_profile("soft", name_rules, default=True)
        human = Human()
        assert human.active_profile == "soft"
        assert Human.default_profile() == "soft"
        assert not human.is_valid()
        assert len(human.errors.on("name")) == 1

    def test_default_on_restored_record(self, name_rules):
        """Test that restored records also get the default profile."""

        class Human(Model):
            fields = ("name",)

        Human.declare_profile("soft", name_rules, default=True)
        assert Human.restore(name="Ann").active_profile == "soft"

    def test_second_default_warns_and_keeps_first(self, name_rules, caplog):
        """Test that a second default logs a warning and is ignored."""

        class Human(Model):
            fields = ("name",)

        Human.declare_profile("soft", name_rules, default=True)
        with caplog.at_level(logging.WARNING, logger="validation_profiles.declaration"):
            Human.declare_profile("hard", name_rules, default=True)

        assert "Profile 'soft' is already used as default on Human" in caplog.text
        assert Human().active_profile == "soft"
        assert not get_registry(Human).get("hard").default

    def test_second_default_raises_with_raise_policy(self, name_rules):
        """Test the raise policy for a second default."""
        configure({"policies": {"duplicate_default": "raise"}})

        class Human(Model):
            fields = ("name",)

        Human.declare_profile("soft", name_rules, default=True)
        with pytest.raises(DuplicateDefaultError):
            Human.declare_profile("hard", name_rules, default=True)
        assert not Human.has_profile("hard")

    def test_default_for_multiple_names(self):
        """Test that default cannot target several profiles."""

        class Entity(Model):
            pass

        with pytest.raises(MultiDefaultError, match="Can not set default to multiple profiles"):
            Entity.declare_profile("soft", "hard", default=True)
        assert Entity.profile_names() == []

    def test_default_cascades_to_assigned_relations(self, name_rules):
        """Test that the default profile reaches relations given to the constructor."""

        class Location(Model):
            fields = ("planet",)
            humans = has_many("Human")

        class Human(Model):
            fields = ("name",)
            location = belongs_to(Location)

        Location.declare_profile("soft", builder=lambda model: model.validates_presence_of("planet"))
        Human.declare_profile("soft", name_rules, nested="location", default=True)

        location = Location()
        human = Human(location=location)
        assert human.active_profile == "soft"
        assert location.active_profile == "soft"


class TestConditionalRules:
    """Test rules that carry their own guard."""

    def test_guards_are_combined(self):
        """Test that a rule's guard and the profile guard must both pass."""
        conditional = RuleSet("ConditionalRules")
        conditional.validates_presence_of("name", when="is_old")

        class Human(Model):
            fields = ("name", "age")

            def is_old(self):
                return (self.age or 0) > 60

        Human.declare_profile("conditional", conditional, default=True)

        old_man = Human(age=97)
        boy = Human(age=16)
        assert not old_man.is_valid()
        assert len(old_man.errors.on("name")) == 1
        assert boy.is_valid()

        old_man.clear_profile()
        assert old_man.is_valid()

    def test_captured_guard_is_not_modified(self):
        """Test that attaching does not change the captured rule."""
        conditional = RuleSet("ConditionalRules")
        rule = conditional.validates_presence_of("name", when="is_old")

        class Human(Model):
            fields = ("name",)
            is_old = True

        Human.declare_profile("conditional", conditional)
        assert rule.options == {"when": "is_old"}


class TestRepeatedDeclaration:
    """Test declaring the same profile name twice."""

    def test_same_name_merges_rules(self):
        """Test that a repeated name accumulates rules."""

        class Article(Model):
            fields = ("title", "content")

        Article.declare_profile("soft", builder=lambda model: model.validates_presence_of("title"))
        Article.declare_profile("soft", builder=lambda model: model.validates_presence_of("content"))

        article = Article()
        article.switch_to("soft")
        assert not article.is_valid()
        assert len(article.errors.on("title")) == 1
        assert len(article.errors.on("content")) == 1
        assert len(get_registry(Article).get("soft").rules) == 2

    def test_same_name_raises_with_raise_policy(self):
        """Test the raise policy for repeated names."""
        configure({"policies": {"duplicate_profile": "raise"}})

        class Article(Model):
            fields = ("title",)

        Article.declare_profile("soft")
        with pytest.raises(DuplicateProfileError, match="soft"):
            Article.declare_profile("soft")

    def test_require_rule_source_policy(self):
        """Test that name-only declarations fail when rule sources are required."""
        configure({"policies": {"require_rule_source": True}})

        class Article(Model):
            pass

        with pytest.raises(ConfigurationError, match="rule set or builder must be given"):
            Article.declare_profile("soft")


class TestMultipleNames:
    """Test declaring rules for several profiles at once."""

    @pytest.fixture
    def band(self):
        class Band(Model):
            fields = ("drummer", "bass", "guitar")

        def rhythm(model):
            model.validates_presence_of("drummer")
            model.validates_presence_of("bass")

        Band.declare_profile("rhythm_section", "punk_rock", builder=rhythm)
        Band.declare_profile("punk_rock", builder=lambda model: model.validates_presence_of("guitar"))
        return Band()

    def test_rhythm_section(self, band):
        """Test that the shared rules apply to the first name."""
        band.switch_to("rhythm_section")
        band.is_valid()
        assert band.errors.fields() == ["drummer", "bass"]

    def test_punk_rock(self, band):
        """Test that the shared and own rules apply to the second name."""
        band.switch_to("punk_rock")
        band.is_valid()
        assert band.errors.fields() == ["drummer", "bass", "guitar"]


class TestInheritance:
    """Test registries on derived model types."""

    def test_derived_type_gets_own_registry(self, name_rules):
        """Test that declarations on a subtype do not reach the parent."""

        class Person(Model):
            fields = ("name", "email")

        Person.declare_profile("soft", name_rules)

        class Employee(Person):
            pass

        Employee.declare_profile("strict", builder=lambda model: model.validates_presence_of("email"))

        assert Employee.has_profile("soft")
        assert Employee.has_profile("strict")
        assert not Person.has_profile("strict")
        assert get_registry(Employee) is not get_registry(Person)

    def test_derived_type_runs_inherited_profile_rules(self, name_rules):
        """Test that inherited profile rules still run on the subtype."""

        class Person(Model):
            fields = ("name",)

        Person.declare_profile("soft", name_rules, default=True)

        class Employee(Person):
            pass

        employee = Employee()
        assert employee.active_profile == "soft"
        assert not employee.is_valid()
        assert employee.errors.fields() == ["name"]

    def test_subtype_created_before_parent_declares(self, name_rules):
        """Test that a subtype keeps the state it had when it was created."""

        class Person(Model):
            fields = ("name",)

        class Employee(Person):
            pass

        Person.declare_profile("soft", name_rules, default=True)

        assert Person.has_profile("soft")
        assert Person().active_profile == "soft"
        assert not Employee.has_profile("soft")
        assert Employee.default_profile() is None

        employee = Employee()
        assert employee.active_profile is None
        assert employee.is_valid()
        with pytest.raises(UnknownProfileError):
            employee.switch_to("soft")

    def test_subtype_created_before_parent_declares_own_profiles(self, name_rules):
        """Test that an early subtype can declare the same profile itself."""

        class Person(Model):
            fields = ("name",)

        class Employee(Person):
            pass

        Person.declare_profile("soft", name_rules)
        Employee.declare_profile("soft", name_rules, default=True)

        employee = Employee()
        assert employee.active_profile == "soft"
        assert not employee.is_valid()
        assert employee.errors.fields() == ["name"]
        assert Person.default_profile() is None
