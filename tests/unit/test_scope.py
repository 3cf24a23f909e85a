"""
Tests for the backward-only binding scope chain.
"""

import pytest
from tests.test_utils import N
from kdltemplate.shared.scope import (
    Binding,
    BindingType,
    Scope,
    ScopeKind,
    ScopeRedefinitionError,
)
from kdltemplate.shared.span import SpanValue


def value(name, v):
    return Binding.value(name, SpanValue(v))


class TestLookup:
    """Lookup walks innermost to outermost"""

    def test_empty_scope(self):
        assert Scope.root().lookup("x") is None
        assert "x" not in Scope.root()

    def test_innermost_binding_wins(self):
        outer = Scope.root().bind(value("x", 1))
        inner = outer.bind(value("x", 2))
        assert inner.lookup("x").definition.value == 2
        assert outer.lookup("x").definition.value == 1

    def test_lookup_all_lists_shadowed_bindings(self):
        scope = Scope.root().bind(value("x", 1)).bind(value("y", 0)).bind(value("x", 2))
        assert [b.definition.value for b in scope.lookup_all("x")] == [2, 1]

    def test_defined_in_this_scope(self):
        scope = Scope.root().bind(value("x", 1)).bind(value("y", 2))
        assert scope.defined_in_this_scope("y")
        assert not scope.defined_in_this_scope("x")


class TestImmutability:
    """Pushing never mutates an existing link"""

    def test_push_leaves_parent_untouched(self):
        base = Scope.root()
        extended = base.push(ScopeKind.CALL, [value("a", 1), value("b", 2)])
        assert base.lookup("a") is None
        assert extended.lookup("b").definition.value == 2
        assert extended.parent is base
        assert extended.kind is ScopeKind.CALL

    def test_duplicate_in_one_link_raises(self):
        with pytest.raises(ScopeRedefinitionError) as exc_info:
            Scope.root().push(ScopeKind.CALL, [value("a", 1), value("a", 2)])
        assert exc_info.value.name == "a"

    def test_depth(self):
        assert Scope.root().depth == 0
        assert Scope.root().bind(value("a", 1)).bind(value("b", 1)).depth == 2


class TestHidden:
    """Names declared later in the same document"""

    def test_hidden_name(self):
        scope = Scope.root().hide(["later"])
        assert scope.is_hidden("later")
        assert not scope.is_hidden("other")
        assert scope.lookup("later") is None

    def test_binding_above_hide_link_wins(self):
        scope = Scope.root().hide(["t"]).bind(Binding.template("t", None))
        assert not scope.is_hidden("t")

    def test_hide_nothing_returns_same_scope(self):
        scope = Scope.root()
        assert scope.hide([]) is scope


class TestBindings:
    """Binding records and visible-binding iteration"""

    def test_visible_bindings_skip_shadowed(self):
        scope = Scope.root().bind(value("x", 1)).bind(Binding.template("t", None)).bind(value("x", 2))
        visible = list(scope.bindings())
        assert [b.name for b in visible] == ["x", "t"]
        assert visible[0].definition.value == 2
        assert [b.name for b in scope.templates()] == ["t"]

    def test_binding_constructors(self):
        home = Scope.root()
        node_binding = Binding.node("p", N("D"), home)
        expand_binding = Binding.expand("xs", [N("A"), N("B")], home)
        assert node_binding.binding_type is BindingType.NODE
        assert node_binding.scope is home
        assert expand_binding.definition == (N("A"), N("B"))

    def test_renamed_keeps_definition_and_sets_origin(self):
        binding = Binding.template("card", "definition")
        imported = binding.renamed("A/card", origin="A")
        assert imported.name == "A/card"
        assert imported.definition == "definition"
        assert imported.is_imported
        assert not binding.is_imported
        assert imported.renamed("c").origin == "A"


class TestImportsFrom:
    """Which documents were composed into a chain"""

    def test_import_link_origin(self):
        template = Binding.template("lib/t", None, origin="lib")
        scope = Scope.root().push(ScopeKind.IMPORT, [template]).bind(value("x", 1))
        assert scope.imports_from("lib")
        assert not scope.imports_from("other")

    def test_declarations_are_not_imports(self):
        scope = Scope.root().bind(Binding.template("t", None))
        assert not scope.imports_from("t")
        assert not Scope.root().imports_from("lib")
