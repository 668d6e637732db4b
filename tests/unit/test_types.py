"""
Unit tests for property and node types.

Tests cover:
- PropertyType construction and check precedence
- NodeType construction and normalisation
- Inheritance resolution (merge order, own declarations, wildcards)
- Cycle and unknown supertype detection
- Subtype queries
"""

import gc

import pytest

from content_repository.errors import (
    ConfigError,
    ImmutablePropertyError,
    InheritanceCycleError,
    RequiredPropertyError,
    ValidationError,
)
from content_repository.schema import NodeType, PropertyType, TypeRegistry, ValueType


def registry_with(*node_types: NodeType) -> TypeRegistry:
    """Helper to register node types in a fresh registry."""
    registry = TypeRegistry()
    for node_type in node_types:
        registry.register_node_type(node_type)
    return registry


class TestPropertyType:
    """Tests for PropertyType."""

    def test_defaults(self):
        """Property types are read-only and required by default."""
        prop = PropertyType(name="my:prop")
        assert prop.updatable is False
        assert prop.removable is False
        assert prop.auto_created is False
        assert prop.value_type.name == "rs:scalar"

    def test_name_required(self):
        """Missing name raises ConfigError."""
        with pytest.raises(ConfigError, match='"name" argument must be given'):
            PropertyType(name="")

    def test_auto_created_requires_default(self):
        """Auto-created without a derivable default raises ConfigError."""
        with pytest.raises(ConfigError, match='"default" argument must be given'):
            PropertyType(name="my:prop", auto_created=True)

    def test_auto_created_with_default_or_engine_default(self):
        """A default value or an engine-derived default is enough."""
        PropertyType(name="my:a", auto_created=True, default="x")
        PropertyType(name="my:b", auto_created=True, engine_default=True)

    def test_immutable_rejects_every_value(self):
        """Non-updatable properties reject all writes."""
        prop = PropertyType(name="my:ro", updatable=False, removable=True)

        for value in ("same", "", 0, None):
            with pytest.raises(ImmutablePropertyError, match="Cannot change immutable property"):
                prop.check(value)

    def test_immutability_checked_before_requiredness(self):
        """Read-only and required rejects None with the immutability error."""
        prop = PropertyType(name="my:ro", updatable=False, removable=False)

        with pytest.raises(ImmutablePropertyError):
            prop.check(None)

    def test_required_rejects_none(self):
        """Updatable but not removable rejects None."""
        prop = PropertyType(name="my:req", updatable=True, removable=False)

        with pytest.raises(RequiredPropertyError, match="may not be unset or deleted"):
            prop.check(None)
        prop.check("value")

    def test_removable_accepts_none(self):
        """Removable properties may be unset."""
        PropertyType(name="my:opt", updatable=True, removable=True).check(None)

    def test_errors_are_validation_errors(self):
        """Both precedence errors are validation failures."""
        assert issubclass(ImmutablePropertyError, ValidationError)
        assert issubclass(RequiredPropertyError, ValidationError)

    def test_value_type_check_delegated(self):
        """Non-absent values are checked by the value type."""
        prop = PropertyType(
            name="my:num",
            updatable=True,
            value_type=ValueType(name="my:int", checker=lambda v: isinstance(v, int)),
        )

        prop.check(5)
        with pytest.raises(ValidationError):
            prop.check("five")

    def test_inflate_deflate_through_value_type(self):
        """Conversions use the value type."""
        prop = PropertyType(name="my:num", value_type=ValueType(name="my:int", inflater=int, deflater=str))
        assert prop.inflate("7") == 7
        assert prop.deflate(7) == "7"

    def test_from_dict_unknown_value_type(self):
        """Unknown value type names are configuration errors."""
        with pytest.raises(ConfigError, match="unknown value type 'my:nope'"):
            PropertyType.from_dict({"name": "my:p", "value_type": "my:nope"}, lambda name: None)


class TestNodeType:
    """Tests for NodeType definitions."""

    def test_defaults(self):
        """Node types are concrete, immutable, unordered by default."""
        node_type = NodeType(name="my:node")
        assert node_type.abstract is False
        assert node_type.supertypes == ()
        assert node_type.mutable is False
        assert node_type.required is False
        assert node_type.ordered is False

    def test_name_required(self):
        """Missing name raises ConfigError."""
        with pytest.raises(ConfigError, match='"name" argument must be given'):
            NodeType(name="")

    def test_child_nodes_normalised(self):
        """Single type names become one-element tuples."""
        node_type = NodeType(
            name="my:node",
            child_nodes={"foo": "my:x", "bar": ["my:y", "my:z"]},
            supertypes=["my:base"],
        )
        assert node_type.child_nodes == {"foo": ("my:x",), "bar": ("my:y", "my:z")}
        assert node_type.supertypes == ("my:base",)

    def test_declarations_are_read_only(self):
        """Declared maps cannot be modified after construction."""
        node_type = NodeType(name="my:node", child_properties={"my:p": "my:t"})
        with pytest.raises(TypeError):
            node_type.child_properties["my:q"] = "my:t"

    def test_equality_by_name(self):
        """Types with the same name compare equal."""
        assert NodeType(name="my:a") == NodeType(name="my:a", ordered=True)
        assert len({NodeType(name="my:a"), NodeType(name="my:a")}) == 1


class TestInheritance:
    """Tests for effective map resolution."""

    def test_no_supertypes_needs_no_registry(self):
        """A root type resolves to its own declarations."""
        node_type = NodeType(name="my:a", child_properties={"p": "T1"})
        assert node_type.effective_child_properties() == {"p": "T1"}

    def test_later_supertype_wins(self):
        """Among supertypes, the later declaration wins."""
        a = NodeType(name="A", child_properties={"p": "T1", "only_a": "T1"})
        b = NodeType(name="B", child_properties={"p": "T2"})
        leaf = NodeType(name="Leaf", supertypes=("A", "B"))
        registry_with(a, b, leaf)

        assert leaf.effective_child_properties() == {"p": "T2", "only_a": "T1"}

    def test_own_declaration_wins(self):
        """The type's own declaration overrides every supertype."""
        a = NodeType(name="A", child_properties={"p": "T1"})
        b = NodeType(name="B", child_properties={"p": "T2"})
        leaf = NodeType(name="Leaf", supertypes=("A", "B"), child_properties={"p": "T3"})
        registry_with(a, b, leaf)

        assert leaf.effective_child_properties() == {"p": "T3"}

    def test_transitive_inheritance(self):
        """Grand-supertypes contribute to the effective map."""
        base = NodeType(name="Base", child_nodes={"meta": "Meta"})
        mid = NodeType(name="Mid", supertypes=("Base",), child_nodes={"body": "Body"})
        leaf = NodeType(name="Leaf", supertypes=("Mid",))
        registry_with(base, mid, leaf)

        assert leaf.effective_child_nodes() == {"meta": ("Meta",), "body": ("Body",)}

    def test_wildcard_merges_like_named_entries(self):
        """A "*" entry on a later supertype replaces an earlier one."""
        a = NodeType(name="A", child_nodes={"*": "X"})
        b = NodeType(name="B", child_nodes={"*": ["Y", "Z"]})
        leaf = NodeType(name="Leaf", supertypes=("A", "B"))
        registry_with(a, b, leaf)

        assert leaf.effective_child_nodes() == {"*": ("Y", "Z")}

    def test_allowed_child_types(self):
        """Explicit names win, anything else falls back to the wildcard."""
        folder = NodeType(name="Folder", child_nodes={"index": "Page", "*": ["Page", "Folder"]})
        registry_with(folder)

        assert folder.allowed_child_types("index") == ("Page",)
        assert folder.allowed_child_types("other") == ("Page", "Folder")
        assert NodeType(name="Leaf").allowed_child_types("x") == ()

    def test_cycle_detected(self):
        """Supertype cycles raise InheritanceCycleError."""
        a = NodeType(name="A", supertypes=("B",))
        b = NodeType(name="B", supertypes=("A",))
        registry_with(a, b)

        with pytest.raises(InheritanceCycleError, match="A -> B -> A") as exc_info:
            a.effective_child_properties()
        assert isinstance(exc_info.value, ConfigError)

    def test_self_cycle_detected(self):
        """A type listing itself as supertype is a cycle."""
        a = NodeType(name="A", supertypes=("A",))
        registry_with(a)

        with pytest.raises(InheritanceCycleError):
            a.effective_child_nodes()

    def test_unknown_supertype(self):
        """Unknown supertypes are configuration errors."""
        leaf = NodeType(name="Leaf", supertypes=("Missing",))
        registry_with(leaf)

        with pytest.raises(ConfigError, match="unknown node type 'Missing'"):
            leaf.effective_child_properties()

    def test_resolution_outlives_caller_registry_reference(self):
        """Types keep resolving after the caller drops its registry."""

        def build_leaf():
            return TypeRegistry.from_dict(
                {
                    "node_types": [
                        {"name": "A", "child_properties": {"p": "T1"}},
                        {"name": "B", "child_properties": {"p": "T2"}},
                        {"name": "Leaf", "supertypes": ["A", "B"]},
                    ]
                }
            ).node_type("Leaf")

        leaf = build_leaf()
        gc.collect()

        assert leaf.effective_child_properties() == {"p": "T2"}
        assert leaf.is_subtype_of("A")

    def test_unbound_type_with_supertypes(self):
        """Supertypes cannot be resolved before registration."""
        leaf = NodeType(name="Leaf", supertypes=("A",))

        with pytest.raises(ConfigError, match="not bound to a registry"):
            leaf.effective_child_properties()

    def test_effective_map_is_a_copy(self):
        """Callers cannot corrupt memoised results."""
        a = NodeType(name="A", child_properties={"p": "T1"})
        leaf = NodeType(name="Leaf", supertypes=("A",))
        registry = registry_with(a, leaf)
        registry.register_property_type(PropertyType(name="T1"))
        registry.freeze()

        first = leaf.effective_child_properties()
        first["q"] = "T2"

        assert leaf.effective_child_properties() == {"p": "T1"}

    def test_ancestors_and_subtypes(self):
        """Ancestors are transitive and deduplicated."""
        base = NodeType(name="Base")
        left = NodeType(name="Left", supertypes=("Base",))
        right = NodeType(name="Right", supertypes=("Base",))
        leaf = NodeType(name="Leaf", supertypes=("Left", "Right"))
        registry_with(base, left, right, leaf)

        assert leaf.ancestors() == ["Left", "Base", "Right"]
        assert leaf.is_subtype_of("Base")
        assert leaf.is_subtype_of("Leaf")
        assert not base.is_subtype_of("Leaf")

    def test_allows_child_accepts_subtypes(self):
        """A child whose type inherits from an allowed type is allowed."""
        obj = NodeType(name="Object", abstract=True)
        file = NodeType(name="File", supertypes=("Object",))
        other = NodeType(name="Other")
        directory = NodeType(name="Directory", supertypes=("Object",), child_nodes={"*": "Object"})
        registry_with(obj, file, other, directory)

        assert directory.allows_child("readme", "File")
        assert directory.allows_child("sub", "Directory")
        assert not directory.allows_child("x", "Other")
        assert not directory.allows_child("x", "Unknown")
