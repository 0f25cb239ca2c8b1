"""Tests for the facet registry."""

import pytest

from catalogue.catalog.registry import (
    FACET_REGISTRY_VERSION,
    FacetDefinition,
    FacetRegistry,
    get_facet_registry,
)
from catalogue.domain.entities import CategoryValueRef


class TestFacetDefinition:
    """Tests for FacetDefinition.owns."""

    @pytest.fixture
    def facet(self) -> FacetDefinition:
        """The business area facet."""
        return FacetDefinition(key="group", name="Business area", type_slug="business-area")

    def test_owns_by_type_slug(self, facet: FacetDefinition) -> None:
        """The type slug decides ownership, ignoring case."""
        assert facet.owns(CategoryValueRef(slug="nhs", name="NHS", type_slug="Business-Area"))
        assert not facet.owns(CategoryValueRef(slug="nhs", name="NHS", type_slug="phase"))

    def test_type_slug_beats_name(self, facet: FacetDefinition) -> None:
        """A mismatching slug is not rescued by a matching name."""
        ref = CategoryValueRef(slug="x", name="X", type_slug="phase", type_name="Business area")
        assert not facet.owns(ref)

    def test_owns_by_name_without_slug(self, facet: FacetDefinition) -> None:
        """Without a type slug the canonical name is used."""
        assert facet.owns(CategoryValueRef(slug="nhs", name="NHS", type_name="business area"))
        assert not facet.owns(CategoryValueRef(slug="nhs", name="NHS", type_name="User group"))

    def test_unowned_without_type(self, facet: FacetDefinition) -> None:
        """A reference with no type information belongs to no facet."""
        assert not facet.owns(CategoryValueRef(slug="nhs", name="NHS"))


class TestFacetRegistry:
    """Tests for FacetRegistry."""

    def test_default_registry(self) -> None:
        """The default registry lists the four facets in display order."""
        registry = get_facet_registry()
        assert registry.keys() == ["phase", "channel", "type", "group"]
        assert registry.version == FACET_REGISTRY_VERSION
        assert registry.get("group").hierarchical
        assert "phase" in registry
        assert len(registry) == 4

    def test_unknown_key(self) -> None:
        """Unknown keys are not registered."""
        assert get_facet_registry().get("audience") is None
        assert "audience" not in get_facet_registry()

    def test_duplicate_keys_rejected(self) -> None:
        """Two facets cannot share a key."""
        with pytest.raises(ValueError):
            FacetRegistry(
                [
                    FacetDefinition(key="phase", name="Phase", type_slug="phase"),
                    FacetDefinition(key="phase", name="Stage", type_slug="stage"),
                ]
            )

    def test_singleton(self) -> None:
        """The registry is resolved once."""
        assert get_facet_registry() is get_facet_registry()
