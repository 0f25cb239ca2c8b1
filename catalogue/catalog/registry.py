"""Facet registry.

Maps a stable facet key (the query parameter name) to one canonical category
type. Adding a facet means adding an entry here; nothing else in the
filtering pipeline names individual facets.
"""

from collections.abc import Iterator
from dataclasses import dataclass

from catalogue.domain.entities import CategoryValueRef

FACET_REGISTRY_VERSION = "2024-06"


@dataclass(frozen=True)
class FacetDefinition:
    """A filterable category type.

    Attributes:
        key: Stable key used in query strings (e.g. "phase").
        name: Canonical display name of the category type.
        type_slug: Slug of the category type in the content service.
        hierarchical: Whether options are shown as roots with children.
    """

    key: str
    name: str
    type_slug: str
    hierarchical: bool = False

    def owns(self, ref: CategoryValueRef) -> bool:
        """Check whether an assigned category value belongs to this facet.

        The type slug is authoritative; the display name is only used when
        the content service did not populate the slug.
        """
        if ref.type_slug:
            return ref.type_slug.casefold() == self.type_slug.casefold()
        if ref.type_name:
            return ref.type_name.casefold() == self.name.casefold()
        return False


class FacetRegistry:
    """Ordered, immutable set of facet definitions."""

    def __init__(
        self,
        facets: tuple[FacetDefinition, ...] | list[FacetDefinition],
        version: str = FACET_REGISTRY_VERSION,
    ) -> None:
        keys = [f.key for f in facets]
        if len(set(keys)) != len(keys):
            raise ValueError(f"Duplicate facet keys in registry: {keys}")
        self.version = version
        self._facets = tuple(facets)
        self._by_key = {f.key: f for f in self._facets}

    def __iter__(self) -> Iterator[FacetDefinition]:
        return iter(self._facets)

    def __len__(self) -> int:
        return len(self._facets)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def get(self, key: str) -> FacetDefinition | None:
        """Get a facet by key, None when not registered."""
        return self._by_key.get(key)

    def keys(self) -> list[str]:
        """Facet keys in display order."""
        return [f.key for f in self._facets]


DEFAULT_FACETS = (
    FacetDefinition(key="phase", name="Phase", type_slug="phase"),
    FacetDefinition(key="channel", name="Channel", type_slug="channel"),
    FacetDefinition(key="type", name="Type", type_slug="type"),
    FacetDefinition(key="group", name="Business area", type_slug="business-area", hierarchical=True),
)


# Global registry instance
_facet_registry: FacetRegistry | None = None


def get_facet_registry() -> FacetRegistry:
    """Get the facet registry singleton.

    Returns:
        FacetRegistry built from DEFAULT_FACETS.
    """
    global _facet_registry
    if _facet_registry is None:
        _facet_registry = FacetRegistry(DEFAULT_FACETS)
    return _facet_registry
