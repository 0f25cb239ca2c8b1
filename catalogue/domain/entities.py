"""Domain entities for the catalogue.

These are read-only snapshots of what the content service returns. They are
created once per request and never mutated afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum


class ItemState(str, Enum):
    """Lifecycle state of a catalogue item."""

    NEW = "New"
    ACTIVE = "Active"
    REJECTED = "Rejected"
    REMOVED = "Removed"


@dataclass(frozen=True)
class CategoryType:
    """A facet namespace such as "Phase" or "Channel".

    Attributes:
        id: Content service identifier.
        name: Display name.
        slug: URL-safe identifier.
        is_hierarchical: Whether values form a parent/child tree.
        enabled: Whether the type is shown to users.
        sort_order: Position among category types.
    """

    id: int
    name: str
    slug: str
    is_hierarchical: bool = False
    enabled: bool = True
    sort_order: int = 0
    description: str | None = None


@dataclass(frozen=True)
class CategoryValue:
    """A selectable value within a category type.

    Parent and children are referenced by slug, never by object, so the
    catalogue can validate the graph before building trees from it.

    Attributes:
        id: Content service identifier.
        slug: Identifier unique within the owning type.
        name: Display name.
        type_slug: Slug of the owning category type.
        enabled: Whether the value is offered as a facet option.
        sort_order: Position among siblings.
        parent_slug: Slug of the parent value, None for roots.
        children: Slugs of direct children as reported by the content service.
    """

    id: int
    slug: str
    name: str
    type_slug: str
    enabled: bool = True
    sort_order: int = 0
    parent_slug: str | None = None
    children: tuple[str, ...] = ()
    document_id: str | None = None


@dataclass(frozen=True)
class CategoryValueRef:
    """A category value as assigned to an item.

    Carries just enough of the owning type to decide which facet it
    belongs to.
    """

    slug: str
    name: str
    type_slug: str | None = None
    type_name: str | None = None


@dataclass(frozen=True)
class Item:
    """A catalogue entry (a product or service).

    Attributes:
        id: Content service identifier.
        title: Item title, the target of keyword matching.
        state: Lifecycle state name (see ItemState).
        category_values: Every category value assigned to the item.
    """

    id: int
    title: str
    state: str = ItemState.NEW.value
    document_id: str | None = None
    reference: str | None = None
    description: str | None = None
    category_values: tuple[CategoryValueRef, ...] = ()

    def has_state(self, state: str) -> bool:
        """Case-insensitive state comparison."""
        return self.state.casefold() == state.casefold()


@dataclass(frozen=True)
class ItemPage:
    """One page of items and the total number of matching items."""

    items: list[Item] = field(default_factory=list)
    total: int = 0
