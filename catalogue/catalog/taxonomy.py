"""Category taxonomy held as an arena of category values.

Values are stored per category type and keyed by slug. Parent links are
slugs, so the parent/child graph can be checked before any tree is built
from it: a value whose parent chain loops back on itself, or whose parent is
not a value of the same type, is dropped at load time.

Example usage:
    catalog = CategoryCatalog()
    catalog.load("business-area", values)
    for node in catalog.roots_of("business-area"):
        print(node.value.name, [c.name for c in node.children])
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

import structlog

from catalogue.domain.entities import CategoryValue
from catalogue.domain.exceptions import UnknownCategoryValueError

logger = structlog.get_logger()


def _sort_key(value: CategoryValue) -> tuple[int, str]:
    return (value.sort_order, value.name.casefold())


@dataclass(frozen=True)
class CategoryNode:
    """A root value with its enabled direct children.

    Attributes:
        value: The root category value.
        children: Enabled children in sort order.
    """

    value: CategoryValue
    children: list[CategoryValue] = field(default_factory=list)


class _TypeArena:
    """Validated values of one category type."""

    def __init__(self, type_slug: str, values: Iterable[CategoryValue]) -> None:
        self.type_slug = type_slug
        self.values: dict[str, CategoryValue] = {}
        self.parents: dict[str, str | None] = {}
        self.children: dict[str, list[str]] = {}
        self.dropped: list[str] = []
        self._build(list(values))

    def _build(self, values: list[CategoryValue]) -> None:
        # First pass: index by slug, first occurrence wins
        for value in values:
            key = value.slug.casefold()
            if key in self.values:
                logger.warning(
                    "Duplicate category value slug ignored",
                    type_slug=self.type_slug,
                    slug=value.slug,
                )
                continue
            self.values[key] = value

        # Second pass: resolve parents, falling back to the children lists
        declared: dict[str, str | None] = {
            k: (v.parent_slug.casefold() if v.parent_slug else None) for k, v in self.values.items()
        }
        for key, value in self.values.items():
            for child in value.children:
                child_key = child.casefold()
                if child_key in declared and declared[child_key] is None and child_key != key:
                    declared[child_key] = key

        # Third pass: drop values with a foreign parent or a looping chain
        for key in list(self.values):
            reason = self._invalid_reason(key, declared)
            if reason:
                self.dropped.append(self.values[key].slug)
                logger.warning(
                    "Category value dropped",
                    type_slug=self.type_slug,
                    slug=self.values[key].slug,
                    reason=reason,
                )
        for slug in self.dropped:
            del self.values[slug.casefold()]

        for key in self.values:
            parent = declared.get(key)
            self.parents[key] = parent
            self.children.setdefault(key, [])
            if parent is not None:
                self.children.setdefault(parent, []).append(key)

        for key, child_keys in self.children.items():
            child_keys.sort(key=lambda k: _sort_key(self.values[k]))

    def _invalid_reason(self, key: str, declared: dict[str, str | None]) -> str | None:
        seen = {key}
        current = declared.get(key)
        while current is not None:
            if current not in self.values:
                return "parent not found in type"
            if current in seen:
                return "cycle in parent chain"
            seen.add(current)
            current = declared.get(current)
        return None


class CategoryCatalog:
    """Read-only view of category types and their value hierarchies.

    One catalog is built per request. Types that were never loaded, or that
    the content service returned no values for, behave as empty.
    """

    def __init__(self) -> None:
        """Initialize an empty catalog."""
        self._arenas: dict[str, _TypeArena] = {}

    def load(self, type_slug: str, values: Iterable[CategoryValue]) -> None:
        """Load (or replace) the values of one category type.

        Args:
            type_slug: Category type slug.
            values: Values as returned by the content service.
        """
        arena = _TypeArena(type_slug, values)
        self._arenas[type_slug.casefold()] = arena
        logger.debug(
            "Category type loaded",
            type_slug=type_slug,
            values=len(arena.values),
            dropped=len(arena.dropped),
        )

    def _arena(self, type_slug: str) -> _TypeArena | None:
        return self._arenas.get(type_slug.casefold())

    def dropped_values(self, type_slug: str) -> list[str]:
        """Slugs rejected by forest validation for a type."""
        arena = self._arena(type_slug)
        return list(arena.dropped) if arena else []

    def get(self, type_slug: str, slug: str) -> CategoryValue | None:
        """Get a value by slug, None if unknown."""
        arena = self._arena(type_slug)
        if arena is None:
            return None
        return arena.values.get(slug.casefold())

    def values_of_type(self, type_slug: str) -> list[CategoryValue]:
        """Enabled values of a type in sort order.

        Args:
            type_slug: Category type slug.

        Returns:
            Enabled values, empty for unknown or empty types.
        """
        arena = self._arena(type_slug)
        if arena is None:
            return []
        return sorted((v for v in arena.values.values() if v.enabled), key=_sort_key)

    def roots_of(self, type_slug: str) -> list[CategoryNode]:
        """Enabled root values, each with its enabled direct children.

        Args:
            type_slug: Category type slug.

        Returns:
            Root nodes in sort order.
        """
        arena = self._arena(type_slug)
        if arena is None:
            return []

        roots = [
            v for k, v in arena.values.items() if v.enabled and arena.parents.get(k) is None
        ]
        return [
            CategoryNode(
                value=root,
                children=self.children_of(type_slug, root.slug),
            )
            for root in sorted(roots, key=_sort_key)
        ]

    def children_of(self, type_slug: str, slug: str) -> list[CategoryValue]:
        """Enabled direct children of a value.

        Raises:
            UnknownCategoryValueError: If the value does not exist.
        """
        arena = self._arena(type_slug)
        key = slug.casefold()
        if arena is None or key not in arena.values:
            raise UnknownCategoryValueError(type_slug, slug)
        return [arena.values[k] for k in arena.children.get(key, []) if arena.values[k].enabled]

    def parent_of(self, type_slug: str, slug: str) -> CategoryValue | None:
        """Validated parent of a value, None for roots and unknown values."""
        arena = self._arena(type_slug)
        if arena is None:
            return None
        parent = arena.parents.get(slug.casefold())
        return arena.values.get(parent) if parent else None

    def breadcrumb(self, type_slug: str, slug: str) -> list[CategoryValue]:
        """Ancestor chain of a value, root first, ending with the value itself.

        Raises:
            UnknownCategoryValueError: If the value does not exist.
        """
        value = self.get(type_slug, slug)
        if value is None:
            raise UnknownCategoryValueError(type_slug, slug)

        chain = [value]
        parent = self.parent_of(type_slug, value.slug)
        while parent is not None:
            chain.append(parent)
            parent = self.parent_of(type_slug, parent.slug)
        chain.reverse()
        return chain

    def label_for(self, type_slug: str, slug: str) -> str | None:
        """Display name of a value, None if unknown."""
        value = self.get(type_slug, slug)
        return value.name if value else None
