"""Facet option counts.

For each option of each facet, counts the baseline items carrying that
value, with the selections of every other facet applied but not the
option's own facet. Selecting an option therefore changes which options are
marked selected, never the counts of its siblings.
"""

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from catalogue.catalog.engine import facet_slugs, matches
from catalogue.catalog.registry import FacetDefinition, FacetRegistry
from catalogue.catalog.selection import NOT_CATEGORISED_LABEL, UNCATEGORISED, FilterSelection
from catalogue.catalog.taxonomy import CategoryCatalog
from catalogue.domain.entities import CategoryValue, Item

logger = structlog.get_logger()


@dataclass
class FacetOption:
    """One selectable option of a facet.

    Attributes:
        value: Category value slug, or the UNCATEGORISED sentinel.
        label: Display label.
        count: Items that would match if this option were selected.
        selected: Whether the option is part of the current selection.
        children: Child options (hierarchical facets only).
        parent_label: Label of the parent option, for flattened display.
    """

    value: str
    label: str
    count: int = 0
    selected: bool = False
    children: list["FacetOption"] = field(default_factory=list)
    parent_label: str | None = None


@dataclass
class FacetOptions:
    """All options of one facet."""

    key: str
    name: str
    hierarchical: bool
    options: list[FacetOption] = field(default_factory=list)

    def find(self, value: str) -> FacetOption | None:
        """Find an option (or child option) by value, case-insensitively."""
        folded = value.casefold()
        for option in self.options:
            if option.value.casefold() == folded:
                return option
            for child in option.children:
                if child.value.casefold() == folded:
                    return child
        return None


class FacetCounter:
    """Builds facet option lists with independent counts."""

    def __init__(self, registry: FacetRegistry, apply_keywords: bool = False) -> None:
        """Initialize counter.

        Args:
            registry: Facet registry.
            apply_keywords: Whether keyword terms narrow the counted population.
        """
        self.registry = registry
        self.apply_keywords = apply_keywords

    def count(
        self,
        catalog: CategoryCatalog,
        baseline: Sequence[Item],
        selection: FilterSelection,
    ) -> dict[str, FacetOptions]:
        """Build options for every registered facet.

        Args:
            catalog: Category catalog for the request.
            baseline: Baseline population (state filter only, unpaginated).
            selection: Current selection.

        Returns:
            Facet key -> options, in registry order.
        """
        result: dict[str, FacetOptions] = {}
        for facet in self.registry:
            population = [
                item
                for item in baseline
                if matches(
                    item,
                    selection,
                    self.registry,
                    skip_facet=facet.key,
                    apply_keywords=self.apply_keywords,
                )
            ]
            result[facet.key] = self._facet_options(facet, catalog, population, selection)

        logger.debug(
            "Facet counts built",
            baseline=len(baseline),
            facets={k: len(v.options) for k, v in result.items()},
        )
        return result

    def _facet_options(
        self,
        facet: FacetDefinition,
        catalog: CategoryCatalog,
        population: Sequence[Item],
        selection: FilterSelection,
    ) -> FacetOptions:
        tally: Counter[str] = Counter()
        uncategorised = 0
        for item in population:
            owned = facet_slugs(item, facet)
            if not owned:
                uncategorised += 1
            tally.update(owned)

        if facet.hierarchical:
            options = [
                self._option(node.value, facet, tally, selection, children=node.children)
                for node in catalog.roots_of(facet.type_slug)
            ]
        else:
            options = [
                self._option(value, facet, tally, selection)
                for value in catalog.values_of_type(facet.type_slug)
            ]

        sentinel_selected = selection.wants_uncategorised(facet.key)
        if options and (uncategorised or sentinel_selected):
            options.append(
                FacetOption(
                    value=UNCATEGORISED,
                    label=NOT_CATEGORISED_LABEL,
                    count=uncategorised,
                    selected=sentinel_selected,
                )
            )

        return FacetOptions(
            key=facet.key,
            name=facet.name,
            hierarchical=facet.hierarchical,
            options=options,
        )

    def _option(
        self,
        value: CategoryValue,
        facet: FacetDefinition,
        tally: Counter[str],
        selection: FilterSelection,
        children: Sequence[CategoryValue] = (),
    ) -> FacetOption:
        return FacetOption(
            value=value.slug,
            label=value.name,
            count=tally[value.slug.casefold()],
            selected=selection.is_selected(facet.key, value.slug),
            children=[
                FacetOption(
                    value=child.slug,
                    label=child.name,
                    count=tally[child.slug.casefold()],
                    selected=selection.is_selected(facet.key, child.slug),
                    parent_label=value.name,
                )
                for child in children
            ],
        )
