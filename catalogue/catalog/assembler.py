"""Result assembly.

Slices the requested page out of the filtered list and packages items,
counts, facet options and the active-filter chips into a FilterResult.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from urllib.parse import urlencode

from catalogue.catalog.engine import EngineResult
from catalogue.catalog.facets import FacetOptions
from catalogue.catalog.keywords import join_keywords
from catalogue.catalog.planner import Strategy
from catalogue.catalog.registry import FacetRegistry
from catalogue.catalog.selection import NOT_CATEGORISED_LABEL, FilterSelection, is_uncategorised
from catalogue.catalog.taxonomy import CategoryCatalog
from catalogue.domain.entities import Item

KEYWORDS_PARAM = "keywords"
KEYWORDS_LABEL = "Search term"


@dataclass
class SelectedFilter:
    """One active filter, with a link that removes just that filter.

    Attributes:
        facet_key: Facet key, or "keywords" for a keyword term.
        category: Facet display name ("Search term" for keywords).
        value: Selected token or keyword term.
        display_text: Label to show.
        remove_url: Listing URL with this one filter removed.
    """

    facet_key: str
    category: str
    value: str
    display_text: str
    remove_url: str


@dataclass
class FilterResult:
    """A counted, paginated listing.

    Attributes:
        items: Items of the requested page.
        total_count: Baseline population size (state filter only).
        filtered_count: Items matching the whole selection.
        facets: Facet key -> options, in registry order.
        page: 1-based page number.
        page_size: Items per page.
        keyword_terms: Parsed keyword terms.
        selected_filters: Active-filter chips.
        strategy: Strategy the listing was executed with.
        degraded: True when the content service failed and the result is empty.
    """

    items: list[Item] = field(default_factory=list)
    total_count: int = 0
    filtered_count: int = 0
    facets: dict[str, FacetOptions] = field(default_factory=dict)
    page: int = 1
    page_size: int = 25
    keyword_terms: list[str] = field(default_factory=list)
    selected_filters: list[SelectedFilter] = field(default_factory=list)
    strategy: Strategy | None = None
    degraded: bool = False

    @property
    def total_pages(self) -> int:
        """Calculate total pages."""
        return (self.filtered_count + self.page_size - 1) // self.page_size

    @property
    def has_next(self) -> bool:
        """Check if there's a next page."""
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        """Check if there's a previous page."""
        return self.page > 1

    @property
    def start_index(self) -> int:
        """1-based position of the first item on the page, 0 when empty."""
        if not self.items:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def end_index(self) -> int:
        """1-based position of the last item on the page, 0 when empty."""
        if not self.items:
            return 0
        return self.start_index + len(self.items) - 1

    @classmethod
    def empty(
        cls,
        selection: FilterSelection,
        degraded: bool = False,
    ) -> "FilterResult":
        """Empty result for a selection, keeping its page and terms."""
        return cls(
            page=selection.page,
            page_size=selection.page_size,
            keyword_terms=list(selection.keyword_terms),
            degraded=degraded,
        )


def paginate(items: Sequence[Item], page: int, page_size: int) -> list[Item]:
    """Slice a 1-based page; pages past the end are empty."""
    start = (page - 1) * page_size
    return list(items[start : start + page_size])


class ResultAssembler:
    """Builds FilterResults from engine output."""

    def __init__(self, registry: FacetRegistry, base_path: str = "/products") -> None:
        """Initialize assembler.

        Args:
            registry: Facet registry (fixes chip and query-string order).
            base_path: Listing path used for remove links.
        """
        self.registry = registry
        self.base_path = base_path

    def assemble(
        self,
        selection: FilterSelection,
        engine_result: EngineResult,
        total_count: int,
        facets: dict[str, FacetOptions],
        catalog: CategoryCatalog,
        strategy: Strategy | None = None,
    ) -> FilterResult:
        """Package a listing.

        Args:
            selection: Current selection.
            engine_result: Filter engine output.
            total_count: Baseline population size.
            facets: Facet options from the FacetCounter.
            catalog: Category catalog, for chip labels.
            strategy: Executed strategy.

        Returns:
            The assembled result.
        """
        if engine_result.pre_paginated:
            items = list(engine_result.items)
        else:
            items = paginate(engine_result.items, selection.page, selection.page_size)

        return FilterResult(
            items=items,
            total_count=total_count,
            filtered_count=engine_result.filtered_count,
            facets=facets,
            page=selection.page,
            page_size=selection.page_size,
            keyword_terms=list(selection.keyword_terms),
            selected_filters=self.selected_filters(selection, catalog),
            strategy=strategy,
            degraded=engine_result.failed,
        )

    def selected_filters(
        self,
        selection: FilterSelection,
        catalog: CategoryCatalog,
    ) -> list[SelectedFilter]:
        """Chips for every keyword term and every selected token.

        Keyword chips come first, then facets in registry order. Keys that
        are not registered follow, labelled with the key itself.
        """
        chips = [
            SelectedFilter(
                facet_key=KEYWORDS_PARAM,
                category=KEYWORDS_LABEL,
                value=term,
                display_text=term,
                remove_url=self.remove_url(selection, KEYWORDS_PARAM, term),
            )
            for term in selection.keyword_terms
        ]

        for key in self._ordered_keys(selection):
            facet = self.registry.get(key)
            for token in selection.tokens(key):
                if is_uncategorised(token):
                    text = NOT_CATEGORISED_LABEL
                elif facet is not None:
                    text = catalog.label_for(facet.type_slug, token) or token
                else:
                    text = token
                chips.append(
                    SelectedFilter(
                        facet_key=key,
                        category=facet.name if facet else key,
                        value=token,
                        display_text=text,
                        remove_url=self.remove_url(selection, key, token),
                    )
                )
        return chips

    def remove_url(self, selection: FilterSelection, key: str, token: str) -> str:
        """Listing URL reproducing the selection without one token.

        The page number is dropped, so the link lands on page 1.
        """
        params: list[tuple[str, str]] = []

        terms = list(selection.keyword_terms)
        if key == KEYWORDS_PARAM:
            terms = [t for t in terms if t.casefold() != token.casefold()]
        joined = join_keywords(terms)
        if joined:
            params.append((KEYWORDS_PARAM, joined))

        for facet_key in self._ordered_keys(selection):
            for value in selection.tokens(facet_key):
                if facet_key == key and value.casefold() == token.casefold():
                    continue
                params.append((facet_key, value))

        query = urlencode(params)
        return f"{self.base_path}?{query}" if query else self.base_path

    def _ordered_keys(self, selection: FilterSelection) -> list[str]:
        active = selection.active_keys
        known = [k for k in self.registry.keys() if k in active]
        return known + [k for k in active if k not in self.registry]
