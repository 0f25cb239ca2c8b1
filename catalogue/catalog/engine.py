"""Filter engine.

Executes a QueryPlan against the catalog repository and produces the full
filtered, ordered item list (or, under push-down, the requested page).

``matches`` is the authoritative definition of whether an item satisfies a
selection. Push-down relies on the content service computing the same
thing; fetch-and-refine evaluates it locally.
"""

from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field

import structlog

from catalogue.catalog.planner import QueryPlan
from catalogue.catalog.registry import FacetDefinition, FacetRegistry
from catalogue.catalog.selection import FilterSelection
from catalogue.domain.entities import Item, ItemPage
from catalogue.domain.exceptions import ContentServiceError

logger = structlog.get_logger()


# ============================================================================
# Predicate
# ============================================================================


def facet_slugs(item: Item, facet: FacetDefinition) -> set[str]:
    """Case-folded slugs of the item's values that belong to a facet."""
    return {ref.slug.casefold() for ref in item.category_values if facet.owns(ref)}


def matches_facet(item: Item, facet: FacetDefinition, selection: FilterSelection) -> bool:
    """Check one facet: a selected slug OR (sentinel AND no value of the type)."""
    owned = facet_slugs(item, facet)
    wanted = {s.casefold() for s in selection.slugs(facet.key)}
    if owned & wanted:
        return True
    return selection.wants_uncategorised(facet.key) and not owned


def matches_keywords(item: Item, terms: Sequence[str]) -> bool:
    """True when there are no terms or the title contains any of them."""
    if not terms:
        return True
    title = item.title.casefold()
    return any(term.casefold() in title for term in terms)


def matches(
    item: Item,
    selection: FilterSelection,
    registry: FacetRegistry,
    *,
    skip_facet: str | None = None,
    apply_keywords: bool = True,
) -> bool:
    """Check whether an item satisfies a selection.

    Facets are AND-ed; tokens within a facet are OR-ed. Keyword terms are
    one more AND-ed group, OR-ed internally against the title. A selected
    facet key that is not registered can only be satisfied through the
    sentinel, since no item carries values of an unknown type.

    Args:
        item: Item to test.
        selection: Parsed selection.
        registry: Facet registry.
        skip_facet: Facet key to ignore (used for independent facet counts).
        apply_keywords: Whether keyword terms take part.

    Returns:
        True if the item matches.
    """
    for key in selection.active_keys:
        if key == skip_facet:
            continue
        facet = registry.get(key)
        if facet is None:
            if not selection.wants_uncategorised(key):
                return False
            continue
        if not matches_facet(item, facet, selection):
            return False

    if apply_keywords:
        return matches_keywords(item, selection.keyword_terms)
    return True


# ============================================================================
# Page Stream
# ============================================================================


class PageStream:
    """Lazy, restartable sequence of content service pages.

    Iterating fetches page 1, reads the reported total, then fetches the
    remaining pages one after another. Page 1 is remembered, so callers
    that only need the total, or that iterate more than once, do not
    repeat that call. When the total changes between calls the items
    actually received are used as they are.

    Example usage:
        stream = PageStream(repo, state="Active", page_size=1000)
        total = await stream.total()       # one call
        items = await stream.collect()     # remaining calls
    """

    def __init__(
        self,
        repository,
        state: str | None,
        slugs: Sequence[str] = (),
        keyword_terms: Sequence[str] = (),
        page_size: int = 1000,
    ) -> None:
        self.repository = repository
        self.state = state
        self.slugs = tuple(slugs)
        self.keyword_terms = tuple(keyword_terms)
        self.page_size = page_size
        self._first: ItemPage | None = None
        self.calls = 0

    async def _fetch(self, page: int) -> ItemPage:
        self.calls += 1
        return await self.repository.fetch_items(
            self.state,
            slugs=list(self.slugs) or None,
            keyword_terms=list(self.keyword_terms) or None,
            page=page,
            page_size=self.page_size,
        )

    async def first_page(self) -> ItemPage:
        """Fetch (once) and return page 1."""
        if self._first is None:
            self._first = await self._fetch(1)
        return self._first

    async def total(self) -> int:
        """Total reported by the content service for page 1."""
        return (await self.first_page()).total

    async def pages(self) -> AsyncIterator[ItemPage]:
        """Yield pages in order until the reported total is covered.

        Raises:
            ContentServiceError: On content service failure.
        """
        first = await self.first_page()
        yield first

        page_count = -(-first.total // self.page_size) if first.total else 1
        received = len(first.items)
        page = 2
        while page <= page_count:
            result = await self._fetch(page)
            if result.total != first.total:
                logger.warning(
                    "Total changed during bulk fetch",
                    page=page,
                    first_total=first.total,
                    page_total=result.total,
                )
            yield result
            received += len(result.items)
            if not result.items:
                break
            page += 1

        logger.debug("Bulk fetch complete", pages=page_count, received=received, calls=self.calls)

    def __aiter__(self) -> AsyncIterator[Item]:
        return self._iter_items()

    async def _iter_items(self) -> AsyncIterator[Item]:
        async for page in self.pages():
            for item in page.items:
                yield item

    async def collect(self) -> list[Item]:
        """Materialise every item.

        Raises:
            ContentServiceError: On content service failure.
        """
        return [item async for item in self]


# ============================================================================
# Filter Engine
# ============================================================================


@dataclass
class EngineResult:
    """Outcome of executing a plan.

    Attributes:
        items: Filtered items. The requested page when ``pre_paginated``,
            the full filtered list otherwise.
        filtered_count: Number of items matching the whole selection.
        pre_paginated: Whether the content service already paginated.
        failed: Whether the content service call failed.
    """

    items: list[Item] = field(default_factory=list)
    filtered_count: int = 0
    pre_paginated: bool = False
    failed: bool = False

    @classmethod
    def empty(cls, failed: bool = False) -> "EngineResult":
        return cls(items=[], filtered_count=0, pre_paginated=True, failed=failed)


class FilterEngine:
    """Runs query plans against the catalog repository."""

    def __init__(self, repository, registry: FacetRegistry) -> None:
        """Initialize engine.

        Args:
            repository: Catalog query implementation (usually cached).
            registry: Facet registry.
        """
        self.repository = repository
        self.registry = registry

    def stream(self, plan: QueryPlan) -> PageStream:
        """Page stream for a plan's fetch-and-refine superset."""
        return PageStream(
            self.repository,
            state=plan.state,
            slugs=plan.push_slugs,
            keyword_terms=plan.keyword_terms,
            page_size=plan.fetch_page_size,
        )

    def refine(
        self,
        items: Sequence[Item],
        selection: FilterSelection,
        state: str,
    ) -> list[Item]:
        """Apply the baseline state and the full predicate locally.

        Order is preserved.
        """
        return [
            item
            for item in items
            if item.has_state(state) and matches(item, selection, self.registry)
        ]

    async def execute(
        self,
        plan: QueryPlan,
        selection: FilterSelection,
        baseline: Sequence[Item] | None = None,
    ) -> EngineResult:
        """Execute a plan.

        Content service failures are logged and turned into an empty,
        failed result rather than raised.

        Args:
            plan: Plan from the QueryPlanner.
            selection: Selection the plan was made for.
            baseline: Already-fetched baseline population. Reused for
                fetch-and-refine when the plan would fetch exactly that.

        Returns:
            Engine result.
        """
        try:
            if not plan.refines_locally:
                page = await self.repository.fetch_items(
                    plan.state,
                    slugs=list(plan.push_slugs) or None,
                    keyword_terms=list(plan.keyword_terms) or None,
                    page=plan.page,
                    page_size=plan.page_size,
                )
                return EngineResult(
                    items=list(page.items),
                    filtered_count=page.total,
                    pre_paginated=True,
                )

            if baseline is not None and plan.is_baseline_superset:
                superset = list(baseline)
                logger.debug("Refining from baseline", baseline=len(superset))
            else:
                superset = await self.stream(plan).collect()
        except ContentServiceError as e:
            logger.error(
                "Listing fetch failed",
                strategy=plan.strategy.value,
                error=e.message,
                status_code=e.status_code,
            )
            return EngineResult.empty(failed=True)

        filtered = self.refine(superset, selection, plan.state)
        logger.info(
            "Refined locally",
            fetched=len(superset),
            matched=len(filtered),
        )
        return EngineResult(
            items=filtered,
            filtered_count=len(filtered),
            pre_paginated=False,
        )
