"""Query planning.

Decides whether a selection can be answered by the content service alone
(push-down) or needs a bulk fetch followed by local refinement.

The content service's slug filter is one flat OR-set. That is exact for a
single facet, but it cannot AND two facets together and it cannot express
"has no value of this type". It also matches a slug whatever type owns it,
so a facet key outside the registry cannot be pushed down either. Anything
beyond one plain registered facet is therefore fetched as a superset and
refined locally.
"""

from dataclasses import dataclass
from enum import Enum

import structlog

from catalogue.catalog.registry import FacetRegistry, get_facet_registry
from catalogue.catalog.selection import FilterSelection

logger = structlog.get_logger()


class Strategy(str, Enum):
    """How a listing request is executed."""

    PUSH_DOWN = "push_down"
    FETCH_AND_REFINE = "fetch_and_refine"


@dataclass(frozen=True)
class QueryPlan:
    """Execution plan for one listing request.

    Attributes:
        strategy: Chosen strategy.
        state: Baseline lifecycle state, always sent to the content service.
        push_slugs: Slugs sent as the content service's OR-set. Under
            fetch-and-refine this is a superset filter that every matching
            item is guaranteed to satisfy.
        keyword_terms: Keyword OR-terms sent to the content service.
        page: Requested 1-based page.
        page_size: Requested page size.
        fetch_page_size: Page size used for each content service call.
    """

    strategy: Strategy
    state: str
    push_slugs: tuple[str, ...] = ()
    keyword_terms: tuple[str, ...] = ()
    page: int = 1
    page_size: int = 25
    fetch_page_size: int = 25

    @property
    def refines_locally(self) -> bool:
        return self.strategy is Strategy.FETCH_AND_REFINE

    @property
    def is_baseline_superset(self) -> bool:
        """True when the fetch would return the whole baseline population."""
        return not self.push_slugs and not self.keyword_terms


class QueryPlanner:
    """Chooses a strategy for a FilterSelection."""

    def __init__(
        self,
        baseline_state: str = "Active",
        bulk_page_size: int = 1000,
        registry: FacetRegistry | None = None,
    ) -> None:
        """Initialize planner.

        Args:
            baseline_state: Lifecycle state every listing is restricted to.
            bulk_page_size: Page size for fetch-and-refine bulk calls.
            registry: Facet registry; the default registry when omitted.
        """
        self.baseline_state = baseline_state
        self.bulk_page_size = bulk_page_size
        self.registry = registry or get_facet_registry()

    def plan(self, selection: FilterSelection) -> QueryPlan:
        """Plan a listing request.

        Push-down when at most one facet is active, that facet is registered
        and the sentinel is not selected anywhere; fetch-and-refine otherwise.

        Args:
            selection: Parsed selection.

        Returns:
            The query plan.
        """
        active = selection.active_keys
        unregistered = [key for key in active if key not in self.registry]

        if len(active) <= 1 and not unregistered and not selection.any_uncategorised():
            push_slugs = selection.slugs(active[0]) if active else ()
            plan = QueryPlan(
                strategy=Strategy.PUSH_DOWN,
                state=self.baseline_state,
                push_slugs=push_slugs,
                keyword_terms=selection.keyword_terms,
                page=selection.page,
                page_size=selection.page_size,
                fetch_page_size=selection.page_size,
            )
        else:
            plan = QueryPlan(
                strategy=Strategy.FETCH_AND_REFINE,
                state=self.baseline_state,
                push_slugs=self._superset_slugs(selection),
                keyword_terms=selection.keyword_terms,
                page=selection.page,
                page_size=selection.page_size,
                fetch_page_size=self.bulk_page_size,
            )

        logger.info(
            "Query planned",
            strategy=plan.strategy.value,
            active_facets=active,
            unregistered_facets=unregistered,
            push_slug_count=len(plan.push_slugs),
            term_count=len(plan.keyword_terms),
        )
        return plan

    def _superset_slugs(self, selection: FilterSelection) -> tuple[str, ...]:
        """Pick the slug set that narrows a bulk fetch without losing matches.

        Every matching item must carry one of the selected slugs of each
        active facet that has no sentinel, so any one of those slug sets is
        a safe pre-filter. The smallest one is used. Facets with the
        sentinel selected can match items with no value at all, and the
        slugs of an unregistered facet match no item; neither is ever
        pushed down.
        """
        candidates = [
            selection.slugs(key)
            for key in selection.active_keys
            if key in self.registry
            and not selection.wants_uncategorised(key)
            and selection.slugs(key)
        ]
        if not candidates:
            return ()
        return min(candidates, key=len)
