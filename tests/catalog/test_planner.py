"""Tests for query planning."""

import pytest

from catalogue.catalog.planner import QueryPlanner, Strategy
from catalogue.catalog.selection import UNCATEGORISED, FilterSelection


class TestQueryPlanner:
    """Tests for QueryPlanner."""

    @pytest.fixture
    def planner(self) -> QueryPlanner:
        """Create planner with the default baseline."""
        return QueryPlanner(baseline_state="Active", bulk_page_size=1000)

    def test_no_selection_pushes_down(self, planner: QueryPlanner) -> None:
        """An empty selection is answered by the content service directly."""
        plan = planner.plan(FilterSelection.parse(page=3))
        assert plan.strategy is Strategy.PUSH_DOWN
        assert plan.state == "Active"
        assert plan.push_slugs == ()
        assert plan.page == 3
        assert plan.fetch_page_size == 25
        assert not plan.refines_locally

    def test_single_facet_pushes_down(self, planner: QueryPlanner) -> None:
        """One facet maps exactly onto the flat slug OR-set."""
        plan = planner.plan(FilterSelection.parse({"phase": ["alpha", "beta"]}, keywords="tax"))
        assert plan.strategy is Strategy.PUSH_DOWN
        assert plan.push_slugs == ("alpha", "beta")
        assert plan.keyword_terms == ("tax",)

    def test_two_facets_refine_locally(self, planner: QueryPlanner) -> None:
        """AND across facets cannot be pushed down."""
        plan = planner.plan(
            FilterSelection.parse({"phase": ["alpha", "beta"], "channel": ["web"]})
        )
        assert plan.strategy is Strategy.FETCH_AND_REFINE
        assert plan.refines_locally
        assert plan.fetch_page_size == 1000

    def test_superset_uses_smallest_slug_set(self, planner: QueryPlanner) -> None:
        """The narrowest facet's slugs pre-filter the bulk fetch."""
        plan = planner.plan(
            FilterSelection.parse({"phase": ["alpha", "beta"], "channel": ["web"]})
        )
        assert plan.push_slugs == ("web",)
        assert not plan.is_baseline_superset

    def test_sentinel_refines_locally(self, planner: QueryPlanner) -> None:
        """The sentinel cannot be expressed remotely."""
        plan = planner.plan(FilterSelection.parse({"channel": [UNCATEGORISED]}))
        assert plan.strategy is Strategy.FETCH_AND_REFINE
        assert plan.push_slugs == ()
        assert plan.is_baseline_superset

    def test_sentinel_facet_never_pushed(self, planner: QueryPlanner) -> None:
        """Slugs of a facet with the sentinel selected are not a safe superset."""
        plan = planner.plan(
            FilterSelection.parse({"channel": ["web", UNCATEGORISED], "phase": ["alpha", "beta"]})
        )
        assert plan.push_slugs == ("alpha", "beta")

    def test_sentinel_only_facets_push_nothing(self, planner: QueryPlanner) -> None:
        """With the sentinel on every active facet there is no slug filter."""
        plan = planner.plan(
            FilterSelection.parse({"channel": [UNCATEGORISED], "phase": ["alpha", UNCATEGORISED]})
        )
        assert plan.push_slugs == ()

    def test_keywords_travel_with_refine_plans(self, planner: QueryPlanner) -> None:
        """Keyword terms narrow the bulk fetch too."""
        plan = planner.plan(
            FilterSelection.parse({"channel": [UNCATEGORISED]}, keywords="birth, record")
        )
        assert plan.keyword_terms == ("birth", "record")
        assert not plan.is_baseline_superset

    def test_unregistered_facet_refines_locally(self, planner: QueryPlanner) -> None:
        """Slugs of an unknown facet would match values of any type remotely."""
        plan = planner.plan(FilterSelection.parse({"audience": ["alpha"]}))
        assert plan.strategy is Strategy.FETCH_AND_REFINE
        assert plan.push_slugs == ()
        assert plan.is_baseline_superset

    def test_unregistered_facet_never_pushed(self, planner: QueryPlanner) -> None:
        """Only registered facets supply the superset slugs."""
        plan = planner.plan(
            FilterSelection.parse({"audience": ["staff"], "phase": ["alpha", "beta"]})
        )
        assert plan.push_slugs == ("alpha", "beta")
