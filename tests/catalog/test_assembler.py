"""Tests for result assembly, pagination and filter chips."""

from urllib.parse import parse_qsl, urlsplit

import pytest

from catalogue.catalog.assembler import FilterResult, ResultAssembler, paginate
from catalogue.catalog.engine import EngineResult
from catalogue.catalog.registry import FacetRegistry
from catalogue.catalog.selection import NOT_CATEGORISED_LABEL, UNCATEGORISED, FilterSelection
from catalogue.catalog.taxonomy import CategoryCatalog
from tests.conftest import make_item


def query_of(url: str) -> list[tuple[str, str]]:
    return parse_qsl(urlsplit(url).query)


ITEMS = [make_item(n, f"Item {n:02d}") for n in range(1, 8)]


class TestPaginate:
    """Tests for page slicing."""

    @pytest.mark.parametrize(
        "n,size",
        [(7, 3), (6, 3), (1, 25), (25, 25), (26, 25)],
    )
    def test_last_page_holds_remainder(self, n: int, size: int) -> None:
        """The last page has N mod S items, or S when that is zero."""
        items = [make_item(i, f"Item {i}") for i in range(n)]
        last = -(-n // size)
        expected = n % size or size
        assert len(paginate(items, last, size)) == expected
        assert paginate(items, last + 1, size) == []

    def test_page_contents(self) -> None:
        """Pages are consecutive, non-overlapping slices."""
        assert [i.id for i in paginate(ITEMS, 2, 3)] == [4, 5, 6]


class TestFilterResult:
    """Tests for pagination metadata."""

    def test_metadata(self) -> None:
        """Page indices and flags describe the slice."""
        result = FilterResult(items=ITEMS[3:6], filtered_count=7, page=2, page_size=3)
        assert result.total_pages == 3
        assert result.has_next
        assert result.has_previous
        assert (result.start_index, result.end_index) == (4, 6)

    def test_page_beyond_range(self) -> None:
        """An empty slice reports no indices but keeps its counts."""
        result = FilterResult(items=[], total_count=9, filtered_count=7, page=4, page_size=3)
        assert (result.start_index, result.end_index) == (0, 0)
        assert not result.has_next
        assert result.filtered_count == 7

    def test_empty(self) -> None:
        """The empty result keeps the page and terms of the selection."""
        selection = FilterSelection.parse(keywords="tax", page=3)
        result = FilterResult.empty(selection, degraded=True)
        assert result.items == []
        assert (result.total_count, result.filtered_count) == (0, 0)
        assert result.page == 3
        assert result.keyword_terms == ["tax"]
        assert result.degraded
        assert result.total_pages == 0


class TestResultAssembler:
    """Tests for ResultAssembler."""

    @pytest.fixture
    def assembler(self, registry: FacetRegistry) -> ResultAssembler:
        """Create assembler for the listing path."""
        return ResultAssembler(registry)

    def test_slices_locally_refined_results(
        self, assembler: ResultAssembler, catalog: CategoryCatalog
    ) -> None:
        """Full filtered lists are paginated after filtering."""
        selection = FilterSelection.parse(page=3, page_size=3)
        engine_result = EngineResult(items=ITEMS, filtered_count=7, pre_paginated=False)

        result = assembler.assemble(selection, engine_result, 10, {}, catalog)

        assert [i.id for i in result.items] == [7]
        assert (result.total_count, result.filtered_count) == (10, 7)

    def test_page_past_end(self, assembler: ResultAssembler, catalog: CategoryCatalog) -> None:
        """The page after the last is empty with counts unchanged."""
        selection = FilterSelection.parse(page=4, page_size=3)
        engine_result = EngineResult(items=ITEMS, filtered_count=7, pre_paginated=False)

        result = assembler.assemble(selection, engine_result, 10, {}, catalog)

        assert result.items == []
        assert (result.total_count, result.filtered_count) == (10, 7)

    def test_pre_paginated_results_kept(
        self, assembler: ResultAssembler, catalog: CategoryCatalog
    ) -> None:
        """Content service pages are not sliced again."""
        selection = FilterSelection.parse(page=2, page_size=3)
        engine_result = EngineResult(items=ITEMS[3:6], filtered_count=7, pre_paginated=True)

        result = assembler.assemble(selection, engine_result, 10, {}, catalog)

        assert [i.id for i in result.items] == [4, 5, 6]

    def test_failed_engine_result_is_degraded(
        self, assembler: ResultAssembler, catalog: CategoryCatalog
    ) -> None:
        """A failed engine result surfaces as degraded."""
        result = assembler.assemble(
            FilterSelection.parse(), EngineResult.empty(failed=True), 0, {}, catalog
        )
        assert result.degraded
        assert result.items == []


class TestSelectedFilters:
    """Tests for active-filter chips."""

    @pytest.fixture
    def assembler(self, registry: FacetRegistry) -> ResultAssembler:
        """Create assembler for the listing path."""
        return ResultAssembler(registry)

    def test_chip_order_and_labels(
        self, assembler: ResultAssembler, catalog: CategoryCatalog
    ) -> None:
        """Keyword chips come first, then facets in registry order."""
        selection = FilterSelection.parse(
            {"group": ["nhs"], "channel": [UNCATEGORISED], "phase": ["alpha", "gamma"]},
            keywords="Discovery, tax",
        )
        chips = assembler.selected_filters(selection, catalog)

        assert [(c.category, c.display_text) for c in chips] == [
            ("Search term", "Discovery"),
            ("Search term", "tax"),
            ("Phase", "Alpha"),
            ("Phase", "gamma"),
            ("Channel", NOT_CATEGORISED_LABEL),
            ("Business area", "NHS"),
        ]

    def test_unregistered_facet_chip(
        self, assembler: ResultAssembler, catalog: CategoryCatalog
    ) -> None:
        """Unknown facets are labelled with their key and listed last."""
        selection = FilterSelection.parse({"audience": ["staff"], "phase": ["alpha"]})
        chips = assembler.selected_filters(selection, catalog)
        assert [(c.facet_key, c.category, c.display_text) for c in chips] == [
            ("phase", "Phase", "Alpha"),
            ("audience", "audience", "staff"),
        ]

    def test_remove_facet_token(self, assembler: ResultAssembler) -> None:
        """Removing one token keeps every other token and the keywords."""
        selection = FilterSelection.parse(
            {"phase": ["alpha", "beta"], "channel": ["web"]},
            keywords="Discovery, tax",
            page=3,
        )
        url = assembler.remove_url(selection, "phase", "alpha")

        assert url.startswith("/products?")
        assert query_of(url) == [
            ("keywords", "Discovery, tax"),
            ("phase", "beta"),
            ("channel", "web"),
        ]

    def test_remove_keyword_term(self, assembler: ResultAssembler) -> None:
        """Removing a keyword chip re-joins the remaining terms."""
        selection = FilterSelection.parse(
            {"phase": ["alpha"]}, keywords="Discovery, tax, licence"
        )
        url = assembler.remove_url(selection, "keywords", "tax")
        assert query_of(url) == [("keywords", "Discovery, licence"), ("phase", "alpha")]

    def test_remove_last_filter(self, assembler: ResultAssembler) -> None:
        """Removing the only filter links to the bare listing."""
        selection = FilterSelection.parse({"channel": [UNCATEGORISED]})
        assert assembler.remove_url(selection, "channel", UNCATEGORISED) == "/products"

    def test_chips_carry_remove_urls(
        self, assembler: ResultAssembler, catalog: CategoryCatalog
    ) -> None:
        """Each chip links to the listing without itself."""
        selection = FilterSelection.parse({"phase": ["alpha"]}, keywords="tax")
        chips = assembler.selected_filters(selection, catalog)
        assert [query_of(c.remove_url) for c in chips] == [
            [("phase", "alpha")],
            [("keywords", "tax")],
        ]
