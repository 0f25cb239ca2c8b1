"""Catalog service for listing and browsing operations.

High-level service that combines the repository, the query planner, the
filter engine and the facet counter into the operations the API exposes.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

import structlog

from catalogue.catalog.assembler import FilterResult, ResultAssembler
from catalogue.catalog.engine import FilterEngine, PageStream
from catalogue.catalog.facets import FacetCounter
from catalogue.catalog.planner import QueryPlanner
from catalogue.catalog.registry import FacetRegistry, get_facet_registry
from catalogue.catalog.repository import CatalogRepository
from catalogue.catalog.selection import FilterSelection
from catalogue.catalog.taxonomy import CategoryCatalog, CategoryNode
from catalogue.domain.entities import CategoryType, CategoryValue, Item
from catalogue.domain.exceptions import (
    ContentServiceError,
    ProductNotFoundError,
    UnknownCategoryTypeError,
)
from catalogue.infrastructure.cache import get_object_cache
from catalogue.infrastructure.config import Settings, settings as default_settings
from catalogue.infrastructure.content_client import get_content_client

logger = structlog.get_logger()


@dataclass
class CategoryTypeSummary:
    """An enabled category type with its root values."""

    category_type: CategoryType
    roots: list[CategoryNode] = field(default_factory=list)


@dataclass
class CategoryBrowse:
    """Values of one category type, optionally below a parent value.

    Attributes:
        category_type: The browsed type.
        values: Root values, or the children of ``parent``.
        parent: The parent value being browsed, if any.
        breadcrumb: Ancestor chain of ``parent``, root first.
    """

    category_type: CategoryType
    values: list[CategoryValue] = field(default_factory=list)
    parent: CategoryValue | None = None
    breadcrumb: list[CategoryValue] = field(default_factory=list)


class CatalogService:
    """Service for catalog operations.

    Example usage:
        service = CatalogService(CatalogRepository(get_content_client(), get_object_cache()))

        result = await service.search_products(
            {"phase": ["alpha"], "channel": ["__not_categorised__"]},
            keywords="discovery, onboarding",
            page=2,
        )
    """

    def __init__(
        self,
        repository: CatalogRepository,
        registry: FacetRegistry | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize service.

        Args:
            repository: Cached catalog repository.
            registry: Facet registry; the default registry when omitted.
            settings: Application settings.
        """
        self.repository = repository
        self.registry = registry or get_facet_registry()
        self.settings = settings or default_settings
        self.planner = QueryPlanner(
            baseline_state=self.settings.baseline_state,
            bulk_page_size=self.settings.bulk_page_size,
            registry=self.registry,
        )
        self.engine = FilterEngine(repository, self.registry)
        self.counter = FacetCounter(
            self.registry,
            apply_keywords=self.settings.facet_counts_apply_keywords,
        )
        self.assembler = ResultAssembler(self.registry)

    async def load_catalog(self) -> CategoryCatalog:
        """Load the values of every registered facet type.

        Types are fetched one after another.

        Raises:
            ContentServiceError: On content service failure.
        """
        catalog = CategoryCatalog()
        for facet in self.registry:
            values = await self.repository.fetch_category_values(facet.type_slug)
            catalog.load(facet.type_slug, values)
            dropped = catalog.dropped_values(facet.type_slug)
            if dropped:
                logger.warning(
                    "Category values dropped",
                    type_slug=facet.type_slug,
                    slugs=sorted(dropped),
                )
        return catalog

    def baseline_stream(self) -> PageStream:
        """Page stream over the baseline population (state filter only)."""
        return PageStream(
            self.repository,
            state=self.settings.baseline_state,
            page_size=self.settings.bulk_page_size,
        )

    async def load_baseline(self) -> list[Item]:
        """Fetch the whole baseline population.

        Raises:
            ContentServiceError: On content service failure.
        """
        items = await self.baseline_stream().collect()
        return [item for item in items if item.has_state(self.settings.baseline_state)]

    async def count_baseline(self) -> int:
        """Size of the baseline population, from the first page only.

        Raises:
            ContentServiceError: On content service failure.
        """
        return await self.baseline_stream().total()

    async def search_products(
        self,
        raw_facets: Mapping[str, Sequence[str] | str | None] | None = None,
        keywords: str | None = None,
        page: int | str | None = 1,
        page_size: int | None = None,
    ) -> FilterResult:
        """Run a faceted listing.

        Content service failures never propagate: they are logged and an
        empty, degraded result is returned.

        Args:
            raw_facets: Facet key -> tokens as received.
            keywords: Raw keyword text.
            page: Requested 1-based page.
            page_size: Items per page; the configured size when omitted.

        Returns:
            The assembled listing.
        """
        selection = FilterSelection.parse(
            raw_facets,
            keywords=keywords,
            page=page,
            page_size=page_size or self.settings.page_size,
        )
        log = logger.bind(
            facets={k: list(v) for k, v in selection.facets.items()},
            terms=list(selection.keyword_terms),
            page=selection.page,
        )

        try:
            catalog = await self.load_catalog()
            baseline = await self.load_baseline()
        except ContentServiceError as e:
            log.error("Listing degraded", error=e.message, status_code=e.status_code)
            return FilterResult.empty(selection, degraded=True)

        plan = self.planner.plan(selection)
        engine_result = await self.engine.execute(plan, selection, baseline=baseline)
        if engine_result.failed:
            log.error("Listing degraded", strategy=plan.strategy.value)
            return FilterResult.empty(selection, degraded=True)

        facets = self.counter.count(catalog, baseline, selection)
        result = self.assembler.assemble(
            selection,
            engine_result,
            total_count=len(baseline),
            facets=facets,
            catalog=catalog,
            strategy=plan.strategy,
        )

        log.info(
            "Listing served",
            strategy=plan.strategy.value,
            total=result.total_count,
            filtered=result.filtered_count,
            returned=len(result.items),
        )
        return result

    async def get_product(self, reference: str) -> Item:
        """Look up one product by public reference or document ID.

        Unlike listings, the lookup is not limited to the baseline state.

        Raises:
            ProductNotFoundError: If no product has this reference.
            ContentServiceError: On content service failure.
        """
        reference = reference.strip()
        item = await self.repository.fetch_item(reference) if reference else None
        if item is None:
            logger.info("Product not found", reference=reference)
            raise ProductNotFoundError(reference)
        return item

    async def list_category_types(self) -> list[CategoryTypeSummary]:
        """Enabled category types with their root values.

        Raises:
            ContentServiceError: On content service failure.
        """
        types = await self.repository.fetch_category_types()
        summaries = []
        for category_type in sorted(types, key=lambda t: (t.sort_order, t.name.casefold())):
            if not category_type.enabled:
                continue
            catalog = CategoryCatalog()
            catalog.load(
                category_type.slug,
                await self.repository.fetch_category_values(category_type.slug),
            )
            summaries.append(
                CategoryTypeSummary(
                    category_type=category_type,
                    roots=catalog.roots_of(category_type.slug),
                )
            )
        return summaries

    async def browse_category(
        self,
        type_slug: str,
        parent: str | None = None,
    ) -> CategoryBrowse:
        """Values of a category type, or the children of one of its values.

        Args:
            type_slug: Category type slug.
            parent: Slug of the value to descend into.

        Returns:
            The browsed values with the parent's breadcrumb.

        Raises:
            UnknownCategoryTypeError: If no enabled type has this slug.
            UnknownCategoryValueError: If ``parent`` is not a value of the type.
            ContentServiceError: On content service failure.
        """
        types = await self.repository.fetch_category_types()
        category_type = next(
            (t for t in types if t.enabled and t.slug.casefold() == type_slug.casefold()),
            None,
        )
        if category_type is None:
            raise UnknownCategoryTypeError(type_slug)

        catalog = CategoryCatalog()
        catalog.load(
            category_type.slug,
            await self.repository.fetch_category_values(category_type.slug),
        )

        if parent is None:
            return CategoryBrowse(
                category_type=category_type,
                values=[node.value for node in catalog.roots_of(category_type.slug)],
            )

        breadcrumb = catalog.breadcrumb(category_type.slug, parent)
        return CategoryBrowse(
            category_type=category_type,
            values=catalog.children_of(category_type.slug, parent),
            parent=breadcrumb[-1],
            breadcrumb=breadcrumb,
        )


# Global service instance
_catalog_service: CatalogService | None = None


def get_catalog_service() -> CatalogService:
    """Get the catalog service singleton.

    Returns:
        CatalogService backed by the content service client and object cache.
    """
    global _catalog_service
    if _catalog_service is None:
        repository = CatalogRepository(get_content_client(), get_object_cache())
        _catalog_service = CatalogService(repository)
    return _catalog_service
