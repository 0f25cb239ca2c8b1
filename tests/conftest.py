"""Shared fixtures: an in-memory content service and a small catalogue."""

from dataclasses import dataclass, field

import pytest

from catalogue.catalog.registry import FacetRegistry, get_facet_registry
from catalogue.catalog.repository import CatalogRepository
from catalogue.catalog.service import CatalogService
from catalogue.catalog.taxonomy import CategoryCatalog
from catalogue.domain.entities import (
    CategoryType,
    CategoryValue,
    CategoryValueRef,
    Item,
    ItemPage,
)
from catalogue.domain.exceptions import ContentServiceError
from catalogue.infrastructure.cache import InMemoryCache
from catalogue.infrastructure.config import Settings

TYPE_NAMES = {
    "phase": "Phase",
    "channel": "Channel",
    "type": "Type",
    "business-area": "Business area",
}


def ref(type_slug: str, slug: str) -> CategoryValueRef:
    """Category value reference as the content service populates it."""
    return CategoryValueRef(
        slug=slug,
        name=slug.replace("-", " ").title(),
        type_slug=type_slug,
        type_name=TYPE_NAMES.get(type_slug, type_slug),
    )


def make_item(item_id: int, title: str, state: str = "Active", **values: list[str]) -> Item:
    """Build an item; keyword arguments map type slug (underscored) to slugs."""
    refs = tuple(
        ref(type_key.replace("_", "-"), slug)
        for type_key, slugs in values.items()
        for slug in slugs
    )
    return Item(
        id=item_id,
        title=title,
        state=state,
        document_id=f"doc-{item_id}",
        reference=f"FPS-{item_id:03d}",
        category_values=refs,
    )


def make_value(
    type_slug: str,
    slug: str,
    sort_order: int = 0,
    parent: str | None = None,
    children: tuple[str, ...] = (),
    enabled: bool = True,
    name: str | None = None,
) -> CategoryValue:
    """Build a category value."""
    return CategoryValue(
        id=abs(hash((type_slug, slug))) % 100000,
        slug=slug,
        name=name or slug.replace("-", " ").title(),
        type_slug=type_slug,
        enabled=enabled,
        sort_order=sort_order,
        parent_slug=parent,
        children=children,
    )


SAMPLE_ITEMS = [
    make_item(1, "Apply for a licence", phase=["alpha"], channel=["web"], business_area=["nhs"]),
    make_item(2, "Book a driving test", phase=["alpha"], channel=["phone"]),
    make_item(3, "Check your record", phase=["beta"], business_area=["justice"]),
    make_item(4, "Discovery research hub", phase=["live"], channel=["web", "phone"]),
    make_item(5, "Register a birth"),
    make_item(6, "Renew a passport", state="New", phase=["alpha"], channel=["web"]),
    make_item(7, "Report a problem", state="Removed", phase=["beta"]),
    make_item(8, "Discovery alpha pilot", phase=["alpha"], channel=["web"], business_area=["care"]),
]

SAMPLE_VALUES = {
    "phase": [
        make_value("phase", "alpha", 1),
        make_value("phase", "beta", 2),
        make_value("phase", "live", 3),
        make_value("phase", "retired", 4, enabled=False),
    ],
    "channel": [
        make_value("channel", "web", 1),
        make_value("channel", "phone", 2),
    ],
    "business-area": [
        make_value("business-area", "health", 1, children=("nhs", "care")),
        make_value("business-area", "justice", 2),
        make_value("business-area", "nhs", 1, parent="health", name="NHS"),
        make_value("business-area", "care", 2, parent="health"),
    ],
}

SAMPLE_TYPES = [
    CategoryType(id=1, name="Phase", slug="phase", sort_order=1),
    CategoryType(id=2, name="Channel", slug="channel", sort_order=2),
    CategoryType(id=3, name="Type", slug="type", sort_order=3),
    CategoryType(id=4, name="Business area", slug="business-area", is_hierarchical=True, sort_order=4),
    CategoryType(id=5, name="Audience", slug="audience", enabled=False, sort_order=5),
]


@dataclass
class FetchCall:
    """One recorded fetch_items call."""

    state: str | None
    slugs: list[str] | None
    keyword_terms: list[str] | None
    page: int
    page_size: int


@dataclass
class FakeContentService:
    """In-memory catalog query implementation.

    Filters the way the content service does: state equality, a flat OR-set
    of slugs, OR-ed title substrings, all AND-ed; ordered by title.
    """

    items: list[Item] = field(default_factory=list)
    values: dict[str, list[CategoryValue]] = field(default_factory=dict)
    types: list[CategoryType] = field(default_factory=list)
    fail: bool = False
    total_drift: int = 0
    calls: list[FetchCall] = field(default_factory=list)
    value_calls: list[str] = field(default_factory=list)
    lookups: list[str] = field(default_factory=list)

    async def fetch_items(
        self,
        state,
        slugs=None,
        keyword_terms=None,
        page=1,
        page_size=25,
    ) -> ItemPage:
        self.calls.append(
            FetchCall(
                state=state,
                slugs=list(slugs) if slugs else None,
                keyword_terms=list(keyword_terms) if keyword_terms else None,
                page=page,
                page_size=page_size,
            )
        )
        if self.fail:
            raise ContentServiceError("Request timed out: /products", path="/products")

        matched = [
            item
            for item in self.items
            if (state is None or item.state == state)
            and (not slugs or any(r.slug in slugs for r in item.category_values))
            and (
                not keyword_terms
                or any(t.casefold() in item.title.casefold() for t in keyword_terms)
            )
        ]
        matched.sort(key=lambda i: i.title)
        start = (page - 1) * page_size
        drift = self.total_drift if page > 1 else 0
        return ItemPage(items=matched[start : start + page_size], total=len(matched) + drift)

    async def fetch_item(self, reference) -> Item | None:
        self.lookups.append(reference)
        if self.fail:
            raise ContentServiceError("Request timed out: /products", path="/products")
        return next(
            (i for i in self.items if reference in (i.reference, i.document_id)),
            None,
        )

    async def fetch_category_values(self, type_slug, root_only=False) -> list[CategoryValue]:
        self.value_calls.append(type_slug)
        if self.fail:
            raise ContentServiceError("Request timed out: /category-values")
        values = list(self.values.get(type_slug, []))
        if root_only:
            values = [v for v in values if v.parent_slug is None]
        return values

    async def fetch_category_types(self) -> list[CategoryType]:
        if self.fail:
            raise ContentServiceError("Request timed out: /category-types")
        return list(self.types)

    @property
    def item_calls(self) -> int:
        return len(self.calls)


@pytest.fixture
def fake_content() -> FakeContentService:
    """Content service fake loaded with the sample catalogue."""
    return FakeContentService(
        items=list(SAMPLE_ITEMS),
        values={k: list(v) for k, v in SAMPLE_VALUES.items()},
        types=list(SAMPLE_TYPES),
    )


@pytest.fixture
def registry() -> FacetRegistry:
    """Default facet registry."""
    return get_facet_registry()


@pytest.fixture
def catalog() -> CategoryCatalog:
    """Category catalog built from the sample values."""
    catalog = CategoryCatalog()
    for type_slug, values in SAMPLE_VALUES.items():
        catalog.load(type_slug, values)
    return catalog


@pytest.fixture
def test_settings() -> Settings:
    """Settings with small page sizes so pagination paths are exercised."""
    return Settings(page_size=25, bulk_page_size=3, baseline_state="Active")


@pytest.fixture
def service(fake_content: FakeContentService, test_settings: Settings) -> CatalogService:
    """Catalog service over the fake, without caching."""
    return CatalogService(
        CatalogRepository(fake_content, cache=None, settings=test_settings),
        settings=test_settings,
    )


@pytest.fixture
def cached_service(fake_content: FakeContentService, test_settings: Settings) -> CatalogService:
    """Catalog service over the fake, with an in-memory cache."""
    return CatalogService(
        CatalogRepository(fake_content, cache=InMemoryCache(), settings=test_settings),
        settings=test_settings,
    )
