"""Catalog repository.

Wraps the catalog query interface of the content service with the object
cache. The repository never filters or reshapes data: whatever the content
service returns is what callers get, either fresh or from cache.
"""

from typing import Protocol

import structlog

from catalogue.domain.entities import CategoryType, CategoryValue, Item, ItemPage
from catalogue.infrastructure.cache import ObjectCache, make_cache_key
from catalogue.infrastructure.config import Settings, settings as default_settings

logger = structlog.get_logger()


class CatalogQuery(Protocol):
    """Catalog query interface offered by the content service.

    ``slugs`` is a flat OR-set: the service cannot AND across category types
    and cannot express "has no value of type X". ``keyword_terms`` are OR-ed
    case-insensitive substring matches on the item title.
    """

    async def fetch_items(
        self,
        state: str | None,
        slugs: list[str] | tuple[str, ...] | None = None,
        keyword_terms: list[str] | tuple[str, ...] | None = None,
        page: int = 1,
        page_size: int = 25,
    ) -> ItemPage: ...

    async def fetch_item(self, reference: str) -> Item | None: ...

    async def fetch_category_values(
        self,
        type_slug: str,
        root_only: bool = False,
    ) -> list[CategoryValue]: ...

    async def fetch_category_types(self) -> list[CategoryType]: ...


class CatalogRepository:
    """Cached access to the content service.

    Example usage:
        repo = CatalogRepository(get_content_client(), get_object_cache())
        page = await repo.fetch_items("Active", slugs=["alpha"], page=1, page_size=25)
    """

    def __init__(
        self,
        source: CatalogQuery,
        cache: ObjectCache | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize repository.

        Args:
            source: Catalog query implementation (usually the HTTP client).
            cache: Optional object cache; no caching when omitted.
            settings: Settings supplying cache durations.
        """
        self.source = source
        self.cache = cache
        self.settings = settings or default_settings

    async def fetch_items(
        self,
        state: str | None,
        slugs: list[str] | tuple[str, ...] | None = None,
        keyword_terms: list[str] | tuple[str, ...] | None = None,
        page: int = 1,
        page_size: int = 25,
    ) -> ItemPage:
        """Fetch one page of items, from cache when possible.

        Raises:
            ContentServiceError: On content service failure.
        """
        key = make_cache_key("items", state, slugs, keyword_terms, page, page_size)
        cached = self._cache_get(key)
        if cached is not None:
            return cached

        result = await self.source.fetch_items(
            state,
            slugs=slugs,
            keyword_terms=keyword_terms,
            page=page,
            page_size=page_size,
        )
        ttl = self.settings.cache_ttl_search if keyword_terms else self.settings.cache_ttl_products
        if result.items:
            self._cache_set(key, result, ttl)
        return result

    async def fetch_item(self, reference: str) -> Item | None:
        """Fetch one item by reference, from cache when possible.

        Misses are not cached.

        Raises:
            ContentServiceError: On content service failure.
        """
        key = make_cache_key("item", reference)
        cached = self._cache_get(key)
        if cached is not None:
            return cached

        item = await self.source.fetch_item(reference)
        if item is not None:
            self._cache_set(key, item, self.settings.cache_ttl_product_detail)
        return item

    async def fetch_category_values(
        self,
        type_slug: str,
        root_only: bool = False,
    ) -> list[CategoryValue]:
        """Fetch values of a category type, from cache when possible.

        Raises:
            ContentServiceError: On content service failure.
        """
        key = make_cache_key("category_values", type_slug, root_only)
        cached = self._cache_get(key)
        if cached is not None:
            return cached

        values = await self.source.fetch_category_values(type_slug, root_only=root_only)
        if values:
            self._cache_set(key, values, self.settings.cache_ttl_category_values)
        return values

    async def fetch_category_types(self) -> list[CategoryType]:
        """Fetch category types, from cache when possible.

        Raises:
            ContentServiceError: On content service failure.
        """
        key = make_cache_key("category_types")
        cached = self._cache_get(key)
        if cached is not None:
            return cached

        types = await self.source.fetch_category_types()
        if types:
            self._cache_set(key, types, self.settings.cache_ttl_category_types)
        return types

    def _cache_get(self, key: str):
        if self.cache is None:
            return None
        value = self.cache.get(key)
        if value is not None:
            logger.debug("Cache hit", key=key)
        return value

    def _cache_set(self, key: str, value: object, ttl: float) -> None:
        if self.cache is None:
            return
        self.cache.set(key, value, ttl)
        logger.debug("Cached", key=key, ttl=ttl)
