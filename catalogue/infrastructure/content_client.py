"""Content service HTTP client.

Speaks the content service's REST query dialect: bracketed ``filters[...]``,
``pagination[...]`` and ``populate[...]`` query parameters, with collection
responses shaped as ``{"data": [...], "meta": {"pagination": {"total": N}}}``.

The client raises ContentServiceError on any failure. Retry and backoff are
the transport's concern and are not handled here.
"""

from typing import Any

import httpx
import structlog

from catalogue.domain.entities import (
    CategoryType,
    CategoryValue,
    CategoryValueRef,
    Item,
    ItemPage,
)
from catalogue.domain.exceptions import ContentServiceError
from catalogue.infrastructure.config import settings

logger = structlog.get_logger()

QueryParams = list[tuple[str, str | int]]


# ============================================================================
# Response Parsing
# ============================================================================


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def category_value_ref_from_api(data: dict[str, Any]) -> CategoryValueRef:
    """Create an item's category value reference from API data."""
    category_type = data.get("category_type") or {}
    return CategoryValueRef(
        slug=data.get("slug") or "",
        name=data.get("name") or "",
        type_slug=category_type.get("slug"),
        type_name=category_type.get("name"),
    )


def item_from_api(data: dict[str, Any]) -> Item:
    """Create an Item from an API collection entry.

    Raises:
        KeyError: If the entry has no title.
    """
    return Item(
        id=_int(data.get("id")),
        title=data["title"],
        state=data.get("state") or "New",
        document_id=data.get("documentId"),
        reference=data.get("fips_id"),
        description=data.get("short_description"),
        category_values=tuple(
            category_value_ref_from_api(cv) for cv in data.get("category_values") or []
        ),
    )


def category_value_from_api(data: dict[str, Any], type_slug: str) -> CategoryValue:
    """Create a CategoryValue from an API collection entry."""
    parent = data.get("parent") or {}
    children = data.get("children") or []
    return CategoryValue(
        id=_int(data.get("id")),
        slug=data["slug"],
        name=data.get("name") or data["slug"],
        type_slug=type_slug,
        enabled=data.get("enabled", True) is not False,
        sort_order=_int(data.get("sort_order")),
        parent_slug=parent.get("slug") or None,
        children=tuple(c["slug"] for c in children if c.get("slug")),
        document_id=data.get("documentId"),
    )


def category_type_from_api(data: dict[str, Any]) -> CategoryType:
    """Create a CategoryType from an API collection entry."""
    return CategoryType(
        id=_int(data.get("id")),
        name=data["name"],
        slug=data["slug"],
        is_hierarchical=bool(data.get("multi_level", False)),
        enabled=data.get("enabled", True) is not False,
        sort_order=_int(data.get("sort_order")),
        description=data.get("description"),
    )


# ============================================================================
# Query Building
# ============================================================================


ITEM_FIELDS = ("title", "short_description", "fips_id", "documentId", "state")


def _item_fields() -> QueryParams:
    """Field selection and relation population shared by item queries."""
    params: QueryParams = [(f"fields[{i}]", name) for i, name in enumerate(ITEM_FIELDS)]
    params.extend(
        [
            ("populate[category_values][fields][0]", "name"),
            ("populate[category_values][fields][1]", "slug"),
            ("populate[category_values][populate][category_type][fields][0]", "name"),
            ("populate[category_values][populate][category_type][fields][1]", "slug"),
        ]
    )
    return params


def build_item_query(
    state: str | None,
    slugs: list[str] | tuple[str, ...] | None,
    keyword_terms: list[str] | tuple[str, ...] | None,
    page: int,
    page_size: int,
) -> QueryParams:
    """Build query parameters for the item listing endpoint.

    Top-level filters are AND-ed by the content service. Slugs become one
    flat ``$in`` set, keyword terms one ``$or`` group over the title.

    Args:
        state: Lifecycle state filter.
        slugs: Category value slugs, any of which must be assigned.
        keyword_terms: Terms, any of which must appear in the title.
        page: 1-based page number.
        page_size: Items per page.

    Returns:
        Ordered list of query parameter pairs.
    """
    params: QueryParams = [
        ("pagination[page]", page),
        ("pagination[pageSize]", page_size),
        ("sort", "title:asc"),
    ]
    params.extend(_item_fields())

    if state:
        params.append(("filters[state][$eq]", state))

    for i, slug in enumerate(slugs or ()):
        params.append((f"filters[category_values][slug][$in][{i}]", slug))

    for i, term in enumerate(keyword_terms or ()):
        params.append((f"filters[$or][{i}][title][$containsi]", term))

    return params


def build_item_lookup_query(reference: str) -> QueryParams:
    """Build query parameters that find one item by reference or document ID.

    The public reference (``fips_id``) and the document ID never overlap, so
    both are tried in one request.
    """
    params: QueryParams = [
        ("filters[$or][0][fips_id][$eq]", reference),
        ("filters[$or][1][documentId][$eq]", reference),
        ("pagination[pageSize]", 1),
    ]
    params.extend(_item_fields())
    return params


def build_category_value_query(type_slug: str, root_only: bool, page_size: int) -> QueryParams:
    """Build query parameters for the category value endpoint."""
    params: QueryParams = [
        ("filters[category_type][slug][$eq]", type_slug),
        ("sort[0]", "sort_order:asc"),
        ("sort[1]", "name:asc"),
        ("pagination[pageSize]", page_size),
        ("populate[parent][fields][0]", "name"),
        ("populate[parent][fields][1]", "slug"),
        ("populate[children][fields][0]", "name"),
        ("populate[children][fields][1]", "slug"),
    ]
    if root_only:
        params.append(("filters[parent][id][$null]", "true"))
    return params


# ============================================================================
# Content Service Client
# ============================================================================


class ContentServiceClient:
    """HTTP client for the content service.

    Implements the catalog query interface used by the filtering engine.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 10.0,
        page_size_limit: int = 1000,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize content service client.

        Args:
            base_url: Content service API base URL.
            token: Optional bearer token.
            timeout: Request timeout in seconds.
            page_size_limit: Largest page size the service accepts.
            transport: Optional transport override (used by tests).
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.page_size_limit = page_size_limit
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls) -> "ContentServiceClient":
        """Create a client configured from application settings."""
        return cls(
            base_url=settings.content_api_url,
            token=settings.content_api_token,
            timeout=settings.content_api_timeout,
            page_size_limit=settings.bulk_page_size,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str, params: QueryParams) -> dict[str, Any]:
        """Issue a GET request and return the decoded JSON body.

        Raises:
            ContentServiceError: On transport error, timeout, non-2xx status
                or a body that is not a JSON object.
        """
        client = await self._get_client()
        logger.debug("Content service request", path=path, param_count=len(params))

        try:
            response = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            logger.error("Content service timeout", path=path, error=str(e))
            raise ContentServiceError(f"Request timed out: {path}", path=path) from e
        except httpx.HTTPError as e:
            logger.error("Content service unreachable", path=path, error=str(e))
            raise ContentServiceError(f"Request failed: {path}: {e}", path=path) from e

        if response.status_code >= 400:
            logger.error(
                "Content service error response",
                path=path,
                status_code=response.status_code,
            )
            raise ContentServiceError(
                f"Unexpected status {response.status_code} from {path}",
                status_code=response.status_code,
                path=path,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ContentServiceError(
                f"Invalid JSON from {path}", status_code=response.status_code, path=path
            ) from e

        if not isinstance(body, dict):
            raise ContentServiceError(
                f"Unexpected payload from {path}", status_code=response.status_code, path=path
            )
        return body

    async def health_check(self) -> bool:
        """Check that the content service answers.

        Returns:
            True if a minimal category type query succeeds.
        """
        try:
            await self._get("/category-types", [("pagination[pageSize]", 1)])
            return True
        except ContentServiceError as e:
            logger.warning("Content service health check failed", error=e.message)
            return False

    async def fetch_items(
        self,
        state: str | None,
        slugs: list[str] | tuple[str, ...] | None = None,
        keyword_terms: list[str] | tuple[str, ...] | None = None,
        page: int = 1,
        page_size: int = 25,
    ) -> ItemPage:
        """Fetch one page of items.

        Args:
            state: Lifecycle state filter (e.g. "Active").
            slugs: Flat OR-set of category value slugs.
            keyword_terms: OR-set of case-insensitive title substrings.
            page: 1-based page number.
            page_size: Items per page, capped at the service limit.

        Returns:
            Page of items with the total number of matches.

        Raises:
            ContentServiceError: On API error.
        """
        page_size = min(page_size, self.page_size_limit)
        params = build_item_query(state, slugs, keyword_terms, page, page_size)
        body = await self._get("/products", params)

        try:
            items = [item_from_api(entry) for entry in body.get("data") or []]
        except (KeyError, TypeError, AttributeError) as e:
            raise ContentServiceError(f"Malformed item payload: {e}", path="/products") from e

        pagination = (body.get("meta") or {}).get("pagination") or {}
        total = _int(pagination.get("total"), default=len(items))

        logger.info(
            "Fetched items",
            page=page,
            page_size=page_size,
            returned=len(items),
            total=total,
            slug_count=len(slugs or ()),
            term_count=len(keyword_terms or ()),
        )
        return ItemPage(items=items, total=total)

    async def fetch_item(self, reference: str) -> Item | None:
        """Fetch one item by public reference or document ID.

        No state filter is applied.

        Args:
            reference: Public reference (fips_id) or document ID.

        Returns:
            The item, or None when nothing matches.

        Raises:
            ContentServiceError: On API error.
        """
        body = await self._get("/products", build_item_lookup_query(reference))

        try:
            items = [item_from_api(entry) for entry in body.get("data") or []]
        except (KeyError, TypeError, AttributeError) as e:
            raise ContentServiceError(f"Malformed item payload: {e}", path="/products") from e

        logger.info("Fetched item", reference=reference, found=bool(items))
        return items[0] if items else None

    async def fetch_category_values(
        self,
        type_slug: str,
        root_only: bool = False,
    ) -> list[CategoryValue]:
        """Fetch the values of one category type with parents and children.

        Args:
            type_slug: Category type slug.
            root_only: Only return values without a parent.

        Returns:
            Category values in sort order.

        Raises:
            ContentServiceError: On API error.
        """
        params = build_category_value_query(type_slug, root_only, self.page_size_limit)
        body = await self._get("/category-values", params)

        try:
            values = [category_value_from_api(entry, type_slug) for entry in body.get("data") or []]
        except (KeyError, TypeError, AttributeError) as e:
            raise ContentServiceError(
                f"Malformed category value payload: {e}", path="/category-values"
            ) from e

        logger.info("Fetched category values", type_slug=type_slug, count=len(values))
        return values

    async def fetch_category_types(self) -> list[CategoryType]:
        """Fetch all category types.

        Returns:
            Category types in sort order.

        Raises:
            ContentServiceError: On API error.
        """
        params: QueryParams = [
            ("sort[0]", "sort_order:asc"),
            ("sort[1]", "name:asc"),
            ("pagination[pageSize]", 100),
        ]
        body = await self._get("/category-types", params)

        try:
            types = [category_type_from_api(entry) for entry in body.get("data") or []]
        except (KeyError, TypeError, AttributeError) as e:
            raise ContentServiceError(
                f"Malformed category type payload: {e}", path="/category-types"
            ) from e

        logger.info("Fetched category types", count=len(types))
        return types


# Global client instance
_content_client: ContentServiceClient | None = None


def get_content_client() -> ContentServiceClient:
    """Get the content service client singleton.

    Returns:
        ContentServiceClient instance.
    """
    global _content_client
    if _content_client is None:
        _content_client = ContentServiceClient.from_settings()
    return _content_client
