"""Product API endpoints.

Provides the faceted product listing and single product lookup. Facet
selections arrive as one repeatable query parameter per registered facet
key, for example
``/products?phase=alpha&phase=beta&channel=__not_categorised__``.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from catalogue.api.schemas import (
    CategoryValueRefSchema,
    ErrorResponse,
    FacetOptionSchema,
    FacetSchema,
    PaginationSchema,
    ProductListResponse,
    ProductSchema,
    SelectedFilterSchema,
)
from catalogue.catalog.assembler import FilterResult
from catalogue.catalog.facets import FacetOption
from catalogue.catalog.registry import FacetRegistry, get_facet_registry
from catalogue.catalog.service import CatalogService, get_catalog_service
from catalogue.domain.entities import Item
from catalogue.domain.exceptions import ProductNotFoundError

router = APIRouter(prefix="/products", tags=["Products"])


# ============================================================================
# Dependencies
# ============================================================================


def get_service() -> CatalogService:
    """Get catalog service."""
    return get_catalog_service()


def get_registry() -> FacetRegistry:
    """Get facet registry."""
    return get_facet_registry()


def read_facet_params(request: Request, registry: FacetRegistry) -> dict[str, list[str]]:
    """Collect the repeated query parameters of every registered facet."""
    return {
        facet.key: request.query_params.getlist(facet.key)
        for facet in registry
        if facet.key in request.query_params
    }


# ============================================================================
# Converters
# ============================================================================


def item_to_schema(item: Item) -> ProductSchema:
    """Convert Item entity to response schema."""
    return ProductSchema(
        id=item.id,
        document_id=item.document_id,
        reference=item.reference,
        title=item.title,
        description=item.description,
        state=item.state,
        category_values=[
            CategoryValueRefSchema(
                slug=ref.slug,
                name=ref.name,
                type_slug=ref.type_slug,
                type_name=ref.type_name,
            )
            for ref in item.category_values
        ],
    )


def option_to_schema(option: FacetOption) -> FacetOptionSchema:
    """Convert FacetOption to response schema."""
    return FacetOptionSchema(
        value=option.value,
        label=option.label,
        count=option.count,
        selected=option.selected,
        parent_label=option.parent_label,
        children=[option_to_schema(child) for child in option.children],
    )


def result_to_response(result: FilterResult) -> ProductListResponse:
    """Convert FilterResult to response schema."""
    return ProductListResponse(
        items=[item_to_schema(item) for item in result.items],
        total_count=result.total_count,
        filtered_count=result.filtered_count,
        pagination=PaginationSchema(
            page=result.page,
            page_size=result.page_size,
            total_pages=result.total_pages,
            has_next=result.has_next,
            has_previous=result.has_previous,
            start_index=result.start_index,
            end_index=result.end_index,
        ),
        keyword_terms=result.keyword_terms,
        facets=[
            FacetSchema(
                key=facet.key,
                name=facet.name,
                hierarchical=facet.hierarchical,
                options=[option_to_schema(o) for o in facet.options],
            )
            for facet in result.facets.values()
        ],
        selected_filters=[
            SelectedFilterSchema(
                facet_key=chip.facet_key,
                category=chip.category,
                value=chip.value,
                display_text=chip.display_text,
                remove_url=chip.remove_url,
            )
            for chip in result.selected_filters
        ],
        strategy=result.strategy.value if result.strategy else None,
        degraded=result.degraded,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "",
    response_model=ProductListResponse,
    responses={500: {"model": ErrorResponse}},
    summary="List products",
    description=(
        "Faceted product listing. Values within one facet are OR-ed, facets are "
        "AND-ed. Use __not_categorised__ to match products with no value of a facet."
    ),
)
async def list_products(
    request: Request,
    service: Annotated[CatalogService, Depends(get_service)],
    registry: Annotated[FacetRegistry, Depends(get_registry)],
    keywords: Annotated[
        str | None, Query(description="Comma-separated search terms, any of which may match")
    ] = None,
    page: Annotated[str | None, Query(description="Page number (1-based)")] = None,
) -> ProductListResponse:
    """List products matching facet selections and keywords.

    An unavailable content service yields an empty listing with
    ``degraded`` set, never an error response.

    Args:
        request: Incoming request, read for facet parameters.
        service: Catalog service.
        registry: Facet registry.
        keywords: Raw keyword text.
        page: Requested page; invalid values fall back to page 1.

    Returns:
        Paginated listing with facet counts.
    """
    result = await service.search_products(
        read_facet_params(request, registry),
        keywords=keywords,
        page=page,
    )
    return result_to_response(result)


@router.get(
    "/{reference}",
    response_model=ProductSchema,
    responses={
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Get product",
    description="Look up one product by its public reference or document ID.",
)
async def get_product(
    reference: str,
    service: Annotated[CatalogService, Depends(get_service)],
) -> ProductSchema:
    """Get a product by reference.

    Args:
        reference: Public reference (fips_id) or document ID.
        service: Catalog service.

    Returns:
        The product with its category values.

    Raises:
        HTTPException: If no product has this reference.
    """
    try:
        item = await service.get_product(reference)
    except ProductNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error_code": "PRODUCT_NOT_FOUND",
                "message": e.message,
                "details": e.details,
            },
        ) from e
    return item_to_schema(item)
