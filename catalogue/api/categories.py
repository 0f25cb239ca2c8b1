"""Category browsing API endpoints.

Provides endpoints for listing category types and walking a type's value
hierarchy one level at a time.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from catalogue.api.schemas import (
    CategoryBrowseResponse,
    CategoryListResponse,
    CategoryTypeSchema,
    CategoryValueSchema,
    ErrorResponse,
)
from catalogue.catalog.service import CatalogService, get_catalog_service
from catalogue.catalog.taxonomy import CategoryNode
from catalogue.domain.entities import CategoryType, CategoryValue
from catalogue.domain.exceptions import UnknownCategoryTypeError, UnknownCategoryValueError

router = APIRouter(prefix="/categories", tags=["Categories"])


# ============================================================================
# Dependencies
# ============================================================================


def get_service() -> CatalogService:
    """Get catalog service."""
    return get_catalog_service()


# ============================================================================
# Converters
# ============================================================================


def value_to_schema(value: CategoryValue) -> CategoryValueSchema:
    """Convert CategoryValue to response schema."""
    return CategoryValueSchema(
        slug=value.slug,
        name=value.name,
        sort_order=value.sort_order,
        parent_slug=value.parent_slug,
    )


def node_to_schema(node: CategoryNode) -> CategoryValueSchema:
    """Convert a root node and its children to response schema."""
    schema = value_to_schema(node.value)
    schema.children = [value_to_schema(child) for child in node.children]
    return schema


def type_to_schema(
    category_type: CategoryType,
    values: list[CategoryValueSchema] | None = None,
) -> CategoryTypeSchema:
    """Convert CategoryType to response schema."""
    return CategoryTypeSchema(
        slug=category_type.slug,
        name=category_type.name,
        is_hierarchical=category_type.is_hierarchical,
        description=category_type.description,
        values=values or [],
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "",
    response_model=CategoryListResponse,
    responses={502: {"model": ErrorResponse}},
    summary="List category types",
    description="Enabled category types with their root values.",
)
async def list_categories(
    service: Annotated[CatalogService, Depends(get_service)],
) -> CategoryListResponse:
    """List category types.

    Args:
        service: Catalog service.

    Returns:
        Category types with root values and their direct children.
    """
    summaries = await service.list_category_types()
    return CategoryListResponse(
        category_types=[
            type_to_schema(s.category_type, [node_to_schema(n) for n in s.roots])
            for s in summaries
        ]
    )


@router.get(
    "/{type_slug}",
    response_model=CategoryBrowseResponse,
    responses={
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Browse a category type",
    description="Root values of a type, or the children of one value with its breadcrumb.",
)
async def browse_category(
    type_slug: str,
    service: Annotated[CatalogService, Depends(get_service)],
    parent: Annotated[str | None, Query(description="Slug of the value to descend into")] = None,
) -> CategoryBrowseResponse:
    """Browse one category type.

    Args:
        type_slug: Category type slug.
        service: Catalog service.
        parent: Optional parent value slug.

    Returns:
        Values at the requested level.

    Raises:
        HTTPException: If the type or parent value does not exist.
    """
    try:
        browse = await service.browse_category(type_slug, parent=parent)
    except UnknownCategoryTypeError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error_code": "CATEGORY_TYPE_NOT_FOUND",
                "message": e.message,
                "details": e.details,
            },
        ) from e
    except UnknownCategoryValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error_code": "CATEGORY_VALUE_NOT_FOUND",
                "message": e.message,
                "details": e.details,
            },
        ) from e

    return CategoryBrowseResponse(
        category_type=type_to_schema(browse.category_type),
        parent=value_to_schema(browse.parent) if browse.parent else None,
        breadcrumb=[value_to_schema(v) for v in browse.breadcrumb],
        values=[value_to_schema(v) for v in browse.values],
    )
