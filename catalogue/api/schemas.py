"""API schemas for the catalogue API.

Pydantic models for response serialization.
"""

from pydantic import BaseModel, Field


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: str | None = Field(default=None, description="Field that caused the error")
    message: str = Field(..., description="Error message")


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: list[ErrorDetail] | dict = Field(
        default_factory=list, description="Additional error details"
    )
    request_id: str | None = Field(
        default=None, description="Request ID for correlation"
    )


# ============================================================================
# Category Schemas
# ============================================================================


class CategoryValueRefSchema(BaseModel):
    """A category value assigned to a product."""

    slug: str = Field(..., description="Category value slug")
    name: str = Field(..., description="Display name")
    type_slug: str | None = Field(default=None, description="Owning category type slug")
    type_name: str | None = Field(default=None, description="Owning category type name")


class CategoryValueSchema(BaseModel):
    """A value of a category type."""

    slug: str = Field(..., description="Category value slug")
    name: str = Field(..., description="Display name")
    sort_order: int = Field(default=0, description="Position among siblings")
    parent_slug: str | None = Field(default=None, description="Parent value slug")
    children: list["CategoryValueSchema"] = Field(
        default_factory=list, description="Enabled direct children"
    )


class CategoryTypeSchema(BaseModel):
    """A category type with its root values."""

    slug: str = Field(..., description="Category type slug")
    name: str = Field(..., description="Display name")
    is_hierarchical: bool = Field(default=False, description="Whether values nest")
    description: str | None = Field(default=None, description="Type description")
    values: list[CategoryValueSchema] = Field(
        default_factory=list, description="Root values in display order"
    )


class CategoryListResponse(BaseModel):
    """Response listing category types."""

    category_types: list[CategoryTypeSchema] = Field(..., description="Enabled category types")


class CategoryBrowseResponse(BaseModel):
    """Response for browsing one category type."""

    category_type: CategoryTypeSchema = Field(..., description="Browsed category type")
    parent: CategoryValueSchema | None = Field(
        default=None, description="Value being browsed into"
    )
    breadcrumb: list[CategoryValueSchema] = Field(
        default_factory=list, description="Ancestors of the parent, root first"
    )
    values: list[CategoryValueSchema] = Field(
        default_factory=list, description="Root values, or children of the parent"
    )


# ============================================================================
# Product Listing Schemas
# ============================================================================


class ProductSchema(BaseModel):
    """A product in a listing."""

    id: int = Field(..., description="Content service identifier")
    document_id: str | None = Field(default=None, description="Content service document ID")
    reference: str | None = Field(default=None, description="Public reference number")
    title: str = Field(..., description="Product title")
    description: str | None = Field(default=None, description="Short description")
    state: str = Field(..., description="Lifecycle state")
    category_values: list[CategoryValueRefSchema] = Field(
        default_factory=list, description="Assigned category values"
    )


class FacetOptionSchema(BaseModel):
    """One selectable facet option."""

    value: str = Field(..., description="Slug, or __not_categorised__")
    label: str = Field(..., description="Display label")
    count: int = Field(..., description="Matches if this option were selected")
    selected: bool = Field(default=False, description="Whether currently selected")
    parent_label: str | None = Field(default=None, description="Parent option label")
    children: list["FacetOptionSchema"] = Field(
        default_factory=list, description="Child options (hierarchical facets)"
    )


class FacetSchema(BaseModel):
    """All options of one facet."""

    key: str = Field(..., description="Query parameter name")
    name: str = Field(..., description="Display name")
    hierarchical: bool = Field(default=False, description="Whether options nest")
    options: list[FacetOptionSchema] = Field(default_factory=list, description="Options")


class SelectedFilterSchema(BaseModel):
    """An active filter with a link that removes it."""

    facet_key: str = Field(..., description="Facet key, or 'keywords'")
    category: str = Field(..., description="Facet display name")
    value: str = Field(..., description="Selected token or keyword term")
    display_text: str = Field(..., description="Label to show")
    remove_url: str = Field(..., description="Listing URL without this filter")


class PaginationSchema(BaseModel):
    """Pagination metadata."""

    page: int = Field(..., description="Current page number (1-based)")
    page_size: int = Field(..., description="Items per page")
    total_pages: int = Field(..., description="Number of pages")
    has_next: bool = Field(..., description="Whether a next page exists")
    has_previous: bool = Field(..., description="Whether a previous page exists")
    start_index: int = Field(..., description="Position of the first item, 0 when empty")
    end_index: int = Field(..., description="Position of the last item, 0 when empty")


class ProductListResponse(BaseModel):
    """Response for a faceted product listing."""

    items: list[ProductSchema] = Field(..., description="Products on this page")
    total_count: int = Field(..., description="Active products before filtering")
    filtered_count: int = Field(..., description="Products matching the filters")
    pagination: PaginationSchema = Field(..., description="Pagination metadata")
    keyword_terms: list[str] = Field(default_factory=list, description="Parsed keyword terms")
    facets: list[FacetSchema] = Field(default_factory=list, description="Facet options")
    selected_filters: list[SelectedFilterSchema] = Field(
        default_factory=list, description="Active filters"
    )
    strategy: str | None = Field(default=None, description="Execution strategy")
    degraded: bool = Field(
        default=False, description="True when the content service was unavailable"
    )
