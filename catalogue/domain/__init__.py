"""Domain layer - catalogue entities and exceptions.

Example usage:
    from catalogue.domain import CategoryValueRef, Item, ItemState

    item = Item(
        id=1,
        title="Apply for a licence",
        state=ItemState.ACTIVE.value,
        category_values=(CategoryValueRef(slug="alpha", name="Alpha", type_slug="phase"),),
    )
"""

from catalogue.domain.entities import (
    CategoryType,
    CategoryValue,
    CategoryValueRef,
    Item,
    ItemPage,
    ItemState,
)
from catalogue.domain.exceptions import (
    CatalogueError,
    ContentServiceError,
    ProductNotFoundError,
    UnknownCategoryTypeError,
    UnknownCategoryValueError,
)

__all__ = [
    # Entities
    "CategoryType",
    "CategoryValue",
    "CategoryValueRef",
    "Item",
    "ItemPage",
    "ItemState",
    # Exceptions
    "CatalogueError",
    "ContentServiceError",
    "ProductNotFoundError",
    "UnknownCategoryTypeError",
    "UnknownCategoryValueError",
]
