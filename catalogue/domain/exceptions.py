"""Domain exceptions.

All catalogue errors derive from CatalogueError so that the API layer can
translate them into the standard error body.
"""

from typing import Any


class CatalogueError(Exception):
    """Base class for all catalogue exceptions."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize catalogue error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ContentServiceError(CatalogueError):
    """Raised when the content service is unreachable or misbehaves.

    Covers transport failures, timeouts, non-2xx responses and payloads
    that cannot be parsed.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        path: str | None = None,
    ) -> None:
        super().__init__(
            message,
            details={"status_code": status_code, "path": path},
        )
        self.status_code = status_code
        self.path = path


class UnknownCategoryTypeError(CatalogueError):
    """Raised when a category type slug is not known to the content service."""

    def __init__(self, type_slug: str) -> None:
        super().__init__(
            f"Category type not found: {type_slug}",
            details={"type_slug": type_slug},
        )
        self.type_slug = type_slug


class UnknownCategoryValueError(CatalogueError):
    """Raised when a category value slug does not exist within its type."""

    def __init__(self, type_slug: str, slug: str) -> None:
        super().__init__(
            f"Category value not found: {type_slug}/{slug}",
            details={"type_slug": type_slug, "slug": slug},
        )
        self.type_slug = type_slug
        self.slug = slug


class ProductNotFoundError(CatalogueError):
    """Raised when no product has the requested reference or document ID."""

    def __init__(self, reference: str) -> None:
        super().__init__(
            f"Product not found: {reference}",
            details={"reference": reference},
        )
        self.reference = reference
