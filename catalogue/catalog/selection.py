"""Parsed filter selection for a listing request."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from catalogue.catalog.keywords import parse_keywords

UNCATEGORISED = "__not_categorised__"
NOT_CATEGORISED_LABEL = "Not categorised"


def is_uncategorised(token: str) -> bool:
    """Check whether a token is the "not categorised" sentinel."""
    return token.casefold() == UNCATEGORISED


def parse_page(raw: int | str | None) -> int:
    """Parse a 1-based page number, clamping anything invalid to 1."""
    try:
        page = int(raw) if raw is not None else 1
    except (TypeError, ValueError):
        return 1
    return max(1, page)


def _normalise_tokens(tokens: Sequence[str] | str | None) -> tuple[str, ...]:
    """Trim, case-fold and de-duplicate tokens, keeping first-seen order.

    Slugs are lower case in the content service and its slug filter is
    case-sensitive, so tokens are folded before they are sent anywhere.
    """
    if isinstance(tokens, str):
        tokens = (tokens,)
    result: list[str] = []
    for token in tokens or ():
        token = token.strip().casefold()
        if not token or token in result:
            continue
        result.append(token)
    return tuple(result)


@dataclass(frozen=True)
class FilterSelection:
    """What the caller asked for.

    Tokens within one facet are OR-ed; facets are AND-ed with each other and
    with the keyword terms. A facet's tokens are category value slugs and,
    optionally, the UNCATEGORISED sentinel.

    Attributes:
        facets: Facet key -> ordered distinct tokens. Only non-empty entries.
        keyword_terms: Parsed keyword OR-terms.
        page: 1-based page number.
        page_size: Items per page.
        raw_keywords: Keyword text as typed.
    """

    facets: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    keyword_terms: tuple[str, ...] = ()
    page: int = 1
    page_size: int = 25
    raw_keywords: str | None = None

    @classmethod
    def parse(
        cls,
        raw_facets: Mapping[str, Sequence[str] | str | None] | None = None,
        keywords: str | None = None,
        page: int | str | None = 1,
        page_size: int = 25,
    ) -> "FilterSelection":
        """Build a selection from raw request input.

        Args:
            raw_facets: Facet key -> tokens as received.
            keywords: Raw keyword text.
            page: Requested page; values below 1 or unparsable become 1.
            page_size: Items per page.

        Returns:
            Normalised selection.
        """
        facets: dict[str, tuple[str, ...]] = {}
        for key, tokens in (raw_facets or {}).items():
            normalised = _normalise_tokens(tokens)
            if normalised:
                facets[key] = normalised

        return cls(
            facets=facets,
            keyword_terms=tuple(parse_keywords(keywords)),
            page=parse_page(page),
            page_size=max(1, page_size),
            raw_keywords=keywords.strip() if keywords and keywords.strip() else None,
        )

    @property
    def active_keys(self) -> list[str]:
        """Facet keys with at least one selected token."""
        return [key for key, tokens in self.facets.items() if tokens]

    def tokens(self, key: str) -> tuple[str, ...]:
        """All tokens selected for a facet."""
        return tuple(self.facets.get(key, ()))

    def slugs(self, key: str) -> tuple[str, ...]:
        """Selected category value slugs for a facet, sentinel excluded."""
        return tuple(t for t in self.facets.get(key, ()) if t != UNCATEGORISED)

    def wants_uncategorised(self, key: str) -> bool:
        return UNCATEGORISED in self.facets.get(key, ())

    def any_uncategorised(self) -> bool:
        """True when the sentinel is selected for any facet."""
        return any(UNCATEGORISED in tokens for tokens in self.facets.values())

    def is_selected(self, key: str, slug: str) -> bool:
        return slug.casefold() in self.facets.get(key, ())
