"""Free-text keyword parsing."""


def parse_keywords(raw: str | None) -> list[str]:
    """Split raw search text into OR-terms.

    Only commas separate terms. Words such as "and" or "or" stay inside the
    term they appear in, so "Discovery, Alpha phase" gives
    ["Discovery", "Alpha phase"]. Terms are trimmed, empty segments are
    dropped, and duplicates are removed case-insensitively keeping the
    first spelling seen.

    Args:
        raw: Raw keyword input, possibly None or blank.

    Returns:
        Ordered list of distinct terms.
    """
    if not raw or not raw.strip():
        return []

    terms: list[str] = []
    seen: set[str] = set()
    for segment in raw.split(","):
        term = segment.strip()
        if not term:
            continue
        folded = term.casefold()
        if folded in seen:
            continue
        seen.add(folded)
        terms.append(term)
    return terms


def join_keywords(terms: list[str] | tuple[str, ...]) -> str | None:
    """Join terms back into a raw keyword string, None when empty."""
    return ", ".join(terms) if terms else None
