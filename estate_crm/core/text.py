"""
core/text.py
------------
Case and diacritic insensitive matching for Romanian text.

Every free-text search (properties, apartments, leads) goes through
``contains_normalized`` so that "Brașov", "BRASOV" and "brasov" all match.
"""

from typing import Any, Iterable, List

# Keep both cases: lowercasing runs first, but the uppercase entries make the
# table usable on its own.
DIACRITICS_MAP = {
    "ă": "a", "â": "a", "î": "i", "ș": "s", "ț": "t",
    "Ă": "A", "Â": "A", "Î": "I", "Ș": "S", "Ț": "T",
}

_TRANSLATION = str.maketrans(DIACRITICS_MAP)


def normalize_text(text: Any) -> str:
    if not text or not isinstance(text, str):
        return ""
    return text.lower().translate(_TRANSLATION)


def contains_normalized(text: Any, search_term: Any) -> bool:
    return normalize_text(search_term) in normalize_text(text)


def starts_with_normalized(text: Any, search_term: Any) -> bool:
    return normalize_text(text).startswith(normalize_text(search_term))


def equals_normalized(text1: Any, text2: Any) -> bool:
    return normalize_text(text1) == normalize_text(text2)


def _field_value(item: Any, field: str) -> Any:
    if isinstance(item, dict):
        return item.get(field)
    return getattr(item, field, None)


def sort_by_normalized_text(
    items: Iterable[Any], field: str, ascending: bool = True
) -> List[Any]:
    """
    Sort dicts or objects by a text attribute. Ties keep their incoming
    order (Python's sort is stable).
    """
    return sorted(
        items,
        key=lambda item: normalize_text(_field_value(item, field) or ""),
        reverse=not ascending,
    )
