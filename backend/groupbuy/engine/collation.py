"""
Buyer-name and label ordering.

Byte-wise ordering puts every upper-case letter before every lower-case one,
full-width Latin after all of ASCII and Han characters in code-point order,
none of which is how the buyers' names are read. Sorting uses ICU's
Traditional Chinese (zh_TW) collation instead: Han characters order by
stroke count, while case and width are secondary differences.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Callable, Iterable, TypeVar

from icu import Collator, Locale

COLLATION_LOCALE = "zh_TW"

T = TypeVar("T")


@lru_cache(maxsize=1)
def _collator() -> Collator:
    return Collator.createInstance(Locale(COLLATION_LOCALE))


def collation_key(text: Any) -> bytes:
    """Sort key for a label; None sorts as the empty string."""
    return _collator().getSortKey("" if text is None else str(text))


def sort_by_label(values: Iterable[T], label: Callable[[T], Any]) -> list[T]:
    """Stable sort by collated label."""
    return sorted(values, key=lambda v: collation_key(label(v)))
