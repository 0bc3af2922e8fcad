"""
Human-readable identifier allocation.

Group ids and item ids are zero-padded sequences ("01", "02" …) that reuse
the smallest free number, so deleting "03" makes "03" the next id again.
Order batch ids are "<year><month:02>" plus a letter suffix for the second
and later batches of the same month ("202505", "202505A", "202505B" …).
Order lines get opaque random ids.
"""
from __future__ import annotations

import re
import uuid
from itertools import count
from typing import Iterable, Iterator, Optional

from loguru import logger

ID_MIN_WIDTH = 2

_NUMERIC_ID_RE = re.compile(r"[0-9]+")
_SUFFIX_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _used_numbers(existing_ids: Iterable[Optional[str]]) -> set[int]:
    used: set[int] = set()
    for raw in existing_ids:
        text = str(raw).strip() if raw is not None else ""
        if not _NUMERIC_ID_RE.fullmatch(text):
            logger.debug(f"identifiers: skipping non-numeric id {raw!r}")
            continue
        used.add(int(text))
    return used


def next_sequential_id(existing_ids: Iterable[Optional[str]], width: int = ID_MIN_WIDTH) -> str:
    """
    Smallest positive integer not in `existing_ids`, zero-padded to `width`.

    Padding only ever grows: 100 formats as "100", never "00".
    Malformed ids are ignored.
    """
    used = _used_numbers(existing_ids)
    candidate = next(n for n in count(1) if n not in used)
    return str(candidate).zfill(width)


def next_group_id(existing_ids: Iterable[Optional[str]]) -> str:
    return next_sequential_id(existing_ids)


def next_item_id(existing_ids: Iterable[Optional[str]]) -> str:
    """Next item id within one group; pass only that group's item ids."""
    return next_sequential_id(existing_ids)


def order_batch_base(year: int, month: int) -> str:
    return f"{int(year)}{int(month):02d}"


def _suffixes() -> Iterator[str]:
    """A, B, … Z, AA, AB, … (spreadsheet-column style)."""
    for length in count(1):
        for combo in _letter_combos(length):
            yield combo


def _letter_combos(length: int) -> Iterator[str]:
    if length == 1:
        yield from _SUFFIX_ALPHABET
        return
    for head in _SUFFIX_ALPHABET:
        for tail in _letter_combos(length - 1):
            yield head + tail


def next_order_batch_id(year: int, month: int, existing_ids: Iterable[Optional[str]]) -> str:
    """
    Next batch id for year/month.

    The first batch of a month is the bare base; later ones take the first
    unused letter suffix. Ids belonging to other months are ignored.
    """
    base = order_batch_base(year, month)
    used = {
        str(raw)[len(base):]
        for raw in existing_ids
        if raw is not None and str(raw).startswith(base)
    }
    if "" not in used:
        return base
    for suffix in _suffixes():
        if suffix not in used:
            return base + suffix
    raise AssertionError("unreachable: suffix sequence is infinite")


def order_batch_suffix(batch_id: str, year: int, month: int) -> str:
    """The letter suffix of a batch id ("" for the month's first batch)."""
    base = order_batch_base(year, month)
    if not batch_id.startswith(base):
        return ""
    return batch_id[len(base):]


def new_order_item_id() -> str:
    """Opaque, collision-resistant id for an order line."""
    return str(uuid.uuid4())
