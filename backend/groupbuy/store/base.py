"""
The read side every store offers to the engine.

A store lists its current records and hands them over as one Snapshot;
the engine never talks to it directly.
"""
from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from groupbuy.engine.snapshot import Snapshot
from groupbuy.engine.values import text_field


@runtime_checkable
class SnapshotStore(Protocol):
    def list_groups(self) -> Sequence[Any]: ...

    def list_items(self) -> Sequence[Any]: ...

    def list_order_groups(self) -> Sequence[Any]: ...

    def list_order_items(self) -> Sequence[Any]: ...

    def get_income_settings(self, order_group_id: str) -> Optional[Any]: ...

    def list_income_settings(self) -> Sequence[Any]: ...


def take_snapshot(store: SnapshotStore) -> Snapshot:
    """Read everything the store currently holds into one immutable Snapshot."""
    return Snapshot.of(
        groups=store.list_groups(),
        items=store.list_items(),
        order_groups=store.list_order_groups(),
        order_items=store.list_order_items(),
        income_settings={
            text_field(s, "order_group_id"): s for s in store.list_income_settings()
        },
    )
