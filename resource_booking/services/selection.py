"""Pure reducer turning slot clicks into one contiguous reservation window.

A click that would leave a gap does not get rejected: the previous selection
is dropped and a new one starts at the clicked slot. Users extend a range by
clicking its neighbours and start over by clicking anywhere else.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime

from .availability_service import TimeSlot


@dataclass(frozen=True, slots=True)
class SelectedWindow:
    start: datetime
    end: datetime
    duration_minutes: int


def is_contiguous(indices: Iterable[int]) -> bool:
    ordered = sorted(indices)
    return all(current == previous + 1 for previous, current in zip(ordered, ordered[1:]))


def select_slot(
    selection: frozenset[int], index: int, slots: Sequence[TimeSlot]
) -> frozenset[int]:
    if index in selection:
        remaining = selection - {index}
        if is_contiguous(remaining):
            return remaining
        # Deselecting inside the run keeps the part before the click.
        return frozenset(i for i in remaining if i < index)

    if not 0 <= index < len(slots) or not slots[index].selectable:
        return selection

    if not selection:
        return frozenset({index})

    merged = selection | {index}
    if is_contiguous(merged):
        return frozenset(merged)
    return frozenset({index})


def selected_window(
    selection: frozenset[int], slots: Sequence[TimeSlot], slot_minutes: int
) -> SelectedWindow | None:
    if not selection:
        return None
    first = slots[min(selection)]
    last = slots[max(selection)]
    return SelectedWindow(
        start=first.start,
        end=last.end,
        duration_minutes=len(selection) * slot_minutes,
    )
