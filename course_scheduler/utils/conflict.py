from __future__ import annotations

from typing import Iterable, NamedTuple, Optional, Sequence

from course_scheduler.utils.timeslots import Segment, slot_segments


class ConflictCheckResult(NamedTuple):
    has_conflict: bool
    conflicting_with: Optional[int] = None


NO_CONFLICT = ConflictCheckResult(False)


def segments_overlap(a: Segment, b: Segment) -> bool:
    """
    同一天且 [start, end) 有交集才算衝堂；
    a 結束於 600、b 開始於 600 不算。
    """
    if a.weekday != b.weekday:
        return False
    return not (a.end_minute <= b.start_minute or b.end_minute <= a.start_minute)


def any_overlap(a_segments: Sequence[Segment], b_segments: Sequence[Segment]) -> bool:
    for a in a_segments:
        for b in b_segments:
            if segments_overlap(a, b):
                return True
    return False


def find_slot_conflict(candidate: Sequence[Segment], slots: Iterable, exclude_id=None) -> ConflictCheckResult:
    """
    candidate: segments of the slot being added
    slots: persisted Timetable rows (day_of_week / start_time / end_time)

    Returns the first slot whose segments overlap the candidate.
    """
    for slot in slots:
        if exclude_id is not None and slot.id == exclude_id:
            continue
        existing = slot_segments(slot.day_of_week, slot.start_time, slot.end_time)
        if any_overlap(candidate, existing):
            return ConflictCheckResult(True, slot.id)
    return NO_CONFLICT
