import logging
import time
from typing import List, Optional

from course_scheduler.errors import NotFound, ScheduleConflict
from course_scheduler.models.timetable import Timetable
from course_scheduler.services.locks import LeaseService, course_schedule_key, with_exclusive_lease
from course_scheduler.services.store import ScheduleStore
from course_scheduler.utils.conflict import find_slot_conflict
from course_scheduler.utils.timeslots import (
    day_index_to_name,
    normalize_day_of_week,
    parse_time_to_minutes,
    slot_segments,
)

logger = logging.getLogger("app.timetables")


class TimetableService:
    """Weekly slot administration for courses.

    Every add/update runs its read-check-write under the course's lease so
    two writers on the same course can never both pass the clash check.
    Deletes need no lease: removing a slot cannot create a clash.
    """

    def __init__(
        self,
        store: ScheduleStore,
        leases: LeaseService,
        lock_ttl_ms: int = 5000,
        critical_section_delay: float = 0.0,
    ):
        self.store = store
        self.leases = leases
        self.lock_ttl_ms = lock_ttl_ms
        # seconds slept between the read and the check, widens the race window in tests
        self.critical_section_delay = critical_section_delay

    def add_timetable(self, course_id: int, day_of_week: str, start_time: str, end_time: str) -> Timetable:
        return self.add_or_update_slot(course_id, day_of_week, start_time, end_time)

    def update_timetable(self, slot_id: int, day_of_week: str, start_time: str, end_time: str) -> Timetable:
        slot = self.store.get_slot(slot_id)
        if slot is None:
            raise NotFound("Timetable not found", slot_id=slot_id)
        return self.add_or_update_slot(
            slot.course_id, day_of_week, start_time, end_time, exclude_slot_id=slot_id
        )

    def add_or_update_slot(
        self,
        course_id: int,
        day_of_week: str,
        start_time: str,
        end_time: str,
        exclude_slot_id: Optional[int] = None,
    ) -> Timetable:
        # malformed input is rejected before anyone waits on the lease
        candidate = slot_segments(day_of_week, start_time, end_time)
        canonical_day = day_index_to_name(normalize_day_of_week(day_of_week))
        start_time = start_time.strip()
        end_time = end_time.strip()

        def check_and_write() -> Timetable:
            if self.store.get_course(course_id) is None:
                raise NotFound("Course not found", course_id=course_id)

            slot = None
            if exclude_slot_id is not None:
                slot = self.store.get_slot(exclude_slot_id)
                if slot is None or slot.course_id != course_id:
                    raise NotFound("Timetable not found", slot_id=exclude_slot_id)

            existing = self.store.get_slots_by_course(course_id)
            if self.critical_section_delay:
                time.sleep(self.critical_section_delay)

            result = find_slot_conflict(candidate, existing, exclude_id=exclude_slot_id)
            if result.has_conflict:
                logger.info(
                    "clash on course %s: %s %s-%s vs slot %s",
                    course_id, canonical_day, start_time, end_time, result.conflicting_with,
                )
                raise ScheduleConflict(
                    "Timetable clash detected",
                    conflicting_with=result.conflicting_with,
                    course_id=course_id,
                )

            if slot is None:
                saved = self.store.create_slot(course_id, canonical_day, start_time, end_time)
                logger.info("slot %s added to course %s", saved.id, course_id)
            else:
                saved = self.store.update_slot(slot, canonical_day, start_time, end_time)
                logger.info("slot %s of course %s updated", saved.id, course_id)
            return saved

        return with_exclusive_lease(
            self.leases, course_schedule_key(course_id), self.lock_ttl_ms, check_and_write
        )

    def delete_timetable(self, slot_id: int) -> None:
        slot = self.store.get_slot(slot_id)
        if slot is None:
            raise NotFound("Timetable not found", slot_id=slot_id)
        self.store.delete_slot(slot)
        logger.info("slot %s deleted", slot_id)

    def find_by_course(self, course_id: int) -> List[Timetable]:
        slots = self.store.get_slots_by_course(course_id)
        return sorted(
            slots,
            key=lambda s: (normalize_day_of_week(s.day_of_week), parse_time_to_minutes(s.start_time)),
        )
