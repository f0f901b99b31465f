import threading

import pytest

from course_scheduler.errors import InvalidInput, LockUnavailable, NotFound, ScheduleConflict
from course_scheduler.models.timetable import Timetable
from course_scheduler.services.locks import InMemoryLeaseService, course_schedule_key
from course_scheduler.services.store import ScheduleStore
from course_scheduler.services.timetable_service import TimetableService


@pytest.fixture
def service(store, leases):
    return TimetableService(store, leases)


def test_add_stores_canonical_day(service, catalog):
    slot = service.add_timetable(catalog["a"].id, " tuesday ", "10:00", "12:00")
    assert slot.id is not None
    assert slot.day_of_week == "Tuesday"
    assert (slot.start_time, slot.end_time) == ("10:00", "12:00")


def test_overlapping_slot_is_rejected(service, catalog, db):
    course_id = catalog["a"].id
    first = service.add_timetable(course_id, "Tuesday", "10:00", "12:00")

    with pytest.raises(ScheduleConflict) as exc:
        service.add_timetable(course_id, "Tuesday", "11:00", "13:00")
    assert exc.value.conflicting_with == first.id
    assert db.query(Timetable).filter(Timetable.course_id == course_id).count() == 1


def test_touching_slot_is_accepted(service, catalog):
    course_id = catalog["a"].id
    service.add_timetable(course_id, "Tuesday", "10:00", "12:00")
    service.add_timetable(course_id, "Tuesday", "12:00", "13:00")
    assert len(service.find_by_course(course_id)) == 2


def test_same_time_on_another_course_is_accepted(service, catalog):
    service.add_timetable(catalog["a"].id, "Tuesday", "10:00", "12:00")
    service.add_timetable(catalog["b"].id, "Tuesday", "10:00", "12:00")


def test_overnight_slot_clashes_with_next_day(service, catalog):
    course_id = catalog["a"].id
    service.add_timetable(course_id, "Tuesday", "22:00", "02:00")

    with pytest.raises(ScheduleConflict):
        service.add_timetable(course_id, "Wednesday", "01:00", "03:00")
    service.add_timetable(course_id, "Wednesday", "02:00", "03:00")


def test_seconds_round_up_into_a_clash(service, catalog):
    course_id = catalog["a"].id
    service.add_timetable(course_id, "Monday", "09:00", "10:00:30")
    with pytest.raises(ScheduleConflict):
        service.add_timetable(course_id, "Monday", "10:00", "11:00")


@pytest.mark.parametrize("day,start,end", [
    ("Tues", "10:00", "11:00"),
    ("Tuesday", "25:00", "11:00"),
    ("Tuesday", "10:00", "10:00"),
    ("Tuesday", "10am", "11:00"),
])
def test_invalid_input_writes_nothing(service, catalog, db, day, start, end):
    with pytest.raises(InvalidInput):
        service.add_timetable(catalog["a"].id, day, start, end)
    assert db.query(Timetable).count() == 0


def test_add_to_unknown_course(service, catalog):
    with pytest.raises(NotFound):
        service.add_timetable(9999, "Monday", "10:00", "11:00")


def test_update_can_keep_its_own_time(service, catalog):
    slot = service.add_timetable(catalog["a"].id, "Tuesday", "10:00", "12:00")
    updated = service.update_timetable(slot.id, "Tuesday", "10:00", "12:00")
    assert updated.id == slot.id


def test_update_moves_slot(service, catalog):
    slot = service.add_timetable(catalog["a"].id, "Tuesday", "10:00", "12:00")
    updated = service.update_timetable(slot.id, "friday", "08:00", "09:30")
    assert (updated.day_of_week, updated.start_time, updated.end_time) == ("Friday", "08:00", "09:30")


def test_update_checks_sibling_slots(service, catalog):
    course_id = catalog["a"].id
    sibling = service.add_timetable(course_id, "Tuesday", "10:00", "12:00")
    slot = service.add_timetable(course_id, "Tuesday", "13:00", "14:00")

    with pytest.raises(ScheduleConflict) as exc:
        service.update_timetable(slot.id, "Tuesday", "11:30", "13:30")
    assert exc.value.conflicting_with == sibling.id


def test_update_unknown_slot(service, catalog):
    with pytest.raises(NotFound):
        service.update_timetable(404, "Monday", "10:00", "11:00")


def test_delete_slot(service, catalog):
    course_id = catalog["a"].id
    slot = service.add_timetable(course_id, "Tuesday", "10:00", "12:00")
    service.delete_timetable(slot.id)

    assert service.find_by_course(course_id) == []
    service.add_timetable(course_id, "Tuesday", "11:00", "13:00")


def test_delete_unknown_slot(service):
    with pytest.raises(NotFound):
        service.delete_timetable(12345)


def test_find_by_course_orders_by_weekday_and_start(service, catalog):
    course_id = catalog["a"].id
    service.add_timetable(course_id, "Friday", "09:00", "10:00")
    service.add_timetable(course_id, "Monday", "14:00", "15:00")
    service.add_timetable(course_id, "Sunday", "09:00", "10:00")
    service.add_timetable(course_id, "Monday", "08:00", "09:00")

    got = [(s.day_of_week, s.start_time) for s in service.find_by_course(course_id)]
    assert got == [("Sunday", "09:00"), ("Monday", "08:00"), ("Monday", "14:00"), ("Friday", "09:00")]


def test_lease_is_released_after_a_clash(service, catalog, leases):
    course_id = catalog["a"].id
    service.add_timetable(course_id, "Tuesday", "10:00", "12:00")
    with pytest.raises(ScheduleConflict):
        service.add_timetable(course_id, "Tuesday", "11:00", "13:00")
    assert not leases.is_held(course_schedule_key(course_id))


def test_busy_course_raises_lock_unavailable(store, catalog, db):
    leases = InMemoryLeaseService(retry_count=1, retry_delay_ms=1, retry_jitter_ms=0)
    service = TimetableService(store, leases)
    course_id = catalog["a"].id
    leases.acquire(course_schedule_key(course_id), 5000)

    with pytest.raises(LockUnavailable):
        service.add_timetable(course_id, "Tuesday", "10:00", "12:00")
    assert db.query(Timetable).count() == 0

    # other courses are not affected
    service.add_timetable(catalog["b"].id, "Tuesday", "10:00", "12:00")


def test_concurrent_overlapping_adds_exactly_one_wins(session_factory, catalog, leases):
    course_id = catalog["a"].id
    barrier = threading.Barrier(2)
    outcomes = []
    lock = threading.Lock()

    def admin(start, end):
        db = session_factory()
        try:
            service = TimetableService(ScheduleStore(db), leases, critical_section_delay=0.2)
            barrier.wait()
            try:
                service.add_timetable(course_id, "tuesday", start, end)
                result = "ok"
            except (ScheduleConflict, LockUnavailable) as e:
                result = type(e).__name__
            with lock:
                outcomes.append(result)
        finally:
            db.close()

    threads = [
        threading.Thread(target=admin, args=("10:00:00", "12:00:00")),
        threading.Thread(target=admin, args=("11:00:00", "13:00:00")),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["ScheduleConflict", "ok"]

    check = session_factory()
    try:
        assert check.query(Timetable).filter(Timetable.course_id == course_id).count() == 1
    finally:
        check.close()
