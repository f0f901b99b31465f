from __future__ import annotations

from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from course_scheduler.models.course import Course
from course_scheduler.models.enrollment import Enrollment
from course_scheduler.models.semester import Semester
from course_scheduler.models.student import Student
from course_scheduler.models.timetable import Timetable


class ScheduleStore:
    """Record store for the scheduling engine, one SQLAlchemy session per request."""

    def __init__(self, db: Session):
        self.db = db

    # --- lookups ---
    def get_course(self, course_id: int) -> Optional[Course]:
        return self.db.get(Course, course_id)

    def get_courses_by_ids(self, course_ids: Iterable[int]) -> List[Course]:
        ids = list(course_ids)
        if not ids:
            return []
        return self.db.query(Course).filter(Course.id.in_(ids)).all()

    def get_student(self, student_id: int) -> Optional[Student]:
        return self.db.get(Student, student_id)

    def get_semester(self, semester_id: int) -> Optional[Semester]:
        return self.db.get(Semester, semester_id)

    # --- timetable slots ---
    def get_slot(self, slot_id: int) -> Optional[Timetable]:
        # bypass the identity map, another request may have changed the row
        return self.db.get(Timetable, slot_id, populate_existing=True)

    def get_slots_by_course(self, course_id: int) -> List[Timetable]:
        return (
            self.db.query(Timetable)
            .filter(Timetable.course_id == course_id)
            .populate_existing()
            .order_by(Timetable.id.asc())
            .all()
        )

    def get_slots_by_courses(self, course_ids: Iterable[int]) -> List[Timetable]:
        ids = list(course_ids)
        if not ids:
            return []
        return (
            self.db.query(Timetable)
            .filter(Timetable.course_id.in_(ids))
            .order_by(Timetable.id.asc())
            .all()
        )

    def create_slot(self, course_id: int, day_of_week: str, start_time: str, end_time: str) -> Timetable:
        slot = Timetable(
            course_id=course_id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
        )
        self.db.add(slot)
        self._commit()
        self.db.refresh(slot)
        return slot

    def update_slot(self, slot: Timetable, day_of_week: str, start_time: str, end_time: str) -> Timetable:
        slot.day_of_week = day_of_week
        slot.start_time = start_time
        slot.end_time = end_time
        self._commit()
        self.db.refresh(slot)
        return slot

    def delete_slot(self, slot: Timetable) -> None:
        self.db.delete(slot)
        self._commit()

    # --- enrollments ---
    def get_enrollments_by_student_and_semester(self, student_id: int, semester_id: int) -> List[Enrollment]:
        return (
            self.db.query(Enrollment)
            .filter(Enrollment.student_id == student_id, Enrollment.semester_id == semester_id)
            .all()
        )

    def get_enrollments_by_student(self, student_id: int, semester_id: Optional[int] = None) -> List[Enrollment]:
        q = self.db.query(Enrollment).filter(Enrollment.student_id == student_id)
        if semester_id is not None:
            q = q.filter(Enrollment.semester_id == semester_id)
        return q.order_by(Enrollment.id.asc()).all()

    def create_enrollments(self, student_id: int, course_ids: Iterable[int], semester_id: int) -> List[Enrollment]:
        """All rows commit together or none do; IntegrityError propagates after rollback."""
        rows = [
            Enrollment(student_id=student_id, course_id=cid, semester_id=semester_id)
            for cid in course_ids
        ]
        self.db.add_all(rows)
        self._commit()
        for r in rows:
            self.db.refresh(r)
        return rows

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise
