import logging
from collections import Counter
from typing import Dict, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError

from course_scheduler.errors import DuplicateEnrollment, InvalidInput, NotFound, ScheduleConflict
from course_scheduler.models.enrollment import Enrollment
from course_scheduler.services.store import ScheduleStore
from course_scheduler.utils.conflict import any_overlap
from course_scheduler.utils.timeslots import Segment, slot_segments

logger = logging.getLogger("app.enrollments")


def _segments_by_course(slots) -> Dict[int, List[Segment]]:
    out: Dict[int, List[Segment]] = {}
    for s in slots:
        out.setdefault(s.course_id, []).extend(
            slot_segments(s.day_of_week, s.start_time, s.end_time)
        )
    return out


class EnrollmentService:
    def __init__(self, store: ScheduleStore):
        self.store = store

    def enroll_student(self, student_id: int, course_ids: Sequence[int], semester_id: int) -> List[Enrollment]:
        """
        全部檢查通過才寫入，一次 commit：
        1. course_ids 不可為空、不可重複
        2. 學生 / 學期存在
        3. 課程存在且與學生同學院
        4. 本學期未重複選課
        5. 新選課程彼此不衝堂
        6. 新選課程與已選課程不衝堂
        """
        if not course_ids:
            raise InvalidInput("At least one course must be provided")

        repeated = sorted(cid for cid, n in Counter(course_ids).items() if n > 1)
        if repeated:
            raise DuplicateEnrollment(
                f"Courses requested more than once: {', '.join(map(str, repeated))}",
                course_ids=repeated,
            )

        student = self.store.get_student(student_id)
        if student is None:
            raise NotFound("Student not found", student_id=student_id)

        if self.store.get_semester(semester_id) is None:
            raise NotFound("Semester not found", semester_id=semester_id)

        courses = self.store.get_courses_by_ids(course_ids)
        found = {c.id for c in courses}
        missing = [cid for cid in course_ids if cid not in found]
        if missing:
            raise InvalidInput("One or more courses not found", course_ids=missing)

        foreign = [c.id for c in courses if c.college_id != student.college_id]
        if foreign:
            raise InvalidInput(
                "All courses must belong to the same college as the student",
                course_ids=sorted(foreign),
            )

        existing = self.store.get_enrollments_by_student_and_semester(student_id, semester_id)
        requested = set(course_ids)
        already = sorted({e.course_id for e in existing} & requested)
        if already:
            raise DuplicateEnrollment(
                f"Student is already enrolled in courses: {', '.join(map(str, already))} for this semester",
                course_ids=already,
            )

        # 新選課程彼此
        new_segments = _segments_by_course(self.store.get_slots_by_courses(course_ids))
        ordered = [cid for cid in course_ids if cid in new_segments]
        for i, a in enumerate(ordered):
            for b in ordered[i + 1:]:
                if any_overlap(new_segments[a], new_segments[b]):
                    raise ScheduleConflict(
                        "Timetable clash detected between selected courses",
                        conflicting_with=b,
                        course_ids=[a, b],
                    )

        # 與已選課程
        enrolled_ids = [e.course_id for e in existing]
        if enrolled_ids and new_segments:
            old_segments = _segments_by_course(self.store.get_slots_by_courses(enrolled_ids))
            for new_id in ordered:
                for old_id, segs in old_segments.items():
                    if any_overlap(new_segments[new_id], segs):
                        raise ScheduleConflict(
                            "Timetable clash detected with existing enrollments",
                            conflicting_with=old_id,
                            course_ids=[new_id, old_id],
                        )

        try:
            rows = self.store.create_enrollments(student_id, course_ids, semester_id)
        except IntegrityError:
            # another request slipped in between the duplicate check and the commit
            logger.warning("enrollment commit rejected for student %s semester %s", student_id, semester_id)
            raise DuplicateEnrollment(
                "Student is already enrolled in one of these courses for this semester",
                course_ids=list(course_ids),
            )

        logger.info("student %s enrolled in %s for semester %s", student_id, list(course_ids), semester_id)
        return rows

    def find_by_student(self, student_id: int, semester_id: Optional[int] = None) -> List[Enrollment]:
        if self.store.get_student(student_id) is None:
            raise NotFound("Student not found", student_id=student_id)
        return self.store.get_enrollments_by_student(student_id, semester_id)
