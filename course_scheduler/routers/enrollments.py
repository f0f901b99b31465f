from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from course_scheduler.database import get_db
from course_scheduler.services.enrollment_service import EnrollmentService
from course_scheduler.services.store import ScheduleStore
from course_scheduler.schemas.enrollment import EnrollIn, EnrollmentOut

router = APIRouter(tags=["Enrollments"])


def get_enrollment_service(db: Session = Depends(get_db)) -> EnrollmentService:
    return EnrollmentService(ScheduleStore(db))


@router.post("/enrollments", response_model=list[EnrollmentOut], status_code=201)
def enroll(body: EnrollIn, service: EnrollmentService = Depends(get_enrollment_service)):
    return service.enroll_student(body.student_id, body.course_ids, body.semester_id)


@router.get("/students/{student_id}/enrollments", response_model=list[EnrollmentOut])
def list_student_enrollments(
    student_id: int,
    semester_id: Optional[int] = Query(None, alias="semesterId"),
    service: EnrollmentService = Depends(get_enrollment_service),
):
    return service.find_by_student(student_id, semester_id)
