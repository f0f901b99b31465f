from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from course_scheduler.config import settings
from course_scheduler.database import get_db
from course_scheduler.errors import NotFound
from course_scheduler.services.locks import LeaseService, get_lease_service
from course_scheduler.services.store import ScheduleStore
from course_scheduler.services.timetable_service import TimetableService
from course_scheduler.schemas.timetable import TimetableIn, TimetableOut
from course_scheduler.utils.excel_export import timetable_to_xlsx_bytes, make_filename

router = APIRouter(prefix="/courses/{course_id}/timetables", tags=["Timetables"])
admin_router = APIRouter(prefix="/timetables", tags=["Timetables"])


def get_timetable_service(
    db: Session = Depends(get_db),
    leases: LeaseService = Depends(get_lease_service),
) -> TimetableService:
    return TimetableService(
        ScheduleStore(db),
        leases,
        lock_ttl_ms=settings.LOCK_TTL_MS,
        critical_section_delay=settings.CRITICAL_SECTION_DELAY_MS / 1000,
    )


@router.post("", response_model=TimetableOut, status_code=201)
def add_timetable(
    course_id: int,
    body: TimetableIn,
    service: TimetableService = Depends(get_timetable_service),
):
    return service.add_timetable(course_id, body.day_of_week, body.start_time, body.end_time)


@router.get("", response_model=list[TimetableOut])
def list_course_timetables(course_id: int, service: TimetableService = Depends(get_timetable_service)):
    return service.find_by_course(course_id)


# 匯出單一課程的週課表
@router.get("/export")
def export_course_timetable(course_id: int, service: TimetableService = Depends(get_timetable_service)):
    if service.store.get_course(course_id) is None:
        raise NotFound("Course not found", course_id=course_id)

    # course.code is free text, keep it out of the sheet title and the header
    xlsx_bytes = timetable_to_xlsx_bytes(service.find_by_course(course_id), sheet_name="Timetable")
    filename = make_filename(f"timetable_course_{course_id}")
    return StreamingResponse(
        iter([xlsx_bytes]),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@admin_router.put("/{slot_id}", response_model=TimetableOut)
def update_timetable(
    slot_id: int,
    body: TimetableIn,
    service: TimetableService = Depends(get_timetable_service),
):
    return service.update_timetable(slot_id, body.day_of_week, body.start_time, body.end_time)


@admin_router.delete("/{slot_id}")
def delete_timetable(slot_id: int, service: TimetableService = Depends(get_timetable_service)):
    service.delete_timetable(slot_id)
    return {"deleted": True}
