from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from course_scheduler.database import get_db
from course_scheduler.models.college import College
from course_scheduler.models.course import Course
from course_scheduler.models.semester import Semester
from course_scheduler.models.student import Student
from course_scheduler.schemas.catalog import (
    CollegeCreate, CollegeOut,
    StudentCreate, StudentOut,
    CourseCreate, CourseOut,
    SemesterCreate, SemesterOut,
)

import logging
logger = logging.getLogger("app.catalog")

router = APIRouter(tags=["Catalog"])


def _require_college(db: Session, college_id: int):
    if not db.query(College.id).filter(College.id == college_id).first():
        raise HTTPException(status_code=400, detail="college_id not found")


@router.post("/colleges", response_model=CollegeOut, status_code=201)
def create_college(body: CollegeCreate, db: Session = Depends(get_db)):
    name = body.name.strip()
    if db.query(College.id).filter(College.name == name).first():
        raise HTTPException(status_code=400, detail="College already exists")

    c = College(name=name)
    db.add(c)
    try:
        db.commit()
    except IntegrityError:
        # 同名學院在檢查後被另一個請求搶先建立
        db.rollback()
        raise HTTPException(status_code=400, detail="College already exists")
    db.refresh(c)
    logger.info("college %s created", c.id)
    return c


@router.get("/colleges", response_model=list[CollegeOut])
def list_colleges(db: Session = Depends(get_db)):
    return db.query(College).order_by(College.id.asc()).all()


@router.post("/students", response_model=StudentOut, status_code=201)
def create_student(body: StudentCreate, db: Session = Depends(get_db)):
    _require_college(db, body.college_id)

    s = Student(name=body.name.strip(), college_id=body.college_id)
    db.add(s)
    db.commit()
    db.refresh(s)
    return s


@router.get("/students", response_model=list[StudentOut])
def list_students(
    college_id: Optional[int] = Query(None, alias="collegeId"),
    db: Session = Depends(get_db),
):
    q = db.query(Student)
    if college_id is not None:
        q = q.filter(Student.college_id == college_id)
    return q.order_by(Student.id.asc()).all()


@router.post("/courses", response_model=CourseOut, status_code=201)
def create_course(body: CourseCreate, db: Session = Depends(get_db)):
    _require_college(db, body.college_id)

    c = Course(code=body.code.strip(), college_id=body.college_id)
    db.add(c)
    db.commit()
    db.refresh(c)
    return c


@router.get("/courses", response_model=list[CourseOut])
def list_courses(
    college_id: Optional[int] = Query(None, alias="collegeId"),
    db: Session = Depends(get_db),
):
    q = db.query(Course)
    if college_id is not None:
        q = q.filter(Course.college_id == college_id)
    return q.order_by(Course.id.asc()).all()


@router.post("/semesters", response_model=SemesterOut, status_code=201)
def create_semester(body: SemesterCreate, db: Session = Depends(get_db)):
    s = Semester(name=body.name.strip(), start_date=body.start_date, end_date=body.end_date)
    db.add(s)
    db.commit()
    db.refresh(s)
    return s


@router.get("/semesters", response_model=list[SemesterOut])
def list_semesters(db: Session = Depends(get_db)):
    return db.query(Semester).order_by(Semester.id.asc()).all()
