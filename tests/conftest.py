import os

# must be set before course_scheduler.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOCK_BACKEND"] = "memory"
os.environ["LOG_TO_FILE"] = "false"

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from course_scheduler.database import Base, get_db, make_engine
from course_scheduler.main import app
from course_scheduler.models.college import College
from course_scheduler.models.course import Course
from course_scheduler.models.semester import Semester
from course_scheduler.models.student import Student
from course_scheduler.models.timetable import Timetable
from course_scheduler.services.locks import InMemoryLeaseService, get_lease_service
from course_scheduler.services.store import ScheduleStore


@pytest.fixture
def session_factory(tmp_path):
    # file backed so threads get their own connections to the same data
    engine = make_engine(f"sqlite:///{tmp_path / 'scheduler.db'}")
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db):
    return ScheduleStore(db)


@pytest.fixture
def leases():
    return InMemoryLeaseService(retry_count=50, retry_delay_ms=10, retry_jitter_ms=10)


@pytest.fixture
def catalog(db):
    """Two colleges, a student in college X, courses A/B/C in X and D in Y."""
    x = College(name="Engineering")
    y = College(name="Arts")
    db.add_all([x, y])
    db.flush()

    student = Student(name="Sam", college_id=x.id)
    a = Course(code="CS101", college_id=x.id)
    b = Course(code="CS102", college_id=x.id)
    c = Course(code="CS103", college_id=x.id)
    d = Course(code="ART201", college_id=y.id)
    fall = Semester(name="Fall-2024", start_date=date(2024, 9, 1), end_date=date(2024, 12, 20))
    spring = Semester(name="Spring-2025", start_date=date(2025, 1, 10), end_date=date(2025, 5, 1))
    db.add_all([student, a, b, c, d, fall, spring])
    db.commit()

    return {
        "college_x": x, "college_y": y, "student": student,
        "a": a, "b": b, "c": c, "d": d,
        "fall": fall, "spring": spring,
    }


@pytest.fixture
def add_slot(db):
    """Insert a slot directly, bypassing the clash check."""
    def _add(course, day, start, end):
        slot = Timetable(course_id=course.id, day_of_week=day, start_time=start, end_time=end)
        db.add(slot)
        db.commit()
        db.refresh(slot)
        return slot
    return _add


@pytest.fixture
def client(session_factory, leases):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_lease_service] = lambda: leases
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
