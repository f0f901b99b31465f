from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from course_scheduler.database import Base

class Timetable(Base):
    """One recurring weekly slot of a course.

    day_of_week holds the canonical name ("Tuesday"); start_time / end_time
    keep the raw "HH:MM[:SS]" text. end_time < start_time means the slot
    runs past midnight into the next day.
    """
    __tablename__ = "course_timetables"

    id = Column(Integer, primary_key=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)

    day_of_week = Column(String, nullable=False)
    start_time = Column(String(8), nullable=False)
    end_time = Column(String(8), nullable=False)

    course = relationship("Course", back_populates="timetables")
