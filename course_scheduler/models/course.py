from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from course_scheduler.database import Base

class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True)
    code = Column(String, nullable=False)
    college_id = Column(Integer, ForeignKey("colleges.id", ondelete="CASCADE"), nullable=False, index=True)

    # relationship
    college = relationship("College", back_populates="courses")
    timetables = relationship("Timetable", back_populates="course", passive_deletes=True)
