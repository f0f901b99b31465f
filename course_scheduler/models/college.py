from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from course_scheduler.database import Base

class College(Base):
    __tablename__ = "colleges"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)

    students = relationship("Student", back_populates="college", passive_deletes=True)
    courses = relationship("Course", back_populates="college", passive_deletes=True)
