from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from course_scheduler.database import Base

class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    college_id = Column(Integer, ForeignKey("colleges.id", ondelete="CASCADE"), nullable=False, index=True)

    college = relationship("College", back_populates="students")
