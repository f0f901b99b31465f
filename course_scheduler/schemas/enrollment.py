from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class EnrollIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student_id: int = Field(alias="studentId")
    course_ids: List[int] = Field(alias="courseIds")
    semester_id: int = Field(alias="semesterId")


class EnrollmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: int
    course_id: int
    semester_id: int
    enrolled_at: datetime
