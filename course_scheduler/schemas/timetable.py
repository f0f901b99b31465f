from pydantic import BaseModel, ConfigDict, Field


class TimetableIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day_of_week: str = Field(alias="dayOfWeek", description="Sunday..Saturday, case-insensitive")
    start_time: str = Field(alias="startTime", description="HH:MM or HH:MM:SS")
    # earlier than start_time means the slot runs past midnight
    end_time: str = Field(alias="endTime", description="HH:MM or HH:MM:SS")


class TimetableOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    course_id: int
    day_of_week: str
    start_time: str
    end_time: str
