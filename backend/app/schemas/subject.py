from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime


class SubjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    year_level: str = Field(..., min_length=1, max_length=50)
    academic_year: str = Field(..., min_length=1, max_length=20)
    semester: str = Field(..., min_length=1, max_length=50)
    blocks: List[str] = Field(..., min_length=1)


class SubjectUpdate(BaseModel):
    name: Optional[str] = None
    year_level: Optional[str] = None
    academic_year: Optional[str] = None
    semester: Optional[str] = None
    blocks: Optional[List[str]] = None


class SubjectResponse(BaseModel):
    id: str
    name: str
    year_level: str
    academic_year: str
    semester: str
    blocks: List[str]
    teacher_id: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
