"""
Pydantic schemas for request/response validation
Separate from SQLAlchemy models for clean API contracts
"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any
from datetime import datetime


# ==========================================
# SELECTION SCHEMAS
# ==========================================

class ExamResponse(BaseModel):
    """Schema for Exam response"""
    id: int
    name: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CourseResponse(BaseModel):
    """Schema for Course response"""
    id: int
    exam_id: int
    name: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SlotResponse(BaseModel):
    """Schema for Slot response"""
    id: int
    slot_name: str
    course_id: int

    model_config = ConfigDict(from_attributes=True)


class PartResponse(BaseModel):
    """Schema for Part response"""
    id: int
    part_name: str
    course_id: int
    slot_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


# ==========================================
# GENERATED QUESTION SCHEMAS
# ==========================================

class NewQuestionResponse(BaseModel):
    """Schema for a persisted generated question"""
    id: int
    topic_id: int
    topic_name: Optional[str] = None
    question_statement: str
    question_type: str
    options: Optional[List[str]] = Field(default_factory=list)
    answer: Optional[str] = None
    solution: Optional[str] = None
    slot_id: Optional[int] = None
    part_id: Optional[int] = None
    correct_marks: Optional[float] = None
    incorrect_marks: Optional[float] = None
    skipped_marks: Optional[float] = None
    partial_marks: Optional[float] = None
    time_minutes: Optional[float] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class GenerationRunResponse(BaseModel):
    """Schema for a persisted generation run record"""
    id: int
    exam_id: Optional[int] = None
    course_id: Optional[int] = None
    question_type: str
    model: Optional[str] = None
    status: str
    counts_requested: Optional[Dict[str, Any]] = None
    counts_completed: Optional[Dict[str, Any]] = None
    fail_reasons: List[str] = Field(default_factory=list)
    fatal_error: Optional[str] = None
    created_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
