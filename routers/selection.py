"""
Selection API endpoints
Exam → Course → Slot → Part lookups that feed the generation config
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import schemas, crud
from database.database import get_db

router = APIRouter(tags=["selection"])


@router.get("/exams", response_model=List[schemas.ExamResponse])
def list_exams(db: Session = Depends(get_db)):
    """
    List all exams, ordered by name
    """
    return crud.get_exams(db)


@router.get("/exams/{exam_id}/courses", response_model=List[schemas.CourseResponse])
def list_courses(exam_id: int, db: Session = Depends(get_db)):
    """
    List the courses of an exam, ordered by name
    """
    if not crud.get_exam(db, exam_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Exam with ID {exam_id} not found"
        )
    return crud.get_courses_by_exam(db, exam_id)


@router.get("/courses/{course_id}/slots", response_model=List[schemas.SlotResponse])
def list_slots(course_id: int, db: Session = Depends(get_db)):
    """
    List the slots of a course, ordered by name
    """
    if not crud.get_course(db, course_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Course with ID {course_id} not found"
        )
    return crud.get_slots_by_course(db, course_id)


@router.get("/courses/{course_id}/parts", response_model=List[schemas.PartResponse])
def list_parts(
    course_id: int,
    slot_id: Optional[int] = Query(None, description="Only parts of this slot; omit for slot-less parts"),
    db: Session = Depends(get_db),
):
    """
    List the parts of a course (of one slot, or those without a slot)
    """
    if not crud.get_course(db, course_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Course with ID {course_id} not found"
        )
    return crud.get_parts(db, course_id, slot_id)
