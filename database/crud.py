"""
CRUD operations for the question bank
All database operations go through these functions
"""

from sqlalchemy.orm import Session
from typing import List, Optional
from database import models


# ==========================================
# SELECTION LOOKUPS
# ==========================================

def get_exams(db: Session) -> List[models.Exam]:
    """Get all exams ordered by name"""
    return db.query(models.Exam).order_by(models.Exam.name).all()


def get_exam(db: Session, exam_id: int) -> Optional[models.Exam]:
    """Get exam by ID"""
    return db.query(models.Exam).filter(models.Exam.id == exam_id).first()


def get_course(db: Session, course_id: int) -> Optional[models.Course]:
    """Get course by ID"""
    return db.query(models.Course).filter(models.Course.id == course_id).first()


def get_courses_by_exam(db: Session, exam_id: int) -> List[models.Course]:
    """Get all courses under an exam, ordered by name"""
    return (
        db.query(models.Course)
        .filter(models.Course.exam_id == exam_id)
        .order_by(models.Course.name)
        .all()
    )


def get_slots_by_course(db: Session, course_id: int) -> List[models.Slot]:
    """Get all slots of a course, ordered by name"""
    return (
        db.query(models.Slot)
        .filter(models.Slot.course_id == course_id)
        .order_by(models.Slot.slot_name)
        .all()
    )


def get_parts(db: Session, course_id: int, slot_id: Optional[int] = None) -> List[models.Part]:
    """
    Get parts of a course.
    With a slot: parts of that slot. Without: parts not tied to any slot.
    """
    query = db.query(models.Part).filter(models.Part.course_id == course_id)
    if slot_id:
        query = query.filter(models.Part.slot_id == slot_id)
    else:
        query = query.filter(models.Part.slot_id.is_(None))
    return query.order_by(models.Part.part_name).all()


# ==========================================
# TOPIC CONTEXT
# ==========================================

def get_topic_notes(db: Session, topic_id: int) -> str:
    """Get free-text notes for a topic ('' when missing)"""
    topic = db.query(models.Topic).filter(models.Topic.id == topic_id).first()
    return (topic.notes or "") if topic else ""


def _filter_questions(query, model, topic_id: int, question_type: str,
                      slot_id: Optional[int], part_id: Optional[int]):
    query = query.filter(model.topic_id == topic_id, model.question_type == question_type)
    if slot_id:
        query = query.filter(model.slot_id == slot_id)
    if part_id:
        query = query.filter(model.part_id == part_id)
    return query


def get_previous_questions(
    db: Session,
    topic_id: int,
    question_type: str,
    slot_id: Optional[int] = None,
    part_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[models.QuestionTopicWise]:
    """Historical questions for a topic, oldest first (first `limit` rows)"""
    query = _filter_questions(
        db.query(models.QuestionTopicWise), models.QuestionTopicWise,
        topic_id, question_type, slot_id, part_id,
    ).order_by(models.QuestionTopicWise.id)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def get_generated_questions(
    db: Session,
    topic_id: int,
    question_type: str,
    slot_id: Optional[int] = None,
    part_id: Optional[int] = None,
    last: Optional[int] = None,
) -> List[models.NewQuestion]:
    """Generated questions for a topic in insertion order (only the last `last` rows if given)"""
    query = _filter_questions(
        db.query(models.NewQuestion), models.NewQuestion,
        topic_id, question_type, slot_id, part_id,
    )
    if last is None:
        return query.order_by(models.NewQuestion.id).all()
    rows = query.order_by(models.NewQuestion.id.desc()).limit(last).all()
    return list(reversed(rows))


def list_new_questions(
    db: Session,
    topic_id: Optional[int] = None,
    question_type: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[models.NewQuestion]:
    """List generated questions, newest first"""
    query = db.query(models.NewQuestion)
    if topic_id is not None:
        query = query.filter(models.NewQuestion.topic_id == topic_id)
    if question_type:
        query = query.filter(models.NewQuestion.question_type == question_type)
    return query.order_by(models.NewQuestion.id.desc()).offset(skip).limit(limit).all()


def create_new_question(db: Session, **fields) -> models.NewQuestion:
    """Append a generated question"""
    db_question = models.NewQuestion(**fields)
    db.add(db_question)
    db.commit()
    db.refresh(db_question)
    return db_question


# ==========================================
# GENERATION RUNS
# ==========================================

def create_generation_run(db: Session, **fields) -> models.QuestionGenerationRun:
    """Create a run record"""
    run = models.QuestionGenerationRun(**fields)
    db.add(run)
    db.commit()
    db.refresh(run)
    return run


def get_generation_run(db: Session, run_id: int) -> Optional[models.QuestionGenerationRun]:
    """Get run by ID"""
    return db.query(models.QuestionGenerationRun).filter(models.QuestionGenerationRun.id == run_id).first()


def update_generation_run(db: Session, run_id: int, **fields) -> Optional[models.QuestionGenerationRun]:
    """Update a run record"""
    run = get_generation_run(db, run_id)
    if not run:
        return None
    for field, value in fields.items():
        setattr(run, field, value)
    db.commit()
    db.refresh(run)
    return run


def list_generation_runs(
    db: Session,
    course_id: Optional[int] = None,
    limit: int = 20,
) -> List[models.QuestionGenerationRun]:
    """List recent runs, newest first"""
    query = db.query(models.QuestionGenerationRun)
    if course_id is not None:
        query = query.filter(models.QuestionGenerationRun.course_id == course_id)
    return query.order_by(models.QuestionGenerationRun.id.desc()).limit(limit).all()
