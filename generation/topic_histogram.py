"""
Step 1 — Topic Histogram

Counts historical questions per topic for a course / question type / slot / part.
Only topics with at least one match are returned, sorted by descending count
(ties by topic id).

Two strategies produce the same output:
  - aggregate: one GROUP BY query over topics ⋈ chapters ⋈ questions_topic_wise
  - hierarchical: course → subjects → units → chapters → topics → per-topic count
The hierarchical walk is used when the aggregate query fails or finds nothing.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database.models import Course, Subject, Unit, Chapter, Topic, QuestionTopicWise
from generation.schemas import QuestionConfig, TopicHistogramEntry

log = logging.getLogger("generation.pipeline")


def _sort_key(entry: TopicHistogramEntry):
    return (-entry.question_count, entry.topic_id)


def _question_filters(query, question_type: str, slot_id: Optional[int], part_id: Optional[int]):
    query = query.filter(QuestionTopicWise.question_type == question_type)
    if slot_id:
        query = query.filter(QuestionTopicWise.slot_id == slot_id)
    if part_id:
        query = query.filter(QuestionTopicWise.part_id == part_id)
    return query


def fetch_histogram_aggregate(db: Session, config: QuestionConfig) -> List[TopicHistogramEntry]:
    """Single aggregating query."""
    course_unit_ids = (
        select(Unit.id)
        .join(Subject, Unit.subject_id == Subject.id)
        .where(Subject.course_id == config.course_id)
    )
    question_count = func.count(QuestionTopicWise.id)

    query = (
        db.query(Topic.id, Topic.name, question_count.label("question_count"))
        .join(Chapter, Topic.chapter_id == Chapter.id)
        .join(QuestionTopicWise, QuestionTopicWise.topic_id == Topic.id)
        .filter(or_(
            Chapter.unit_id.in_(course_unit_ids),
            Chapter.course_id == config.course_id,
        ))
    )
    query = _question_filters(query, config.question_type.value, config.slot_id, config.part_id)
    rows = (
        query.group_by(Topic.id, Topic.name)
        .having(question_count > 0)
        .order_by(question_count.desc(), Topic.id)
        .all()
    )
    return [
        TopicHistogramEntry(topic_id=row.id, topic_name=row.name, question_count=int(row.question_count))
        for row in rows
    ]


def fetch_histogram_hierarchical(db: Session, config: QuestionConfig) -> List[TopicHistogramEntry]:
    """Walk the syllabus hierarchy and count questions topic by topic."""
    course = db.query(Course).filter(Course.id == config.course_id).first()
    if not course:
        return []

    subject_ids = [s.id for s in db.query(Subject.id).filter(Subject.course_id == config.course_id).all()]
    unit_ids = []
    if subject_ids:
        unit_ids = [u.id for u in db.query(Unit.id).filter(Unit.subject_id.in_(subject_ids)).all()]

    chapter_filter = Chapter.course_id == config.course_id
    if unit_ids:
        chapter_filter = or_(Chapter.unit_id.in_(unit_ids), chapter_filter)
    chapter_ids = [c.id for c in db.query(Chapter.id).filter(chapter_filter).all()]
    if not chapter_ids:
        return []

    topics = db.query(Topic).filter(Topic.chapter_id.in_(chapter_ids)).all()

    entries: List[TopicHistogramEntry] = []
    for topic in topics:
        count_query = db.query(func.count(QuestionTopicWise.id)).filter(QuestionTopicWise.topic_id == topic.id)
        count = _question_filters(
            count_query, config.question_type.value, config.slot_id, config.part_id
        ).scalar() or 0
        if count > 0:
            entries.append(TopicHistogramEntry(topic_id=topic.id, topic_name=topic.name, question_count=count))

    return sorted(entries, key=_sort_key)


def fetch_topic_histogram(db: Session, config: QuestionConfig) -> List[TopicHistogramEntry]:
    """
    Per-topic historical question counts for a config.

    Tries the aggregate query first, falling back to the hierarchical walk.
    """
    try:
        entries = fetch_histogram_aggregate(db, config)
    except SQLAlchemyError as e:
        db.rollback()
        log.warning(f"[HISTOGRAM] Aggregate query failed ({e}); walking hierarchy instead")
        return fetch_histogram_hierarchical(db, config)

    if not entries:
        log.info(f"[HISTOGRAM] Aggregate query empty for course={config.course_id}; walking hierarchy")
        return fetch_histogram_hierarchical(db, config)

    log.info(f"[HISTOGRAM] course={config.course_id} type={config.question_type.value}: {len(entries)} topics")
    return entries
