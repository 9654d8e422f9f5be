"""
Shared fixtures.

All tests run fully offline: SQLite in-memory database, no LLM calls.
"""
import os
import sys

os.environ.setdefault("DATABASE_URL", "sqlite://")
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.database import Base
from database import models


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _pyq(topic, n, question_type="MCQ", slot=None, part=None, **kw):
    return [
        models.QuestionTopicWise(
            topic_id=topic.id,
            question_statement=f"{topic.name} PYQ {i + 1}",
            question_type=question_type,
            options=["(A) 1", "(B) 2", "(C) 3", "(D) 4"] if question_type in ("MCQ", "MSQ") else [],
            answer="A",
            solution=f"Because {i + 1}",
            slot_id=slot.id if slot else None,
            part_id=part.id if part else None,
            **kw,
        )
        for i in range(n)
    ]


@pytest.fixture
def seeded(db):
    """
    GATE / CS:
      Scheduling  (chapter under a unit)   3 MCQ (1 in slot S1 / part A), 1 NAT
      Paging      (chapter under a unit)   1 MCQ
      Deadlocks   (chapter on the course)  3 MCQ
      Recursion   (no questions)
    Another course has a topic with MCQs that must never show up.
    """
    exam = models.Exam(name="GATE")
    db.add(exam)
    db.flush()
    course = models.Course(exam_id=exam.id, name="Computer Science")
    other_course = models.Course(exam_id=exam.id, name="Electrical")
    db.add_all([course, other_course])
    db.flush()

    slot = models.Slot(course_id=course.id, slot_name="S1")
    db.add(slot)
    db.flush()
    part_a = models.Part(course_id=course.id, slot_id=slot.id, part_name="Part A")
    part_free = models.Part(course_id=course.id, slot_id=None, part_name="General")
    db.add_all([part_a, part_free])

    subject = models.Subject(course_id=course.id, name="Operating Systems")
    other_subject = models.Subject(course_id=other_course.id, name="Circuits")
    db.add_all([subject, other_subject])
    db.flush()
    unit = models.Unit(subject_id=subject.id, name="Processes")
    other_unit = models.Unit(subject_id=other_subject.id, name="Networks")
    db.add_all([unit, other_unit])
    db.flush()

    ch_unit = models.Chapter(name="CPU", unit_id=unit.id)
    ch_course = models.Chapter(name="Concurrency", course_id=course.id)
    ch_other = models.Chapter(name="KVL", unit_id=other_unit.id)
    db.add_all([ch_unit, ch_course, ch_other])
    db.flush()

    scheduling = models.Topic(name="Scheduling", chapter_id=ch_unit.id, notes="Round robin, SJF, FCFS")
    paging = models.Topic(name="Paging", chapter_id=ch_unit.id)
    deadlocks = models.Topic(name="Deadlocks", chapter_id=ch_course.id, notes="Banker's algorithm")
    recursion = models.Topic(name="Recursion", chapter_id=ch_unit.id)
    kvl = models.Topic(name="KVL", chapter_id=ch_other.id)
    db.add_all([scheduling, paging, deadlocks, recursion, kvl])
    db.flush()

    db.add_all(_pyq(scheduling, 2))
    db.add_all(_pyq(scheduling, 1, slot=slot, part=part_a, diagram_json={"nodes": []}))
    db.add_all(_pyq(scheduling, 1, question_type="NAT"))
    db.add_all(_pyq(paging, 1))
    db.add_all(_pyq(deadlocks, 3))
    db.add_all(_pyq(kvl, 5))
    db.commit()

    return {
        "exam": exam,
        "course": course,
        "other_course": other_course,
        "slot": slot,
        "part_a": part_a,
        "part_free": part_free,
        "scheduling": scheduling,
        "paging": paging,
        "deadlocks": deadlocks,
        "recursion": recursion,
    }
