"""
SQLAlchemy models for the question bank
Exam → Course → (Slot, Part) selection, Subject → Unit → Chapter → Topic hierarchy

questions_topic_wise holds historical (previous year) questions and is the
source of truth for topic weighting. new_questions is the append-only store of
machine-generated questions.
"""

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Text, Float, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from database.database import Base


class QuestionType(str, enum.Enum):
    """Enum for question types"""
    MCQ = "MCQ"   # single correct
    MSQ = "MSQ"   # multiple select
    NAT = "NAT"   # numerical answer
    SUB = "SUB"   # subjective


# ==========================================
# SELECTION: EXAM → COURSE → SLOT / PART
# ==========================================

class Exam(Base):
    """Competitive exam (e.g. 'GATE', 'JEE Main')."""
    __tablename__ = "exams"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    courses = relationship("Course", back_populates="exam", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Exam(id={self.id}, name='{self.name}')>"


class Course(Base):
    """Course (paper) offered under an exam (e.g. 'Computer Science')."""
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    exam = relationship("Exam", back_populates="courses")
    slots = relationship("Slot", back_populates="course", cascade="all, delete-orphan")
    parts = relationship("Part", back_populates="course", cascade="all, delete-orphan")
    subjects = relationship("Subject", back_populates="course", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Course(id={self.id}, name='{self.name}', exam_id={self.exam_id})>"


class Slot(Base):
    """Exam sitting / shift within a course (optional filter)."""
    __tablename__ = "slots"

    id = Column(Integer, primary_key=True, index=True)
    slot_name = Column(String(100), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)

    course = relationship("Course", back_populates="slots")

    def __repr__(self):
        return f"<Slot(id={self.id}, slot_name='{self.slot_name}')>"


class Part(Base):
    """
    Paper section (e.g. 'Part A'). Belongs to a course, and to a slot when the
    course is split into slots (slot_id NULL otherwise).
    """
    __tablename__ = "parts"

    id = Column(Integer, primary_key=True, index=True)
    part_name = Column(String(100), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    slot_id = Column(Integer, ForeignKey("slots.id", ondelete="CASCADE"), nullable=True, index=True)

    course = relationship("Course", back_populates="parts")

    def __repr__(self):
        return f"<Part(id={self.id}, part_name='{self.part_name}', slot_id={self.slot_id})>"


# ==========================================
# STRUCTURE: SUBJECT → UNIT → CHAPTER → TOPIC
# ==========================================

class Subject(Base):
    """Subject within a course (e.g. 'Operating Systems')."""
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)

    course = relationship("Course", back_populates="subjects")
    units = relationship("Unit", back_populates="subject", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Subject(id={self.id}, name='{self.name}', course_id={self.course_id})>"


class Unit(Base):
    """Mid-level organizational unit under a subject."""
    __tablename__ = "units"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True)

    subject = relationship("Subject", back_populates="units")
    chapters = relationship("Chapter", back_populates="unit")

    def __repr__(self):
        return f"<Unit(id={self.id}, name='{self.name}', subject_id={self.subject_id})>"


class Chapter(Base):
    """
    Chapter grouping topics.
    Linked to a unit, or directly to a course for flat syllabi (unit_id NULL).
    """
    __tablename__ = "chapters"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    unit_id = Column(Integer, ForeignKey("units.id", ondelete="CASCADE"), nullable=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=True, index=True)

    unit = relationship("Unit", back_populates="chapters")
    topics = relationship("Topic", back_populates="chapter", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Chapter(id={self.id}, name='{self.name}')>"


class Topic(Base):
    """
    Finest-grained syllabus element. Generation quotas are allocated per topic.
    notes: free-text study notes fed into the generation prompt.
    """
    __tablename__ = "topics"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    notes = Column(Text, nullable=True)
    chapter_id = Column(Integer, ForeignKey("chapters.id", ondelete="CASCADE"), nullable=False, index=True)

    chapter = relationship("Chapter", back_populates="topics")

    def __repr__(self):
        return f"<Topic(id={self.id}, name='{self.name}')>"


# ==========================================
# QUESTIONS: HISTORICAL + GENERATED
# ==========================================

class QuestionTopicWise(Base):
    """Historical (previous year) question tagged to a topic."""
    __tablename__ = "questions_topic_wise"

    id = Column(Integer, primary_key=True, index=True)
    topic_id = Column(Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, index=True)
    question_statement = Column(Text, nullable=False)
    question_type = Column(String(10), nullable=False, index=True)  # MCQ | MSQ | NAT | SUB
    options = Column(JSON, default=list, nullable=True)
    answer = Column(Text, nullable=True)
    solution = Column(Text, nullable=True)
    slot_id = Column(Integer, ForeignKey("slots.id", ondelete="SET NULL"), nullable=True, index=True)
    part_id = Column(Integer, ForeignKey("parts.id", ondelete="SET NULL"), nullable=True, index=True)
    diagram_json = Column(JSON, nullable=True)
    options_diagrams = Column(JSON, nullable=True)

    topic = relationship("Topic", backref="previous_questions")

    def __repr__(self):
        return f"<QuestionTopicWise(id={self.id}, topic_id={self.topic_id}, type='{self.question_type}')>"


class NewQuestion(Base):
    """
    Machine-generated question (append-only).
    Carries the scoring fields of the configuration that produced it.
    """
    __tablename__ = "new_questions"

    id = Column(Integer, primary_key=True, index=True)
    topic_id = Column(Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, index=True)
    topic_name = Column(String(255), nullable=True)
    question_statement = Column(Text, nullable=False)
    question_type = Column(String(10), nullable=False, index=True)
    options = Column(JSON, default=list, nullable=True)
    answer = Column(Text, nullable=True)
    solution = Column(Text, nullable=True)
    slot_id = Column(Integer, ForeignKey("slots.id", ondelete="SET NULL"), nullable=True, index=True)
    part_id = Column(Integer, ForeignKey("parts.id", ondelete="SET NULL"), nullable=True, index=True)
    diagram_json = Column(JSON, nullable=True)
    options_diagrams = Column(JSON, nullable=True)

    # Scoring, copied from the generation config
    correct_marks = Column(Float, nullable=True)
    incorrect_marks = Column(Float, nullable=True)
    skipped_marks = Column(Float, nullable=True)
    partial_marks = Column(Float, nullable=True)
    time_minutes = Column(Float, nullable=True)

    answer_done = Column(Boolean, default=True, nullable=False)
    solution_done = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    topic = relationship("Topic", backref="generated_questions")

    def __repr__(self):
        return f"<NewQuestion(id={self.id}, topic_id={self.topic_id}, type='{self.question_type}')>"


class QuestionGenerationRun(Base):
    """Tracks each generation run: requested vs completed counts per topic, fail reasons."""
    __tablename__ = "question_generation_runs"

    id = Column(Integer, primary_key=True, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id", ondelete="SET NULL"), nullable=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="SET NULL"), nullable=True, index=True)
    question_type = Column(String(10), nullable=False)

    model = Column(String(100), nullable=True)
    config = Column(JSON, nullable=True)  # full QuestionConfig snapshot
    status = Column(String(20), default="running", nullable=False, index=True)  # running | completed | failed | cancelled
    counts_requested = Column(JSON, nullable=True)  # {topic_id: quota}
    counts_completed = Column(JSON, nullable=True)  # {topic_id: completed}
    fail_reasons = Column(JSON, default=list, nullable=False)  # list of strings
    fatal_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    finished_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<QuestionGenerationRun(id={self.id}, status='{self.status}')>"
