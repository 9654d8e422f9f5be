"""
Pydantic schemas for the question generation pipeline.
Supports four question types: MCQ, MSQ, NAT and SUB.

Config → Histogram → Allocation → GeneratedQuestion (per unit of quota)
"""

from typing import List, Optional, Dict, Any
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict

from database.models import QuestionType


class InvalidTransitionError(RuntimeError):
    """Raised when a GeneratedQuestion leaves a terminal status."""


# ─── Configuration ─────────────────────────────────────────────────────────────

class QuestionConfig(BaseModel):
    """What to generate. Frozen: a running pipeline must never see it change."""
    model_config = ConfigDict(frozen=True)

    exam_id: int = Field(..., description="Exam ID")
    course_id: int = Field(..., description="Course ID")
    slot_id: Optional[int] = Field(None, description="Slot ID (optional filter)")
    part_id: Optional[int] = Field(None, description="Part ID (optional filter)")
    question_type: QuestionType = QuestionType.MCQ
    number_of_questions: int = Field(..., ge=1, description="Total questions to generate")
    time_minutes: float = Field(3, ge=0)
    correct_marks: float = 4
    incorrect_marks: float = -1
    skipped_marks: float = 0
    partial_marks: float = 0


# ─── Allocation ────────────────────────────────────────────────────────────────

class TopicHistogramEntry(BaseModel):
    """Count of historical questions for one topic matching the config filters."""
    model_config = ConfigDict(frozen=True)

    topic_id: int
    topic_name: str
    question_count: int = Field(..., ge=0)


class TopicAllocation(BaseModel):
    """How many questions one topic contributes to a run."""
    model_config = ConfigDict(frozen=True)

    topic_id: int
    topic_name: str
    weightage: int                      # = histogram question_count
    questions_to_generate: int = Field(..., ge=0)


# ─── Context ───────────────────────────────────────────────────────────────────

class ReferenceQuestion(BaseModel):
    """A historical or previously generated question shown to the model as context."""
    question_statement: str
    options: List[str] = Field(default_factory=list)
    answer: str = ""
    solution: str = ""
    has_diagram: bool = False


# ─── Generation output ─────────────────────────────────────────────────────────

class QuestionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class GeneratedQuestionData(BaseModel):
    """Parsed model output for one question."""
    question_statement: str
    options: List[str] = Field(default_factory=list)
    answer: str = ""
    solution: str = ""


class GeneratedQuestion(BaseModel):
    """
    One unit of generation. Starts pending; moves to completed or failed exactly once.
    """
    topic_id: int
    topic_name: str
    question_type: QuestionType
    question_statement: str = ""
    options: List[str] = Field(default_factory=list)
    answer: str = ""
    solution: str = ""
    status: QuestionStatus = QuestionStatus.PENDING
    error: Optional[str] = None

    def mark_completed(self, data: GeneratedQuestionData) -> "GeneratedQuestion":
        self._leave_pending(QuestionStatus.COMPLETED)
        self.question_statement = data.question_statement
        self.options = list(data.options)
        self.answer = data.answer
        self.solution = data.solution
        self.status = QuestionStatus.COMPLETED
        return self

    def mark_failed(self, error: str) -> "GeneratedQuestion":
        self._leave_pending(QuestionStatus.FAILED)
        self.question_statement = ""
        self.options = []
        self.answer = ""
        self.solution = ""
        self.error = error
        self.status = QuestionStatus.FAILED
        return self

    def _leave_pending(self, target: QuestionStatus) -> None:
        if self.status != QuestionStatus.PENDING:
            raise InvalidTransitionError(
                f"Cannot move question from {self.status.value} to {target.value}"
            )


# ─── Run state / progress ──────────────────────────────────────────────────────

class RunStatus(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"        # fatal: aborted outside the per-question scope
    CANCELLED = "cancelled"


class TopicProgress(BaseModel):
    """Per-topic breakdown: how much of the quota was delivered."""
    topic_id: int
    topic_name: str
    quota: int
    completed: int = 0
    failed: int = 0

    @property
    def attempted(self) -> int:
        return self.completed + self.failed


class GenerationProgress(BaseModel):
    """Snapshot of a pipeline, enough to render a progress bar and topic breakdown."""
    status: RunStatus
    current_topic_index: int
    current_question_index: int
    total_questions: int
    attempted_questions: int
    percent: float
    topics: List[TopicProgress]
    questions: List[GeneratedQuestion]
    fatal_error: Optional[str] = None


# ─── API request / response ────────────────────────────────────────────────────

class GenerationRequest(BaseModel):
    """Start (or preview) a generation run."""
    config: QuestionConfig
    api_key: Optional[str] = Field(
        None, description="LLM API key; falls back to OPENAI_API_KEY when omitted"
    )


class AllocationPreviewResponse(BaseModel):
    config: QuestionConfig
    total_questions: int
    allocations: List[TopicAllocation]


class StartRunResponse(BaseModel):
    run_id: int
    status: RunStatus
    total_questions: int
    allocations: List[TopicAllocation]


class RunProgressResponse(BaseModel):
    run_id: int
    config: QuestionConfig
    progress: GenerationProgress
    metadata: Dict[str, Any] = Field(default_factory=dict)
