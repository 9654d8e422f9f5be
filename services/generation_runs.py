"""
Generation run orchestration for the API layer.

plan_generation: config → histogram → allocation list (raises on no eligible topics)
RunRegistry:     registers pipelines, runs them (from a background task), keeps the
                 most recent ones for progress polling and writes the outcome to
                 question_generation_runs.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from database import crud
from generation.gpt_client import GPT_MODEL
from generation.pipeline import GenerationPipeline, GenerateFn, GENERATION_DELAY_SECONDS
from generation.question_generator import generate_question
from generation.question_store import SqlQuestionStore
from generation.schemas import QuestionConfig, TopicAllocation, RunStatus, QuestionStatus
from generation.topic_allocator import allocate, NoEligibleTopicsError
from generation.topic_histogram import fetch_topic_histogram

log = logging.getLogger("generation.pipeline")

MAX_FAIL_REASONS = 50
MAX_FINISHED_PIPELINES = 20


def plan_generation(db: Session, config: QuestionConfig) -> List[TopicAllocation]:
    """
    Resolve a config into its allocation list.

    Raises NoEligibleTopicsError before any run state exists when no topic
    has a matching historical question.
    """
    histogram = fetch_topic_histogram(db, config)
    allocations = allocate(config, histogram)
    if not allocations:
        raise NoEligibleTopicsError(config)
    return allocations


def summarize_pipeline(pipeline: GenerationPipeline) -> dict:
    """Run-record fields describing where a pipeline ended up."""
    completed: Dict[str, int] = {}
    fail_reasons: List[str] = []
    for q in pipeline.questions:
        if q.status == QuestionStatus.COMPLETED:
            completed[str(q.topic_id)] = completed.get(str(q.topic_id), 0) + 1
        elif q.status == QuestionStatus.FAILED:
            fail_reasons.append(f"{q.topic_name}: {q.error}")
    return {
        "status": pipeline.status.value,
        "counts_completed": completed,
        "fail_reasons": fail_reasons[:MAX_FAIL_REASONS],
        "fatal_error": pipeline.fatal_error,
    }


class RunRegistry:
    """In-process registry of running and finished pipelines, keyed by run id."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        generate_fn: GenerateFn = generate_question,
        delay_seconds: float = GENERATION_DELAY_SECONDS,
    ):
        self.session_factory = session_factory
        self.generate_fn = generate_fn
        self.delay_seconds = delay_seconds
        self._pipelines: Dict[int, GenerationPipeline] = {}
        self._sessions: Dict[int, Session] = {}
        self._finished: List[int] = []

    def get(self, run_id: int) -> Optional[GenerationPipeline]:
        return self._pipelines.get(run_id)

    def cancel(self, run_id: int) -> bool:
        pipeline = self._pipelines.get(run_id)
        if pipeline is None:
            return False
        pipeline.cancel()
        return True

    def create(
        self,
        db: Session,
        config: QuestionConfig,
        allocations: Sequence[TopicAllocation],
        api_key: Optional[str] = None,
    ) -> int:
        """Persist the run record and register a pipeline for it. Returns the run id."""
        run = crud.create_generation_run(
            db,
            exam_id=config.exam_id,
            course_id=config.course_id,
            question_type=config.question_type.value,
            model=GPT_MODEL,
            config=config.model_dump(mode="json"),
            status=RunStatus.RUNNING.value,
            counts_requested={str(a.topic_id): a.questions_to_generate for a in allocations},
            counts_completed={},
            fail_reasons=[],
        )
        worker_db = self.session_factory()
        pipeline = GenerationPipeline(
            config,
            allocations,
            SqlQuestionStore(worker_db),
            api_key=api_key,
            generate_fn=self.generate_fn,
            delay_seconds=self.delay_seconds,
        )
        self._sessions[run.id] = worker_db
        self._pipelines[run.id] = pipeline
        log.info(f"[RUN {run.id}] Registered: {pipeline.total_questions} questions")
        return run.id

    async def execute(self, run_id: int) -> RunStatus:
        """Run a registered pipeline to completion and persist its outcome."""
        pipeline = self._pipelines[run_id]
        db = self._sessions.pop(run_id)
        try:
            status = await pipeline.run()
            log.info(f"[RUN {run_id}] Finished with status {status.value}")
            return status
        finally:
            try:
                # A fatal database error leaves the worker transaction unusable
                db.rollback()
                crud.update_generation_run(
                    db, run_id,
                    finished_at=datetime.now(timezone.utc),
                    **summarize_pipeline(pipeline),
                )
            finally:
                db.close()
                self._retire(run_id)

    def _retire(self, run_id: int) -> None:
        """Keep only the most recent MAX_FINISHED_PIPELINES finished pipelines in memory."""
        self._finished.append(run_id)
        while len(self._finished) > MAX_FINISHED_PIPELINES:
            evicted = self._finished.pop(0)
            self._pipelines.pop(evicted, None)
            log.info(f"[RUN {evicted}] Evicted from memory; the persisted record remains")
